# File: dosing_twin/core/models/base.py
import datetime
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from utils.helpers import coerce_datetime

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """
    Base class for every entity handed to the engine by the storage layer.

    Snapshots are frozen: the engine never mutates them, and a changed entity is
    always a new value (see `model_copy(update=...)`). Field names are accepted
    both in snake_case and in the camelCase used by the storage service.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def validate_timestamp(value: Any, field_name: str, required: bool = True) -> Optional[datetime.datetime]:
    """Shared `mode='before'` validator body for timestamp fields."""
    if value is None:
        if required:
            raise ValueError(f"{field_name} cannot be null.")
        return None
    dt = coerce_datetime(value)
    if dt is None:
        raise ValueError(f"Invalid {field_name}: {value!r}. Expected ISO 8601 string, epoch milliseconds, date or datetime.")
    return dt
