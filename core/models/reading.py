# File: dosing_twin/core/models/reading.py
import datetime
from typing import Optional

from pydantic import field_validator

from .base import Snapshot, validate_timestamp


class Reading(Snapshot):
    """
    A tank level reading with its snapshot of derived values.

    A refill is recorded on the reading taken after it: `added_amount_liters`
    with the specific gravity it was dosed at. `applied_specific_gravity` is
    optional; an unknown SG makes the interval ending at this
    reading unknown instead of being guessed.
    """
    id: str
    tank_id: str
    timestamp: datetime.datetime
    level_cm: Optional[float] = None
    calculated_volume: Optional[float] = None  # liters
    calculated_weight_kg: Optional[float] = None
    applied_specific_gravity: Optional[float] = None
    supply_id: Optional[str] = None
    added_amount_liters: float = 0.0
    operator_name: Optional[str] = None

    @field_validator('timestamp', mode='before')
    @classmethod
    def validate_reading_timestamp(cls, v):
        return validate_timestamp(v, 'timestamp')

    @field_validator('added_amount_liters', mode='before')
    @classmethod
    def default_added_amount(cls, v):
        return 0.0 if v is None else v
