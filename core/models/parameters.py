# File: dosing_twin/core/models/parameters.py
import datetime
from typing import Optional

from pydantic import field_validator

from .base import Snapshot, validate_timestamp


class ParameterRecord(Snapshot):
    """A weekly process-parameter record; `date` is the start of its week."""
    tank_id: str
    id: Optional[str] = None
    date: Optional[datetime.datetime] = None

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        return validate_timestamp(v, 'date', required=False)


class CWSParameterRecord(ParameterRecord):
    """Cooling water system parameters."""
    circulation_rate: Optional[float] = None  # m3/hr
    temp_outlet: Optional[float] = None
    temp_return: Optional[float] = None
    temp_diff: Optional[float] = None  # delta T, C
    cws_hardness: Optional[float] = None  # ppm
    makeup_hardness: Optional[float] = None  # ppm
    concentration_cycles: Optional[float] = None


class BWSParameterRecord(ParameterRecord):
    """Boiler water system parameters."""
    steam_production: Optional[float] = None  # tons, weekly total
