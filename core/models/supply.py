# File: dosing_twin/core/models/supply.py
import datetime
from typing import Optional

from pydantic import field_validator

from .base import Snapshot, validate_timestamp


class ChemicalSupply(Snapshot):
    """A supply contract, effective from `start_date` until the next one for the same tank."""
    id: str
    tank_id: str
    start_date: datetime.datetime
    specific_gravity: Optional[float] = None
    price: Optional[float] = None  # per kg
    target_ppm: Optional[float] = None
    supplier_name: str = ""
    chemical_name: str = ""
    notes: Optional[str] = None

    @field_validator('start_date', mode='before')
    @classmethod
    def validate_start_date(cls, v):
        return validate_timestamp(v, 'start_date')
