# File: dosing_twin/core/models/tank.py
import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import field_validator

from .base import Snapshot
from .parameters import CWSParameterRecord, BWSParameterRecord
from .reading import Reading

logger = logging.getLogger(__name__)


class SystemType(str, Enum):
    BOILER = "BOILER"
    COOLING = "COOLING"
    WASTEWATER = "WASTEWATER"
    DENOX = "DENOX"


class CalculationMethod(str, Enum):
    NONE = "NONE"
    CWS_BLOWDOWN = "CWS_BLOWDOWN"  # cooling water, evaporation / blowdown
    BWS_STEAM = "BWS_STEAM"  # boiler water, steam ratio


class ShapeType(str, Enum):
    VERTICAL_CYLINDER = "VERTICAL_CYLINDER"
    HORIZONTAL_CYLINDER = "HORIZONTAL_CYLINDER"
    RECTANGULAR = "RECTANGULAR"


class HeadType(str, Enum):
    FLAT = "FLAT"
    HEMISPHERICAL = "HEMISPHERICAL"
    SEMI_ELLIPTICAL_2_1 = "SEMI_ELLIPTICAL_2_1"


class TankDimensions(Snapshot):
    """Tank dimensions, all in cm."""
    diameter: Optional[float] = None  # inside diameter
    length: Optional[float] = None  # tangent to tangent for horizontal tanks
    width: Optional[float] = None
    height: Optional[float] = None
    sensor_offset: Optional[float] = None  # distance from bottom to sensor zero
    head_type: Optional[HeadType] = None


class Tank(Snapshot):
    id: str
    name: str = ""
    system: Optional[SystemType] = None
    description: Optional[str] = None
    capacity_liters: Optional[float] = None
    factor: Optional[float] = None  # legacy liters per cm

    safe_min_level: float = 15.0  # percent of capacity

    calculation_method: CalculationMethod = CalculationMethod.NONE
    shape_type: Optional[ShapeType] = None
    dimensions: Optional[TankDimensions] = None
    strapping_table: Optional[Dict[float, float]] = None  # level cm -> litres, site calibration

    # Tank-level defaults, only for the bulk-period theoretical variant.
    cws_params: Optional[CWSParameterRecord] = None
    bws_params: Optional[BWSParameterRecord] = None

    @field_validator('calculation_method', mode='before')
    @classmethod
    def default_calculation_method(cls, v):
        return CalculationMethod.NONE if v is None or v == "" else v

    @field_validator('safe_min_level', mode='before')
    @classmethod
    def default_safe_min_level(cls, v):
        return 15.0 if v is None else v

    @property
    def has_theoretical_model(self) -> bool:
        return self.calculation_method != CalculationMethod.NONE

    def fill_percent(self, reading: Optional[Reading]) -> Optional[float]:
        """Volume of `reading` as a percentage of capacity; 0 without a reading, None without a capacity."""
        if not self.capacity_liters or self.capacity_liters <= 0:
            return None
        if reading is None:
            return 0.0
        return (reading.calculated_volume or 0.0) / self.capacity_liters * 100

    def is_low_level(self, last_reading: Optional[Reading]) -> bool:
        fill = self.fill_percent(last_reading)
        return fill is not None and fill < self.safe_min_level

    def __str__(self) -> str:
        return f"Tank - {self.id} ({self.name or 'No name'})"
