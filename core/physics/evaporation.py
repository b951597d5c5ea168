# File: dosing_twin/core/physics/evaporation.py
"""
Cooling Tower Water Balance

Evaporation and blowdown estimates for open recirculating cooling systems:
- Evaporation loss from circulation rate and temperature range
- Cycles of concentration from the measured hardness ratio
- Blowdown required to hold the cycles of concentration

    E = R × ΔT × 1.8 × 24 / 1000        (per day)
    B = E / (C - 1)                      (C > 1, else no blowdown)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from config import settings
from core.models import CWSParameterRecord

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


@dataclass
class CoolingTowerBalance:
    """Water balance of a cooling tower over a number of days."""
    evaporation: float
    concentration_cycles: float
    blowdown: float
    days: float = 1.0

    def to_dict(self) -> dict:
        return {
            "evaporation": round(self.evaporation, 4),
            "concentration_cycles": round(self.concentration_cycles, 3),
            "blowdown": round(self.blowdown, 4),
            "days": self.days,
        }


def evaporation_loss(circulation_rate: float, temp_diff: float, days: float = 1.0) -> float:
    return (circulation_rate * temp_diff * settings.CWS_EVAPORATION_FACTOR * HOURS_PER_DAY * days) / 1000


def concentration_cycles(record: CWSParameterRecord) -> float:
    """
    Cycles of concentration for a parameter record.

    The measured hardness ratio (circulating / makeup) overrides the stored
    cycles value whenever both hardness values are present and makeup
    hardness is positive. Without either, 1 (no blowdown).
    """
    if record.cws_hardness and record.makeup_hardness and record.makeup_hardness > 0:
        return record.cws_hardness / record.makeup_hardness
    return record.concentration_cycles or 1.0


def blowdown(evaporation: float, cycles: float) -> float:
    return evaporation / (cycles - 1) if cycles > 1 else 0.0


def cooling_tower_balance(record: CWSParameterRecord, days: float = 1.0) -> CoolingTowerBalance:
    evaporation = evaporation_loss(record.circulation_rate or 0.0, record.temp_diff or 0.0, days)
    cycles = concentration_cycles(record)
    result = CoolingTowerBalance(
        evaporation=evaporation,
        concentration_cycles=cycles,
        blowdown=blowdown(evaporation, cycles),
        days=days,
    )
    logger.debug(f"Cooling tower balance for {record.tank_id} @ {record.date}: {result.to_dict()}")
    return result


def blowdown_usage_kg(record: CWSParameterRecord, target_ppm: Optional[float], days: float = 1.0) -> float:
    """Chemical needed to dose the blowdown at `target_ppm` over `days`."""
    if not target_ppm:
        return 0.0
    return cooling_tower_balance(record, days).blowdown * target_ppm / 1000
