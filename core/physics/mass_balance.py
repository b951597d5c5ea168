# File: dosing_twin/core/physics/mass_balance.py
"""
Mass Balance for Chemical Dosing Tanks

Implements mass conservation between consecutive tank readings:
- Level-to-mass snapshot of a reading (geometry volume × specific gravity)
- Specific gravity selection for a new reading
- Re-stamping readings when a new contract changes the specific gravity
- Usage inferred over the interval between two readings

The usage between readings `prev` and `curr` is

    usage = (prev weight + refill at curr) - curr weight

where the refill is recorded on the reading taken after it. A refill with an
unknown specific gravity makes the interval unknown; unknown and negative
intervals both count as zero usage.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from config import settings
from core.models import Tank, Reading, ChemicalSupply
from core.periods import SECONDS_PER_DAY
from core.physics.geometry import volume_liters
from core.resolvers import active_supply, supplies_for_tank

logger = logging.getLogger(__name__)


@dataclass
class ReadingSnapshot:
    """Derived values stored with a reading."""
    level_cm: float
    volume_litres: float
    specific_gravity: float
    weight_kg: float

    def to_dict(self) -> dict:
        return {
            "level_cm": round(self.level_cm, 2),
            "volume_litres": round(self.volume_litres, 2),
            "specific_gravity": round(self.specific_gravity, 4),
            "weight_kg": round(self.weight_kg, 2),
        }


@dataclass
class IntervalUsage:
    """Usage inferred between two consecutive readings."""
    start: datetime.datetime
    end: datetime.datetime
    elapsed_days: float
    added_kg: Optional[float]
    total_usage_kg: Optional[float]

    @property
    def is_known(self) -> bool:
        return self.total_usage_kg is not None

    @property
    def daily_rate_kg(self) -> float:
        """Usage per day, clamped at zero. Unknown usage contributes zero."""
        if self.total_usage_kg is None or self.elapsed_days <= 0:
            return 0.0
        return max(0.0, self.total_usage_kg / self.elapsed_days)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(timespec='seconds'),
            "end": self.end.isoformat(timespec='seconds'),
            "elapsed_days": round(self.elapsed_days, 4),
            "added_kg": round(self.added_kg, 2) if self.added_kg is not None else None,
            "total_usage_kg": round(self.total_usage_kg, 2) if self.total_usage_kg is not None else None,
            "daily_rate_kg": round(self.daily_rate_kg, 4),
        }


class MassBalanceCalculator:
    """
    Calculator for mass balance operations on dosing tanks.

    Specific gravity is used as kg per litre:
        Mass (kg) = Volume (L) × SG

    Usage:
        calc = MassBalanceCalculator()
        snapshot = calc.snapshot_reading(tank, level_cm=120.0, specific_gravity=1.12)
        interval = calc.interval_usage(prev_reading, curr_reading)
    """

    def calculate_mass_from_volume(self, volume_litres: float, specific_gravity: float) -> float:
        return volume_litres * specific_gravity

    def snapshot_reading(self, tank: Tank, level_cm: float, specific_gravity: float) -> ReadingSnapshot:
        """Volume and weight held by `tank` at `level_cm`."""
        volume = volume_liters(tank, level_cm)
        weight = self.calculate_mass_from_volume(volume, specific_gravity)
        logger.debug(
            f"{tank}: {level_cm} cm -> {volume:,.2f} L × SG {specific_gravity} = {weight:,.2f} kg"
        )
        return ReadingSnapshot(level_cm=level_cm, volume_litres=volume,
                               specific_gravity=specific_gravity, weight_kg=weight)

    def resolve_specific_gravity(self,
                                 custom_sg: Optional[float] = None,
                                 previous_reading: Optional[Reading] = None,
                                 supply: Optional[ChemicalSupply] = None) -> float:
        """
        SG for a new reading, in precedence order: an explicit positive value
        from the operator, the SG of the tank's previous reading, the active
        contract's SG, then the configured default.
        """
        if custom_sg and custom_sg > 0:
            return custom_sg
        if previous_reading is not None and previous_reading.applied_specific_gravity:
            return previous_reading.applied_specific_gravity
        if supply is not None and supply.specific_gravity:
            return supply.specific_gravity
        return settings.DEFAULT_SPECIFIC_GRAVITY

    def restamp_readings(self,
                         tank: Tank,
                         readings: Iterable[Reading],
                         supplies: Iterable[ChemicalSupply],
                         since: datetime.datetime) -> List[Reading]:
        """
        After a contract starting at `since` is added, re-applies the active
        contract's SG to the tank's readings taken at or after `since`.

        Returns only the readings that changed, as new values. Readings without
        a stored level cannot be re-weighed and are left alone.
        """
        history = supplies_for_tank(tank.id, supplies)
        updated = []
        for reading in readings:
            if reading.tank_id != tank.id or reading.timestamp < since:
                continue
            supply = active_supply(reading.timestamp, history)
            if supply is None or supply.specific_gravity is None:
                continue
            if supply.specific_gravity == reading.applied_specific_gravity:
                continue
            if reading.level_cm is None:
                logger.warning(f"Reading {reading.id} of {tank} has no level. Cannot re-apply SG {supply.specific_gravity}.")
                continue

            snapshot = self.snapshot_reading(tank, reading.level_cm, supply.specific_gravity)
            updated.append(reading.model_copy(update={
                "applied_specific_gravity": supply.specific_gravity,
                "calculated_volume": snapshot.volume_litres,
                "calculated_weight_kg": snapshot.weight_kg,
                "supply_id": supply.id,
            }))

        logger.info(f"Re-stamped {len(updated)} reading(s) of {tank} since {since.isoformat()}.")
        return updated

    def interval_usage(self, prev: Reading, curr: Reading) -> IntervalUsage:
        """
        Usage between two readings of the same tank.

        Returns an IntervalUsage whose `total_usage_kg` is None when any input
        weight or the refill SG is missing.
        """
        elapsed_days = (curr.timestamp - prev.timestamp).total_seconds() / SECONDS_PER_DAY

        added_kg: Optional[float] = None
        if curr.applied_specific_gravity is not None:
            added_kg = curr.added_amount_liters * curr.applied_specific_gravity

        total_usage_kg: Optional[float] = None
        if added_kg is not None and prev.calculated_weight_kg is not None and curr.calculated_weight_kg is not None:
            total_usage_kg = (prev.calculated_weight_kg + added_kg) - curr.calculated_weight_kg
        else:
            logger.debug(f"Interval {prev.id} -> {curr.id}: missing weight or refill SG. Usage unknown.")

        return IntervalUsage(
            start=prev.timestamp,
            end=curr.timestamp,
            elapsed_days=elapsed_days,
            added_kg=added_kg,
            total_usage_kg=total_usage_kg,
        )
