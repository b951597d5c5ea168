# File: dosing_twin/core/allocation.py
"""
Daily allocation of actual usage.

Actual usage is only known between readings. Each interval's usage is spread
evenly over the calendar days it spans; a day keeps the first rate written
to it.
"""
import datetime
import logging
from typing import Dict, Iterable, List

from core.models import Reading
from core.periods import ONE_DAY, day_key
from core.physics.mass_balance import MassBalanceCalculator

logger = logging.getLogger(__name__)

DailyUsage = Dict[datetime.date, float]


def prepare_readings(readings: Iterable[Reading]) -> List[Reading]:
    """De-duplicates readings by id (first occurrence wins) and sorts them by timestamp."""
    seen = set()
    unique = []
    for reading in readings:
        if reading.id in seen:
            continue
        seen.add(reading.id)
        unique.append(reading)
    return sorted(unique, key=lambda r: r.timestamp)


class ActualUsageAllocator:
    """
    Builds a per-day actual usage map (kg/day) from a tank's readings.

    Usage:
        allocator = ActualUsageAllocator()
        daily = allocator.daily_actual_usage(tank_readings)
        daily[datetime.date(2024, 3, 1)]  # kg used that day
    """

    def __init__(self, mass_calculator: MassBalanceCalculator = None):
        self.mass_calculator = mass_calculator or MassBalanceCalculator()

    def daily_actual_usage(self, readings: Iterable[Reading]) -> DailyUsage:
        ordered = prepare_readings(readings)
        daily: DailyUsage = {}
        skipped = 0

        for prev, curr in zip(ordered, ordered[1:]):
            interval = self.mass_calculator.interval_usage(prev, curr)
            if interval.elapsed_days <= 0:
                skipped += 1
                continue

            rate = interval.daily_rate_kg
            step = prev.timestamp
            while step < curr.timestamp:
                daily.setdefault(day_key(step), rate)
                step = step + ONE_DAY

        if skipped:
            logger.debug(f"Skipped {skipped} zero-length reading interval(s).")
        return daily


def sum_days(daily: DailyUsage, days: Iterable[datetime.date]) -> float:
    return sum(daily.get(day, 0.0) for day in days)
