# File: dosing_twin/core/physics/theoretical.py
"""
Theoretical Chemical Usage

Predicts the chemical mass a system should consume from its process
parameters and the contract's target dosage:
- CWS_BLOWDOWN: dosing the cooling tower blowdown (see evaporation.py)
- BWS_STEAM: dosing in proportion to boiler steam production

Two call shapes exist and must not be mixed:
- the daily model walks calendar days, resolving the contract and the weekly
  parameter record covering each day (a weekly steam total is spread over its
  window);
- the bulk-period model takes one parameter record for a whole period (the
  tank default is allowed) and treats its steam production as the period total.
"""

import datetime
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from config import settings
from core.models import (
    Tank, CalculationMethod, ChemicalSupply, ParameterRecord, CWSParameterRecord, BWSParameterRecord
)
from core.periods import SECONDS_PER_DAY
from core.resolvers import active_supply, covering_record, period_record
from core.physics.evaporation import blowdown_usage_kg
from utils.helpers import day_start

logger = logging.getLogger(__name__)


@dataclass
class DailyTheory:
    """Theoretical usage for one day. `has_data` is False unless a contract ppm and a parameter record backed it."""
    day: datetime.date
    usage_kg: float = 0.0
    has_data: bool = False

    def to_dict(self) -> dict:
        return {"day": self.day.isoformat(), "usage_kg": round(self.usage_kg, 4), "has_data": self.has_data}


@dataclass
class TheoreticalTotal:
    """Sum of the daily model over a set of days up to the as-of instant."""
    total_kg: float = 0.0
    days_with_data: int = 0
    days: List[DailyTheory] = field(default_factory=list)

    @property
    def value(self) -> Optional[float]:
        """The total, or None when no measured process data backed it."""
        if self.total_kg > 0 and self.days_with_data > 0:
            return self.total_kg
        return None


def steam_usage_kg(steam_production: float, target_ppm: Optional[float]) -> float:
    if not target_ppm:
        return 0.0
    return steam_production * target_ppm / 1000


class TheoreticalUsageCalculator:
    """
    Calculator for theoretical chemical usage.

    Usage:
        calc = TheoreticalUsageCalculator()
        total = calc.total_for_days(tank, days, supplies, cws_history, as_of=now)
        total.value  # kg, or None if no parameter-backed day
    """

    def daily_usage(self,
                    tank: Tank,
                    day: datetime.date,
                    supplies: Sequence[ChemicalSupply],
                    history: Sequence[ParameterRecord]) -> DailyTheory:
        """
        Theoretical usage on `day` under the tank's calculation method.

        Args:
            tank: The tank; its calculation method picks the model.
            day: Calendar day.
            supplies: The tank's contract history.
            history: The tank's weekly parameter records for its method.
        """
        at = day_start(day)
        supply = active_supply(at, supplies)
        target_ppm = supply.target_ppm if supply else None
        if not target_ppm:
            return DailyTheory(day)

        record = covering_record(at, history)
        if record is None:
            return DailyTheory(day)

        if tank.calculation_method == CalculationMethod.CWS_BLOWDOWN and isinstance(record, CWSParameterRecord):
            return DailyTheory(day, blowdown_usage_kg(record, target_ppm), True)

        if tank.calculation_method == CalculationMethod.BWS_STEAM and isinstance(record, BWSParameterRecord):
            if not record.steam_production:
                return DailyTheory(day)
            daily_steam = record.steam_production / settings.PARAMETER_WINDOW_DAYS
            return DailyTheory(day, steam_usage_kg(daily_steam, target_ppm), True)

        logger.debug(f"{tank}: record {record.id} does not match method {tank.calculation_method.value}")
        return DailyTheory(day)

    def total_for_days(self,
                       tank: Tank,
                       days: Iterable[datetime.date],
                       supplies: Sequence[ChemicalSupply],
                       history: Sequence[ParameterRecord],
                       as_of: Optional[datetime.datetime] = None) -> TheoreticalTotal:
        """Sums the daily model over `days`, leaving out days after `as_of`."""
        result = TheoreticalTotal()
        if not tank.has_theoretical_model:
            return result

        last_day = as_of.date() if as_of is not None else None
        for day in days:
            if last_day is not None and day > last_day:
                continue
            daily = self.daily_usage(tank, day, supplies, history)
            result.days.append(daily)
            result.total_kg += daily.usage_kg
            if daily.has_data:
                result.days_with_data += 1
        return result

    def period_usage(self,
                     tank: Tank,
                     period_start: datetime.datetime,
                     period_end: datetime.datetime,
                     history: Sequence[ParameterRecord],
                     supply: Optional[ChemicalSupply]) -> float:
        """
        Bulk-period theoretical usage (kg) for [period_start, period_end).

        The record dated inside the period is used, else the tank default.
        For BWS its steam production is taken as the period total.
        """
        if supply is None or not supply.target_ppm:
            return 0.0

        if tank.calculation_method == CalculationMethod.BWS_STEAM:
            record = period_record(history, period_start, period_end, tank.bws_params)
            if record is None:
                return 0.0
            return steam_usage_kg(record.steam_production or 0.0, supply.target_ppm)

        if tank.calculation_method == CalculationMethod.CWS_BLOWDOWN:
            record = period_record(history, period_start, period_end, tank.cws_params)
            if record is None or not record.circulation_rate or not record.temp_diff:
                return 0.0
            days = (period_end - period_start).total_seconds() / SECONDS_PER_DAY
            return blowdown_usage_kg(record, supply.target_ppm, days)

        return 0.0
