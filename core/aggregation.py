# File: dosing_twin/core/aggregation.py
"""
Period aggregation of actual and theoretical usage.

Rolls the per-day actual usage map and the daily theoretical model up into
weekly, monthly and annual rows with the contract terms that applied, cost and
variance. Every call works on the snapshot it is given and keeps no state, so
running it twice on the same inputs gives the same rows.
"""
import datetime
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config import settings
from core.allocation import ActualUsageAllocator, DailyUsage, sum_days
from core.models import (
    Tank, CalculationMethod, ChemicalSupply, Reading, ParameterRecord,
    CWSParameterRecord, BWSParameterRecord, ImportantNote, SystemType
)
from core.periods import days_between, month_range, week_start
from core.physics.theoretical import TheoreticalUsageCalculator
from core.resolvers import effective_supplies, records_for_tank, supplies_for_tank

logger = logging.getLogger(__name__)

SEVERITY_OK = "OK"
SEVERITY_WARNING = "WARNING"
SEVERITY_CRITICAL = "CRITICAL"


def variance_percent(actual: float, theory: Optional[float]) -> Optional[float]:
    if not theory:
        return None
    return (actual - theory) / theory * 100


def variance_severity(variance_pct: Optional[float]) -> Optional[str]:
    if variance_pct is None:
        return None
    if abs(variance_pct) > settings.VARIANCE_CRITICAL_PERCENT:
        return SEVERITY_CRITICAL
    if abs(variance_pct) > settings.VARIANCE_WARNING_PERCENT:
        return SEVERITY_WARNING
    return SEVERITY_OK


def usage_cost(actual: float, price: Optional[float]) -> float:
    if actual > 0 and price and price > 0:
        return actual * price
    return 0.0


@dataclass(frozen=True)
class ContractChange:
    effective_date: datetime.datetime
    value: Optional[float]

    def to_dict(self) -> dict:
        return {"effective_date": self.effective_date.isoformat(timespec='seconds'), "value": self.value}


@dataclass
class ChangeFlags:
    """Contract changes seen during a period, kept for audit display."""
    mid_period_change: bool = False  # more than one contract in effect
    new_contract_in_period: bool = False  # a contract started inside the period
    price_changes: List[ContractChange] = field(default_factory=list)
    sg_changes: List[ContractChange] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mid_period_change": self.mid_period_change,
            "new_contract_in_period": self.new_contract_in_period,
            "price_changes": [c.to_dict() for c in self.price_changes],
            "sg_changes": [c.to_dict() for c in self.sg_changes],
        }


@dataclass
class PeriodRow:
    """Aggregated usage for [start, end) of one tank."""
    tank_id: str
    start: datetime.date
    end: datetime.date
    actual_usage: float = 0.0
    theory_usage: Optional[float] = None
    display_price: Optional[float] = None
    display_specific_gravity: Optional[float] = None
    change_flags: ChangeFlags = field(default_factory=ChangeFlags)
    notes: List[ImportantNote] = field(default_factory=list)

    @property
    def variance_pct(self) -> Optional[float]:
        return variance_percent(self.actual_usage, self.theory_usage)

    @property
    def severity(self) -> Optional[str]:
        return variance_severity(self.variance_pct)

    @property
    def cost(self) -> float:
        return usage_cost(self.actual_usage, self.display_price)

    def to_dict(self) -> dict:
        variance = self.variance_pct
        return {
            "tank_id": self.tank_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "actual_usage": round(self.actual_usage, 2),
            "theory_usage": round(self.theory_usage, 2) if self.theory_usage is not None else None,
            "variance_pct": round(variance, 2) if variance is not None else None,
            "severity": self.severity,
            "display_price": self.display_price,
            "display_specific_gravity": self.display_specific_gravity,
            "change_flags": self.change_flags.to_dict(),
            "cost": round(self.cost, 2),
            "notes": [n.to_dict() for n in self.notes],
        }


@dataclass
class MonthRow(PeriodRow):
    year: int = 0
    month: int = 0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"year": self.year, "month": self.month})
        return data


@dataclass
class TankAnnualReport:
    tank: Tank
    year: int
    months: List[MonthRow] = field(default_factory=list)

    @property
    def actual_total(self) -> float:
        return sum(m.actual_usage for m in self.months)

    @property
    def theory_total(self) -> Optional[float]:
        values = [m.theory_usage for m in self.months if m.theory_usage is not None]
        return sum(values) if values else None

    @property
    def cost_total(self) -> float:
        return sum(m.cost for m in self.months)

    def to_dict(self) -> dict:
        theory = self.theory_total
        return {
            "tank_id": self.tank.id,
            "tank_name": self.tank.name,
            "system": self.tank.system.value if self.tank.system else None,
            "year": self.year,
            "months": [m.to_dict() for m in self.months],
            "actual_total": round(self.actual_total, 2),
            "theory_total": round(theory, 2) if theory is not None else None,
            "cost_total": round(self.cost_total, 2),
        }


@dataclass
class AnnualReport:
    year: int
    as_of: datetime.datetime
    tanks: List[TankAnnualReport] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return sum(t.cost_total for t in self.tanks)

    def cost_by_system(self) -> Dict[str, float]:
        totals: Dict[str, float] = OrderedDict()
        for tank_report in self.tanks:
            key = tank_report.tank.system.value if tank_report.tank.system else "UNASSIGNED"
            totals[key] = totals.get(key, 0.0) + tank_report.cost_total
        return totals

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "as_of": self.as_of.isoformat(timespec='seconds'),
            "tanks": [t.to_dict() for t in self.tanks],
            "cost_by_system": {k: round(v, 2) for k, v in self.cost_by_system().items()},
            "total_cost": round(self.total_cost, 2),
        }


def contract_terms(history: Sequence[ChemicalSupply],
                   start: datetime.datetime,
                   end: datetime.datetime) -> Tuple[Optional[ChemicalSupply], ChangeFlags]:
    """
    The display contract for [start, end) (the latest one in effect during the
    period) and the changes that happened within it.
    """
    effective = effective_supplies(history, start, end)
    if not effective:
        return None, ChangeFlags()

    flags = ChangeFlags(
        mid_period_change=len(effective) > 1,
        new_contract_in_period=any(start <= s.start_date < end for s in effective),
    )
    if flags.mid_period_change or flags.new_contract_in_period:
        flags.price_changes = [ContractChange(s.start_date, s.price) for s in effective]
        flags.sg_changes = [ContractChange(s.start_date, s.specific_gravity) for s in effective]
    return effective[-1], flags


def notes_in_range(notes: Iterable[ImportantNote], start: datetime.datetime, end: datetime.datetime) -> List[ImportantNote]:
    selected = []
    for note in notes:
        note_date = note.date
        if note_date is not None and start <= note_date < end:
            selected.append(note)
    return selected


def available_years(readings: Iterable[Reading],
                    supplies: Iterable[ChemicalSupply],
                    notes: Iterable[ImportantNote],
                    as_of: datetime.datetime) -> List[int]:
    """Years with any reading, contract or note, newest first. Never empty."""
    years = {r.timestamp.year for r in readings}
    years.update(s.start_date.year for s in supplies)
    years.update(n.date.year for n in notes if n.date is not None)
    if not years:
        years.add(as_of.year)
    return sorted(years, reverse=True)


class PeriodAggregator:
    """
    Builds reporting rows for tanks.

    Usage:
        aggregator = PeriodAggregator()
        report = aggregator.annual_report(2024, tanks, readings, supplies,
                                          cws_records, bws_records, notes, as_of=now)
    """

    def __init__(self,
                 allocator: Optional[ActualUsageAllocator] = None,
                 theory_calculator: Optional[TheoreticalUsageCalculator] = None):
        self.allocator = allocator or ActualUsageAllocator()
        self.theory_calculator = theory_calculator or TheoreticalUsageCalculator()

    @staticmethod
    def parameter_history(tank: Tank,
                          cws_records: Iterable[CWSParameterRecord],
                          bws_records: Iterable[BWSParameterRecord]) -> List[ParameterRecord]:
        if tank.calculation_method == CalculationMethod.CWS_BLOWDOWN:
            return records_for_tank(tank.id, cws_records)
        if tank.calculation_method == CalculationMethod.BWS_STEAM:
            return records_for_tank(tank.id, bws_records)
        return []

    def period_row(self,
                   tank: Tank,
                   start: datetime.date,
                   end: datetime.date,
                   daily_actual: DailyUsage,
                   supplies: Sequence[ChemicalSupply],
                   history: Sequence[ParameterRecord],
                   as_of: datetime.datetime,
                   notes: Iterable[ImportantNote] = ()) -> PeriodRow:
        """
        One row for [start, end). `supplies` and `history` must already be the
        tank's own histories.
        """
        row = PeriodRow(tank_id=tank.id, start=start, end=end)
        self._fill(row, tank, daily_actual, supplies, history, as_of, notes)
        return row

    def monthly_row(self,
                    tank: Tank,
                    year: int,
                    month: int,
                    daily_actual: DailyUsage,
                    supplies: Sequence[ChemicalSupply],
                    history: Sequence[ParameterRecord],
                    as_of: datetime.datetime,
                    notes: Iterable[ImportantNote] = ()) -> MonthRow:
        month_start, month_end = month_range(year, month)
        row = MonthRow(tank_id=tank.id, start=month_start.date(), end=month_end.date(), year=year, month=month)
        self._fill(row, tank, daily_actual, supplies, history, as_of, notes)
        return row

    def _fill(self, row: PeriodRow, tank: Tank, daily_actual: DailyUsage,
              supplies: Sequence[ChemicalSupply], history: Sequence[ParameterRecord],
              as_of: datetime.datetime, notes: Iterable[ImportantNote]):
        start = datetime.datetime(row.start.year, row.start.month, row.start.day)
        end = datetime.datetime(row.end.year, row.end.month, row.end.day)
        days = list(days_between(row.start, row.end))

        row.actual_usage = sum_days(daily_actual, days)

        display, flags = contract_terms(supplies, start, end)
        row.change_flags = flags
        if display is not None:
            row.display_price = display.price
            row.display_specific_gravity = display.specific_gravity

        if tank.has_theoretical_model:
            total = self.theory_calculator.total_for_days(tank, days, supplies, history, as_of=as_of)
            row.theory_usage = total.value

        row.notes = notes_in_range(notes, start, end)

    def tank_annual_report(self,
                           tank: Tank,
                           year: int,
                           readings: Iterable[Reading],
                           supplies: Iterable[ChemicalSupply],
                           cws_records: Iterable[CWSParameterRecord],
                           bws_records: Iterable[BWSParameterRecord],
                           notes: Sequence[ImportantNote],
                           as_of: datetime.datetime) -> TankAnnualReport:
        tank_readings = [r for r in readings if r.tank_id == tank.id]
        daily_actual = self.allocator.daily_actual_usage(tank_readings)
        tank_supplies = supplies_for_tank(tank.id, supplies)
        history = self.parameter_history(tank, cws_records, bws_records)

        report = TankAnnualReport(tank=tank, year=year)
        for month in range(1, 13):
            report.months.append(
                self.monthly_row(tank, year, month, daily_actual, tank_supplies, history, as_of, notes)
            )
        return report

    def annual_report(self,
                      year: int,
                      tanks: Iterable[Tank],
                      readings: Iterable[Reading],
                      supplies: Iterable[ChemicalSupply],
                      cws_records: Iterable[CWSParameterRecord],
                      bws_records: Iterable[BWSParameterRecord],
                      notes: Iterable[ImportantNote] = (),
                      as_of: Optional[datetime.datetime] = None,
                      system: Optional[SystemType] = None) -> AnnualReport:
        """
        Twelve monthly rows per tank for `year`, optionally restricted to one
        system. `as_of` is the instant after which theoretical days are left
        out; it defaults to now.
        """
        as_of = as_of or datetime.datetime.now()
        readings, supplies = list(readings), list(supplies)
        cws_records, bws_records, notes = list(cws_records), list(bws_records), list(notes)

        selected = [t for t in tanks if system is None or t.system == system]
        logger.info(f"Building {year} annual report for {len(selected)} tank(s) as of {as_of.isoformat(timespec='seconds')}.")

        report = AnnualReport(year=year, as_of=as_of)
        for tank in selected:
            report.tanks.append(
                self.tank_annual_report(tank, year, readings, supplies, cws_records, bws_records, notes, as_of)
            )
        logger.info(f"Annual report {year}: total cost {report.total_cost:,.2f}.")
        return report

    def weekly_rows(self,
                    tank: Tank,
                    start: datetime.date,
                    end: datetime.date,
                    readings: Iterable[Reading],
                    supplies: Iterable[ChemicalSupply],
                    cws_records: Iterable[CWSParameterRecord],
                    bws_records: Iterable[BWSParameterRecord],
                    as_of: Optional[datetime.datetime] = None) -> List[PeriodRow]:
        """
        Monday-based weekly rows covering the days in [start, end). The first
        and last weeks are cut to the range.
        """
        as_of = as_of or datetime.datetime.now()
        daily_actual = self.allocator.daily_actual_usage(r for r in readings if r.tank_id == tank.id)
        tank_supplies = supplies_for_tank(tank.id, supplies)
        history = self.parameter_history(tank, cws_records, bws_records)

        rows = []
        monday = week_start(start)
        while monday < end:
            next_monday = monday + datetime.timedelta(days=7)
            rows.append(self.period_row(
                tank, max(monday, start), min(next_monday, end),
                daily_actual, tank_supplies, history, as_of,
            ))
            monday = next_monday
        return rows
