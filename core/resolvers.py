# File: dosing_twin/core/resolvers.py
"""
Effective-dated lookups over a tank's contract and parameter histories.

Contracts are open-ended intervals: contract i governs
[start_i, start_{i+1}) and the last one governs [start_last, +inf).
Weekly parameter records govern [date, date + PARAMETER_WINDOW_DAYS).

Every resolver accepts a datetime, a date or an ISO string and returns None
for anything it cannot interpret; none of them raise on bad input.
"""
import datetime
import logging
from typing import Any, Iterable, List, Optional, Sequence, TypeVar

from config import settings
from core.models import ChemicalSupply, ParameterRecord
from utils.helpers import coerce_datetime

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ParameterRecord)


def supplies_for_tank(tank_id: str, supplies: Iterable[ChemicalSupply]) -> List[ChemicalSupply]:
    """A tank's contract history in ascending start-date order."""
    return sorted((s for s in supplies if s.tank_id == tank_id), key=lambda s: s.start_date)


def records_for_tank(tank_id: str, records: Iterable[RecordT]) -> List[RecordT]:
    return [r for r in records if r.tank_id == tank_id]


def active_supply(date: Any, history: Iterable[ChemicalSupply]) -> Optional[ChemicalSupply]:
    """The contract in effect at `date`: the latest one that has started by then."""
    at = coerce_datetime(date)
    if at is None:
        logger.debug(f"active_supply: unusable date {date!r}")
        return None

    started = [s for s in history if s.start_date <= at]
    if not started:
        return None
    return max(started, key=lambda s: s.start_date)


def effective_supplies(history: Iterable[ChemicalSupply],
                       period_start: datetime.datetime,
                       period_end: datetime.datetime) -> List[ChemicalSupply]:
    """
    Contracts in effect at any point of [period_start, period_end), oldest first.
    The last element is the one in effect at the end of the period.
    """
    ordered = sorted(history, key=lambda s: s.start_date)
    effective = []
    for idx, supply in enumerate(ordered):
        next_start = ordered[idx + 1].start_date if idx + 1 < len(ordered) else None
        if supply.start_date < period_end and (next_start is None or next_start > period_start):
            effective.append(supply)
    return effective


def _window_end(record: ParameterRecord) -> datetime.datetime:
    return record.date + datetime.timedelta(days=settings.PARAMETER_WINDOW_DAYS)


def covering_record(date: Any, history: Sequence[RecordT]) -> Optional[RecordT]:
    """
    The weekly record whose window contains `date`. There is no fallback to
    the nearest record: a week without a measurement has no record.
    """
    at = coerce_datetime(date)
    if at is None:
        return None
    for record in history:
        if record.date is not None and record.date <= at < _window_end(record):
            return record
    return None


def period_record(history: Sequence[RecordT],
                  period_start: datetime.datetime,
                  period_end: datetime.datetime,
                  default: Optional[RecordT] = None) -> Optional[RecordT]:
    """
    The first record dated inside [period_start, period_end), else the tank's
    default record. Only for single-period aggregate values, never day by day.
    """
    for record in history:
        if record.date is not None and period_start <= record.date < period_end:
            return record
    return default
