# File: dosing_twin/utils/helpers.py
import logging
import datetime
import json
import math
from typing import Optional, Any
from decimal import Decimal

logger = logging.getLogger(__name__)


def setup_main_logging(level: int = logging.INFO):
    """Sets up basic root logging configuration."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def to_wall_clock(dt: datetime.datetime) -> datetime.datetime:
    """Drops tzinfo but keeps the timestamp's own calendar and clock fields."""
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt


def parse_iso_datetime(timestamp_str: str) -> Optional[datetime.datetime]:
    """
    Parses an ISO 8601 date or timestamp string to a naive wall-clock datetime.

    An offset, if present, is discarded without conversion so that the calendar
    day written by the operator is the calendar day used for day keys.
    """
    if not timestamp_str:
        return None
    try:
        if timestamp_str.endswith('Z'):
            timestamp_str = timestamp_str[:-1] + '+00:00'
        dt = datetime.datetime.fromisoformat(timestamp_str.strip())
        return to_wall_clock(dt)
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not parse timestamp string: {timestamp_str!r}. Error: {e}")
        return None


def from_epoch_ms(value: float) -> Optional[datetime.datetime]:
    """Epoch milliseconds, as sent by the storage service, to local wall-clock time."""
    try:
        if not math.isfinite(value):
            return None
        return datetime.datetime.fromtimestamp(value / 1000)
    except (OverflowError, OSError, ValueError) as e:
        logger.warning(f"Epoch value out of range: {value!r}. Error: {e}")
        return None


def coerce_datetime(value: Any) -> Optional[datetime.datetime]:
    """
    Accepts a datetime, a date, an ISO string or epoch milliseconds and returns
    a naive datetime. Anything else (None, NaN, garbage strings) yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return to_wall_clock(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_ms(value)
    logger.debug(f"Unsupported date value of type {type(value).__name__}: {value!r}")
    return None


def day_start(value: datetime.date) -> datetime.datetime:
    """Midnight at the start of the given calendar day."""
    return datetime.datetime(value.year, value.month, value.day)


class CustomJsonEncoder(json.JSONEncoder):
    """
    Custom JSON encoder to handle types not serializable by default,
    specifically date/datetime objects and Decimal objects.
    """
    def default(self, obj):
        if isinstance(obj, datetime.datetime):
            return obj.isoformat(timespec='seconds')
        if isinstance(obj, datetime.date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        return json.JSONEncoder.default(self, obj)
