# File: dosing_twin/core/models/note.py
import datetime
from typing import Optional

from .base import Snapshot
from utils.helpers import coerce_datetime


class ImportantNote(Snapshot):
    """Free-text annotation shown on reports. Never used in calculations."""
    date_str: str
    id: Optional[str] = None
    area: str = ""
    chemical_name: str = ""
    note: str = ""

    @property
    def date(self) -> Optional[datetime.datetime]:
        return coerce_datetime(self.date_str)
