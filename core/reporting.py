# File: dosing_twin/core/reporting.py
"""
Tabular and JSON renderings of aggregated reports for the presentation layer.
"""
import json
import logging
from typing import Iterable

import pandas as pd

from core.aggregation import AnnualReport, PeriodRow
from utils.helpers import CustomJsonEncoder

logger = logging.getLogger(__name__)

ANNUAL_COLUMNS = [
    "tank_id", "tank_name", "system", "year", "month",
    "actual_usage", "theory_usage", "variance_pct", "severity",
    "display_price", "display_specific_gravity", "mid_period_change", "cost",
]

PERIOD_COLUMNS = [
    "tank_id", "start", "end", "actual_usage", "theory_usage",
    "variance_pct", "severity", "display_price", "cost",
]


def annual_report_frame(report: AnnualReport) -> pd.DataFrame:
    """One row per tank and month."""
    records = []
    for tank_report in report.tanks:
        tank = tank_report.tank
        for m in tank_report.months:
            records.append({
                "tank_id": tank.id,
                "tank_name": tank.name,
                "system": tank.system.value if tank.system else None,
                "year": m.year,
                "month": m.month,
                "actual_usage": m.actual_usage,
                "theory_usage": m.theory_usage,
                "variance_pct": m.variance_pct,
                "severity": m.severity,
                "display_price": m.display_price,
                "display_specific_gravity": m.display_specific_gravity,
                "mid_period_change": m.change_flags.mid_period_change,
                "cost": m.cost,
            })
    df = pd.DataFrame.from_records(records, columns=ANNUAL_COLUMNS)
    logger.debug(f"Annual report frame for {report.year}: {len(df)} rows.")
    return df


def annual_totals_frame(report: AnnualReport) -> pd.DataFrame:
    """Per-tank annual totals, indexed by tank id."""
    frame = annual_report_frame(report)
    if frame.empty:
        return pd.DataFrame(columns=["tank_name", "system", "actual_usage", "theory_usage", "cost"])
    return frame.groupby("tank_id", sort=False).agg(
        tank_name=("tank_name", "first"),
        system=("system", "first"),
        actual_usage=("actual_usage", "sum"),
        theory_usage=("theory_usage", lambda s: pd.to_numeric(s, errors="coerce").sum(min_count=1)),
        cost=("cost", "sum"),
    )


def period_rows_frame(rows: Iterable[PeriodRow]) -> pd.DataFrame:
    records = [
        {
            "tank_id": r.tank_id,
            "start": r.start,
            "end": r.end,
            "actual_usage": r.actual_usage,
            "theory_usage": r.theory_usage,
            "variance_pct": r.variance_pct,
            "severity": r.severity,
            "display_price": r.display_price,
            "cost": r.cost,
        }
        for r in rows
    ]
    return pd.DataFrame.from_records(records, columns=PERIOD_COLUMNS)


def report_to_json(report: AnnualReport, indent: int = None) -> str:
    return json.dumps(report.to_dict(), cls=CustomJsonEncoder, indent=indent, ensure_ascii=False)
