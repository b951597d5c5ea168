import os
import sys
import json
import logging
import datetime
from typing import Dict, Any, List, Optional

from pydantic import ValidationError

from core.models import (
    Tank, ChemicalSupply, Reading, CWSParameterRecord, BWSParameterRecord, ImportantNote, SystemType
)
from core.aggregation import PeriodAggregator, AnnualReport, available_years, SEVERITY_CRITICAL
from core.reporting import annual_report_frame, report_to_json
from utils.helpers import setup_main_logging, coerce_datetime

logger = logging.getLogger("CalculationService")


class DataSnapshot:
    """Validated entity collections for one run, as delivered by the storage service."""

    def __init__(self, tanks: List[Tank], supplies: List[ChemicalSupply], readings: List[Reading],
                 cws_records: List[CWSParameterRecord], bws_records: List[BWSParameterRecord],
                 notes: List[ImportantNote]):
        self.tanks = tanks
        self.supplies = supplies
        self.readings = readings
        self.cws_records = cws_records
        self.bws_records = bws_records
        self.notes = notes

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSnapshot":
        """
        Builds a snapshot from the storage service's export. Raises
        pydantic.ValidationError on a malformed entity.
        """
        return cls(
            tanks=[Tank.model_validate(t) for t in data.get("tanks", [])],
            supplies=[ChemicalSupply.model_validate(s) for s in data.get("supplies", [])],
            readings=[Reading.model_validate(r) for r in data.get("readings", [])],
            cws_records=[CWSParameterRecord.model_validate(p) for p in data.get("cwsParams", [])],
            bws_records=[BWSParameterRecord.model_validate(p) for p in data.get("bwsParams", [])],
            notes=[ImportantNote.model_validate(n) for n in data.get("notes", [])],
        )

    @classmethod
    def from_file(cls, path: str) -> "DataSnapshot":
        with open(path, encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))


class CalculationService:
    """Runs the usage reconciliation over one snapshot."""

    def __init__(self, aggregator: Optional[PeriodAggregator] = None):
        self.aggregator = aggregator or PeriodAggregator()
        logger.info("Calculation Service initialized.")

    def run(self, snapshot: DataSnapshot, year: Optional[int] = None,
            as_of: Optional[datetime.datetime] = None,
            system: Optional[SystemType] = None) -> AnnualReport:
        as_of = as_of or datetime.datetime.now()
        if year is None:
            year = available_years(snapshot.readings, snapshot.supplies, snapshot.notes, as_of)[0]

        logger.info(
            f"--- Reconciling {len(snapshot.tanks)} tank(s), {len(snapshot.readings)} reading(s) for {year} ---"
        )
        report = self.aggregator.annual_report(
            year, snapshot.tanks, snapshot.readings, snapshot.supplies,
            snapshot.cws_records, snapshot.bws_records, snapshot.notes,
            as_of=as_of, system=system,
        )
        for tank_report in report.tanks:
            flagged = [m.month for m in tank_report.months if m.severity == SEVERITY_CRITICAL]
            if flagged:
                logger.warning(f"{tank_report.tank}: actual vs theoretical beyond tolerance in month(s) {flagged}")
        for tank in self.low_level_tanks(snapshot):
            logger.warning(f"{tank}: below safe minimum level of {tank.safe_min_level}%")
        logger.info("--- Reconciliation finished ---")
        return report

    @staticmethod
    def low_level_tanks(snapshot: DataSnapshot) -> List[Tank]:
        """Tanks whose latest reading is below their safe minimum fill."""
        latest: Dict[str, Reading] = {}
        for reading in snapshot.readings:
            current = latest.get(reading.tank_id)
            if current is None or reading.timestamp > current.timestamp:
                latest[reading.tank_id] = reading
        return [t for t in snapshot.tanks if t.is_low_level(latest.get(t.id))]


def main():
    """
    Usage: python -m calculation_service.calculation_service SNAPSHOT.json [YEAR] [AS_OF] [OUTPUT.csv|OUTPUT.json]
    """
    setup_main_logging()
    args = sys.argv[1:]
    if not args:
        logger.critical("No snapshot file given.")
        print(main.__doc__)
        sys.exit(1)

    snapshot_path = args[0]
    if not os.path.exists(snapshot_path):
        logger.critical(f"Snapshot file not found at: '{snapshot_path}'")
        sys.exit(1)

    year = None
    if len(args) > 1:
        try:
            year = int(args[1])
        except ValueError:
            logger.critical(f"Invalid year: '{args[1]}'")
            sys.exit(1)

    as_of = None
    if len(args) > 2:
        as_of = coerce_datetime(args[2])
        if as_of is None:
            logger.critical(f"Invalid as-of date: '{args[2]}'. Expected ISO 8601.")
            sys.exit(1)

    output_path = args[3] if len(args) > 3 else None

    try:
        snapshot = DataSnapshot.from_file(snapshot_path)
    except (ValidationError, json.JSONDecodeError) as e:
        logger.critical(f"Snapshot '{snapshot_path}' could not be loaded: {e}")
        sys.exit(1)

    report = CalculationService().run(snapshot, year=year, as_of=as_of)

    if output_path and output_path.endswith(".csv"):
        annual_report_frame(report).to_csv(output_path, index=False)
        logger.info(f"Wrote monthly rows to {output_path}")
    elif output_path:
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(report_to_json(report, indent=2))
        logger.info(f"Wrote report to {output_path}")
    else:
        print(report_to_json(report, indent=2))


if __name__ == "__main__":
    main()
