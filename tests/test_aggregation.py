"""
Period aggregation tests: monthly rows, contract change flags, as-of cut-off,
weekly rows and the annual report.
"""

import datetime

import pytest

from conftest import dt, make_reading
from core.aggregation import (
    PeriodAggregator, ContractChange, contract_terms, notes_in_range, available_years,
    variance_percent, variance_severity, usage_cost, SEVERITY_OK, SEVERITY_WARNING, SEVERITY_CRITICAL
)
from core.models import SystemType


@pytest.fixture
def aggregator():
    return PeriodAggregator()


@pytest.fixture
def report(aggregator, cooling_tank, boiler_tank, denox_tank, cooling_readings, supplies,
           cws_records, bws_records, notes, as_of):
    return aggregator.annual_report(2024, [cooling_tank, boiler_tank, denox_tank], cooling_readings,
                                    supplies, cws_records, bws_records, notes, as_of=as_of)


def month(report, tank_id, number):
    tank_report = next(t for t in report.tanks if t.tank.id == tank_id)
    return tank_report.months[number - 1]


# ==================== VARIANCE AND COST ====================

def test_variance_and_severity():
    assert variance_percent(110.0, 100.0) == pytest.approx(10.0)
    assert variance_percent(10.0, None) is None
    assert variance_percent(10.0, 0.0) is None
    assert variance_severity(None) is None
    assert variance_severity(10.0) == SEVERITY_OK
    assert variance_severity(-15.0) == SEVERITY_WARNING
    assert variance_severity(20.5) == SEVERITY_CRITICAL


def test_usage_cost_requires_positive_inputs():
    assert usage_cost(100.0, 60.0) == pytest.approx(6000.0)
    assert usage_cost(0.0, 60.0) == 0.0
    assert usage_cost(100.0, None) == 0.0
    assert usage_cost(100.0, -1.0) == 0.0


# ==================== CONTRACT TERMS ====================

def test_contract_terms_mid_period_change(cooling_supplies):
    display, flags = contract_terms(cooling_supplies, dt(2024, 3, 1), dt(2024, 4, 1))
    assert display.id == "S2"
    assert flags.mid_period_change
    assert flags.new_contract_in_period
    assert flags.price_changes == [ContractChange(dt(2024, 1, 1), 50.0), ContractChange(dt(2024, 3, 15), 60.0)]
    assert flags.sg_changes == [ContractChange(dt(2024, 1, 1), 1.1), ContractChange(dt(2024, 3, 15), 1.2)]


def test_contract_terms_single_contract_started_in_period(cooling_supplies):
    display, flags = contract_terms(cooling_supplies, dt(2024, 1, 1), dt(2024, 2, 1))
    assert display.id == "S1"
    assert not flags.mid_period_change
    assert flags.new_contract_in_period
    assert flags.price_changes == [ContractChange(dt(2024, 1, 1), 50.0)]


def test_contract_terms_without_change(cooling_supplies):
    display, flags = contract_terms(cooling_supplies, dt(2024, 2, 1), dt(2024, 3, 1))
    assert display.price == 50.0
    assert not flags.mid_period_change
    assert not flags.new_contract_in_period
    assert flags.price_changes == []


def test_contract_terms_before_any_contract(cooling_supplies):
    display, flags = contract_terms(cooling_supplies, dt(2023, 6, 1), dt(2023, 7, 1))
    assert display is None
    assert not flags.mid_period_change


# ==================== MONTHLY ROWS ====================

def test_march_row(report):
    march = month(report, "CT-1", 3)
    assert march.actual_usage == pytest.approx(100.0)
    assert march.theory_usage == pytest.approx(0.72 * 7)
    assert march.display_price == 60.0
    assert march.display_specific_gravity == 1.2
    assert march.change_flags.mid_period_change
    assert march.cost == pytest.approx(6000.0)
    assert march.severity == SEVERITY_CRITICAL
    assert [n.id for n in march.notes] == ["N1"]


def test_month_without_data(report):
    february = month(report, "CT-1", 2)
    april = month(report, "CT-1", 4)

    assert february.actual_usage == 0.0
    assert february.theory_usage is None
    assert february.display_price == 50.0
    assert february.variance_pct is None
    assert february.cost == 0.0
    assert february.notes == []

    assert april.theory_usage is None
    assert april.display_price == 60.0


def test_tank_without_model_has_no_theory(report):
    tank_report = next(t for t in report.tanks if t.tank.id == "DN-1")
    assert all(m.theory_usage is None for m in tank_report.months)
    assert tank_report.theory_total is None
    assert tank_report.actual_total == 0.0


def test_theory_excludes_days_after_as_of(aggregator, cooling_tank, cooling_readings, supplies,
                                          cws_records, bws_records):
    report = aggregator.annual_report(2024, [cooling_tank], cooling_readings, supplies, cws_records,
                                      bws_records, as_of=dt(2024, 3, 6, 14, 0))
    march = month(report, "CT-1", 3)
    assert march.theory_usage == pytest.approx(0.72 * 3)
    # actual usage is not cut by as-of
    assert march.actual_usage == pytest.approx(100.0)


def test_boiler_month(report):
    march = month(report, "BW-1", 3)
    assert march.theory_usage == pytest.approx(2.0 * 7)
    assert march.display_price == 80.0
    assert march.actual_usage == 0.0


def test_month_boundaries_split_intervals(aggregator, cooling_tank, supplies, as_of):
    readings = [
        make_reading("A", dt(2024, 1, 30), 1000.0),
        make_reading("B", dt(2024, 2, 2), 940.0),
    ]
    report = aggregator.annual_report(2024, [cooling_tank], readings, supplies, [], [], as_of=as_of)
    assert month(report, "CT-1", 1).actual_usage == pytest.approx(40.0)
    assert month(report, "CT-1", 2).actual_usage == pytest.approx(20.0)


def test_annual_report_is_idempotent(aggregator, cooling_tank, cooling_readings, supplies,
                                     cws_records, bws_records, notes, as_of):
    args = (2024, [cooling_tank], cooling_readings, supplies, cws_records, bws_records, notes)
    first = aggregator.annual_report(*args, as_of=as_of)
    second = aggregator.annual_report(*args, as_of=as_of)
    assert first.to_dict() == second.to_dict()


# ==================== ANNUAL REPORT ====================

def test_annual_totals(report):
    cooling = next(t for t in report.tanks if t.tank.id == "CT-1")
    assert len(cooling.months) == 12
    assert cooling.actual_total == pytest.approx(100.0)
    assert cooling.theory_total == pytest.approx(5.04)
    assert cooling.cost_total == pytest.approx(6000.0)

    assert report.total_cost == pytest.approx(6000.0)
    assert report.cost_by_system() == {"COOLING": pytest.approx(6000.0), "BOILER": 0.0, "DENOX": 0.0}


def test_annual_report_system_filter(aggregator, cooling_tank, boiler_tank, cooling_readings, supplies,
                                     cws_records, bws_records, as_of):
    report = aggregator.annual_report(2024, [cooling_tank, boiler_tank], cooling_readings, supplies,
                                      cws_records, bws_records, as_of=as_of, system=SystemType.BOILER)
    assert [t.tank.id for t in report.tanks] == ["BW-1"]


def test_annual_report_to_dict(report):
    data = report.to_dict()
    assert data["year"] == 2024
    assert data["as_of"] == "2025-01-01T00:00:00"
    march = data["tanks"][0]["months"][2]
    assert march["month"] == 3
    assert march["theory_usage"] == 5.04
    assert march["change_flags"]["price_changes"][1] == {"effective_date": "2024-03-15T00:00:00", "value": 60.0}


def test_available_years(cooling_readings, supplies, notes, as_of):
    assert available_years(cooling_readings, supplies, notes, as_of) == [2024]
    old = [make_reading("OLD", dt(2022, 5, 1), 1.0)]
    assert available_years(old + cooling_readings, supplies, notes, as_of) == [2024, 2022]
    assert available_years([], [], [], as_of) == [2025]


def test_notes_in_range_skips_unparseable_dates(notes):
    assert [n.id for n in notes_in_range(notes, dt(2024, 1, 1), dt(2025, 1, 1))] == ["N1"]
    assert notes_in_range(notes, dt(2024, 4, 1), dt(2024, 5, 1)) == []


# ==================== WEEKLY ROWS ====================

def test_weekly_rows(aggregator, cooling_tank, cooling_readings, supplies, cws_records, bws_records, as_of):
    rows = aggregator.weekly_rows(cooling_tank, datetime.date(2024, 3, 1), datetime.date(2024, 3, 15),
                                  cooling_readings, supplies, cws_records, bws_records, as_of=as_of)

    assert [(r.start, r.end) for r in rows] == [
        (datetime.date(2024, 3, 1), datetime.date(2024, 3, 4)),
        (datetime.date(2024, 3, 4), datetime.date(2024, 3, 11)),
        (datetime.date(2024, 3, 11), datetime.date(2024, 3, 15)),
    ]
    assert [r.actual_usage for r in rows] == [pytest.approx(30.0), pytest.approx(70.0), 0.0]
    assert rows[0].theory_usage is None
    assert rows[1].theory_usage == pytest.approx(5.04)
    assert rows[2].theory_usage is None
    assert rows[1].display_price == 50.0
    assert not rows[1].change_flags.new_contract_in_period
