"""
Theoretical usage tests: cooling tower blowdown and boiler steam models,
daily and bulk-period call shapes.
"""

import datetime

import pytest

from conftest import dt
from core.models import CWSParameterRecord, BWSParameterRecord, ChemicalSupply
from core.periods import days_between
from core.physics.evaporation import (
    evaporation_loss, concentration_cycles, blowdown, cooling_tower_balance, blowdown_usage_kg
)
from core.physics.theoretical import TheoreticalUsageCalculator


@pytest.fixture
def calc():
    return TheoreticalUsageCalculator()


# ==================== COOLING TOWER BALANCE ====================

def test_evaporation_and_blowdown():
    assert evaporation_loss(1000, 5) == pytest.approx(216.0)
    assert evaporation_loss(1000, 5, days=7) == pytest.approx(1512.0)
    assert blowdown(216.0, 4) == pytest.approx(72.0)
    assert blowdown(216.0, 1) == 0.0
    assert blowdown(216.0, 0.5) == 0.0


def test_hardness_ratio_overrides_stored_cycles():
    record = CWSParameterRecord(tank_id="T", concentration_cycles=4.0, cws_hardness=300.0, makeup_hardness=100.0)
    assert concentration_cycles(record) == pytest.approx(3.0)


def test_partial_hardness_keeps_stored_cycles():
    only_cws = CWSParameterRecord(tank_id="T", concentration_cycles=4.0, cws_hardness=300.0)
    zero_makeup = CWSParameterRecord(tank_id="T", concentration_cycles=4.0, cws_hardness=300.0, makeup_hardness=0.0)
    unset = CWSParameterRecord(tank_id="T")
    assert concentration_cycles(only_cws) == 4.0
    assert concentration_cycles(zero_makeup) == 4.0
    assert concentration_cycles(unset) == 1.0


def test_cooling_tower_balance_and_usage():
    record = CWSParameterRecord(tank_id="T", circulation_rate=1000.0, temp_diff=5.0, concentration_cycles=4.0)
    balance = cooling_tower_balance(record)
    assert balance.blowdown == pytest.approx(72.0)
    assert blowdown_usage_kg(record, 10.0) == pytest.approx(0.72)
    assert blowdown_usage_kg(record, 0.0) == 0.0
    assert blowdown_usage_kg(record, None) == 0.0


# ==================== DAILY MODEL ====================

def test_cws_daily_usage(calc, cooling_tank, cooling_supplies, cws_records):
    daily = calc.daily_usage(cooling_tank, datetime.date(2024, 3, 5), cooling_supplies, cws_records)
    assert daily.has_data
    assert daily.usage_kg == pytest.approx(0.72)


def test_cws_daily_usage_with_hardness(calc, cooling_tank, cooling_supplies):
    history = [CWSParameterRecord(tank_id="CT-1", date=dt(2024, 3, 4), circulation_rate=1000.0, temp_diff=5.0,
                                  concentration_cycles=4.0, cws_hardness=300.0, makeup_hardness=100.0)]
    daily = calc.daily_usage(cooling_tank, datetime.date(2024, 3, 5), cooling_supplies, history)
    assert daily.usage_kg == pytest.approx(1.08)


def test_cws_low_cycles_is_backed_zero(calc, cooling_tank, cooling_supplies):
    history = [CWSParameterRecord(tank_id="CT-1", date=dt(2024, 3, 4), circulation_rate=1000.0,
                                  temp_diff=5.0, concentration_cycles=1.0)]
    daily = calc.daily_usage(cooling_tank, datetime.date(2024, 3, 5), cooling_supplies, history)
    assert daily.usage_kg == 0.0
    assert daily.has_data


def test_bws_daily_usage_spreads_weekly_steam(calc, boiler_tank, boiler_supplies, bws_records):
    daily = calc.daily_usage(boiler_tank, datetime.date(2024, 3, 10), boiler_supplies, bws_records)
    assert daily.has_data
    assert daily.usage_kg == pytest.approx(2.0)


def test_bws_record_without_steam_has_no_data(calc, boiler_tank, boiler_supplies):
    history = [BWSParameterRecord(tank_id="BW-1", date=dt(2024, 3, 4), steam_production=0.0)]
    daily = calc.daily_usage(boiler_tank, datetime.date(2024, 3, 5), boiler_supplies, history)
    assert not daily.has_data
    assert daily.usage_kg == 0.0


def test_day_without_record_has_no_data(calc, cooling_tank, cooling_supplies, cws_records):
    daily = calc.daily_usage(cooling_tank, datetime.date(2024, 3, 11), cooling_supplies, cws_records)
    assert not daily.has_data
    assert daily.usage_kg == 0.0


def test_day_without_contract_ppm_has_no_data(calc, cooling_tank, cws_records):
    no_ppm = [ChemicalSupply(id="S0", tank_id="CT-1", start_date=dt(2024, 1, 1), price=1.0)]
    assert not calc.daily_usage(cooling_tank, datetime.date(2024, 3, 5), no_ppm, cws_records).has_data
    assert not calc.daily_usage(cooling_tank, datetime.date(2024, 3, 5), [], cws_records).has_data


def test_total_for_days_excludes_future_days(calc, cooling_tank, cooling_supplies, cws_records):
    march = list(days_between(datetime.date(2024, 3, 1), datetime.date(2024, 4, 1)))

    full = calc.total_for_days(cooling_tank, march, cooling_supplies, cws_records, as_of=dt(2025, 1, 1))
    partial = calc.total_for_days(cooling_tank, march, cooling_supplies, cws_records, as_of=dt(2024, 3, 6, 9, 30))

    assert full.value == pytest.approx(0.72 * 7)
    assert full.days_with_data == 7
    assert partial.value == pytest.approx(0.72 * 3)
    assert len(partial.days) == 6


def test_total_without_parameter_data_is_unavailable(calc, cooling_tank, cooling_supplies, cws_records):
    april = list(days_between(datetime.date(2024, 4, 1), datetime.date(2024, 5, 1)))
    total = calc.total_for_days(cooling_tank, april, cooling_supplies, cws_records, as_of=dt(2025, 1, 1))
    assert total.total_kg == 0.0
    assert total.value is None


def test_total_for_tank_without_model_is_empty(calc, denox_tank, supplies):
    days = list(days_between(datetime.date(2024, 3, 1), datetime.date(2024, 3, 8)))
    assert calc.total_for_days(denox_tank, days, supplies, []).value is None


# ==================== BULK PERIOD MODEL ====================

def test_bws_period_usage_takes_steam_as_period_total(calc, boiler_tank, supplies, bws_records):
    supply = supplies[2]
    usage = calc.period_usage(boiler_tank, dt(2024, 3, 1), dt(2024, 4, 1), bws_records, supply)
    assert usage == pytest.approx(700.0 * 20.0 / 1000)


def test_bws_period_usage_falls_back_to_tank_default(calc, boiler_tank, supplies):
    tank = boiler_tank.model_copy(update={"bws_params": BWSParameterRecord(tank_id="BW-1", steam_production=350.0)})
    usage = calc.period_usage(tank, dt(2024, 5, 1), dt(2024, 6, 1), [], supplies[2])
    assert usage == pytest.approx(7.0)


def test_cws_period_usage_scales_with_days(calc, cooling_tank, supplies, cws_records):
    usage = calc.period_usage(cooling_tank, dt(2024, 3, 4), dt(2024, 3, 11), cws_records, supplies[1])
    assert usage == pytest.approx(0.72 * 7)


def test_period_usage_without_ppm_or_params_is_zero(calc, cooling_tank, supplies, cws_records):
    assert calc.period_usage(cooling_tank, dt(2024, 3, 4), dt(2024, 3, 11), cws_records, None) == 0.0
    assert calc.period_usage(cooling_tank, dt(2024, 5, 1), dt(2024, 6, 1), cws_records, supplies[1]) == 0.0
