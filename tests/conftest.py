"""
Shared fixtures for the usage reconciliation tests.

The scenario: a cooling-water tank (CWS_BLOWDOWN) with two contracts in 2024,
one weekly parameter record in March, and readings giving a steady 10 kg/day
through early March; plus a boiler tank (BWS_STEAM) and a tank without a
theoretical model.
"""

import datetime

import pytest

from core.models import (
    Tank, TankDimensions, ChemicalSupply, Reading, CWSParameterRecord, BWSParameterRecord,
    ImportantNote, SystemType, CalculationMethod, ShapeType, HeadType
)


def dt(*args) -> datetime.datetime:
    return datetime.datetime(*args)


def make_reading(reading_id, timestamp, weight, added=0.0, sg=1.0, tank_id="CT-1", level=None) -> Reading:
    return Reading(
        id=reading_id,
        tank_id=tank_id,
        timestamp=timestamp,
        calculated_weight_kg=weight,
        added_amount_liters=added,
        applied_specific_gravity=sg,
        level_cm=level,
    )


# ==================== TANKS ====================

@pytest.fixture
def cooling_tank():
    return Tank(
        id="CT-1",
        name="CT-1 Corrosion Inhibitor",
        system=SystemType.COOLING,
        calculation_method=CalculationMethod.CWS_BLOWDOWN,
        shape_type=ShapeType.VERTICAL_CYLINDER,
        dimensions=TankDimensions(diameter=200, height=250),
    )


@pytest.fixture
def boiler_tank():
    return Tank(
        id="BW-1",
        name="Boiler Oxygen Scavenger",
        system=SystemType.BOILER,
        calculation_method=CalculationMethod.BWS_STEAM,
        shape_type=ShapeType.HORIZONTAL_CYLINDER,
        dimensions=TankDimensions(diameter=120, length=200, head_type=HeadType.FLAT),
    )


@pytest.fixture
def denox_tank():
    return Tank(id="DN-1", name="Urea", system=SystemType.DENOX, factor=2.0)


# ==================== HISTORIES ====================

@pytest.fixture
def supplies():
    return [
        ChemicalSupply(id="S2", tank_id="CT-1", start_date=dt(2024, 3, 15), price=60.0,
                       specific_gravity=1.2, target_ppm=10.0),
        ChemicalSupply(id="S1", tank_id="CT-1", start_date=dt(2024, 1, 1), price=50.0,
                       specific_gravity=1.1, target_ppm=10.0),
        ChemicalSupply(id="B1", tank_id="BW-1", start_date=dt(2024, 1, 1), price=80.0,
                       specific_gravity=1.05, target_ppm=20.0),
        ChemicalSupply(id="D1", tank_id="DN-1", start_date=dt(2024, 1, 1), price=10.0,
                       specific_gravity=1.0),
    ]


@pytest.fixture
def cws_records():
    # 1000 m3/hr, dT 5 C, 4 cycles: E = 216, B = 72, 0.72 kg/day at 10 ppm
    return [
        CWSParameterRecord(id="C1", tank_id="CT-1", date=dt(2024, 3, 4), circulation_rate=1000.0,
                           temp_diff=5.0, concentration_cycles=4.0),
    ]


@pytest.fixture
def bws_records():
    # 700 t/week -> 100 t/day, 2 kg/day at 20 ppm
    return [
        BWSParameterRecord(id="W1", tank_id="BW-1", date=dt(2024, 3, 4), steam_production=700.0),
    ]


@pytest.fixture
def cooling_readings():
    # 10 kg/day from March 1st to March 11th
    return [
        make_reading("R1", dt(2024, 3, 1), 1000.0),
        make_reading("R2", dt(2024, 3, 11), 900.0),
    ]


@pytest.fixture
def notes():
    return [
        ImportantNote(id="N1", date_str="2024-03-15", area="CT-1", note="New inhibitor contract"),
        ImportantNote(id="N2", date_str="not a date", note="Unparseable"),
    ]


@pytest.fixture
def as_of():
    return dt(2025, 1, 1)


@pytest.fixture
def cooling_supplies(supplies):
    return sorted((s for s in supplies if s.tank_id == "CT-1"), key=lambda s: s.start_date)


@pytest.fixture
def boiler_supplies(supplies):
    return [s for s in supplies if s.tank_id == "BW-1"]
