# File: dosing_twin/core/physics/__init__.py
"""
Physics Engine Module for the Chemical Dosing Twin

This module provides the physical calculations behind usage reconciliation:
- Geometry: Level-to-volume conversion for vertical, rectangular and horizontal tanks
- Mass Balance: Reading snapshots and usage between consecutive readings
- Evaporation: Cooling tower evaporation, cycles of concentration and blowdown
- Theoretical Usage: Chemical demand under the blowdown and steam models
"""

from .geometry import volume_liters, effective_height, segment_area, spherical_cap_volume, head_volume
from .mass_balance import MassBalanceCalculator, ReadingSnapshot, IntervalUsage
from .evaporation import CoolingTowerBalance, cooling_tower_balance, concentration_cycles
from .theoretical import TheoreticalUsageCalculator, DailyTheory, TheoreticalTotal

__all__ = [
    # Geometry
    'volume_liters',
    'effective_height',
    'segment_area',
    'spherical_cap_volume',
    'head_volume',
    # Mass Balance
    'MassBalanceCalculator',
    'ReadingSnapshot',
    'IntervalUsage',
    # Evaporation
    'CoolingTowerBalance',
    'cooling_tower_balance',
    'concentration_cycles',
    # Theoretical Usage
    'TheoreticalUsageCalculator',
    'DailyTheory',
    'TheoreticalTotal',
]
