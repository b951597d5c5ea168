# File: dosing_twin/core/models/__init__.py
"""
Entity snapshots consumed by the usage reconciliation engine.
"""

from .base import Snapshot
from .parameters import ParameterRecord, CWSParameterRecord, BWSParameterRecord
from .tank import Tank, TankDimensions, SystemType, CalculationMethod, ShapeType, HeadType
from .supply import ChemicalSupply
from .reading import Reading
from .note import ImportantNote

__all__ = [
    'Snapshot',
    # Tank catalog
    'Tank',
    'TankDimensions',
    'SystemType',
    'CalculationMethod',
    'ShapeType',
    'HeadType',
    # Histories
    'ChemicalSupply',
    'Reading',
    'ParameterRecord',
    'CWSParameterRecord',
    'BWSParameterRecord',
    # Annotations
    'ImportantNote',
]
