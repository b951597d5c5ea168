# File: dosing_twin/core/physics/geometry.py
"""
Tank Geometry Model

Converts a measured liquid level into a liquid volume for the supported tank
shapes:
- Vertical cylinder
- Rectangular tank
- Horizontal cylinder with flat, hemispherical or 2:1 semi-elliptical heads

All dimensions are in cm; volumes are returned in litres (1 L = 1000 cm³).

Tanks configured before dimensions were tracked only carry a linear factor
(litres per cm). Tanks calibrated on site carry a strapping table instead,
which takes precedence over both. Volume resolution walks an ordered list of
strategies and takes the first one that produces a value, ending with the
legacy factor and finally zero, so a badly configured tank never raises.
"""

import logging
import math
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from config import settings
from core.models import Tank, TankDimensions, ShapeType, HeadType

logger = logging.getLogger(__name__)

CM3_PER_LITRE = 1000.0

VolumeStrategy = Callable[[Tank, float], Optional[float]]


def effective_height(level_cm: float, dimensions: TankDimensions) -> float:
    """
    Real liquid height = reading + sensor offset, clamped at 0 and, when a
    height is configured, at that height.
    """
    h = level_cm + (dimensions.sensor_offset or 0.0)
    if h < 0:
        h = 0.0
    if dimensions.height and h > dimensions.height:
        h = dimensions.height
    return h


def segment_area(radius: float, h: float) -> float:
    """Area of the circular segment of a circle of `radius` filled to height `h` (cm²)."""
    diameter = 2 * radius
    if h <= 0:
        return 0.0
    if h >= diameter:
        return math.pi * radius ** 2
    return radius ** 2 * math.acos((radius - h) / radius) - (radius - h) * math.sqrt(2 * radius * h - h ** 2)


def spherical_cap_volume(radius: float, h: float) -> float:
    """
    Volume of a sphere of `radius` filled to height `h` (cm³).

    The two hemispherical ends of a horizontal capsule make one full sphere,
    so this is the combined volume of both heads.
    """
    h = min(max(h, 0.0), 2 * radius)
    return (math.pi * h ** 2 / 3) * (3 * radius - h)


def head_volume(head_type: HeadType, radius: float, h: float) -> float:
    """
    Combined liquid volume of both heads of a horizontal cylinder (cm³).

    A 2:1 semi-elliptical head is an ellipsoid with its longitudinal axis
    scaled to r/2. Every horizontal slice of it is the matching sphere slice
    scaled by 0.5 along that axis, so its partial volume is exactly half of
    the hemispherical one at every fill height.
    """
    if head_type == HeadType.FLAT:
        return 0.0
    if head_type == HeadType.HEMISPHERICAL:
        return spherical_cap_volume(radius, h)
    if head_type == HeadType.SEMI_ELLIPTICAL_2_1:
        return 0.5 * spherical_cap_volume(radius, h)
    logger.warning(f"Unknown head type '{head_type}'. Treating heads as flat.")
    return 0.0


def _default_head_type() -> HeadType:
    try:
        return HeadType(settings.DEFAULT_HEAD_TYPE)
    except ValueError:
        logger.warning(f"Invalid DEFAULT_HEAD_TYPE '{settings.DEFAULT_HEAD_TYPE}'. Using SEMI_ELLIPTICAL_2_1.")
        return HeadType.SEMI_ELLIPTICAL_2_1


# --- Shape volumes (None = required dimensions missing) ---

def vertical_cylinder_volume(dimensions: TankDimensions, h: float) -> Optional[float]:
    if not dimensions.diameter:
        return None
    r = dimensions.diameter / 2
    return math.pi * r ** 2 * h / CM3_PER_LITRE


def rectangular_volume(dimensions: TankDimensions, h: float) -> Optional[float]:
    if not dimensions.width or not dimensions.length:
        return None
    return dimensions.length * dimensions.width * h / CM3_PER_LITRE


def horizontal_cylinder_volume(dimensions: TankDimensions, h: float) -> Optional[float]:
    if not dimensions.diameter or not dimensions.length:
        return None
    r = dimensions.diameter / 2
    h_calc = min(h, dimensions.diameter)

    body_cm3 = dimensions.length * segment_area(r, h_calc)
    heads_cm3 = head_volume(dimensions.head_type or _default_head_type(), r, h_calc)
    return (body_cm3 + heads_cm3) / CM3_PER_LITRE


SHAPE_VOLUMES = {
    ShapeType.VERTICAL_CYLINDER: vertical_cylinder_volume,
    ShapeType.RECTANGULAR: rectangular_volume,
    ShapeType.HORIZONTAL_CYLINDER: horizontal_cylinder_volume,
}


def strapping_volume(table: Dict[float, float], level_cm: float) -> Optional[float]:
    """
    Linear interpolation in a level (cm) -> volume (L) calibration table.
    Levels outside the table clamp to its first or last volume.
    """
    if not table or level_cm is None:
        return None
    levels = sorted(table)
    return float(np.interp(level_cm, np.array(levels, dtype=float),
                           np.array([table[lvl] for lvl in levels], dtype=float)))


# --- Resolution strategies, in precedence order ---

def strapping_strategy(tank: Tank, level_cm: float) -> Optional[float]:
    """A calibration table is read against the gauge as-is, without sensor offset."""
    return strapping_volume(tank.strapping_table, level_cm) if tank.strapping_table else None


def legacy_factor_shortcut(tank: Tank, level_cm: float) -> Optional[float]:
    """Undimensioned vertical tanks with a factor never touch the geometry."""
    if tank.shape_type not in (None, ShapeType.VERTICAL_CYLINDER):
        return None
    if tank.dimensions is not None and tank.dimensions.diameter:
        return None
    if not tank.factor:
        return None
    return level_cm * tank.factor


def shape_strategy(tank: Tank, level_cm: float) -> Optional[float]:
    if tank.dimensions is None or tank.shape_type is None:
        return None
    calculate = SHAPE_VOLUMES.get(tank.shape_type)
    if calculate is None:
        return None
    return calculate(tank.dimensions, effective_height(level_cm, tank.dimensions))


def legacy_factor(tank: Tank, level_cm: float) -> Optional[float]:
    # Dimensioned tanks without a shape get no factor fallback; they read 0.
    if tank.dimensions is not None and tank.shape_type is None:
        return None
    if not tank.factor:
        return None
    return level_cm * tank.factor


def zero_volume(tank: Tank, level_cm: float) -> Optional[float]:
    return 0.0


VOLUME_STRATEGIES: List[Tuple[str, VolumeStrategy]] = [
    ("strapping", strapping_strategy),
    ("legacy_factor_shortcut", legacy_factor_shortcut),
    ("shape", shape_strategy),
    ("legacy_factor", legacy_factor),
    ("zero", zero_volume),
]


def volume_liters(tank: Tank, level_cm: float) -> float:
    """Liquid volume (L) in `tank` for a measured level in cm."""
    for name, strategy in VOLUME_STRATEGIES:
        volume = strategy(tank, level_cm)
        if volume is not None:
            if name == "zero":
                logger.warning(f"{tank}: no usable geometry or factor. Volume reported as 0.")
            else:
                logger.debug(f"{tank}: level {level_cm} cm -> {volume:,.2f} L via {name}")
            return volume
    return 0.0
