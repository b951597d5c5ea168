# dosing_twin/utils/volume_calculator.py

import logging
from typing import Dict, Optional
import numpy as np

from config import settings
from core.models import Tank
from core.physics.geometry import volume_liters, strapping_volume

logger = logging.getLogger(__name__)


class VolumeCalculator:
    """
    Builds level-to-volume strapping tables from tank geometry, to be printed
    for the site or stored on the tank as its `strapping_table`, and
    interpolates volumes from them.
    """

    def __init__(self, step_cm: Optional[float] = None):
        self.step_cm = step_cm if step_cm and step_cm > 0 else settings.STRAPPING_STEP_CM
        logger.debug(f"VolumeCalculator initialized with strapping step: {self.step_cm} cm")

    def calculate_volume(self, tank: Tank, level_cm: float) -> float:
        return volume_liters(tank, level_cm)

    def generate_strapping_table(self, tank: Tank, max_level_cm: Optional[float] = None) -> Dict[float, float]:
        """
        Generates a strapping table (level cm -> volume litres) for `tank` from
        its geometry. A table already stored on the tank is ignored.

        Args:
            tank: The tank to tabulate.
            max_level_cm: Highest level in the table. Defaults to the configured
                height, then the diameter.

        Returns:
            Mapping of level to volume, empty if no upper level is known.
        """
        if max_level_cm is None and tank.dimensions is not None:
            max_level_cm = tank.dimensions.height or tank.dimensions.diameter
        if not max_level_cm or max_level_cm <= 0:
            logger.warning(f"{tank}: no maximum level known. Cannot generate strapping table.")
            return {}

        geometric = tank.model_copy(update={"strapping_table": None})
        levels = np.arange(0.0, max_level_cm, self.step_cm)
        levels = np.append(levels, max_level_cm)
        table = {round(float(level), 4): volume_liters(geometric, float(level)) for level in levels}
        logger.info(f"Generated strapping table for {tank} with {len(table)} rows up to {max_level_cm} cm.")
        return table

    def volume_from_strapping(self, level_cm: float, strapping_data: Dict[float, float]) -> Optional[float]:
        """
        Interpolates the volume for `level_cm` from a strapping table.

        Levels outside the table clamp to its first or last volume.
        Returns None if the table is empty or no level is given.
        """
        volume = strapping_volume(strapping_data, level_cm)
        if volume is None:
            logger.warning("Strapping data is empty or level is not provided. Cannot calculate volume.")
        return volume
