# File: dosing_twin/config/settings.py
import os
import logging
from dotenv import load_dotenv

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
dotenv_path = os.path.join(project_root, '.env')
logger.debug(f"Attempting to load .env file from: {dotenv_path}")

if os.path.exists(dotenv_path):
    if load_dotenv(dotenv_path=dotenv_path):
        logger.info(f"Successfully loaded .env file from {dotenv_path}")
    else:
        logger.info(f".env file at {dotenv_path} processed but might be empty or set no new vars.")
else:
    logger.debug(f".env file not found at {dotenv_path}. Using system environment variables or defaults.")


# --- Geometry Settings ---
# Head type assumed for horizontal cylinders configured without one.
DEFAULT_HEAD_TYPE = os.getenv("DEFAULT_HEAD_TYPE", "SEMI_ELLIPTICAL_2_1").upper()
STRAPPING_STEP_CM = float(os.getenv("STRAPPING_STEP_CM", "1.0"))

logger.info(f"DEFAULT_HEAD_TYPE = {DEFAULT_HEAD_TYPE}")
logger.info(f"STRAPPING_STEP_CM = {STRAPPING_STEP_CM}")


# --- Theoretical Usage Settings ---
# Weekly process-parameter records cover [date, date + PARAMETER_WINDOW_DAYS).
PARAMETER_WINDOW_DAYS = int(os.getenv("PARAMETER_WINDOW_DAYS", "7"))
# Cooling tower evaporation constant (specific heat / unit conversion).
CWS_EVAPORATION_FACTOR = float(os.getenv("CWS_EVAPORATION_FACTOR", "1.8"))

logger.info(f"PARAMETER_WINDOW_DAYS = {PARAMETER_WINDOW_DAYS}")
logger.info(f"CWS_EVAPORATION_FACTOR = {CWS_EVAPORATION_FACTOR}")


# --- Reading Snapshot Settings ---
# Only used when a new reading has no custom SG, no previous reading and no contract.
DEFAULT_SPECIFIC_GRAVITY = float(os.getenv("DEFAULT_SPECIFIC_GRAVITY", "1.0"))
logger.info(f"DEFAULT_SPECIFIC_GRAVITY = {DEFAULT_SPECIFIC_GRAVITY}")


# --- Reporting Settings ---
VARIANCE_WARNING_PERCENT = float(os.getenv("VARIANCE_WARNING_PERCENT", "10"))
VARIANCE_CRITICAL_PERCENT = float(os.getenv("VARIANCE_CRITICAL_PERCENT", "20"))

if VARIANCE_WARNING_PERCENT > VARIANCE_CRITICAL_PERCENT:
    logger.warning(
        f"VARIANCE_WARNING_PERCENT ({VARIANCE_WARNING_PERCENT}) is above "
        f"VARIANCE_CRITICAL_PERCENT ({VARIANCE_CRITICAL_PERCENT}). WARNING severity will never be reported."
    )

logger.info(f"VARIANCE_WARNING_PERCENT = {VARIANCE_WARNING_PERCENT}")
logger.info(f"VARIANCE_CRITICAL_PERCENT = {VARIANCE_CRITICAL_PERCENT}")

logger.info("Configuration settings loaded.")
