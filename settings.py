"""
Settings and Global Initialization Module for the rubric scoring engine.

This module is responsible for:
1. Retrieving application-wide configuration settings using the `config.py` module.
2. Setting up global logging using a utility from `logger_utils.py`.

The objects initialized here (`settings`, `app_logger`) are intended to be
imported and used by other modules in the application.
"""

import logging
import os

from config import get_settings
from logger_utils import setup_global_logger

settings = get_settings()

log_level_to_use = os.getenv("LOG_LEVEL", settings.app.log_level).upper()

setup_global_logger(
    log_level=log_level_to_use,
    app_name=settings.app.name,
    force_basic_logging=os.getenv("LOG_FORMAT", "").lower() == "basic",
)

app_logger = logging.getLogger(settings.app.name)
app_logger.info(f"Application settings loaded successfully for environment: '{settings.env}'")
app_logger.debug(f"Full application settings object: {settings.model_dump_json(indent=2)}")
