"""
Logging configuration.

We use a YAML logging config (`src/harvesthub/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `HARVESTHUB_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from harvesthub.config.settings import get_logging_config, get_settings


def configure_logging() -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = get_settings()
    # dictConfig pops keys out of handler dicts, so never hand it the cached config.
    config = copy.deepcopy(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
