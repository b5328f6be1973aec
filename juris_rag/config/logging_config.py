# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Logging Configuration for the legal retrieval engine
JSON logs by default (one object per line on stdout); LOG_FORMAT=text gives
plain lines for local runs of the ingestion scripts.
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "text":
        return logging.Formatter("%(asctime)s %(levelname)-7s %(name)s | %(message)s", datefmt=_DATEFMT)
    return jsonlogger.JsonFormatter(_FIELDS, datefmt=_DATEFMT)


def setup_logger(
    name: str = "juris_rag",
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Create and configure a logger instance.

    Args:
        name: Logger name (usually __name__ of calling module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    numeric_level = getattr(logging, level, logging.INFO)

    logger = logging.getLogger(name)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(os.getenv("LOG_FORMAT", "json").strip().lower()))
        logger.addHandler(handler)

    logger.setLevel(numeric_level)

    return logger


# Create default application logger
logger = setup_logger("juris_rag")
