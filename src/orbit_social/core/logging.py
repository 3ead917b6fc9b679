"""Logging setup for the service."""

from __future__ import annotations

import logging
import sys

from orbit_social.core.settings import settings

PACKAGE_LOGGER = "orbit_social"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the ``orbit_social`` logger.

    Safe to call more than once; an existing handler installed by this
    function is replaced rather than duplicated.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_orbit_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._orbit_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
    package_logger.setLevel((level or settings.log_level).upper())
