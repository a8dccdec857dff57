"""
Ambient system reads used by the analytics engine.

The engine never queries the clock, locale, timezone or home directory
directly; it goes through an Environment so tests can pin every value.
"""

import locale
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from tzlocal import get_localzone_name

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_IDENTIFIER = "en_US"
DEFAULT_TIMEZONE_IDENTIFIER = "UTC"


@dataclass(frozen=True)
class Environment:
    """Injectable source of the ambient values the engine reads."""
    now: Callable[[], datetime]
    locale_identifier: Callable[[], str]
    timezone_identifier: Callable[[], str]
    home_directory: Callable[[], str]


def _system_now() -> datetime:
    return datetime.now(timezone.utc)


def _system_locale_identifier() -> str:
    try:
        language_code, _ = locale.getlocale()
    except ValueError:
        return DEFAULT_LOCALE_IDENTIFIER
    if not language_code or language_code == "C":
        return DEFAULT_LOCALE_IDENTIFIER
    return language_code


def _system_timezone_identifier() -> str:
    configured = os.environ.get("TZ")
    if configured:
        return configured
    try:
        host_zone = get_localzone_name()
    except (LookupError, ValueError, OSError) as e:
        logger.debug("Could not detect host timezone, using %s: %s", DEFAULT_TIMEZONE_IDENTIFIER, e)
        return DEFAULT_TIMEZONE_IDENTIFIER
    return host_zone or DEFAULT_TIMEZONE_IDENTIFIER


def _system_home_directory() -> str:
    return str(Path.home())


def system_environment() -> Environment:
    """Environment backed by the running process."""
    return Environment(
        now=_system_now,
        locale_identifier=_system_locale_identifier,
        timezone_identifier=_system_timezone_identifier,
        home_directory=_system_home_directory,
    )


def fixed_environment(
    now: datetime,
    locale_identifier: str = DEFAULT_LOCALE_IDENTIFIER,
    timezone_identifier: str = DEFAULT_TIMEZONE_IDENTIFIER,
    home_directory: str = "/home/user",
) -> Environment:
    """Environment returning constant values, for deterministic evaluation.

    Args:
        now: Aware datetime returned as the evaluation instant
        locale_identifier: Value reported as the system locale
        timezone_identifier: Value reported as the system timezone
        home_directory: Value used to expand '~' in export paths

    Raises:
        ValueError: If now is a naive datetime
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return Environment(
        now=lambda: now,
        locale_identifier=lambda: locale_identifier,
        timezone_identifier=lambda: timezone_identifier,
        home_directory=lambda: home_directory,
    )
