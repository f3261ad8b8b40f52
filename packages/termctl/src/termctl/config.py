"""Settings for termctl, read from ``TERMCTL_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "f", "false", "n", "no", "off"})

_ANCHORS = ("top-left", "top-right")


# ---------------------------------------------------------------------------
# Environment helpers
# ---------------------------------------------------------------------------


def get_env_var(name: str, default: str) -> str:
    """Return the value of *name*, or *default* when unset or empty."""
    value = os.environ.get(name, "")
    if value == "":
        return default
    return value


def get_bool_env_var(name: str, default: bool) -> bool:
    """Return a boolean environment variable.

    Raises ``ValueError`` when the variable is set to something that is not
    recognisably true or false.
    """
    value = os.environ.get(name, "")
    if value == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Could not parse {name}={value!r} as a boolean")


def get_numeric_env_var(name: str, default: int) -> int:
    """Return an integer environment variable.

    An unparsable value is logged and the default is used instead.
    """
    value = os.environ.get(name, "")
    if value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(
            "The environment variable %s is %r, which is not a number. "
            "Using default value of %d",
            name,
            value,
            default,
        )
        return default


# ---------------------------------------------------------------------------
# TermSettings
# ---------------------------------------------------------------------------


@dataclass
class TermSettings:
    """Timing and layout knobs for cursor queries and the status overlay."""

    settle_delay_ms: int = 20
    poll_interval_ms: int = 20
    query_retries: int = 10
    status_interval_ms: int = 1000
    status_anchor: str = "top-right"
    debug: bool = False

    def __post_init__(self) -> None:
        if self.settle_delay_ms < 0 or self.poll_interval_ms < 0:
            raise ValueError("Delays must not be negative")
        if self.query_retries < 1:
            raise ValueError("query_retries must be at least 1")
        if self.status_interval_ms <= 0:
            raise ValueError("status_interval_ms must be positive")
        if self.status_anchor not in _ANCHORS:
            raise ValueError(
                f"status_anchor must be one of {', '.join(_ANCHORS)}, "
                f"not {self.status_anchor!r}"
            )

    # -- durations in seconds -----------------------------------------------

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000.0

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def status_interval(self) -> float:
        return self.status_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> TermSettings:
        """Build settings from the environment, falling back to defaults."""
        defaults = cls()
        anchor = get_env_var("TERMCTL_STATUS_ANCHOR", defaults.status_anchor).lower()
        if anchor not in _ANCHORS:
            logger.warning(
                "Unknown TERMCTL_STATUS_ANCHOR %r, using %s",
                anchor,
                defaults.status_anchor,
            )
            anchor = defaults.status_anchor
        return cls(
            settle_delay_ms=max(
                0, get_numeric_env_var("TERMCTL_SETTLE_DELAY_MS", defaults.settle_delay_ms)
            ),
            poll_interval_ms=max(
                0, get_numeric_env_var("TERMCTL_POLL_INTERVAL_MS", defaults.poll_interval_ms)
            ),
            query_retries=max(
                1, get_numeric_env_var("TERMCTL_QUERY_RETRIES", defaults.query_retries)
            ),
            status_interval_ms=max(
                1,
                get_numeric_env_var(
                    "TERMCTL_STATUS_INTERVAL_MS", defaults.status_interval_ms
                ),
            ),
            status_anchor=anchor,
            debug=get_bool_env_var("TERMCTL_DEBUG", defaults.debug),
        )
