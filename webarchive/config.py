"""
Run configuration: defaults, WEBARCHIVE_* environment overrides and checks.
"""

import os
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Mapping, Optional, Tuple

from .cdx import DEFAULT_TIMEOUT

ENV_PREFIX = "WEBARCHIVE_"

DEFAULT_SRC = "-"
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_WAIT = 5.0
DEFAULT_N_JOBS = 1

_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_DURATION_RE = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|s|m|h))+$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Plain numbers are seconds. Otherwise a sequence of number+unit parts
    with units ms, s, m and h, e.g. "500ms", "5s" or "1m30s".
    """
    text = value.strip()
    if _NUMBER_RE.match(text):
        return float(text)
    if not _DURATION_RE.match(text):
        raise ValueError(f"invalid duration: {value!r}")
    total_ms = sum(float(number) * _DURATION_MS[unit]
                   for number, unit in _DURATION_PART_RE.findall(text))
    return total_ms / 1000


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {value!r}")


def parse_hosts(value: str) -> Tuple[str, ...]:
    """Split a comma separated host list, dropping blanks."""
    return tuple(h.strip().lower() for h in value.split(",") if h.strip())


@dataclass(frozen=True)
class Settings:
    """Everything one run needs to know."""
    src: str = DEFAULT_SRC
    timeout: float = DEFAULT_TIMEOUT
    retry_time: float = DEFAULT_RETRY_WAIT
    retries: int = DEFAULT_RETRY_ATTEMPTS
    from_date: Optional[str] = None
    skip_hosts: Tuple[str, ...] = field(default_factory=tuple)
    jobs: int = DEFAULT_N_JOBS
    progress: bool = False
    silent: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from WEBARCHIVE_* variables on top of the defaults.

        Args:
            environ: Mapping to read, defaults to os.environ

        Raises:
            ValueError: A variable is set to something unparseable
        """
        env = os.environ if environ is None else environ
        settings = cls()

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        overrides = {}
        if get("SRC") is not None:
            overrides["src"] = get("SRC")
        if get("TIMEOUT") is not None:
            overrides["timeout"] = parse_duration(get("TIMEOUT"))
        if get("RETRY_TIME") is not None:
            overrides["retry_time"] = parse_duration(get("RETRY_TIME"))
        if get("RETRIES") is not None:
            overrides["retries"] = int(get("RETRIES"))
        if get("FROM"):
            overrides["from_date"] = get("FROM")
        if get("SKIP_HOSTS") is not None:
            overrides["skip_hosts"] = parse_hosts(get("SKIP_HOSTS"))
        if get("JOBS") is not None:
            overrides["jobs"] = int(get("JOBS"))
        if get("PROGRESS") is not None:
            overrides["progress"] = parse_bool(get("PROGRESS"))
        if get("SILENT") is not None:
            overrides["silent"] = parse_bool(get("SILENT"))

        return replace(settings, **overrides)

    def validate(self) -> "Settings":
        """Raise ValueError on out-of-range values; return self otherwise."""
        if self.retries < 1:
            raise ValueError(f"retries must be at least 1, got {self.retries}")
        if self.retry_time < 0:
            raise ValueError(f"retry time must not be negative, got {self.retry_time}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")
        if self.from_date and not _is_yyyymmdd(self.from_date):
            raise ValueError(f"from date must be in YYYYMMDD format, got {self.from_date!r}")
        return self


def _is_yyyymmdd(value: str) -> bool:
    # strptime alone would accept "2020011"
    if len(value) != 8 or not value.isdigit():
        return False
    try:
        datetime.strptime(value, "%Y%m%d")
    except ValueError:
        return False
    return True
