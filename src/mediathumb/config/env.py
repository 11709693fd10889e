"""MEDIATHUMB_* environment variables.

EnvReader looks variables up by their name without the MEDIATHUMB_ prefix,
so ``reader.get_int("THUMB_WIDTH")`` reads MEDIATHUMB_THUMB_WIDTH. Empty
values count as unset. A malformed value is logged and ignored, leaving the
setting to the config file or the built-in default.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

ENV_PREFIX = "MEDIATHUMB_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})

# Byte sizes take an optional binary unit: 65536, 64K, 64KiB, 100M, 1GB
_SIZE_RE = re.compile(r"(\d+)\s*([kmg]?)(?:i?b)?", re.IGNORECASE)
_SIZE_SHIFT = {"": 0, "k": 10, "m": 20, "g": 30}

T = TypeVar("T")


def parse_bool(value: str) -> bool:
    folded = value.strip().casefold()
    if folded in _TRUE:
        return True
    if folded in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def parse_size(value: str) -> int:
    """Parse a byte count such as "64K" or "100MiB" (units are powers of 2)."""
    match = _SIZE_RE.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"not a byte size: {value!r}")
    number, unit = match.groups()
    return int(number) << _SIZE_SHIFT[unit.casefold()]


class EnvReader:
    """Typed access to MEDIATHUMB_* variables.

    Tests inject a plain dict instead of touching os.environ:

        reader = EnvReader(env={"MEDIATHUMB_THUMB_WIDTH": "200"})
        reader.get_int("THUMB_WIDTH")  # 200
    """

    def __init__(
        self, env: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ
        self.prefix = prefix

    def name(self, key: str) -> str:
        """Full variable name for a key."""
        return f"{self.prefix}{key}"

    def _get(self, key: str, convert: Callable[[str], T], kind: str) -> T | None:
        raw = self._env.get(self.name(key))
        if raw is None or not raw.strip():
            return None
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", self.name(key), raw, kind)
            return None

    def get_str(self, key: str) -> str | None:
        return self._get(key, str.strip, "string")

    def get_int(self, key: str) -> int | None:
        return self._get(key, int, "integer")

    def get_float(self, key: str) -> float | None:
        return self._get(key, float, "number")

    def get_bool(self, key: str) -> bool | None:
        """Read a flag: 1/true/yes/on or 0/false/no/off, any case."""
        return self._get(key, parse_bool, "boolean")

    def get_size(self, key: str) -> int | None:
        """Read a byte count, see parse_size()."""
        return self._get(key, parse_size, "byte size")

    def get_path(self, key: str, must_exist: bool = True) -> Path | None:
        """Read a path, expanding "~".

        With must_exist, a path that does not exist is logged and ignored.
        """
        path = self._get(key, lambda v: Path(v.strip()).expanduser(), "path")
        if path is not None and must_exist and not path.exists():
            logger.warning("Ignoring %s=%s: path does not exist", self.name(key), path)
            return None
        return path
