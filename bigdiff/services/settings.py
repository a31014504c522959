"""
Run settings management.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from bigdiff.core.folder.scanner import validate_pattern
from bigdiff.core.models import DEFAULT_MAX_TEXT_SIZE, ConfigurationError, Options


logger = logging.getLogger(__name__)


DEFAULT_MAX_TEXT_SIZE_STR = "5MB"

# Checked in order; the first suffix whose remainder parses wins.
SIZE_UNITS: tuple[tuple[str, int], ...] = (
    ("gib", 1024 ** 3),
    ("g", 1000 ** 3),
    ("mib", 1024 ** 2),
    ("m", 1000 ** 2),
    ("kib", 1024),
    ("k", 1000),
    ("kb", 1000),
    ("mb", 1000 ** 2),
    ("gb", 1000 ** 3),
    ("b", 1),
)


def _parse_number(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    if value != value or value in (float('inf'), float('-inf')) or value < 0:
        return None
    return value


def parse_size(value: str | int) -> int:
    """
    Parse a human-readable size such as ``5MB``, ``100kib`` or ``1024``.

    Decimal and binary unit suffixes are accepted case-insensitively.
    Unparseable input falls back to DEFAULT_MAX_TEXT_SIZE.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if value >= 0:
            return value
        logger.warning(f"Settings - Negative size {value}, using {DEFAULT_MAX_TEXT_SIZE} bytes")
        return DEFAULT_MAX_TEXT_SIZE

    text = str(value).strip().lower()

    for unit, multiplier in SIZE_UNITS:
        if text.endswith(unit):
            number = _parse_number(text[:-len(unit)].strip())
            if number is not None:
                return int(number * multiplier)

    if text.isdigit():
        return int(text)

    logger.warning(f"Settings - Unparseable size {value!r}, using {DEFAULT_MAX_TEXT_SIZE} bytes")
    return DEFAULT_MAX_TEXT_SIZE


def split_patterns(values: Iterable[str]) -> list[str]:
    """Split comma-separated pattern arguments, dropping empty items."""
    patterns: list[str] = []
    for value in values:
        for item in value.split(','):
            item = item.strip()
            if item:
                patterns.append(item)
    return patterns


@dataclass
class RunSettings:
    """Unvalidated settings gathered from a config file and the command line."""
    ignore: list[str] = field(default_factory=list)
    normalize_eol: bool = False
    max_text_size: str | int = DEFAULT_MAX_TEXT_SIZE_STR
    dry_run: bool = False

    def merged_with(
        self,
        ignore: Iterable[str] = (),
        normalize_eol: bool = False,
        max_text_size: Optional[str] = None,
        dry_run: bool = False
    ) -> 'RunSettings':
        """
        Layer command line values over these settings.

        Flags only switch features on; ignore patterns accumulate.
        """
        return RunSettings(
            ignore=[*self.ignore, *ignore],
            normalize_eol=self.normalize_eol or normalize_eol,
            max_text_size=max_text_size if max_text_size is not None else self.max_text_size,
            dry_run=self.dry_run or dry_run,
        )


def build_options(settings: RunSettings) -> Options:
    """
    Validate settings and freeze them into Options.

    Raises:
        ConfigurationError: If an ignore pattern is invalid
    """
    patterns: list[str] = []
    for pattern in split_patterns(settings.ignore):
        validate_pattern(pattern)
        if pattern not in patterns:
            patterns.append(pattern)

    return Options(
        normalize_eol=bool(settings.normalize_eol),
        max_text_size=parse_size(settings.max_text_size),
        ignore_patterns=tuple(patterns),
        dry_run=bool(settings.dry_run),
    )


class SettingsManager:
    """Loads run settings from a JSON file."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path

    def load(self) -> RunSettings:
        """
        Load settings from disk.

        Without a path the defaults are returned. A path that cannot be read
        or parsed is a configuration error.
        """
        if self.settings_path is None:
            return RunSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {self.settings_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid config file {self.settings_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid config file {self.settings_path}: expected a JSON object"
            )

        logger.info(f"SettingsManager - Loaded settings from {self.settings_path}")
        return self._from_dict(data)

    def _from_dict(self, data: dict[str, Any]) -> RunSettings:
        """Convert a dictionary into RunSettings, ignoring unknown keys."""
        defaults = RunSettings()

        ignore = data.get('ignore', defaults.ignore)
        if isinstance(ignore, str):
            ignore = [ignore]
        if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
            raise ConfigurationError(
                f"Invalid config file {self.settings_path}: 'ignore' must be a list of strings"
            )

        max_text_size = data.get('max_text_size', defaults.max_text_size)
        if isinstance(max_text_size, bool) or not isinstance(max_text_size, (str, int)):
            raise ConfigurationError(
                f"Invalid config file {self.settings_path}: "
                "'max_text_size' must be a string or an integer"
            )

        return RunSettings(
            ignore=list(ignore),
            normalize_eol=bool(data.get('normalize_eol', defaults.normalize_eol)),
            max_text_size=max_text_size,
            dry_run=bool(data.get('dry_run', defaults.dry_run)),
        )
