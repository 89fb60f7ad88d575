import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, List, Optional

from .keyvalues import DuplicateKeyPolicy

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    fetch_thumbnails: bool = True
    thumbnail_timeout: float = 5.0
    thumbnail_workers: int = 8
    recent_days: int = 30
    duplicate_keys: str = DuplicateKeyPolicy.LAST.value
    extra_roots: List[str] = field(default_factory=list)

    @property
    def duplicate_policy(self) -> DuplicateKeyPolicy:
        return DuplicateKeyPolicy(self.duplicate_keys)


def _coerce(value: Any, default: Any) -> Any:
    """``value`` converted to the type of ``default``; ValueError if it can't be."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
    elif isinstance(default, (int, float)):
        if not isinstance(value, bool):
            try:
                number = type(default)(value)
            except (TypeError, ValueError):
                pass
            else:
                if number >= 0:
                    return number
    elif isinstance(default, str):
        if isinstance(value, str):
            return value
    elif isinstance(default, list):
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return list(value)
    raise ValueError(f"expected {type(default).__name__}")


def load_settings(settings_file: Optional[Path]) -> Settings:
    """Defaults, overlaid with any known keys from an optional JSON file.

    A value of the wrong type keeps that key's default; numbers given as
    strings ("30") are converted.
    """
    settings = Settings()
    if settings_file is None:
        return settings
    try:
        if settings_file.exists():
            data = json.loads(settings_file.read_text("utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top level is not an object")
            for f in fields(Settings):
                if f.name not in data:
                    continue
                default = getattr(settings, f.name)
                try:
                    setattr(settings, f.name, _coerce(data[f.name], default))
                except ValueError as e:
                    logger.warning("Bad %s %r (%s), using %r", f.name, data[f.name], e, default)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring settings file %s: %s", settings_file, e)
        return Settings()

    try:
        DuplicateKeyPolicy(settings.duplicate_keys)
    except ValueError:
        logger.warning("Unknown duplicate_keys %r, using %r",
                       settings.duplicate_keys, DuplicateKeyPolicy.LAST.value)
        settings.duplicate_keys = DuplicateKeyPolicy.LAST.value
    return settings
