"""User settings and their JSON persistence."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)

SOUND_OPTIONS = ("Beep", "Tink", "Pop", "Ping", "Morse", "None")

# Persisted key codes for the arrow key pressed after each capture
ARROW_KEY_CODES = (123, 124, 125, 126)

MAX_COUNT_RANGE = (1, 999)
INITIAL_DELAY_RANGE = (0.0, 10.0)
THRESHOLD_RANGE = (0.0, 0.5)

SETTINGS_ENV = "SHOTBAR_SETTINGS"


class SettingsError(Exception):
    """Raised when settings cannot be read, parsed or updated."""


def _clamp(value, low, high):
    return max(low, min(high, value))


@dataclass
class Settings:
    save_folder_path: str = ""
    auto_create_folder: bool = False
    filename_prefix: str = "capture"
    arrow_key: int = 125
    max_count: int = 50
    initial_delay: float = 5.0
    interval_delay: float = 1.0
    detect_duplicate: bool = False
    duplicate_threshold: float = 0.05
    completion_sound: str = "None"
    countdown_sound: str = "Beep"

    def clamped(self) -> "Settings":
        """Return a copy with every value forced into its allowed range."""
        defaults = Settings()
        return replace(
            self,
            filename_prefix=self.filename_prefix.strip() or defaults.filename_prefix,
            arrow_key=self.arrow_key if self.arrow_key in ARROW_KEY_CODES else defaults.arrow_key,
            max_count=int(_clamp(self.max_count, *MAX_COUNT_RANGE)),
            initial_delay=float(_clamp(self.initial_delay, *INITIAL_DELAY_RANGE)),
            interval_delay=float(max(0.0, self.interval_delay)),
            duplicate_threshold=float(_clamp(self.duplicate_threshold, *THRESHOLD_RANGE)),
            completion_sound=self.completion_sound if self.completion_sound in SOUND_OPTIONS else defaults.completion_sound,
            countdown_sound=self.countdown_sound if self.countdown_sound in SOUND_OPTIONS else defaults.countdown_sound,
        )

    def save_directory(self) -> Path:
        """Configured destination folder, or the Desktop when none is selected."""
        if self.save_folder_path:
            return Path(self.save_folder_path).expanduser()
        return Path.home() / "Desktop"


def field_types() -> Dict[str, type]:
    """Mapping of settings key -> Python type of its default value."""
    defaults = Settings()
    return {f.name: type(getattr(defaults, f.name)) for f in fields(Settings)}


def parse_value(key: str, raw: str) -> Any:
    """
    Parse a command-line string into the type of the given settings key.

    Raises:
        SettingsError: If the key is unknown or the value does not parse
    """
    types = field_types()
    if key not in types:
        raise SettingsError(f"Unknown setting: {key}")

    kind = types[key]
    try:
        if kind is bool:
            lowered = raw.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {raw!r}")
        return kind(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid value for {key}: {exc}") from exc


def default_settings_path() -> Path:
    env_path = os.getenv(SETTINGS_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "shotbar" / "settings.json"


class SettingsStore:
    """JSON file holding the user's settings."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        """
        Read settings from disk.

        Missing files yield defaults; unknown keys are ignored.

        Raises:
            SettingsError: If the file exists but is not a valid settings object
        """
        if not self._path.exists():
            logger.debug(f"No settings file at {self._path}, using defaults")
            return Settings()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SettingsError(f"Failed to read settings from {self._path}: {exc}") from exc

        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {self._path} must contain a JSON object")

        types = field_types()
        known = {}
        for key, value in data.items():
            if key not in types:
                logger.warning(f"Ignoring unknown setting '{key}' in {self._path}")
                continue
            known[key] = value

        try:
            return Settings(**known).clamped()
        except (TypeError, ValueError, AttributeError) as exc:
            raise SettingsError(f"Invalid settings in {self._path}: {exc}") from exc

    def save(self, settings: Settings) -> Path:
        """Write clamped settings to disk, creating parent directories."""
        settings = settings.clamped()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Failed to write settings to {self._path}: {exc}") from exc

        logger.debug(f"Saved settings to {self._path}")
        return self._path

    def update(self, **changes: Any) -> Settings:
        """Apply changes on top of the stored settings, save and return them."""
        types = field_types()
        unknown = sorted(set(changes) - set(types))
        if unknown:
            raise SettingsError(f"Unknown setting(s): {', '.join(unknown)}")

        settings = replace(self.load(), **changes).clamped()
        self.save(settings)
        return settings
