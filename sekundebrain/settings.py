# -*- coding: utf-8 -*-
"""User preferences (JSON on disk).

Settings are an explicit object: the app loads them once at startup, hands
them to the screens that need them, and saves them on change and shutdown.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import json
import os

from loguru import logger

APP_NAME = "sekundebrain"

RGB = Tuple[float, float, float]

DEFAULT_ACCENT: RGB = (113 / 255, 147 / 255, 255 / 255)
FONT_SIZE_RANGE = (10, 30)
LANGUAGES: List[str] = ["English", "Spanish", "French", "German"]
THEMES: List[str] = ["light", "dark", "system"]


class ColorblindType(str, Enum):
    NONE = "None"
    PROTANOPIA = "Protanopia"
    DEUTERANOPIA = "Deuteranopia"
    TRITANOPIA = "Tritanopia"
    ACHROMATOPSIA = "Achromatopsia"

    @property
    def color(self) -> RGB:
        return _COLORBLIND_ACCENTS[self]

    @property
    def description(self) -> str:
        return _COLORBLIND_DESCRIPTIONS[self]


_COLORBLIND_ACCENTS: Dict[ColorblindType, RGB] = {
    ColorblindType.NONE: DEFAULT_ACCENT,
    ColorblindType.PROTANOPIA: (0.0, 0.6, 0.6),
    ColorblindType.DEUTERANOPIA: (0.8, 0.5, 0.0),
    ColorblindType.TRITANOPIA: (0.7, 0.5, 0.0),
    ColorblindType.ACHROMATOPSIA: (0.5, 0.5, 0.5),
}

_COLORBLIND_DESCRIPTIONS: Dict[ColorblindType, str] = {
    ColorblindType.NONE: "No colorblind filter is applied.",
    ColorblindType.PROTANOPIA: "Red-blind: Reduced sensitivity to red light.",
    ColorblindType.DEUTERANOPIA: "Green-blind: Difficulty distinguishing greens.",
    ColorblindType.TRITANOPIA: "Blue-blind: Difficulty distinguishing blues and yellows.",
    ColorblindType.ACHROMATOPSIA: "Total color blindness: Sees mostly in shades of gray.",
}


@dataclass
class AppSettings:
    """Presentation preferences plus the device passcode hash."""

    theme: str = "dark"
    accent_color: RGB = DEFAULT_ACCENT
    colorblind_mode: ColorblindType = ColorblindType.NONE
    font_size: int = 14
    notifications_enabled: bool = True
    language: str = "English"
    passcode_hash: str = ""
    extras: Dict[str, object] = field(default_factory=dict, repr=False)

    def effective_accent(self) -> RGB:
        """Colorblind palette color when a mode is active, else the accent color."""
        if self.colorblind_mode is not ColorblindType.NONE:
            return self.colorblind_mode.color
        return self.accent_color

    def accent_hex(self) -> str:
        r, g, b = (max(0, min(255, round(c * 255))) for c in self.effective_accent())
        return f"#{r:02x}{g:02x}{b:02x}"

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data.pop("extras")
        data["accent_color"] = list(self.accent_color)
        data["colorblind_mode"] = self.colorblind_mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "AppSettings":
        """Build settings from decoded JSON, repairing invalid values."""
        s = cls()
        known = {f.name for f in fields(cls)} - {"extras"}
        s.extras = {k: v for k, v in data.items() if k not in known}

        theme = data.get("theme", s.theme)
        if theme in THEMES:
            s.theme = str(theme)

        accent = data.get("accent_color")
        if isinstance(accent, (list, tuple)) and len(accent) == 3:
            try:
                s.accent_color = tuple(max(0.0, min(1.0, float(c))) for c in accent)  # type: ignore[assignment]
            except (TypeError, ValueError):
                pass

        try:
            s.colorblind_mode = ColorblindType(data.get("colorblind_mode", s.colorblind_mode.value))
        except ValueError:
            s.colorblind_mode = ColorblindType.NONE

        try:
            s.font_size = clamp_font_size(int(data.get("font_size", s.font_size)))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            pass

        notifications = data.get("notifications_enabled", s.notifications_enabled)
        if isinstance(notifications, bool):
            s.notifications_enabled = notifications

        language = data.get("language", s.language)
        s.language = str(language) if language in LANGUAGES else "English"

        s.passcode_hash = str(data.get("passcode_hash") or "")
        return s


def clamp_font_size(size: int) -> int:
    lo, hi = FONT_SIZE_RANGE
    return max(lo, min(hi, size))


# ---------------------------------------------------------------------
# Config file location
# ---------------------------------------------------------------------

def config_dir() -> Path:
    """Return the config directory path for this platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA", os.path.expanduser("~\\AppData\\Roaming"))
        return Path(base) / APP_NAME
    base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(base) / APP_NAME


def config_path() -> Path:
    return config_dir() / "config.json"


# ---------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------

def load_settings(path: Optional[Union[str, Path]] = None) -> AppSettings:
    """Load settings (defaults merged with the file); create the file if missing."""
    path = Path(path) if path is not None else config_path()
    if not path.exists():
        settings = AppSettings()
        save_settings(settings, path)
        return settings
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Unreadable settings at {} ({}); using defaults", path, exc)
        return AppSettings()
    if not isinstance(data, dict):
        logger.warning("Settings at {} are not an object; using defaults", path)
        return AppSettings()
    return AppSettings.from_dict(data)


def save_settings(settings: AppSettings, path: Optional[Union[str, Path]] = None) -> None:
    """Persist *settings* to the JSON config file."""
    path = Path(path) if path is not None else config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dict(settings.extras)
    data.update(settings.to_dict())
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.debug("Saved settings to {}", path)
