from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from handover.core.schema import FlagPreset, ShiftPattern

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CONFIG = CONFIG_DIR / "handover.yaml"


@dataclass
class Settings:
    departments: list[str] = field(default_factory=lambda: ["Process", "Fruit", "Filling", "Warehouse", "Services", "Other"])
    shift_patterns: list[ShiftPattern] = field(default_factory=list)
    flag_presets: list[FlagPreset] = field(default_factory=list)
    shift_duration_hours: int = 12
    set_duration_hours: int = 96
    debounce_seconds: float = 0.3
    saved_display_seconds: float = 2.0
    availability_ttl_seconds: float | None = None
    retention: int = 100
    local_path: Path = Path("data/local_jobs.json")
    db_path: str = ":memory:"
    timezone: str | None = None


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        return yaml.safe_load(fp) or {}


def load_settings(path: Path | None = None) -> Settings:
    """Build settings from the YAML config, then apply environment overrides."""

    config_path = path or Path(os.getenv("HANDOVER_CONFIG") or DEFAULT_CONFIG)
    raw = _load_yaml(config_path)

    settings = Settings()
    if raw.get("departments"):
        settings.departments = [str(item) for item in raw["departments"]]
    settings.shift_patterns = [ShiftPattern.model_validate(item) for item in raw.get("shift_patterns") or []]
    settings.flag_presets = [FlagPreset.model_validate(item) for item in raw.get("flag_presets") or []]

    handover = raw.get("handover") or {}
    settings.shift_duration_hours = int(handover.get("shift_duration_hours", settings.shift_duration_hours))
    settings.set_duration_hours = int(handover.get("set_duration_hours", settings.set_duration_hours))

    autosave = raw.get("autosave") or {}
    settings.debounce_seconds = float(autosave.get("debounce_seconds", settings.debounce_seconds))
    settings.saved_display_seconds = float(autosave.get("saved_display_seconds", settings.saved_display_seconds))
    ttl = autosave.get("availability_ttl_seconds")
    settings.availability_ttl_seconds = float(ttl) if ttl is not None else None

    storage = raw.get("storage") or {}
    settings.retention = int(storage.get("retention", settings.retention))
    if storage.get("local_path"):
        settings.local_path = Path(storage["local_path"])
    settings.timezone = raw.get("timezone") or None

    settings.db_path = os.getenv("HANDOVER_DB_PATH") or settings.db_path
    if os.getenv("HANDOVER_TIMEZONE"):
        settings.timezone = os.environ["HANDOVER_TIMEZONE"]
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def reset_settings() -> None:
    """Drop the cached settings (used in tests)."""

    get_settings.cache_clear()
