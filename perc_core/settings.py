"""Helpers for loading and working with percolation run settings."""
from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict

DEFAULT_SETTINGS: Dict[str, Any] = {
    # Search horizon
    "escape_distance": 1000,
    "trap_search_budget": 10000,
    "pocket_size_limit": 10000,
    "coordinate_limit": 50000,

    # Randomness
    "seed": None,

    # Pacing
    "speed": 1.0,  # multiplier, or "max"
    "render_interval_ms": 16.0,
    "base_max_delay_ms": 50.0,
    "base_min_delay_ms": 1.0,
    "unthrottled_batch_min": 500,
    "unthrottled_yield_every": 2000,

    # Reporting
    "analyze_pockets": True,
}


def _coerce_setting(value: Any, default: Any) -> Any:
    """Best-effort coercion of JSON-loaded values to match defaults."""

    if default is None or value is None:
        return value
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return value
        return value
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return value
    return value


def load_settings(settings_path: Path | None = None) -> Dict[str, Any]:
    """Load the settings file if it exists, otherwise return defaults."""
    data: Dict[str, Any] = copy.deepcopy(DEFAULT_SETTINGS)
    if settings_path and settings_path.exists():
        try:
            loaded = json.loads(settings_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Failed to parse settings file {settings_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise RuntimeError(f"Settings file {settings_path} must contain a JSON object")
        for key, value in loaded.items():
            if key in data:
                data[key] = _coerce_setting(value, data[key])
            else:
                data[key] = value
    return data


__all__ = ["DEFAULT_SETTINGS", "load_settings"]
