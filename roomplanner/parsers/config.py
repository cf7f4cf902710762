"""Grid calibration configuration.

All tolerances are expressed in the decoder's native coordinate units
(pdf2json page units). They live in one frozen dataclass so a decoder with a
different unit scale only needs a JSON override, not a code change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import json
import os
from pathlib import Path
from typing import Tuple

CONFIG_ENV_VAR = "ROOMPLANNER_GRID_CONFIG"


@dataclass(frozen=True)
class GridConfig:
    # cell assignment
    y_tolerance: float = 2.0
    slot_noise_threshold: float = 10.0
    # merge detection / batch lookup
    overflow_fraction: float = 0.6
    same_line_tolerance: float = 1.0
    right_column_tolerance: float = 2.0
    next_column_margin: float = 2.0
    lab_rooms_span_two_slots: bool = True
    # page labels
    reading_order_tolerance: float = 0.5
    top_left_window: Tuple[float, float] = (3.0, 15.0)
    top_area_window: Tuple[float, float] = (5.0, 20.0)
    leading_token_count: int = 10
    raw_text_limit: int = 200
    # decoder: PDF points per native unit
    unit_scale: float = 16.0
    day_labels: Tuple[str, ...] = field(
        default_factory=lambda: ("Mon", "Tue", "Wed", "Thu", "Fri")
    )
    departments: Tuple[str, ...] = field(
        default_factory=lambda: ("CSE", "SWE", "EEE", "MPE", "CEE", "BTM")
    )
    batch_prefixes: Tuple[str, ...] = field(
        default_factory=lambda: ("ME", "IPE", "EEE", "CEE", "MPE", "BTM")
    )


def _load_overrides(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:  # pragma: no cover - config errors runtime
        raise RuntimeError(f"Invalid JSON in grid config: {path}") from exc
    if not isinstance(data, dict):
        raise RuntimeError("Grid config must be a JSON object")
    return data


def _coerce(default, value):
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    if isinstance(default, (int, float)) and not isinstance(default, bool):
        return type(default)(value)
    if isinstance(default, tuple):
        if default and isinstance(default[0], (int, float)):
            # window bounds: exactly as many numbers as the default has
            if isinstance(value, (str, dict)) or len(value) != len(default):
                raise ValueError(f"expected {len(default)} numbers")
            return tuple(float(v) for v in value)
        if isinstance(value, str):
            return (value,)
        return tuple(str(v) for v in value if str(v).strip())
    return value


def get_grid_config() -> GridConfig:
    """Return the grid config, optionally overridden via env."""

    overrides: dict | None = None
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        override_path = Path(env_value)
        if override_path.is_file():
            overrides = _load_overrides(override_path)

    base = GridConfig()
    if not overrides:
        return base

    payload = {}
    for f in fields(base):
        default = getattr(base, f.name)
        value = overrides.get(f.name)
        if value is None or value == "" or value == []:
            payload[f.name] = default
            continue
        try:
            payload[f.name] = _coerce(default, value)
        except (TypeError, ValueError) as exc:
            raise RuntimeError(f"Invalid value for grid config field {f.name!r}: {value!r}") from exc
    return GridConfig(**payload)


__all__ = ["CONFIG_ENV_VAR", "GridConfig", "get_grid_config"]
