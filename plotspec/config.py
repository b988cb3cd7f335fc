from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import tomllib
from typing import Any, Mapping

from plotspec.expression.lexer import MAX_EXPRESSION_LENGTH


@dataclass(frozen=True)
class InterpreterConfig:
    curve_samples: int = 401
    surface_samples: int = 80
    max_curve_samples: int = 5000
    max_surface_samples: int = 200
    bounds_padding: float = 1.0
    degenerate_margin: float = 1.0
    default_title: str = "Plot"
    secondary_surface_opacity: float = 0.85
    max_expression_length: int = MAX_EXPRESSION_LENGTH

    def __post_init__(self) -> None:
        if self.curve_samples < 2:
            raise ValueError("curve_samples must be >= 2")
        if self.surface_samples < 2:
            raise ValueError("surface_samples must be >= 2")
        if self.max_curve_samples < self.curve_samples:
            raise ValueError("max_curve_samples must be >= curve_samples")
        if self.max_surface_samples < self.surface_samples:
            raise ValueError("max_surface_samples must be >= surface_samples")
        if self.bounds_padding < 0:
            raise ValueError("bounds_padding must be >= 0")
        if self.degenerate_margin <= 0:
            raise ValueError("degenerate_margin must be > 0")
        if not 0.0 < self.secondary_surface_opacity <= 1.0:
            raise ValueError("secondary_surface_opacity must be in (0, 1]")
        if self.max_expression_length <= 0:
            raise ValueError("max_expression_length must be > 0")


DEFAULT_CONFIG = InterpreterConfig()


def config_from_dict(raw: Mapping[str, Any]) -> InterpreterConfig:
    known = {f.name: f for f in fields(InterpreterConfig)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"unknown interpreter config keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in raw.items():
        expected = type(getattr(DEFAULT_CONFIG, key))
        accepted: tuple[type, ...] = (int, float) if expected is float else (expected,)
        if isinstance(value, bool) or not isinstance(value, accepted):
            raise ValueError(f"interpreter config `{key}` must be {expected.__name__}")
        values[key] = float(value) if expected is float else value
    return InterpreterConfig(**values)


def load_config(path: str | Path) -> InterpreterConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    table = raw.get("interpreter", {})
    if not isinstance(table, dict):
        raise ValueError("`interpreter` must be a table")
    return config_from_dict(table)
