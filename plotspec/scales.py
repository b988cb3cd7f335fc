from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True)
class DataLimits:
    xmin: float
    xmax: float
    ymin: float
    ymax: float


def widen_degenerate(lo: float, hi: float, margin: float = 1.0) -> tuple[float, float]:
    if lo != hi:
        return (lo, hi)
    # at large magnitudes lo +/- margin rounds back to lo
    step = max(margin, 2.0 * float(np.spacing(abs(lo))))
    return (lo - step, hi + step)


def padded_limits(xs: Iterable[float], ys: Iterable[float], pad: float = 1.0) -> DataLimits:
    vx = np.asarray(list(xs), dtype=np.float64)
    vy = np.asarray(list(ys), dtype=np.float64)
    if vx.size == 0 or vy.size == 0:
        raise ValueError("padded_limits requires at least one coordinate")
    return DataLimits(
        xmin=float(np.min(vx)) - pad,
        xmax=float(np.max(vx)) + pad,
        ymin=float(np.min(vy)) - pad,
        ymax=float(np.max(vy)) + pad,
    )


def sample_grid(lo: float, hi: float, n: int) -> np.ndarray:
    """Uniform grid ``lo + i * (hi - lo) / (n - 1)`` for ``i in 0..n-1``."""
    if not (np.isfinite(lo) and np.isfinite(hi)):
        raise ValueError("grid bounds must be finite")
    if n < 2:
        return np.asarray([lo, hi], dtype=np.float64)
    return np.linspace(lo, hi, int(n), dtype=np.float64)


def resolve_sample_count(hint: int | None, *, default: int, maximum: int) -> int:
    if hint is None:
        return default
    return max(2, min(int(hint), maximum))
