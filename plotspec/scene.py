from __future__ import annotations

from dataclasses import dataclass
import math
from typing import ClassVar, Literal, Union

from plotspec.errors import InvalidRangeError


TraceKind = Literal["markers", "polyline", "region", "height_field", "contour_field", "markers_3d"]
Projection = Literal["2d", "3d"]

# None marks a sample where the function has no finite value.
OptionalValues = tuple[Union[float, None], ...]


@dataclass(frozen=True)
class MarkerTrace:
    kind: ClassVar[TraceKind] = "markers"

    x: tuple[float, ...]
    y: tuple[float, ...]
    labels: tuple[str, ...]
    name: str = "points"


@dataclass(frozen=True)
class PolylineTrace:
    kind: ClassVar[TraceKind] = "polyline"

    x: tuple[float, ...]
    y: OptionalValues
    name: str = "line"


@dataclass(frozen=True)
class RegionTrace:
    kind: ClassVar[TraceKind] = "region"

    x: tuple[float, ...]
    y: tuple[float, ...]
    name: str = "region"


@dataclass(frozen=True)
class HeightFieldTrace:
    kind: ClassVar[TraceKind] = "height_field"

    x: tuple[float, ...]
    y: tuple[float, ...]
    # z[j][i] = f(x[i], y[j])
    z: tuple[OptionalValues, ...]
    name: str
    show_scale: bool = True
    opacity: float = 1.0


@dataclass(frozen=True)
class ContourFieldTrace:
    kind: ClassVar[TraceKind] = "contour_field"

    x: tuple[float, ...]
    y: tuple[float, ...]
    z: tuple[OptionalValues, ...]
    name: str
    show_scale: bool = True


@dataclass(frozen=True)
class Marker3DTrace:
    kind: ClassVar[TraceKind] = "markers_3d"

    x: tuple[float, ...]
    y: tuple[float, ...]
    z: OptionalValues
    labels: tuple[str, ...]
    name: str = "points"


Trace = Union[MarkerTrace, PolylineTrace, RegionTrace, HeightFieldTrace, ContourFieldTrace, Marker3DTrace]


@dataclass(frozen=True)
class Layout:
    title: str
    x_range: tuple[float, float] | None = None
    y_range: tuple[float, float] | None = None
    projection: Projection = "2d"
    x_label: str = "x"
    y_label: str = "y"
    show_legend: bool = False

    def __post_init__(self) -> None:
        for name, bounds in (("x_range", self.x_range), ("y_range", self.y_range)):
            if bounds is None:
                continue
            if not (math.isfinite(bounds[0]) and math.isfinite(bounds[1])):
                raise InvalidRangeError(f"Layout.{name} is too large to plot, got {bounds!r}", field=name)
            if not bounds[0] < bounds[1]:
                raise InvalidRangeError(f"Layout.{name} must satisfy min < max, got {bounds!r}", field=name)


@dataclass(frozen=True)
class SceneModel:
    traces: tuple[Trace, ...]
    layout: Layout

    def trace_kinds(self) -> tuple[TraceKind, ...]:
        return tuple(trace.kind for trace in self.traces)
