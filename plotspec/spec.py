from __future__ import annotations

from dataclasses import dataclass
import json
import math
from typing import Any, Callable, ClassVar, Mapping, Sequence, Union

from plotspec.errors import (
    InterpretError,
    InvalidRangeError,
    MissingGeometryError,
    NoFunctionsError,
    UnsupportedImplicitSurfaceError,
    UnsupportedKindError,
)
from plotspec.expression import mentions_identifier


PLOT_KINDS: tuple[str, ...] = ("point", "points", "line", "rect", "polygon", "curve2d", "surface", "contour")
KIND_ALIASES: dict[str, str] = {"curve": "curve2d", "2d": "curve2d"}


@dataclass(frozen=True)
class Coordinate:
    x: float
    y: float
    label: str = ""

    def __post_init__(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Coordinate must be finite, got ({self.x!r}, {self.y!r})")


@dataclass(frozen=True)
class FunctionEntry:
    expression: str
    label: str | None = None


@dataclass(frozen=True, kw_only=True)
class _SpecBase:
    title: str | None = None
    overlays: tuple[Coordinate, ...] = ()


@dataclass(frozen=True, kw_only=True)
class PointSpec(_SpecBase):
    kind: ClassVar[str] = "point"

    point: Coordinate


@dataclass(frozen=True, kw_only=True)
class PointsSpec(_SpecBase):
    kind: ClassVar[str] = "points"

    def __post_init__(self) -> None:
        if not self.overlays:
            raise MissingGeometryError("points requires at least one overlay point", field="overlays")


@dataclass(frozen=True, kw_only=True)
class LineSpec(_SpecBase):
    kind: ClassVar[str] = "line"

    vertices: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        if len(self.vertices) < 2:
            raise MissingGeometryError("line requires at least 2 finite points", field="line")


@dataclass(frozen=True, kw_only=True)
class PolygonSpec(_SpecBase):
    kind: ClassVar[str] = "polygon"

    vertices: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        if len(self.vertices) < 3:
            raise MissingGeometryError("polygon requires at least 3 finite points", field="polygon")


@dataclass(frozen=True, kw_only=True)
class RectSpec(_SpecBase):
    kind: ClassVar[str] = "rect"

    x_range: tuple[float, float]
    y_range: tuple[float, float]

    def __post_init__(self) -> None:
        _check_range(self.x_range, "xRange")
        _check_range(self.y_range, "yRange")


@dataclass(frozen=True, kw_only=True)
class CurveSpec(_SpecBase):
    kind: ClassVar[str] = "curve2d"

    x_range: tuple[float, float]
    functions: tuple[FunctionEntry, ...]
    y_range: tuple[float, float] | None = None
    samples: int | None = None

    def __post_init__(self) -> None:
        _check_range(self.x_range, "xRange")
        if self.y_range is not None:
            _check_range(self.y_range, "yRange")
        if not self.functions:
            raise NoFunctionsError("curve2d requires `function` or `functions`", field="functions")


@dataclass(frozen=True, kw_only=True)
class _FieldSpec(_SpecBase):
    x_range: tuple[float, float]
    y_range: tuple[float, float]
    functions: tuple[FunctionEntry, ...]
    nx: int | None = None
    ny: int | None = None

    def __post_init__(self) -> None:
        _check_range(self.x_range, "xRange")
        _check_range(self.y_range, "yRange")
        if not self.functions:
            raise NoFunctionsError(f"{self.kind} requires `function` or `functions`", field="functions")
        for entry in self.functions:
            if mentions_identifier(entry.expression, "z"):
                raise UnsupportedImplicitSurfaceError(
                    f"{self.kind} expressions must be z = f(x, y) and may not use `z`: {entry.expression!r}",
                    field="functions",
                )


@dataclass(frozen=True, kw_only=True)
class SurfaceSpec(_FieldSpec):
    kind: ClassVar[str] = "surface"


@dataclass(frozen=True, kw_only=True)
class ContourSpec(_FieldSpec):
    kind: ClassVar[str] = "contour"


PlotSpecification = Union[PointSpec, PointsSpec, LineSpec, RectSpec, PolygonSpec, CurveSpec, SurfaceSpec, ContourSpec]


def normalize_kind(raw: object) -> str:
    text = str(raw if raw is not None else "").strip().lower()
    return KIND_ALIASES.get(text, text)


def spec_from_dict(payload: Mapping[str, Any]) -> PlotSpecification:
    if not isinstance(payload, Mapping):
        raise InterpretError("plot specification must be an object")
    raw_kind = payload.get("kind", payload.get("plotType"))
    kind = normalize_kind(raw_kind)
    parser = _PARSERS.get(kind)
    if parser is None:
        raise UnsupportedKindError(raw_kind)
    common = {"title": _coerce_title(payload.get("title")), "overlays": overlay_points(payload.get("overlays"))}
    return parser(payload, common)


def overlay_points(raw: object) -> tuple[Coordinate, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    out: list[Coordinate] = []
    for item in raw:
        if not isinstance(item, Mapping) or item.get("type") != "point":
            continue
        x = _finite_number(item.get("x"))
        y = _finite_number(item.get("y"))
        if x is None or y is None:
            continue
        out.append(Coordinate(x=x, y=y, label=_coerce_label(item.get("label"))))
    return tuple(out)


def _parse_point(payload: Mapping[str, Any], common: dict[str, Any]) -> PointSpec:
    overlays: tuple[Coordinate, ...] = common["overlays"]
    if overlays:
        point = overlays[0]
    else:
        point = Coordinate(x=_range_anchor(payload, "xRange"), y=_range_anchor(payload, "yRange"))
    return PointSpec(point=point, **common)


def _parse_points(payload: Mapping[str, Any], common: dict[str, Any]) -> PointsSpec:
    return PointsSpec(**common)


def _parse_line(payload: Mapping[str, Any], common: dict[str, Any]) -> LineSpec:
    return LineSpec(vertices=_coordinate_sequence(payload.get("line"), "line", minimum=2), **common)


def _parse_polygon(payload: Mapping[str, Any], common: dict[str, Any]) -> PolygonSpec:
    return PolygonSpec(vertices=_coordinate_sequence(payload.get("polygon"), "polygon", minimum=3), **common)


def _parse_rect(payload: Mapping[str, Any], common: dict[str, Any]) -> RectSpec:
    return RectSpec(
        x_range=_required_range(payload, "xRange", "rect"),
        y_range=_required_range(payload, "yRange", "rect"),
        **common,
    )


def _parse_curve(payload: Mapping[str, Any], common: dict[str, Any]) -> CurveSpec:
    x_range = _required_range(payload, "xRange", "curve2d")
    y_range = _optional_range(payload.get("yRange"), "yRange")
    grid = payload.get("grid")
    grid = grid if isinstance(grid, Mapping) else {}
    return CurveSpec(
        x_range=x_range,
        y_range=y_range,
        functions=function_entries(payload),
        samples=_sample_hint(grid.get("n")),
        **common,
    )


def _field_parser(cls: type[_FieldSpec]) -> Callable[[Mapping[str, Any], dict[str, Any]], _FieldSpec]:
    def parse(payload: Mapping[str, Any], common: dict[str, Any]) -> _FieldSpec:
        x_range = _required_range(payload, "xRange", cls.kind)
        y_range = _required_range(payload, "yRange", cls.kind)
        grid = payload.get("grid")
        grid = grid if isinstance(grid, Mapping) else {}
        return cls(
            x_range=x_range,
            y_range=y_range,
            functions=function_entries(payload),
            nx=_sample_hint(grid.get("nx")),
            ny=_sample_hint(grid.get("ny")),
            **common,
        )

    return parse


_PARSERS: dict[str, Callable[[Mapping[str, Any], dict[str, Any]], PlotSpecification]] = {
    "point": _parse_point,
    "points": _parse_points,
    "line": _parse_line,
    "rect": _parse_rect,
    "polygon": _parse_polygon,
    "curve2d": _parse_curve,
    "surface": _field_parser(SurfaceSpec),
    "contour": _field_parser(ContourSpec),
}


def function_entries(payload: Mapping[str, Any]) -> tuple[FunctionEntry, ...]:
    out: list[FunctionEntry] = []
    raw_list = payload.get("functions")
    if isinstance(raw_list, (list, tuple)):
        for item in raw_list:
            if not isinstance(item, Mapping):
                continue
            expression = item.get("expression")
            if isinstance(expression, str) and expression.strip():
                out.append(FunctionEntry(expression=expression.strip(), label=_coerce_optional_label(item.get("label"))))
    single = payload.get("function")
    if isinstance(single, str) and single.strip():
        out.append(FunctionEntry(expression=single.strip(), label=_coerce_optional_label(payload.get("label"))))
    return tuple(out)


def _finite_number(raw: object) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    try:
        value = float(raw)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def _coordinate(raw: object) -> Coordinate | None:
    if isinstance(raw, Mapping):
        x, y, label = raw.get("x"), raw.get("y"), raw.get("label")
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)) and len(raw) == 2:
        x, y, label = raw[0], raw[1], None
    else:
        return None
    fx = _finite_number(x)
    fy = _finite_number(y)
    if fx is None or fy is None:
        return None
    return Coordinate(x=fx, y=fy, label=_coerce_label(label))


def _coordinate_sequence(raw: object, field: str, *, minimum: int) -> tuple[Coordinate, ...]:
    items = raw if isinstance(raw, (list, tuple)) else ()
    if len(items) < minimum:
        raise MissingGeometryError(f"{field} requires at least {minimum} points", field=field)
    out: list[Coordinate] = []
    for index, item in enumerate(items):
        coord = _coordinate(item)
        if coord is None:
            raise MissingGeometryError(f"{field}[{index}] is not a finite coordinate pair", field=field)
        out.append(coord)
    return tuple(out)


def _parse_range(raw: object, field: str) -> tuple[float, float] | None:
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise InvalidRangeError(f"{field} must be a 2-element list", field=field)
    lo = _finite_number(raw[0])
    hi = _finite_number(raw[1])
    if lo is None or hi is None:
        raise InvalidRangeError(f"{field} must contain finite numbers, got {list(raw)!r}", field=field)
    return (min(lo, hi), max(lo, hi))


def _optional_range(raw: object, field: str) -> tuple[float, float] | None:
    """Unusable optional ranges fall back to autoscaling."""
    try:
        bounds = _parse_range(raw, field)
        if bounds is not None:
            _check_range(bounds, field)
    except InvalidRangeError:
        return None
    return bounds


def _required_range(payload: Mapping[str, Any], field: str, kind: str) -> tuple[float, float]:
    bounds = _parse_range(payload.get(field), field)
    if bounds is None:
        raise MissingGeometryError(f"{kind} requires {field}", field=field)
    return bounds


def _range_anchor(payload: Mapping[str, Any], field: str) -> float:
    raw = payload.get(field)
    if not isinstance(raw, (list, tuple)):
        return 0.0
    value = _finite_number(raw[0]) if raw else None
    if value is None:
        raise InvalidRangeError(f"{field}[0] must be a finite number", field=field)
    return value


def _check_range(bounds: tuple[float, float], field: str) -> None:
    lo, hi = bounds
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise InvalidRangeError(f"{field} must be finite", field=field)
    if lo > hi:
        raise InvalidRangeError(f"{field} must be ordered as [min, max]", field=field)
    if not math.isfinite(hi - lo):
        raise InvalidRangeError(f"{field} span is too large to sample", field=field)


def _sample_hint(raw: object) -> int | None:
    value = _finite_number(raw)
    if value is None or value <= 0 or not value.is_integer():
        return None
    return int(value)


def _coerce_title(raw: object) -> str | None:
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    return text if text else None


def _coerce_label(raw: object) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def _coerce_optional_label(raw: object) -> str | None:
    text = _coerce_label(raw)
    return text if text else None


_COORDINATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["x", "y"],
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}, "label": {"type": "string"}},
}
_RANGE_SCHEMA: dict[str, object] = {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2}

PLOT_SPEC_JSON_SCHEMA: dict[str, object] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://plotspec.dev/schemas/plot_spec.schema.json",
    "title": "Plot Specification",
    "type": "object",
    "required": ["kind"],
    "properties": {
        "kind": {"type": "string", "enum": list(PLOT_KINDS) + sorted(KIND_ALIASES)},
        "plotType": {"type": "string", "description": "Alias of `kind`."},
        "title": {"type": "string"},
        "xRange": _RANGE_SCHEMA,
        "yRange": _RANGE_SCHEMA,
        "line": {"type": "array", "items": _COORDINATE_SCHEMA, "minItems": 2},
        "polygon": {"type": "array", "items": _COORDINATE_SCHEMA, "minItems": 3},
        "function": {"type": "string"},
        "label": {"type": "string"},
        "functions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["expression"],
                "properties": {"expression": {"type": "string"}, "label": {"type": "string"}},
            },
        },
        "grid": {
            "type": "object",
            "properties": {
                "n": {"type": "integer", "minimum": 1},
                "nx": {"type": "integer", "minimum": 1},
                "ny": {"type": "integer", "minimum": 1},
            },
        },
        "overlays": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type", "x", "y"],
                "properties": {
                    "type": {"type": "string", "enum": ["point"]},
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                    "label": {"type": "string"},
                },
            },
        },
    },
}


def plot_spec_schema() -> dict[str, object]:
    return json.loads(json.dumps(PLOT_SPEC_JSON_SCHEMA))
