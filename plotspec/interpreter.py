from __future__ import annotations

import logging
import math
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from plotspec.config import DEFAULT_CONFIG, InterpreterConfig
from plotspec.errors import CompileError, InvalidRangeError
from plotspec.expression import CompiledFunction, compile_expression, to_optional
from plotspec.scales import padded_limits, resolve_sample_count, sample_grid, widen_degenerate
from plotspec.scene import (
    ContourFieldTrace,
    HeightFieldTrace,
    Layout,
    Marker3DTrace,
    MarkerTrace,
    PolylineTrace,
    RegionTrace,
    SceneModel,
    Trace,
)
from plotspec.spec import (
    ContourSpec,
    Coordinate,
    CurveSpec,
    FunctionEntry,
    LineSpec,
    PlotSpecification,
    PointSpec,
    PointsSpec,
    PolygonSpec,
    RectSpec,
    SurfaceSpec,
    spec_from_dict,
)


LOGGER = logging.getLogger(__name__)


def interpret(payload: Mapping[str, Any], *, config: InterpreterConfig | None = None) -> SceneModel:
    """Validate a decoded plot specification and build its scene.

    Raises an ``InterpretError`` subclass when the specification is
    structurally unusable. A function that fails to compile only drops its own
    trace.
    """
    return build_scene(spec_from_dict(payload), config=config)


def build_scene(spec: PlotSpecification, *, config: InterpreterConfig | None = None) -> SceneModel:
    cfg = config or DEFAULT_CONFIG
    builder = _BUILDERS[type(spec)]
    scene = builder(spec, cfg)
    LOGGER.debug("built %s scene with %d trace(s)", spec.kind, len(scene.traces))
    return scene


def marker_trace(points: Sequence[Coordinate]) -> MarkerTrace:
    return MarkerTrace(
        x=tuple(p.x for p in points),
        y=tuple(p.y for p in points),
        labels=tuple(p.label for p in points),
    )


def _title(spec: PlotSpecification, cfg: InterpreterConfig) -> str:
    return spec.title or cfg.default_title


def _overlay_traces(spec: PlotSpecification) -> list[Trace]:
    return [marker_trace(spec.overlays)] if spec.overlays else []


def _axis_bounds(bounds: tuple[float, float], field: str, cfg: InterpreterConfig) -> tuple[float, float]:
    lo, hi = widen_degenerate(*bounds, cfg.degenerate_margin)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise InvalidRangeError(f"{field} is too large to plot", field=field)
    return (lo, hi)


def _bounded_layout(spec: PlotSpecification, cfg: InterpreterConfig, points: Sequence[Coordinate]) -> Layout:
    limits = padded_limits((p.x for p in points), (p.y for p in points), pad=cfg.bounds_padding)
    # pad may be 0, so a single point still needs the degenerate widening
    return Layout(
        title=_title(spec, cfg),
        x_range=widen_degenerate(limits.xmin, limits.xmax, cfg.degenerate_margin),
        y_range=widen_degenerate(limits.ymin, limits.ymax, cfg.degenerate_margin),
    )


def _point_scene(spec: PointSpec, cfg: InterpreterConfig) -> SceneModel:
    return SceneModel(traces=(marker_trace([spec.point]),), layout=_bounded_layout(spec, cfg, [spec.point]))


def _points_scene(spec: PointsSpec, cfg: InterpreterConfig) -> SceneModel:
    return SceneModel(traces=(marker_trace(spec.overlays),), layout=_bounded_layout(spec, cfg, spec.overlays))


def _line_scene(spec: LineSpec, cfg: InterpreterConfig) -> SceneModel:
    line = PolylineTrace(x=tuple(v.x for v in spec.vertices), y=tuple(v.y for v in spec.vertices))
    return SceneModel(
        traces=(line, *_overlay_traces(spec)),
        layout=_bounded_layout(spec, cfg, spec.vertices + spec.overlays),
    )


def _rect_scene(spec: RectSpec, cfg: InterpreterConfig) -> SceneModel:
    xmin, xmax = _axis_bounds(spec.x_range, "xRange", cfg)
    ymin, ymax = _axis_bounds(spec.y_range, "yRange", cfg)
    region = RegionTrace(x=(xmin, xmax, xmax, xmin, xmin), y=(ymin, ymin, ymax, ymax, ymin))
    pad = cfg.bounds_padding
    layout = Layout(
        title=_title(spec, cfg),
        x_range=(xmin - pad, xmax + pad),
        y_range=(ymin - pad, ymax + pad),
    )
    return SceneModel(traces=(region, *_overlay_traces(spec)), layout=layout)


def _polygon_scene(spec: PolygonSpec, cfg: InterpreterConfig) -> SceneModel:
    ring = spec.vertices + spec.vertices[:1]
    region = RegionTrace(x=tuple(v.x for v in ring), y=tuple(v.y for v in ring))
    return SceneModel(
        traces=(region, *_overlay_traces(spec)),
        layout=_bounded_layout(spec, cfg, spec.vertices + spec.overlays),
    )


def compile_functions(
    entries: Sequence[FunctionEntry],
    *,
    arity: int,
    kind: str,
    cfg: InterpreterConfig,
) -> list[tuple[int, FunctionEntry, CompiledFunction]]:
    """Compile each entry, dropping (and logging) the ones that fail.

    Returns ``(position, entry, function)`` for the survivors, where position
    is the entry's index in ``entries``.
    """
    out: list[tuple[int, FunctionEntry, CompiledFunction]] = []
    for index, entry in enumerate(entries):
        try:
            fn = compile_expression(entry.expression, arity, max_length=cfg.max_expression_length)
        except CompileError as exc:
            LOGGER.warning("skipping %s function %r: %s", kind, entry.expression, exc)
            continue
        out.append((index, entry, fn))
    return out


def _curve_scene(spec: CurveSpec, cfg: InterpreterConfig) -> SceneModel:
    xmin, xmax = _axis_bounds(spec.x_range, "xRange", cfg)
    n = resolve_sample_count(spec.samples, default=cfg.curve_samples, maximum=cfg.max_curve_samples)
    xs = sample_grid(xmin, xmax, n)
    x_values = tuple(xs.tolist())

    traces: list[Trace] = []
    for _, entry, fn in compile_functions(spec.functions, arity=1, kind=spec.kind, cfg=cfg):
        traces.append(PolylineTrace(x=x_values, y=fn.sample(xs), name=entry.label or "f"))
    traces.extend(_overlay_traces(spec))

    y_range = None
    if spec.y_range is not None:
        y_range = _axis_bounds(spec.y_range, "yRange", cfg)
    layout = Layout(title=_title(spec, cfg), x_range=(xmin, xmax), y_range=y_range, show_legend=True)
    return SceneModel(traces=tuple(traces), layout=layout)


def _field_scene(spec: SurfaceSpec | ContourSpec, cfg: InterpreterConfig) -> SceneModel:
    xmin, xmax = _axis_bounds(spec.x_range, "xRange", cfg)
    ymin, ymax = _axis_bounds(spec.y_range, "yRange", cfg)
    nx = resolve_sample_count(spec.nx, default=cfg.surface_samples, maximum=cfg.max_surface_samples)
    ny = resolve_sample_count(spec.ny, default=cfg.surface_samples, maximum=cfg.max_surface_samples)
    xs = sample_grid(xmin, xmax, nx)
    ys = sample_grid(ymin, ymax, ny)
    # rows follow y, columns follow x
    grid_x, grid_y = np.meshgrid(xs, ys)
    x_values = tuple(xs.tolist())
    y_values = tuple(ys.tolist())
    is_surface = isinstance(spec, SurfaceSpec)

    compiled = compile_functions(spec.functions, arity=2, kind=spec.kind, cfg=cfg)
    traces: list[Trace] = []
    for order, (index, entry, fn) in enumerate(compiled):
        values = fn.evaluate(grid_x, grid_y)
        z = tuple(to_optional(row) for row in values)
        if is_surface:
            traces.append(
                HeightFieldTrace(
                    x=x_values,
                    y=y_values,
                    z=z,
                    name=entry.label or f"surface {index + 1}",
                    show_scale=order == 0,
                    opacity=1.0 if order == 0 else cfg.secondary_surface_opacity,
                )
            )
        else:
            traces.append(
                ContourFieldTrace(
                    x=x_values,
                    y=y_values,
                    z=z,
                    name=entry.label or f"contour {index + 1}",
                    show_scale=order == 0,
                )
            )

    if not is_surface:
        traces.extend(_overlay_traces(spec))
        layout = Layout(title=_title(spec, cfg), x_range=(xmin, xmax), y_range=(ymin, ymax), show_legend=True)
        return SceneModel(traces=tuple(traces), layout=layout)

    if spec.overlays and compiled:
        first = compiled[0][2]
        px = tuple(p.x for p in spec.overlays)
        py = tuple(p.y for p in spec.overlays)
        traces.append(
            Marker3DTrace(
                x=px,
                y=py,
                z=first.sample(np.asarray(px), np.asarray(py)),
                labels=tuple(p.label for p in spec.overlays),
            )
        )
    layout = Layout(title=_title(spec, cfg), projection="3d", show_legend=True)
    return SceneModel(traces=tuple(traces), layout=layout)


_BUILDERS: dict[type, Callable[[Any, InterpreterConfig], SceneModel]] = {
    PointSpec: _point_scene,
    PointsSpec: _points_scene,
    LineSpec: _line_scene,
    RectSpec: _rect_scene,
    PolygonSpec: _polygon_scene,
    CurveSpec: _curve_scene,
    SurfaceSpec: _field_scene,
    ContourSpec: _field_scene,
}
