from __future__ import annotations

import json
from pathlib import Path
from typing import Any

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


FIGURE_HEIGHT_PX = 520
REGION_FILL_COLOR = "rgba(124,92,255,0.15)"
MARGIN_2D = {"l": 55, "r": 15, "b": 55, "t": 55}
MARGIN_3D = {"l": 15, "r": 15, "b": 15, "t": 55}


def trace_to_dict(trace: Trace) -> dict[str, Any]:
    out: dict[str, Any] = {"kind": trace.kind, "name": trace.name, "x": list(trace.x), "y": list(trace.y)}
    if isinstance(trace, (MarkerTrace, Marker3DTrace)):
        out["labels"] = list(trace.labels)
    if isinstance(trace, Marker3DTrace):
        out["z"] = list(trace.z)
    if isinstance(trace, (HeightFieldTrace, ContourFieldTrace)):
        out["z"] = [list(row) for row in trace.z]
        out["show_scale"] = trace.show_scale
    if isinstance(trace, HeightFieldTrace):
        out["opacity"] = trace.opacity
    return out


def layout_to_dict(layout: Layout) -> dict[str, Any]:
    return {
        "title": layout.title,
        "projection": layout.projection,
        "x_range": list(layout.x_range) if layout.x_range is not None else None,
        "y_range": list(layout.y_range) if layout.y_range is not None else None,
        "x_label": layout.x_label,
        "y_label": layout.y_label,
        "show_legend": layout.show_legend,
    }


def scene_to_dict(scene: SceneModel) -> dict[str, Any]:
    """JSON-safe rendering of a scene; "no value" samples become ``null``."""
    return {
        "traces": [trace_to_dict(trace) for trace in scene.traces],
        "layout": layout_to_dict(scene.layout),
    }


def scene_to_plotly(scene: SceneModel) -> dict[str, Any]:
    """Plotly figure dict (``data`` + ``layout``) for the scene."""
    return {
        "data": [_plotly_trace(trace) for trace in scene.traces],
        "layout": _plotly_layout(scene),
    }


def write_scene_json(scene: SceneModel, out_path: str | Path, *, fmt: str = "scene") -> Path:
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = scene_to_plotly(scene) if fmt == "plotly" else scene_to_dict(scene)
    path.write_text(json.dumps(payload, indent=2, allow_nan=False), encoding="utf-8")
    return path


def _plotly_trace(trace: Trace) -> dict[str, Any]:
    if isinstance(trace, MarkerTrace):
        return {
            "type": "scatter",
            "mode": "markers+text",
            "x": list(trace.x),
            "y": list(trace.y),
            "text": list(trace.labels),
            "textposition": "top center",
            "marker": {"size": 10},
            "name": trace.name,
        }
    if isinstance(trace, PolylineTrace):
        return {
            "type": "scatter",
            "mode": "lines",
            "x": list(trace.x),
            "y": list(trace.y),
            "line": {"width": 2},
            "name": trace.name,
        }
    if isinstance(trace, RegionTrace):
        return {
            "type": "scatter",
            "mode": "lines",
            "x": list(trace.x),
            "y": list(trace.y),
            "fill": "toself",
            "fillcolor": REGION_FILL_COLOR,
            "line": {"width": 2},
            "name": trace.name,
        }
    if isinstance(trace, HeightFieldTrace):
        return {
            "type": "surface",
            "x": list(trace.x),
            "y": list(trace.y),
            "z": [list(row) for row in trace.z],
            "name": trace.name,
            "opacity": trace.opacity,
            "showscale": trace.show_scale,
        }
    if isinstance(trace, ContourFieldTrace):
        return {
            "type": "contour",
            "x": list(trace.x),
            "y": list(trace.y),
            "z": [list(row) for row in trace.z],
            "name": trace.name,
            "showscale": trace.show_scale,
        }
    if isinstance(trace, Marker3DTrace):
        return {
            "type": "scatter3d",
            "mode": "markers+text",
            "x": list(trace.x),
            "y": list(trace.y),
            "z": list(trace.z),
            "text": list(trace.labels),
            "textposition": "top center",
            "marker": {"size": 5},
            "name": trace.name,
        }
    raise TypeError(f"unsupported trace: {type(trace).__name__}")


def _plotly_layout(scene: SceneModel) -> dict[str, Any]:
    layout = scene.layout
    out: dict[str, Any] = {
        "title": layout.title,
        "autosize": True,
        "height": FIGURE_HEIGHT_PX,
        "margin": dict(MARGIN_3D if layout.projection == "3d" else MARGIN_2D),
    }
    if layout.show_legend:
        out["legend"] = {"orientation": "h"}
    if layout.projection == "3d":
        return out
    if layout.x_range is not None:
        out["xaxis"] = {"title": layout.x_label, "range": list(layout.x_range), "zeroline": False}
    if layout.y_range is not None:
        out["yaxis"] = {"title": layout.y_label, "range": list(layout.y_range), "zeroline": False}
    return out
