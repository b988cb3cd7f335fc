from plotspec.api import PlotResult, render_plot
from plotspec.config import DEFAULT_CONFIG, InterpreterConfig, load_config
from plotspec.errors import (
    CompileError,
    ExpressionSyntaxError,
    IllegalCharacterError,
    InterpretError,
    InvalidExpressionError,
    InvalidRangeError,
    MissingGeometryError,
    NoFunctionsError,
    PlotSpecError,
    UnknownSymbolError,
    UnsupportedImplicitSurfaceError,
    UnsupportedKindError,
)
from plotspec.exporters import scene_to_dict, scene_to_plotly, write_scene_json
from plotspec.expression import CompiledFunction, compile_expression
from plotspec.interpreter import build_scene, interpret
from plotspec.scene import Layout, SceneModel
from plotspec.spec import PlotSpecification, plot_spec_schema, spec_from_dict

__all__ = [
    "CompileError",
    "CompiledFunction",
    "DEFAULT_CONFIG",
    "ExpressionSyntaxError",
    "IllegalCharacterError",
    "InterpretError",
    "InterpreterConfig",
    "InvalidExpressionError",
    "InvalidRangeError",
    "Layout",
    "MissingGeometryError",
    "NoFunctionsError",
    "PlotResult",
    "PlotSpecError",
    "PlotSpecification",
    "SceneModel",
    "UnknownSymbolError",
    "UnsupportedImplicitSurfaceError",
    "UnsupportedKindError",
    "build_scene",
    "compile_expression",
    "interpret",
    "load_config",
    "plot_spec_schema",
    "render_plot",
    "scene_to_dict",
    "scene_to_plotly",
    "spec_from_dict",
    "write_scene_json",
]
