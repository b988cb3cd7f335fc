from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Mapping

from plotspec.config import InterpreterConfig
from plotspec.errors import PlotSpecError
from plotspec.interpreter import interpret
from plotspec.scene import SceneModel


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlotResult:
    scene: SceneModel | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.scene is not None

    def fallback_message(self) -> str:
        return f"could not plot: {self.error}" if self.error else ""


def render_plot(payload: Mapping[str, Any] | None, *, config: InterpreterConfig | None = None) -> PlotResult:
    """Interpret ``payload`` without raising on bad specifications.

    ``None`` means the solver sent no plot and yields an empty result with no
    error, so callers can still show the textual answer.
    """
    if payload is None:
        return PlotResult()
    try:
        scene = interpret(payload, config=config)
    except PlotSpecError as exc:
        LOGGER.info("plot specification rejected: %s", exc)
        return PlotResult(error=str(exc))
    return PlotResult(scene=scene)
