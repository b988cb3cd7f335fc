from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path
import tempfile
import unittest

import main


def _run(argv: list[str]) -> tuple[int, str, str]:
    stdout = io.StringIO()
    stderr = io.StringIO()
    with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        code = main.main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class PlotSpecCliTests(unittest.TestCase):
    def _write(self, td: str, name: str, payload: object) -> Path:
        path = Path(td) / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_render_prints_scene_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "rect.json", {"kind": "rect", "xRange": [0, 1], "yRange": [0, 1]})
            code, out, _ = _run(["render", str(path)])
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["traces"][0]["kind"], "region")

    def test_render_unwraps_solver_body(self) -> None:
        body = {"answer": "x = 2", "plotSpec": {"kind": "point", "overlays": [{"type": "point", "x": 2, "y": 0}]}}
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "body.json", body)
            code, out, _ = _run(["render", str(path), "--format", "plotly"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["data"][0]["x"], [2.0])

    def test_render_writes_output_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "line.json", {"kind": "line", "line": [[0, 0], [1, 1]]})
            out_path = Path(td) / "out" / "scene.json"
            code, out, _ = _run(["render", str(path), "--out", str(out_path)])
            written = json.loads(out_path.read_text(encoding="utf-8"))
        self.assertEqual(code, 0)
        self.assertIn("wrote scene json", out)
        self.assertEqual(written["traces"][0]["kind"], "polyline")

    def test_render_writes_plotly_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "rect.json", {"kind": "rect", "xRange": [0, 1], "yRange": [0, 1]})
            out_path = Path(td) / "figure.json"
            code, out, _ = _run(["render", str(path), "--format", "plotly", "--out", str(out_path)])
            written = json.loads(out_path.read_text(encoding="utf-8"))
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f"wrote plotly json: {out_path}")
        self.assertEqual(written["data"][0]["fill"], "toself")

    def test_render_bad_spec_prints_fallback(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "bad.json", {"kind": "polygon", "polygon": [[0, 0]]})
            code, out, err = _run(["render", str(path)])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertTrue(err.startswith("could not plot:"))

    def test_render_null_spec_reports_nothing_to_plot(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "none.json", {"answer": "42", "plotSpec": None})
            code, _, err = _run(["render", str(path)])
        self.assertEqual(code, 1)
        self.assertIn("no plot specification", err)

    def test_render_with_config(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "curve.json", {"kind": "curve2d", "xRange": [0, 1], "function": "x"})
            config_path = Path(td) / "plotspec.toml"
            config_path.write_text("[interpreter]\ncurve_samples = 11\n", encoding="utf-8")
            code, out, _ = _run(["render", str(path), "--config", str(config_path)])
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(out)["traces"][0]["x"]), 11)

    def test_eval_prints_value(self) -> None:
        code, out, _ = _run(["eval", "x^2+1", "--x", "3"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "10.0")

    def test_eval_two_variables(self) -> None:
        code, out, _ = _run(["eval", "x*y", "--x", "2", "--y", "4"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "8.0")

    def test_eval_undefined_value(self) -> None:
        code, out, _ = _run(["eval", "1/x"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "no value")

    def test_eval_rejects_bad_expression(self) -> None:
        code, _, err = _run(["eval", "import os"])
        self.assertEqual(code, 1)
        self.assertIn("invalid expression", err)

    def test_schema_prints_json(self) -> None:
        code, out, _ = _run(["schema"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["title"], "Plot Specification")


if __name__ == "__main__":
    unittest.main()
