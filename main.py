from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from plotspec import (
    DEFAULT_CONFIG,
    CompileError,
    compile_expression,
    load_config,
    plot_spec_schema,
    render_plot,
    scene_to_dict,
    scene_to_plotly,
    write_scene_json,
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="plotspec")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Interpret a plot specification JSON file and print its scene.")
    render.add_argument("spec_path", type=Path, help="Spec JSON, or a solver body with a `plotSpec` field.")
    render.add_argument("--format", choices=["scene", "plotly"], default="scene")
    render.add_argument("--config", type=Path, default=None, help="TOML file with an [interpreter] table.")
    render.add_argument("--out", type=Path, default=None, help="Write JSON here instead of stdout.")

    evaluate = sub.add_parser("eval", help="Compile an expression and evaluate it at one point.")
    evaluate.add_argument("expression")
    evaluate.add_argument("--x", type=float, default=0.0)
    evaluate.add_argument("--y", type=float, default=None, help="Given y, the expression is compiled over x and y.")

    sub.add_parser("schema", help="Print the plot specification JSON schema.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "render":
        config = load_config(args.config) if args.config is not None else DEFAULT_CONFIG
        payload = _load_spec_payload(args.spec_path)
        result = render_plot(payload, config=config)
        if result.error:
            print(result.fallback_message(), file=sys.stderr)
            return 1
        if result.scene is None:
            print("no plot specification found", file=sys.stderr)
            return 1
        if args.out is not None:
            path = write_scene_json(result.scene, args.out, fmt=args.format)
            print(f"wrote {args.format} json: {path}")
            return 0
        out = scene_to_plotly(result.scene) if args.format == "plotly" else scene_to_dict(result.scene)
        print(json.dumps(out, indent=2, allow_nan=False))
        return 0

    if args.command == "eval":
        arity = 1 if args.y is None else 2
        try:
            fn = compile_expression(args.expression, arity)
        except CompileError as exc:
            print(f"invalid expression: {exc}", file=sys.stderr)
            return 1
        value = fn.sample(args.x, args.y)[0]
        print("no value" if value is None else repr(value))
        return 0

    if args.command == "schema":
        print(json.dumps(plot_spec_schema(), indent=2, sort_keys=True))
        return 0

    raise RuntimeError(f"unsupported command: {args.command}")


def _load_spec_payload(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"spec file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict) and "plotSpec" in payload:
        return payload["plotSpec"]
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
