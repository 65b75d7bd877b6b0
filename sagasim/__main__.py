from __future__ import annotations

import argparse
import importlib
import json
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sagasim.config import RunOptions
from sagasim.errors import ConfigurationError
from sagasim.scheduler.guard import DEFAULT_STEP_LIMIT
from sagasim.tester import SagaTester


@dataclass
class RunContext:
    saga_path: str
    args: list[Any]
    options: RunOptions
    output_format: str


def _import_symbol(path: str) -> Any:
    if ":" in path:
        module_name, attr_path = path.split(":", 1)
        module = importlib.import_module(module_name)
        return _resolve_attr(module, attr_path)
    parts = path.split(".")
    if len(parts) < 2:
        raise ConfigurationError(f"'{path}' is not a fully-qualified symbol. Use module:saga format.")
    module = importlib.import_module(".".join(parts[:-1]))
    return getattr(module, parts[-1])


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    current = obj
    for attr in attr_path.split("."):
        current = getattr(current, attr)
    return current


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except TypeError:
        return repr(value)


def _parse_args_json(raw: str | None) -> list[Any]:
    if raw is None:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"--args must be valid JSON: {exc}") from exc
    return value if isinstance(value, list) else [value]


def handle_run(args: argparse.Namespace) -> int:
    context = RunContext(
        saga_path=args.saga,
        args=_parse_args_json(args.args),
        options=RunOptions(
            step_limit=args.step_limit,
            fail_on_unconfigured=args.strict,
            swallow_spawn_errors=args.swallow_spawn_errors,
            wait_for_spawned=args.wait_for_spawned,
        ),
        output_format=args.format,
    )
    saga = _import_symbol(context.saga_path)
    tester = SagaTester(saga, options=context.options)
    value = tester.run(*context.args)

    if context.output_format == "json":
        payload = {
            "status": "ok",
            "saga": context.saga_path,
            "result": _json_safe(value),
            "result_type": type(value).__name__,
            "steps": tester.scheduler.guard.steps if tester.scheduler is not None else 0,
            "dispatched": [_json_safe(dict(action)) for action in tester.dispatched],
        }
        print(json.dumps(payload))
        return 0

    print(value)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sagasim", description="Run generator sagas deterministically")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run a saga to completion and print its result",
        description=(
            "Run a saga (a generator function) to completion with the deterministic scheduler.\n\n"
            "Examples:\n"
            "  sagasim run myapp.sagas:checkout --args '[{\"type\": \"CHECKOUT\"}]'\n"
            "  sagasim run myapp.sagas:checkout --strict --format json"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    run_parser.add_argument("saga", help="Saga to run, as module:function")
    run_parser.add_argument("--args", default=None, help="JSON value (or list) of positional arguments")
    run_parser.add_argument("--step-limit", type=int, default=DEFAULT_STEP_LIMIT, help="Step ceiling")
    run_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on calls with no expectation instead of running them for real",
    )
    run_parser.add_argument(
        "--swallow-spawn-errors",
        action="store_true",
        help="Log failures of spawned tasks instead of aborting",
    )
    run_parser.add_argument(
        "--wait-for-spawned",
        action="store_true",
        help="Keep running until spawned tasks finish",
    )
    run_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    run_parser.set_defaults(func=handle_run)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        return args.func(args)
    except Exception as exc:
        if getattr(args, "format", "text") == "json":
            payload = {
                "status": "error",
                "error": exc.__class__.__name__,
                "message": str(exc),
            }
            print(json.dumps(payload))
        else:
            print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
