"""Command-line interface for the qwikc generator."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from qwikc.config import GeneratorConfig, GeneratorOptions, load_config
from qwikc.errors import Diagnostic, QwikcError, format_diagnostic
from qwikc.main import GenerationResult, generate_component, generate_many
from qwikc.serialization import read_component, write_output
from qwikc.source_file import OutputOptions


def build_parser() -> argparse.ArgumentParser:
    """Build argparse command tree for the qwikc CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--plugin",
        action="append",
        default=[],
        help="Plugin spec in module[:symbol] format; can be repeated.",
    )
    common.add_argument("--typescript", action="store_true", help="Emit TypeScript instead of JavaScript")
    common.add_argument("--config", help="TOML or JSON file with a [qwikc] table")
    common.add_argument("--trace-limit", type=int, help="Frames kept in failure traces")
    common.add_argument("--debug-dump", action="store_true", default=None, help="Append the component IR to the output")
    common.add_argument("-v", "--verbose", action="count", default=0, help="Log progress to stderr (-vv for debug)")

    parser = argparse.ArgumentParser(prog="qwikc", description="Generate Qwik components from component IR")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser("generate", parents=[common], help="Generate one component module")
    generate_parser.add_argument("input", nargs="?", help="Component IR JSON file")
    generate_parser.add_argument("--code", help="Inline component IR JSON")
    generate_parser.add_argument("-o", "--output", help="Output file path")

    batch_parser = subparsers.add_parser("batch", parents=[common], help="Generate many component modules")
    batch_parser.add_argument("inputs", nargs="+", help="Component IR JSON files")
    batch_parser.add_argument("-o", "--out-dir", required=True, help="Directory for generated modules")

    return parser


def run(argv: list[str] | None = None) -> int:
    """Run CLI and return shell exit code."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = load_config(args.config) if args.config else GeneratorConfig()
        config = config.with_overrides(trace_limit=args.trace_limit, debug_dump=args.debug_dump)
        options = GeneratorOptions(plugins=list(args.plugin), typescript=args.typescript)

        if args.command == "generate":
            payload, filename = _resolve_component(args.input, args.code)
            result = generate_component(payload, path=filename, options=options, config=config)
            if not result.ok:
                sys.stderr.write(result.text)
                return 1
            if args.output:
                write_output(result.code, args.output)
            else:
                sys.stdout.write(result.code)
            return 0

        if args.command == "batch":
            payloads = [read_component(Path(item)) for item in args.inputs]
            results = generate_many(payloads, options=options, config=config)
            extension = OutputOptions(typescript=args.typescript).extension
            summary = []
            for source, result in zip(args.inputs, results):
                summary.append(_batch_entry(source, result, Path(args.out_dir), extension))
            print(json.dumps(summary, indent=2))
            return 0 if all(result.ok for result in results) else 1

        raise argparse.ArgumentTypeError(f"Unsupported command '{args.command}'.")

    except QwikcError as err:
        diag = err.to_diagnostic()
        print(format_diagnostic(diag), file=sys.stderr)
        return 1
    except (argparse.ArgumentTypeError, OSError) as err:
        diag = Diagnostic(code="CLI001", message=str(err), hint="Run qwikc --help for usage.")
        print(format_diagnostic(diag), file=sys.stderr)
        return 2
    except Exception as err:  # pragma: no cover - defensive fallback
        diag = Diagnostic(code="CLI999", message=f"Internal error: {err}", hint="Run with -vv")
        print(format_diagnostic(diag), file=sys.stderr)
        return 3


def _resolve_component(input_path: str | None, inline_code: str | None) -> tuple[object, str]:
    if input_path and inline_code:
        raise argparse.ArgumentTypeError("Use either input file path or --code, not both.")
    if input_path:
        path = Path(input_path)
        return read_component(path), str(path)
    if inline_code is not None:
        try:
            return json.loads(inline_code), "<inline>"
        except json.JSONDecodeError as err:
            raise argparse.ArgumentTypeError(f"--code is not valid JSON: {err.msg}") from err
    raise argparse.ArgumentTypeError("No component provided. Pass input file path or --code.")


def _batch_entry(source: str, result: GenerationResult, out_dir: Path, extension: str) -> dict[str, object]:
    if not result.ok:
        sys.stderr.write(result.text)
        return {"input": source, "component": result.component, "ok": False, "error": result.error.to_dict() if result.error else None}
    target = out_dir / f"{result.component}.{extension}"
    write_output(result.code, target)
    return {"input": source, "component": result.component, "ok": True, "output": str(target)}


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(run())
