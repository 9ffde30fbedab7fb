"""CLI entrypoints for rsbuild commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .builder import Builder, BuildOutcome
from .config import ConfigError
from .logging import configure_logging
from .models import Marker


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Echo compiler command lines and output.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsbuild",
        description="Incrementally compile RenderScript sources with an external compiler.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Compile sources that changed since the previous build.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "--full",
        action="store_true",
        help="Ignore recorded state and compile every source.",
    )

    clean_parser = subparsers.add_parser(
        "clean",
        help="Delete generated outputs, dependency files and build state.",
    )
    _add_verbose_option(clean_parser, suppress_default=True)
    _add_path_argument(clean_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP build service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for rsbuild commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(args.verbose)
    configure_logging(verbose=verbose)

    builder = Builder()

    if args.command == "build":
        try:
            outcome = builder.run_build(
                args.path,
                full=bool(getattr(args, "full", False)),
                verbose=True if verbose else None,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(1, f"rsbuild build failed: {exc}\n")
        _report(outcome)
        if not outcome.ok:
            parser.exit(1)
    elif args.command == "clean":
        try:
            removed = builder.run_clean(args.path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except ConfigError as exc:
            parser.exit(1, f"rsbuild clean failed: {exc}\n")
        print(f"Removed outputs of {removed} source(s)")
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _report(outcome: BuildOutcome) -> None:
    for marker in outcome.markers:
        print(_format_marker(marker))
    for relative in outcome.removed:
        print(f"removed {relative}")
    project = _relativize(outcome.root)
    if not outcome.compiled:
        print(f"{project}: nothing to compile")
        return
    print(f"{project}: {len(outcome.succeeded)} compiled, {len(outcome.failed)} failed")


def _format_marker(marker: Marker) -> str:
    if marker.file is None:
        location = "<project>"
    elif marker.line is None:
        location = marker.file
    else:
        location = f"{marker.file}:{marker.line}"
    return f"{location}: {marker.severity.value}: {marker.message}"


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
