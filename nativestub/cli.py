"""CLI entrypoints for nativestub commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .pipeline import Pipeline


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
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
        prog="nativestub",
        description="Generate TypeScript stubs for Swift native modules.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    structure_parser = subparsers.add_parser(
        "structure",
        help="Print the extracted module definitions as JSON.",
    )
    _add_verbose_option(structure_parser, suppress_default=True)
    _add_path_argument(structure_parser)

    mocks_parser = subparsers.add_parser(
        "mocks",
        help="Write one TypeScript stub file per module.",
    )
    _add_verbose_option(mocks_parser, suppress_default=True)
    _add_path_argument(mocks_parser)
    mocks_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for generated stubs (defaults to <path>/mocks).",
    )
    mocks_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated stubs instead of writing them.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for nativestub commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        pipeline = Pipeline.for_path(args.path)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "structure":
        try:
            result = pipeline.collect()
        except Exception as exc:  # pragma: no cover - unexpected failure
            parser.exit(1, f"nativestub structure failed: {exc}\nRun with --verbose for more details.\n")
        pipeline.diagnostics.report()
        print(json.dumps([module.to_dict() for module in result.modules], indent=2))
    elif args.command == "mocks":
        dry_run = bool(getattr(args, "dry_run", False))
        try:
            if dry_run:
                result = pipeline.collect()
                generator = pipeline.generator(args.output_dir)
                for module in result.modules:
                    print(f"// {generator.output_path(module).name}")
                    print(generator.render(generator.generate_module(module)), end="")
                pipeline.diagnostics.report()
            else:
                result = pipeline.run(args.output_dir)
        except Exception as exc:  # pragma: no cover - unexpected failure
            parser.exit(1, f"nativestub mocks failed: {exc}\nRun with --verbose for more details.\n")
        if not dry_run:
            for path in result.written:
                print(f"Stubs written to {_relativize(path)}")
            if not result.written:
                print("No module definitions found")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
