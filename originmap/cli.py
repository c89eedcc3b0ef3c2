"""CLI entrypoints for originmap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, Optional

from .config import ConfigError, OriginMapConfig, load_config
from .logging import configure_logging, get_logger
from .models import ImportsMap
from .project import Project
from .resolvers import ImportsScanner

logger = get_logger("cli")


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


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Project root whose source files are loaded (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .originmap.yml (defaults to the one in --root).",
    )
    parser.add_argument(
        "--no-external",
        action="store_true",
        help="Do not fall back to node_modules resolution for bare specifiers.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records, with timestamps, to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="originmap",
        description="Resolve where the symbols imported by TypeScript files are declared.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the imports map of a single file as JSON.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    _add_project_options(resolve_parser)
    resolve_parser.add_argument("file", help="Source file whose imports should be resolved.")

    scan_parser = subparsers.add_parser(
        "scan",
        help="Print the imports map of every source file in the project as JSON.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_project_options(scan_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for originmap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = _load_config(args)
        project = Project(config)
        project.add_source_files_from_directory(config.root)
    except ConfigError as exc:
        parser.exit(1, f"originmap: invalid configuration: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"originmap: {exc}\n")

    scanner = ImportsScanner(project)

    if args.command == "resolve":
        try:
            source_file = project.add_source_file_at_path(Path(args.file).resolve())
        except OSError as exc:
            parser.exit(1, f"originmap: cannot read {args.file}: {exc}\n")
        payload: object = _serialise(scanner.build_imports_map(source_file))
    elif args.command == "scan":
        payload = {
            source_file.path: _serialise(scanner.build_imports_map(source_file))
            for source_file in project.get_source_files()
            if source_file.imports
        }
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    if scanner.modules.external is not None:
        cache = scanner.modules.external.cache
        logger.debug("Package resolution cache: %d hits, %d misses", cache.hits, cache.misses)
    print(json.dumps(payload, indent=2, sort_keys=True))


def _load_config(args: argparse.Namespace) -> OriginMapConfig:
    root = Path(args.root).expanduser().resolve()
    config = load_config(Path(args.config) if args.config else root)
    if args.config:
        config.root = root
    if args.no_external:
        config.resolver.external_packages = False
    return config


def _serialise(imports_map: ImportsMap) -> Dict[str, Dict[str, Optional[str]]]:
    result: Dict[str, Dict[str, Optional[str]]] = {}
    for local_name, resolved in imports_map.items():
        kind = resolved.declaration_kind
        result[local_name] = {
            "file": resolved.path,
            "name": resolved.export.name,
            "kind": kind.value if kind is not None else None,
        }
    return result


if __name__ == "__main__":
    main(sys.argv[1:])
