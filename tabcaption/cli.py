"""
TabCaption CLI — preview captions and check configuration files.

Commands:
- tabcaption expand        — Print the caption a document would get
- tabcaption variables     — List the template variables
- tabcaption check-config  — Validate a tabcaption.yaml and print the options
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from tabcaption.engine.config import Options, load_config
from tabcaption.engine.errors import ConfigError
from tabcaption.engine.logging import VARIABLES
from tabcaption.environment.memory import MemorySolution
from tabcaption.template.expander import TemplateExpander
from tabcaption.template.variables import build_default_registry
from tabcaption.utilities.utils import split_path

logger = logging.getLogger("tabcaption.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tabcaption",
        description="TabCaption — template-driven document captions",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show variable traces")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tabcaption expand
    expand_parser = subparsers.add_parser("expand", help="Print the caption for a file")
    expand_parser.add_argument("path", help="Full path of the file")
    expand_parser.add_argument("--template", help="Template (default: from config, else built-in)")
    expand_parser.add_argument("--project", help="Name of the containing project")
    expand_parser.add_argument(
        "--builtin", action="store_true", help="Treat the project as a built-in project"
    )
    expand_parser.add_argument(
        "--folders", default="", help="Folders between the project root and the file, e.g. a/b"
    )
    expand_parser.add_argument(
        "--other-project", action="append", default=[],
        help="Another project loaded next to --project (repeatable)",
    )
    expand_parser.add_argument("--config", help="Path to tabcaption.yaml")

    # tabcaption variables
    subparsers.add_parser("variables", help="List template variables")

    # tabcaption check-config
    check_parser = subparsers.add_parser("check-config", help="Validate a config file")
    check_parser.add_argument("config", help="Path to tabcaption.yaml")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.verbose:
        logging.getLogger("tabcaption").setLevel(VARIABLES)

    commands = {
        "expand": cmd_expand,
        "variables": cmd_variables,
        "check-config": cmd_check_config,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for error in e.validation_errors or []:
            loc = ".".join(str(part) for part in error.get("loc", ()))
            print(f"  {loc}: {error.get('msg')}", file=sys.stderr)
        return 2


def cmd_expand(args: argparse.Namespace) -> int:
    """Build a one-document solution matching the arguments and expand the template."""
    config = load_config(args.config)
    options = Options.from_model(config.options)
    if args.template is not None:
        options.template = args.template

    solution = MemorySolution()
    item = None
    if args.project:
        project = solution.add_project(args.project, is_builtin=args.builtin)
        for name in args.other_project:
            solution.add_project(name)
        parent = project.root
        if args.folders:
            parent = solution.add_folders(project.root, args.folders)
        parts = split_path(args.path)
        item = solution.add_file(parent, parts[-1] if parts else args.path)

    document = solution.open_document(item, path=args.path)

    logger.debug(f"expanding {options.template!r} for {args.path}")
    expander = TemplateExpander(build_default_registry(), options, solution)
    print(expander.expand(document))
    return 0


def cmd_variables(args: argparse.Namespace) -> int:
    """List the built-in variables with their descriptions."""
    registry = build_default_registry()
    width = max(len(name) for name in registry.names())
    for name, description in registry.describe().items():
        print(f"  $({name}){' ' * (width - len(name))}  {description}")
    return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    """Validate a config file and print the effective values."""
    if not Path(args.config).exists():
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        return 2

    config = load_config(args.config)
    print(f"Config OK: {args.config}")
    for field, value in config.options.model_dump().items():
        print(f"  options.{field} = {value!r}")
    for field, value in config.sync.model_dump().items():
        print(f"  sync.{field} = {value!r}")
    return 0
