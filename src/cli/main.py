"""Satchel CLI entry points.
This module exposes inspection and editing commands for archives.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from convert.indentation import indent_json
from convert.json_converter import render_data_map
from core.config import SatchelConfig, parse_indent_unit
from core.constants import DEFAULT_CLI_INDENT_UNIT, JSON_FILE_ENCODING
from core.errors import SatchelError
from core.logging_config import configure_logging
from resources.manager import ArchiveResourceManager


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="satchel", description="Satchel archive CLI")
    parser.add_argument("--work-root", help="Override SATCHEL_WORK_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_list_command(subparsers)
    _add_show_command(subparsers)
    _add_get_property_command(subparsers)
    _add_set_property_command(subparsers)
    _add_indent_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Satchel CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.work_root)
        if args.command == "list":
            return _run_list_command(config, args)
        if args.command == "show":
            return _run_show_command(config, args)
        if args.command == "get-property":
            return _run_get_property_command(config, args)
        if args.command == "set-property":
            return _run_set_property_command(config, args)
        if args.command == "indent":
            return _run_indent_command(args)
    except SatchelError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(work_root: str | None) -> SatchelConfig:
    """Build config with optional work-root override and apply its log level.

    Args:
        work_root: Optional override path.

    Returns:
        Validated runtime config.
    """
    config = SatchelConfig.from_env()
    if work_root:
        config = replace(config, work_root=Path(work_root).expanduser().resolve())
    configure_logging(config.log_level)
    return config


def _run_list_command(config: SatchelConfig, args: argparse.Namespace) -> int:
    """Handle list command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    with ArchiveResourceManager.open(args.archive, config) as manager:
        locators = manager.list_sub_resources(
            args.prefix,
            include_directories=args.directories,
            recursive=args.recursive,
        )
    for locator in locators:
        print(locator)
    return 0


def _run_show_command(config: SatchelConfig, args: argparse.Namespace) -> int:
    """Handle show command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    indent_unit = _indent_unit(args.indent)
    with ArchiveResourceManager.open(args.archive, config) as manager:
        mapping = manager.read_data_map(args.locator)
    print(render_data_map(mapping, indent_unit))
    return 0


def _run_get_property_command(config: SatchelConfig, args: argparse.Namespace) -> int:
    """Handle get-property command.

    Prints the value, or exits with 1 when the property is absent.
    """
    with ArchiveResourceManager.open(args.archive, config) as manager:
        value = manager.get_property(args.locator, args.name)
    if value is None:
        print(f"missing_property={args.name}")
        return 1
    print(value)
    return 0


def _run_set_property_command(config: SatchelConfig, args: argparse.Namespace) -> int:
    """Handle set-property command.

    Saves to ``--output`` when given, otherwise back to the source archive.
    """
    with ArchiveResourceManager.open(args.archive, config) as manager:
        manager.set_property(args.locator, args.name, args.value)
        saved_path = manager.save(args.output)
    print(saved_path)
    return 0


def _run_indent_command(args: argparse.Namespace) -> int:
    """Handle indent command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    text = Path(args.file).read_text(encoding=JSON_FILE_ENCODING)
    print(indent_json(text, _indent_unit(args.indent)))
    return 0


def _indent_unit(raw_value: str | None) -> str:
    """Parse an indent option, defaulting to two spaces."""
    return parse_indent_unit(raw_value) or DEFAULT_CLI_INDENT_UNIT


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    parser = subparsers.add_parser("list", help="List resource locators in an archive")
    parser.add_argument("archive", help="Archive file")
    parser.add_argument("--prefix", default="", help="Locator prefix to list under")
    parser.add_argument(
        "--directories",
        action="store_true",
        help="Include directory locators",
    )
    parser.add_argument("--recursive", action="store_true", help="Descend into subdirectories")


def _add_show_command(subparsers: Any) -> None:
    """Register show subcommand."""
    parser = subparsers.add_parser("show", help="Print a stored data map as JSON")
    parser.add_argument("archive", help="Archive file")
    parser.add_argument("locator", help="JSON resource locator")
    parser.add_argument("--indent", help="Indent unit: number of spaces or 'tab'")


def _add_get_property_command(subparsers: Any) -> None:
    """Register get-property subcommand."""
    parser = subparsers.add_parser("get-property", help="Print one stored property")
    parser.add_argument("archive", help="Archive file")
    parser.add_argument("locator", help="Properties resource locator")
    parser.add_argument("name", help="Property name")


def _add_set_property_command(subparsers: Any) -> None:
    """Register set-property subcommand."""
    parser = subparsers.add_parser(
        "set-property",
        help="Store one property and save the archive",
    )
    parser.add_argument("archive", help="Archive file")
    parser.add_argument("locator", help="Properties resource locator")
    parser.add_argument("name", help="Property name")
    parser.add_argument("value", help="Property value")
    parser.add_argument("--output", help="Optional archive path to save to instead")


def _add_indent_command(subparsers: Any) -> None:
    """Register indent subcommand."""
    parser = subparsers.add_parser("indent", help="Pretty-print a JSON file")
    parser.add_argument("file", help="JSON file")
    parser.add_argument("--indent", help="Indent unit: number of spaces or 'tab'")
