from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Sequence

import arrow
from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import (
    ShortSyntaxConfig,
    build_resolver,
    config_file_path,
    load_config,
    load_config_from_path,
    write_config_file,
)
from .durations import ms_to_string
from .models import ParseResult, Task
from .short_syntax import parse


logger = logging.getLogger(__name__)


def _get_version() -> str:
    return __version__


def _resolve_config(env: str | None) -> ShortSyntaxConfig:
    config_path = os.environ.get("SHORTSYNTAX_CONFIG_FILE")
    if config_path:
        return load_config_from_path(Path(config_path).expanduser())
    return load_config(env)


def _exit_with_message(message: str) -> NoReturn:
    print(message)
    raise SystemExit(1)


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format="%(levelname)s: %(message)s")


def _format_planned_at(planned_at: int) -> str:
    return arrow.get(planned_at / 1000).to("local").format("YYYY-MM-DD HH:mm:ss")


def _result_rows(result: ParseResult, config: ShortSyntaxConfig) -> list[tuple[str, str]]:
    changes = result.task_changes
    tag_titles = {tag.id: tag.title for tag in config.tags}
    project_titles = {project.id: project.title for project in config.projects}
    rows: list[tuple[str, str]] = []
    if changes.title is not None:
        rows.append(("Title", changes.title))
    if result.project_id is not None:
        rows.append(("Project", project_titles.get(result.project_id, result.project_id)))
    if changes.tag_ids is not None:
        rows.append(("Tags", ", ".join(tag_titles.get(tag_id, tag_id) for tag_id in changes.tag_ids)))
    if result.new_tag_titles:
        rows.append(("New tags", ", ".join(result.new_tag_titles)))
    if changes.time_estimate is not None:
        rows.append(("Estimate", ms_to_string(changes.time_estimate)))
    for day, spent in sorted((changes.time_spent_on_day or {}).items()):
        rows.append((f"Spent {day}", ms_to_string(spent)))
    if changes.planned_at is not None:
        rows.append(("Planned", _format_planned_at(changes.planned_at)))
    return rows


def _pretty_print_result(result: ParseResult, config: ShortSyntaxConfig) -> None:
    console = Console(file=sys.stdout, color_system="auto")
    table = Table(
        box=box.SIMPLE_HEAVY,
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("Field", style="magenta", no_wrap=True)
    table.add_column("Value", style="white")
    for name, value in _result_rows(result, config):
        table.add_row(name, value)
    console.print(table)


def _handle_parse(args: argparse.Namespace) -> None:
    title = " ".join(args.title).strip()
    if not title:
        _exit_with_message("a title is required")
    config = _resolve_config(args.env)
    _configure_logging(args.log_level or config.log_level)
    logger.debug("parsing %r", title)
    task = Task(
        title=title,
        tag_ids=list(args.tag_ids or []),
        parent_id=args.parent_id,
        issue_id=args.issue_id,
    )
    result = parse(
        task,
        config.tags,
        config.projects,
        resolver=build_resolver(config),
    )
    if result is None:
        print("no short syntax found")
        return
    if args.json:
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
        return
    _pretty_print_result(result, config)


def _handle_config_init(args: argparse.Namespace) -> None:
    _configure_logging(args.log_level or "WARNING")
    target = config_file_path(args.env, args.config_home)
    config = ShortSyntaxConfig(languages=list(args.languages or ["en"]))
    try:
        path = write_config_file(target, config, force=args.force)
    except FileExistsError:
        _exit_with_message(f"{target} already exists; use --force to overwrite")
    print(f"created config file at {path}")


def _handle_config_help(args: argparse.Namespace) -> None:
    parser = getattr(args, "parser", None)
    if parser:
        parser.print_help()
    else:
        _exit_with_message("config command requires a subcommand")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shortsyntax")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {_get_version()}"
    )
    parser.add_argument("--env", dest="env", help="env name")
    parser.add_argument("--log-level", dest="log_level", help="logging level, e.g. DEBUG")
    subparsers = parser.add_subparsers(dest="command")

    parse_parser = subparsers.add_parser("parse")
    parse_parser.add_argument("title", nargs="+", help="task title")
    parse_parser.add_argument(
        "--tag-id", dest="tag_ids", action="append", help="id of a tag already on the task"
    )
    parse_parser.add_argument("--parent-id", dest="parent_id", help="parent task id")
    parse_parser.add_argument("--issue-id", dest="issue_id", help="issue tracker id")
    parse_parser.add_argument("--json", dest="json", action="store_true", help="print JSON")
    parse_parser.set_defaults(func=_handle_parse)

    config_parser = subparsers.add_parser("config")
    config_parser.set_defaults(func=_handle_config_help, parser=config_parser)
    config_subparsers = config_parser.add_subparsers(dest="subcommand")
    init_parser = config_subparsers.add_parser("init")
    init_parser.add_argument(
        "--config-home",
        dest="config_home",
        type=Path,
        default=None,
        help="override the config directory",
    )
    init_parser.add_argument(
        "--language", dest="languages", action="append", help="date language, repeatable"
    )
    init_parser.add_argument("--force", dest="force", action="store_true", help="overwrite existing config")
    init_parser.set_defaults(func=_handle_config_init, parser=config_parser)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    input_args = list(argv if argv is not None else sys.argv[1:])
    parser = _build_parser()
    args = parser.parse_args(input_args)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 0
    try:
        handler(args)
    except (FileNotFoundError, RuntimeError) as exc:
        _exit_with_message(str(exc))
    return 0
