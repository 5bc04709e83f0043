"""
Inspection CLI.

Formats stored records, previews invalidation cascades and applies
task state changes from the command line.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ..errors import ProgressEngineError
from ..state.catalog import load_hideout_data, load_task_data
from ..state.manager import ProgressManager
from ..state.store import JsonProgressStore
from ..systems.invalidation import explain_invalidation
from ..systems.progress import format_progress
from .config import DEFAULT_DATA_DIR, load_config, save_config
from .renderer import THEME, console, render_cascade, render_progress

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tarkov-progress",
        description="Inspect and update task and hideout progress",
    )
    parser.add_argument(
        "--data-dir", "-d",
        default=DEFAULT_DATA_DIR,
        help="Directory holding progress records and config"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    catalogs = argparse.ArgumentParser(add_help=False)
    catalogs.add_argument("--tasks", help="Path to tasks catalog JSON")
    catalogs.add_argument("--hideout", help="Path to hideout catalog JSON")
    catalogs.add_argument("--mode", choices=["pvp", "pve"], help="Game mode partition")

    fmt = sub.add_parser("format", parents=[catalogs], help="Format a user's progress")
    fmt.add_argument("user_id", help="User whose record to format")
    fmt.add_argument("--record", help="Read the raw record from this JSON file instead of the store")
    fmt.add_argument("--json", action="store_true", help="Print the formatted payload as JSON")
    fmt.add_argument("--explain", action="store_true", help="Show which rules each invalid task fails")

    inv = sub.add_parser("invalidate", parents=[catalogs], help="Preview an invalidation cascade")
    inv.add_argument("task_id", help="Task to invalidate")
    inv.add_argument("--child-only", action="store_true", help="Only cascade into successors")

    st = sub.add_parser("set-task", parents=[catalogs], help="Set a task state")
    st.add_argument("user_id")
    st.add_argument("task_id")
    st.add_argument("state", choices=["completed", "failed", "uncompleted"])

    cfg = sub.add_parser("config", help="Save default mode and catalog paths")
    cfg.add_argument("--mode", choices=["pvp", "pve"])
    cfg.add_argument("--tasks")
    cfg.add_argument("--hideout")
    cfg.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    return parser


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def _catalog_paths(args, config) -> tuple[str | None, str | None]:
    return (
        args.tasks or config.get("tasks_catalog"),
        args.hideout or config.get("hideout_catalog"),
    )


def _require_path(path: str | None, flag: str) -> str:
    if not path:
        raise SystemExit(f"error: {flag} is required (or save it with `config {flag} PATH`)")
    return path


def cmd_format(args, config) -> int:
    tasks_path, hideout_path = _catalog_paths(args, config)
    task_data = load_task_data(_require_path(tasks_path, "--tasks"))
    hideout_data = load_hideout_data(_require_path(hideout_path, "--hideout"))
    mode = args.mode or config.get("game_mode", "pvp")

    if args.record:
        with open(args.record, "r", encoding="utf-8") as f:
            document = json.load(f)
    else:
        document = JsonProgressStore(args.data_dir).load(args.user_id)
        if document is None:
            logger.info(f"No stored record for {args.user_id}; formatting defaults")

    progress = format_progress(document, args.user_id, hideout_data, task_data, mode)

    if args.json:
        print(json.dumps(progress.to_payload(), indent=2))
        return 0

    explanations = explain_invalidation(progress, task_data) if args.explain else None
    render_progress(progress, explanations)
    return 0


def cmd_invalidate(args, config) -> int:
    tasks_path, _ = _catalog_paths(args, config)
    task_data = load_task_data(_require_path(tasks_path, "--tasks"))
    graph = task_data.graph()

    if args.task_id not in graph.tasks:
        console.print(f"[{THEME['invalid']}]Unknown task: {args.task_id}[/{THEME['invalid']}]")
        return 1

    reached = graph.descendants(args.task_id, include_self=not args.child_only)
    render_cascade(args.task_id, reached)
    return 0


def cmd_set_task(args, config) -> int:
    tasks_path, _ = _catalog_paths(args, config)
    task_data = load_task_data(_require_path(tasks_path, "--tasks"))
    manager = ProgressManager(
        args.data_dir,
        task_data=task_data,
        game_mode=args.mode or config.get("game_mode", "pvp"),
    )
    written = manager.update_task(args.user_id, args.task_id, args.state)
    for path in sorted(written):
        console.print(f"  {path}")
    console.print(f"[{THEME['complete']}]{len(written)} field(s) written[/{THEME['complete']}]")
    return 0


def cmd_config(args, config) -> int:
    if args.mode:
        config["game_mode"] = args.mode
    if args.tasks:
        config["tasks_catalog"] = str(Path(args.tasks).resolve())
    if args.hideout:
        config["hideout_catalog"] = str(Path(args.hideout).resolve())
    if args.log_level:
        config["log_level"] = args.log_level

    if not save_config(config, args.data_dir):
        console.print(f"[{THEME['invalid']}]Could not save config[/{THEME['invalid']}]")
        return 1
    for key, value in config.items():
        console.print(f"  {key}: {value}")
    return 0


COMMANDS = {
    "format": cmd_format,
    "invalidate": cmd_invalidate,
    "set-task": cmd_set_task,
    "config": cmd_config,
}


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = load_config(args.data_dir)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.get("log_level", "WARNING"),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        return COMMANDS[args.command](args, config)
    except ProgressEngineError as e:
        console.print(f"[{THEME['invalid']}]Error: {e}[/{THEME['invalid']}]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
