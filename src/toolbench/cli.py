"""CLI entry point for toolbench."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from toolbench import __version__
from toolbench.errors import ToolbenchError
from toolbench.settings import Settings, default_log_path, load_settings
from toolbench.tools.actions import install_all, update_all
from toolbench.tools.runner import ShellCommandRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

COMMANDS = ("ui", "list", "install-all", "update-all")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="toolbench",
        description="Install and update development tools from a terminal dashboard",
    )
    parser.add_argument("command", nargs="?", default="ui", choices=COMMANDS, help="What to do (default: ui)")
    parser.add_argument("--config", help="Settings file (default: ~/.toolbench/settings.json)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: from settings, else info)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def setup_logging(level: str, log_file: str | Path | None = None) -> None:
    """Configure the root logger; a *log_file* keeps records off the terminal."""
    kwargs: dict[str, object] = {}
    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = str(path)
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT, force=True, **kwargs)


def list_tools(settings: Settings) -> int:
    if not settings.tools:
        print("No tools configured.")
        return 0
    width = max(len(tool.name) for tool in settings.tools)
    for tool in settings.tools:
        mark = "✓" if tool.is_installed() else "✗"
        print(f"{mark} {tool.name.ljust(width)}  {tool.description}")
    return 0


async def run_batch_command(command: str, settings: Settings) -> int:
    runner = ShellCommandRunner()
    if command == "install-all":
        results = await install_all(settings.tools, runner)
    else:
        results = await update_all(settings.tools, runner)
    return 0 if all(results.values()) else 1


async def run_dashboard(settings: Settings) -> int:
    """Run the dashboard on the process terminal until its window closes."""
    from toolbench.dashboard import create_dashboard
    from toolbench.ui.screen import TerminalHost
    from toolbench.ui.terminal import ProcessTerminal

    host = TerminalHost(ProcessTerminal())
    dashboard = create_dashboard(settings, host)
    closed = asyncio.Event()
    dashboard.window.events.on("close", closed.set)

    host.start()
    try:
        dashboard.open()
        await closed.wait()
    finally:
        dashboard.close()
        host.stop()
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        settings = load_settings(args.config)
    except (OSError, ToolbenchError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    level = args.log_level or settings.log.level
    if args.command == "ui":
        if not sys.stdin.isatty() or not sys.stdout.isatty():
            print("Error: the dashboard needs an interactive terminal", file=sys.stderr)
            sys.exit(2)
        setup_logging(level, settings.log.file or default_log_path())
        code = asyncio.run(run_dashboard(settings))
    else:
        setup_logging(level, settings.log.file)
        if args.command == "list":
            code = list_tools(settings)
        else:
            code = asyncio.run(run_batch_command(args.command, settings))
    sys.exit(code)


if __name__ == "__main__":
    main()
