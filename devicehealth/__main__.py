"""Orchestrator CLI, dispatches to sub-CLIs.

Sub-commands:
  device   Live SNMP queries against one device (poll, interfaces, test, identify)
  monitor  Poll a list of assets and dispatch threshold alerts

Examples:
  devicehealth device poll 192.168.1.99 public -m cpu,memory,storage --rules cpu,memory,interface

  devicehealth device interfaces 10.0.0.1 monitoring

  DEVICEHEALTH_SNMP_TIMEOUT=2 devicehealth monitor assets.json --json
"""

from __future__ import annotations

import os
import sys
from importlib import import_module

from pydantic import ValidationError
from tabulate import tabulate

from devicehealth import __version__, configure_logging
from devicehealth import glogger
from devicehealth.settings import MAX_INTERFACES, PollSettings

COMMANDS = {
    "device": ("devicehealth.poller.cli", "Live SNMP device queries"),
    "monitor": ("devicehealth.alerting.cli", "Asset polling and threshold alerts"),
}


def _usage() -> str:
    rows = [[cmd, desc] for cmd, (_, desc) in COMMANDS.items()]
    return (
        "usage: devicehealth <command> [options]\n\n"
        "Available commands:\n"
        + tabulate(rows, tablefmt="plain")
        + "\n\nRun 'devicehealth <command> --help' for command-specific options."
    )


def settings_rows() -> list[list[str]]:
    """Effective polling settings from the ``DEVICEHEALTH_*`` environment."""
    try:
        settings = PollSettings.from_env()
    except ValidationError as e:
        return [["settings", f"invalid environment ({e.error_count()} error(s))"]]
    return [
        ["snmp timeout", f"{settings.timeout:g}s"],
        ["snmp retries", str(settings.retries)],
        ["bulk repetitions", str(settings.max_repetitions)],
        ["interface strategy", settings.interface_strategy.value],
        ["interface cap", str(MAX_INTERFACES)],
    ]


def _print_startup_banner() -> None:
    startup_rows = [["version", __version__], *settings_rows()]
    startup_rows += [
        [var, val]
        for var in ("GITHUB_REF", "GITHUB_SHA", "BUILDTIME")
        if (val := os.environ.get(var)) and not val.endswith("_is_undefined")
    ]

    lines = tabulate(startup_rows, tablefmt="mixed_grid").split("\n")
    width = len(lines[0])
    header = [
        "┍" + "━" * (width - 2) + "┑",
        "│ " + "devicehealth starting up".center(width - 4) + " │",
        lines[0].replace("┍", "┝").replace("┑", "┥").replace("┯", "┿"),
    ]
    glogger.opt(raw=True).info("\n{}\n", "\n".join(header + lines[1:]))


def main() -> None:
    """Main entry point, dispatch to sub-CLI."""
    configure_logging()
    _print_startup_banner()

    argv = sys.argv[1:]
    if not argv or argv[0] in ("-h", "--help"):
        print(_usage())
        sys.exit(0 if argv else 1)

    command, rest = argv[0], argv[1:]
    if command not in COMMANDS:
        print(f"devicehealth: unknown command '{command}'\n", file=sys.stderr)
        print(_usage())
        sys.exit(1)

    module_path, _ = COMMANDS[command]
    import_module(module_path).main(rest)


if __name__ == "__main__":
    main()
