#!/usr/bin/env python3
"""
Command-line interface for ormgen.

Usage:
    python -m ormgen <command> [options]

Commands:
    generate    Render SQLAlchemy models from a schema snapshot
    types       List the database types each dialect can map

Examples:
    python -m ormgen generate schema.yaml
    python -m ormgen generate schema.yaml --generator tables --outfile models.py
    python -m ormgen generate schema.yaml --options nobidi,noindexes
    python -m ormgen types postgresql
"""

from __future__ import annotations

import sys


def cmd_generate(args: list[str]) -> int:
    """Render models from a snapshot."""
    from ormgen.codegen import main as codegen_main
    try:
        codegen_main.main(args)
        return 0
    except SystemExit as e:
        return _exit_code(e)


def cmd_types(args: list[str]) -> int:
    """List supported database types."""
    from ormgen.typemap import main as typemap_main
    try:
        typemap_main.main(args)
        return 0
    except SystemExit as e:
        return _exit_code(e)


def _exit_code(e: SystemExit) -> int:
    if e.code is None:
        return 0
    if isinstance(e.code, int):
        return e.code
    # argparse and the generators exit with a message string
    print(e.code, file=sys.stderr)
    return 1


COMMANDS = {
    "generate": (cmd_generate, "Render SQLAlchemy models from a schema snapshot"),
    "types": (cmd_types, "List the database types each dialect can map"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = argv[0]
    args = argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
