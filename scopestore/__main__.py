"""scopestore CLI — inspect and edit saved connections from a shell.

Usage:
    python -m scopestore user-id                  Print (and create) the user id
    python -m scopestore list [--scope S]         List saved connections
    python -m scopestore save --id ID [...]       Save a connection
    python -m scopestore remove --id ID           Remove a connection
    python -m scopestore has-connections          Exit 0 if any are saved
    python -m scopestore dump --scope S           Print raw values of one scope
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from scopestore.config.settings import ScopeStoreSettings, get_settings
from scopestore.exceptions import ScopeStoreError
from scopestore.factory import build_persistence
from scopestore.schemas.enums import DefaultSavingLocation, StorageScope, StorageVariable
from scopestore.storage.connections import ConnectionPersistence
from scopestore.storage.controller import StorageController
from scopestore.utils.logging import configure_logging, get_logger

logger = structlog.get_logger()

_SCOPES = {"global": StorageScope.GLOBAL, "workspace": StorageScope.WORKSPACE}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scopestore",
        description="scopestore — scoped connection storage",
    )
    parser.add_argument(
        "--global-dir",
        type=Path,
        default=None,
        help="Directory of the global state file (overrides SCOPESTORE_GLOBAL_DIR)",
    )
    parser.add_argument(
        "--workspace-dir",
        type=Path,
        default=None,
        help="Directory of the workspace state file (overrides SCOPESTORE_WORKSPACE_DIR)",
    )
    parser.add_argument(
        "--default-location",
        choices=[loc.value for loc in DefaultSavingLocation],
        default=None,
        help="Default saving location for new connections",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("user-id", help="Print the user id, creating it if needed")

    list_cmd = subparsers.add_parser("list", help="List saved connections")
    list_cmd.add_argument(
        "--scope",
        choices=[*_SCOPES, "all"],
        default="all",
        help="Collection to list (default: all)",
    )

    save = subparsers.add_parser("save", help="Save a connection")
    save.add_argument("--id", required=True, help="Connection id")
    save.add_argument("--name", default=None, help="Display name")
    save.add_argument(
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Connection option, repeatable (e.g. connectionString=...)",
    )
    save.add_argument(
        "--scope",
        choices=list(_SCOPES),
        default=None,
        help="Target scope (default: configured saving location)",
    )

    remove = subparsers.add_parser("remove", help="Remove a connection")
    remove.add_argument("--id", required=True, help="Connection id")
    remove.add_argument(
        "--scope",
        choices=list(_SCOPES),
        default=None,
        help="Collection to remove from (default: both)",
    )

    subparsers.add_parser("has-connections", help="Exit 0 if any connection is saved")

    dump = subparsers.add_parser("dump", help="Print raw stored values of one scope")
    dump.add_argument("--scope", choices=list(_SCOPES), required=True)

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> ScopeStoreSettings:
    """Environment settings with command-line overrides applied."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if args.global_dir is not None:
        overrides["global_dir"] = args.global_dir
    if args.workspace_dir is not None:
        overrides["workspace_dir"] = args.workspace_dir
    if args.default_location is not None:
        overrides["default_connection_saving_location"] = DefaultSavingLocation.parse(
            args.default_location
        )
        overrides["config_path"] = None
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return dataclasses.replace(settings, **overrides)


def _parse_options(pairs: list[str]) -> dict[str, str]:
    options: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        options[key] = value
    return options


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def _cmd_user_id(persistence: ConnectionPersistence, _args: argparse.Namespace) -> int:
    print(persistence.get_user_id())
    return 0


def _cmd_list(persistence: ConnectionPersistence, args: argparse.Namespace) -> int:
    if args.scope == "all":
        records = persistence.get_all_saved_connections()
    else:
        records = persistence.get_saved_connections(_SCOPES[args.scope])
    _print_json({cid: record.to_stored() for cid, record in records.items()})
    return 0


async def _cmd_save(persistence: ConnectionPersistence, args: argparse.Namespace) -> int:
    record: dict[str, Any] = {
        "id": args.id,
        "connectionOptions": _parse_options(args.option),
    }
    if args.name is not None:
        record["name"] = args.name

    if args.scope == "global":
        saved = await persistence.save_connection_to_global_store(record)
    elif args.scope == "workspace":
        saved = await persistence.save_connection_to_workspace_store(record)
    else:
        saved = await persistence.store_new_connection(record)

    logger.info("Connection saved from CLI", connection_id=saved.id, scope=saved.storage_location.value)
    _print_json(saved.to_stored())
    return 0


async def _cmd_remove(persistence: ConnectionPersistence, args: argparse.Namespace) -> int:
    scope = _SCOPES[args.scope] if args.scope else None
    removed = await persistence.remove_connection(args.id, scope)
    if not removed:
        print(f"No saved connection with id {args.id!r}", file=sys.stderr)
        return 1
    return 0


def _cmd_has_connections(persistence: ConnectionPersistence, _args: argparse.Namespace) -> int:
    has_any = persistence.has_saved_connections()
    print("true" if has_any else "false")
    return 0 if has_any else 1


def _cmd_dump(controller: StorageController, args: argparse.Namespace) -> int:
    scope = _SCOPES[args.scope]
    _print_json({
        variable.value: controller.get(variable, scope)
        for variable in StorageVariable
        if variable.scope == scope
    })
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = _settings_from_args(args)
    except ScopeStoreError as exc:
        # Logging is not configured yet
        print(f"error: {exc}", file=sys.stderr)
        return 2

    configure_logging(json_output=settings.json_logs, level=settings.log_level)
    log = get_logger("cli", workspace=str(settings.workspace_dir))

    try:
        controller, persistence = build_persistence(settings)
        if args.command == "user-id":
            return _cmd_user_id(persistence, args)
        elif args.command == "list":
            return _cmd_list(persistence, args)
        elif args.command == "save":
            return asyncio.run(_cmd_save(persistence, args))
        elif args.command == "remove":
            return asyncio.run(_cmd_remove(persistence, args))
        elif args.command == "has-connections":
            return _cmd_has_connections(persistence, args)
        elif args.command == "dump":
            return _cmd_dump(controller, args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
    except (ScopeStoreError, OSError, ValueError) as exc:
        log.error("Command failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
