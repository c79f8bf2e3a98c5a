# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Inspect and maintain the dex usage file from a shell.
#
# COMMANDS:
# ---------
# 1. Print the file as it would be written:
#    python -m dexusage.cli dump
#
# 2. Show tracked packages, or one package:
#    python -m dexusage.cli show
#    python -m dexusage.cli show com.example.app --json
#
# 3. Record a load:
#    python -m dexusage.cli record com.example.app /data/app/x.dex --user 0 --isa arm64
#
# 4. Prune against installed packages / users:
#    python -m dexusage.cli sync --package com.example.app=0,10 --package com.other=0
#
# 5. Reset everything:
#    python -m dexusage.cli reset --confirm
#
# All commands accept --file to point at a different usage file.
#
# ==============================================

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from dexusage.config import AppConfig, get_config
from dexusage.errors import DexUsageError
from dexusage.logging_config import setup_logging
from dexusage.package_dex_usage import PackageDexUsage


def _package_users(value: str) -> Tuple[str, Set[int]]:
    """Parse NAME=UID[,UID...] (an empty user list is allowed)."""
    name, sep, users = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=UID[,UID...], got {value!r}")
    try:
        user_ids = {int(user) for user in users.split(",") if user.strip()}
    except ValueError:
        raise argparse.ArgumentTypeError(f"user ids must be integers: {users!r}") from None
    return name, user_ids


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dex-usage",
        description="Inspect and maintain the package dex usage file.",
    )
    parser.add_argument("--file", help="Usage file to operate on (overrides DEX_USAGE_DIR/FILE)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("dump", help="Print the usage file contents")

    show = subparsers.add_parser("show", help="List packages or show one package")
    show.add_argument("package", nargs="?")
    show.add_argument("--json", action="store_true", help="Print JSON")

    record = subparsers.add_parser("record", help="Record a dex file load")
    record.add_argument("package")
    record.add_argument("dex_path")
    record.add_argument("--user", type=int, required=True, help="Owner user id")
    record.add_argument("--isa", required=True, help="Loader instruction set")
    record.add_argument("--used-by-other-apps", action="store_true")
    record.add_argument("--primary", action="store_true", help="Primary or split APK")

    sync = subparsers.add_parser("sync", help="Prune uninstalled packages and removed users")
    sync.add_argument(
        "--package",
        dest="packages",
        type=_package_users,
        action="append",
        default=[],
        metavar="NAME=UID[,UID...]",
    )

    reset = subparsers.add_parser("reset", help="Clear all usage data")
    reset.add_argument("--confirm", action="store_true")

    return parser


def _config_for(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    if not args.file:
        return config
    path = Path(args.file)
    store = dataclasses.replace(
        config.store,
        data_dir=str(path.parent),
        file_name=path.name,
    )
    return dataclasses.replace(config, store=store)


def _show(usage: PackageDexUsage, package: Optional[str], as_json: bool) -> int:
    if package is None:
        names = usage.package_names()
        if as_json:
            print(json.dumps(names, indent=2))
        else:
            for name in names:
                print(name)
        return 0

    info = usage.get_package_use_info(package)
    if info is None:
        print(f"No usage recorded for {package}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps({package: info.to_dict()}, indent=2))
        return 0

    print(f"{package} (used by other apps: {info.is_used_by_other_apps})")
    for dex_path, dex_info in sorted(info.dex_use_info_map.items()):
        isas = ",".join(sorted(dex_info.loader_isas))
        print(f"  {dex_path} user={dex_info.owner_user_id} "
              f"other_apps={dex_info.is_used_by_other_apps} isas={isas}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = _config_for(args, get_config())
    setup_logging(config.logging)

    usage = PackageDexUsage(config, auto_persist=False)
    usage.read()

    try:
        if args.command == "dump":
            sys.stdout.write(usage.dump())
            return 0

        if args.command == "show":
            return _show(usage, args.package, args.json)

        if args.command == "record":
            changed = usage.record(
                args.package,
                args.dex_path,
                args.user,
                args.isa,
                args.used_by_other_apps,
                args.primary,
            )
            print("recorded new usage" if changed else "usage already known")
            return 0 if usage.write_now() else 1

        if args.command == "sync":
            package_to_users: Dict[str, Set[int]] = {}
            for name, users in args.packages:
                package_to_users.setdefault(name, set()).update(users)
            before = len(usage.package_names())
            usage.sync_data(package_to_users)
            after = len(usage.package_names())
            print(f"synced: {before} -> {after} packages")
            return 0 if usage.write_now() else 1

        if args.command == "reset":
            if not args.confirm:
                print("Refusing to reset without --confirm", file=sys.stderr)
                return 1
            usage.clear()
            print("usage data cleared")
            return 0 if usage.write_now() else 1

    except DexUsageError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
