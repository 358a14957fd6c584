"""triwan command line.

Usage:
    triwan migrate                 # reconfigure the router for three WANs
    triwan status                  # link state and address per WAN
    triwan backups                 # list configuration backups
    triwan restore <backup_dir>    # copy a backup over /etc/config
    triwan config show|reset
"""

import argparse
import logging
import sys
from typing import List, Optional

from triwan.core.config import dump_config, load_config, reset_config
from triwan.core.errors import BackupError, PrivilegeError
from triwan.core.logs import setup_logging
from triwan.core.models import MigrationState, PathConfig
from triwan.core.status import IfStatus, status_snapshot
from triwan.system.apply import migrate, require_root
from triwan.system.backup import list_backups, restore_from_backup
from triwan.system.render import render_summary
from triwan.system.services import InitdServices
from triwan.system.uci import UciStore

log = logging.getLogger(__name__)

DEFAULT_LOG_FILE = PathConfig().log_file


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="triwan",
        description="Reconfigure an OpenWrt router from one or two WANs to three",
    )
    parser.add_argument("--config", default=None, help="migration plan YAML (default: $TRIWAN_CONFIG)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="run the migration")
    sub.add_parser("status", help="show WAN link state")
    sub.add_parser("backups", help="list configuration backups")
    restore = sub.add_parser("restore", help="restore stores from a backup directory")
    restore.add_argument("backup_dir")
    config = sub.add_parser("config", help="show or reset the migration plan")
    config.add_argument("action", choices=["show", "reset"])
    return parser.parse_args(argv)


def _migrate(args: argparse.Namespace) -> int:
    # before load_config: a first run creates the plan under /etc
    try:
        require_root()
    except PrivilegeError as e:
        setup_logging(DEFAULT_LOG_FILE, verbose=args.verbose)
        log.error("Migration aborted: %s", e)
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    cfg = load_config(args.config)
    setup_logging(cfg.paths.log_file, verbose=args.verbose)

    report = migrate(cfg, UciStore(cfg.stores.store_dir), InitdServices(), IfStatus())
    if report.state == MigrationState.ABORTED:
        print(f"\nERROR: {report.error}", file=sys.stderr)
        if report.backup_dir:
            print(f"Configuration backup: {report.backup_dir}", file=sys.stderr)
        return 1

    print(render_summary(cfg, report))
    return 0


def _status(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    for i, s in enumerate(status_snapshot(IfStatus(), cfg.wans)):
        print(f"WAN{i + 1} {s.name} ({s.ifname}): {s.state.value}  {s.address or 'no IP address'}")
    return 0


def _backups(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    for path in list_backups(cfg.paths.backup_root):
        print(path)
    return 0


def _restore(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    try:
        restored = restore_from_backup(args.backup_dir, cfg.stores.store_dir)
    except BackupError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"Restored: {', '.join(restored) or 'nothing'}")
    print("Restart network, firewall and dnsmasq to apply.")
    return 0


def _config(args: argparse.Namespace) -> int:
    if args.action == "reset":
        reset_config(args.config)
    print(dump_config(load_config(args.config)), end="")
    return 0


COMMANDS = {
    "migrate": _migrate,
    "status": _status,
    "backups": _backups,
    "restore": _restore,
    "config": _config,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.command != "migrate":
        setup_logging(verbose=args.verbose)
    try:
        return COMMANDS[args.command](args)
    except OSError as e:
        log.error("%s failed: %s", args.command, e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
