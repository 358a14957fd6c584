import logging
import os
import time
from datetime import datetime
from typing import Callable, List, Optional

import yaml

from triwan.core.errors import MigrationError, PrivilegeError
from triwan.core.models import (
    NOT_PRESENT,
    MigrationConfig,
    MigrationReport,
    MigrationState,
    PreState,
)
from triwan.system.backup import snapshot
from triwan.system.render import (
    RESTART_SCRIPT,
    STATUS_SCRIPT,
    render_restart_script,
    render_status_script,
)
from triwan.system.services import restart_services
from triwan.system.steps import STEPS
from triwan.system.verify import verify_links, wait_settled

log = logging.getLogger(__name__)


def _write(path: str, content: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def require_root(geteuid: Optional[Callable[[], int]] = None) -> None:
    if (geteuid or os.geteuid)() != 0:
        raise PrivilegeError("root privileges are required")


def check_preconditions(store, cfg: MigrationConfig) -> PreState:
    """Log the current topology. Absent values become NOT_PRESENT."""
    log.info("Checking current network configuration...")
    second = cfg.wans[1].name
    pre = PreState(
        lan_ifname=store.get("network", "lan.ifname") or NOT_PRESENT,
        multiwan_enabled=store.get("dualwan", "common.enable") or NOT_PRESENT,
        wan2_ifname=store.get("network", f"{second}.ifname") or NOT_PRESENT,
    )
    log.info("Current LAN interfaces: %s", pre.lan_ifname)
    log.info("Multi-WAN enabled: %s", pre.multiwan_enabled)
    log.info("%s interface: %s", second.upper(), pre.wan2_ifname)
    return pre


def write_artifacts(cfg: MigrationConfig) -> List[str]:
    written = []
    for name, content in (
        (STATUS_SCRIPT, render_status_script(cfg)),
        (RESTART_SCRIPT, render_restart_script(cfg)),
    ):
        path = os.path.join(cfg.paths.bin_dir, name)
        _write(path, content)
        os.chmod(path, 0o755)
        written.append(path)
    return written


def save_report(report: MigrationReport, path: str) -> None:
    _write(path, yaml.safe_dump(report.model_dump(mode="json"), sort_keys=False))


def load_report(path: str) -> Optional[MigrationReport]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return None
    return MigrationReport.model_validate(data)


def _finish(report: MigrationReport, cfg: MigrationConfig) -> MigrationReport:
    try:
        save_report(report, cfg.paths.report_file)
    except OSError as e:
        log.warning("Could not write report %s: %s", cfg.paths.report_file, e)
    return report


def migrate(
    cfg: MigrationConfig,
    store,
    services,
    links,
    geteuid: Optional[Callable[[], int]] = None,
    now: Optional[datetime] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> MigrationReport:
    """Run the 1-WAN to 3-WAN migration.

    Privilege, backup and store failures abort the run: the returned report
    is in state ABORTED and lists the steps already committed. Committed
    stores are left as they are; the backup directory is the way back.
    Everything after the last commit is best-effort.
    """
    report = MigrationReport()
    log.info("Starting 3WAN migration")

    try:
        require_root(geteuid)
        report.pre_state = check_preconditions(store, cfg)
        report.state = MigrationState.PRECONDITION_CHECKED

        report.backup_dir = snapshot(
            cfg.stores.critical, store.store_path, cfg.paths.backup_root, now=now
        )
        report.state = MigrationState.BACKED_UP

        for step in STEPS:
            log.info("Configuring %s...", step.name)
            step.apply(store, cfg)
            report.committed.append(step.name)
            report.state = step.reached
            log.info("%s configuration committed", step.name)
    except MigrationError as e:
        log.error("Migration aborted: %s", e)
        report.state = MigrationState.ABORTED
        report.error = str(e)
        return _finish(report, cfg)

    timing = cfg.timing

    def settle() -> None:
        if not wait_settled(links, cfg.wans, timing.network_settle_s,
                            timing.poll_interval_s, clock=clock, sleep=sleep):
            log.warning("No WAN came up within %ss of the network restart", timing.network_settle_s)

    report.service_failures = restart_services(services, cfg.services, settle=settle)
    report.state = MigrationState.SERVICES_RESTARTED

    log.info("Verifying WAN links...")
    report.links, report.verdict = verify_links(
        links, cfg.wans, timing.verify_timeout_s, timing.poll_interval_s,
        clock=clock, sleep=sleep,
    )
    report.state = MigrationState.VERIFIED

    try:
        report.artifacts = write_artifacts(cfg)
        report.state = MigrationState.ARTIFACTS_WRITTEN
    except OSError as e:
        log.warning("Could not write helper scripts: %s", e)

    report.state = MigrationState.DONE
    log.info("3WAN migration finished")
    return _finish(report, cfg)
