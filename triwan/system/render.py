from triwan.core.models import MigrationConfig, MigrationReport

STATUS_SCRIPT = "3wan_status"
RESTART_SCRIPT = "3wan_restart"


def _label(i: int) -> str:
    return f"WAN{i + 1}"


def render_status_script(cfg: MigrationConfig) -> str:
    links = "".join(
        f"echo \"{_label(i)} ({w.ifname}): $(ifstatus {w.name} | jsonfilter -e '@.up')\"\n"
        for i, w in enumerate(cfg.wans)
    )
    addrs = "".join(
        f"ip addr show {w.ifname} | grep \"inet \" || echo \"{_label(i)}: no IP address\"\n"
        for i, w in enumerate(cfg.wans)
    )
    return f"""#!/bin/sh
echo "=== 3WAN status ==="
{links}echo ""
echo "=== IP addresses ==="
{addrs}"""


def render_restart_script(cfg: MigrationConfig) -> str:
    names = " ".join(w.name for w in cfg.wans)
    return f"""#!/bin/sh
echo "Restarting WAN interfaces..."
ifdown {names}
sleep 2
ifup {names}
echo "WAN interfaces restarted"
"""


def render_summary(cfg: MigrationConfig, report: MigrationReport) -> str:
    roles = ["primary WAN", "second WAN", "third WAN"]
    ports = "".join(
        f"- {_label(i)}: {w.ifname} ({roles[i]})\n" for i, w in enumerate(cfg.wans)
    )
    links = "".join(f"- {s.name}: {s.state.value}\n" for s in report.links) or "- not run\n"
    verdict = report.verdict.value if report.verdict else "n/a"
    failed = ", ".join(report.service_failures) or "none"
    lan = ", ".join(cfg.lan_ifnames)

    return f"""
=== 3WAN configuration complete ===

Port assignment:
- LAN: {lan} ({len(cfg.lan_ifnames)} ports)
{ports}
Link check ({verdict}):
{links}
Service restart failures: {failed}

Commands:
- status:          {STATUS_SCRIPT}
- restart WANs:    {RESTART_SCRIPT}
- routing tables:  ip route show table all

Configuration backup: {report.backup_dir}

Notes:
1. Make sure every WAN port has a cable connected.
2. To return to the previous configuration, run: triwan restore {report.backup_dir}
3. The configuration survives a reboot.
"""
