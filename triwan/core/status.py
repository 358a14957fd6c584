import json
import logging
import subprocess
import time
from typing import Callable, Dict, Iterable, List, Optional

from .models import LinkState, WanPort, WanStatus

log = logging.getLogger(__name__)


def _run(cmd: list[str]) -> str:
    return subprocess.check_output(cmd, text=True, stderr=subprocess.STDOUT)


class IfStatus:
    """Link status query backed by netifd's ``ifstatus``."""

    def state(self, name: str) -> LinkState:
        try:
            data = json.loads(_run(["ifstatus", name]))
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            log.debug("ifstatus %s failed: %s", name, e)
            return LinkState.UNKNOWN
        up = data.get("up") if isinstance(data, dict) else None
        if up is True:
            return LinkState.UP
        if up is False:
            return LinkState.DOWN
        return LinkState.UNKNOWN

    def address(self, ifname: str) -> Optional[str]:
        try:
            out = _run(["ip", "-4", "-o", "addr", "show", "dev", ifname])
        except (OSError, subprocess.CalledProcessError):
            return None
        for ln in out.splitlines():
            parts = ln.split()
            if "inet" in parts:
                i = parts.index("inet")
                if i + 1 < len(parts):
                    return parts[i + 1]
        return None


def poll_until(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Evaluate predicate until it holds or timeout elapses.

    The predicate is always evaluated at least once, and once more at the
    deadline.
    """
    deadline = clock() + timeout
    while True:
        if predicate():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(interval, remaining))


def query_state(source, name: str) -> LinkState:
    try:
        return source.state(name)
    except Exception as e:
        log.warning("Link status query for %s failed: %s", name, e)
        return LinkState.UNKNOWN


def link_states(source, wans: Iterable[WanPort]) -> Dict[str, LinkState]:
    return {w.name: query_state(source, w.name) for w in wans}


def status_snapshot(source, wans: Iterable[WanPort]) -> List[WanStatus]:
    out = []
    for w in wans:
        out.append(
            WanStatus(
                name=w.name,
                ifname=w.ifname,
                state=query_state(source, w.name),
                address=source.address(w.ifname),
            )
        )
    return out
