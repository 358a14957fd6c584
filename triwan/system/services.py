import logging
import subprocess
from typing import Callable, Iterable, List, Optional

log = logging.getLogger(__name__)

INIT_DIR = "/etc/init.d"


class InitdServices:
    """Service manager over OpenWrt procd init scripts."""

    def __init__(self, init_dir: str = INIT_DIR):
        self.init_dir = init_dir

    def restart(self, name: str) -> bool:
        try:
            res = subprocess.run(
                [f"{self.init_dir}/{name}", "restart"], text=True, capture_output=True
            )
        except OSError as e:
            log.debug("restart %s: %s", name, e)
            return False
        return res.returncode == 0


def restart_services(
    manager,
    names: Iterable[str],
    settle: Optional[Callable[[], None]] = None,
) -> List[str]:
    """Restart services in order and return the ones that failed.

    ``settle`` runs once right after the network service is cycled.
    """
    failed = []
    for name in names:
        log.info("Restarting %s", name)
        if not manager.restart(name):
            log.warning("Restart of %s failed", name)
            failed.append(name)
        if name == "network" and settle is not None:
            settle()
    return failed
