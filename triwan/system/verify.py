import logging
import time
from typing import Callable, Dict, Iterable, List, Tuple

from triwan.core.models import LinkState, Verdict, WanPort, WanStatus
from triwan.core.status import link_states, poll_until

log = logging.getLogger(__name__)


def classify(states: Iterable[LinkState]) -> Verdict:
    return Verdict.PASS if any(s == LinkState.UP for s in states) else Verdict.WARN


def verify_links(
    source,
    wans: List[WanPort],
    timeout: float,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[WanStatus], Verdict]:
    """Wait for the WAN links to come up, then classify the result.

    Polling stops early once every link is up. Never raises.
    """
    last: Dict[str, LinkState] = {}

    def all_up() -> bool:
        last.clear()
        last.update(link_states(source, wans))
        return all(s == LinkState.UP for s in last.values())

    poll_until(all_up, timeout, interval, clock=clock, sleep=sleep)

    statuses = []
    for w in wans:
        state = last.get(w.name, LinkState.UNKNOWN)
        log.info("%s (%s): %s", w.name.upper(), w.ifname, state.value)
        statuses.append(WanStatus(name=w.name, ifname=w.ifname, state=state))

    verdict = classify(s.state for s in statuses)
    if verdict == Verdict.PASS:
        log.info("At least one WAN interface is up")
    else:
        log.warning("No WAN interface is up, check the cabling")
    return statuses, verdict


def wait_settled(
    source,
    wans: List[WanPort],
    timeout: float,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Wait until any WAN is up or timeout elapses.

    Right after a network restart netifd reports interfaces as down and
    pending, so a down link keeps the wait going.
    """

    def any_up() -> bool:
        return any(s == LinkState.UP for s in link_states(source, wans).values())

    return poll_until(any_up, timeout, interval, clock=clock, sleep=sleep)
