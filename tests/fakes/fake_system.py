from typing import Dict, List, Optional, Sequence, Union

from triwan.core.models import LinkState


class FakeServices:
    def __init__(self, fail: Sequence[str] = ()):
        self.fail = set(fail)
        self.restarted: List[str] = []

    def restart(self, name: str) -> bool:
        self.restarted.append(name)
        return name not in self.fail


class FakeLinks:
    """Link status source; a list value is consumed one state per query."""

    def __init__(self, states: Dict[str, Union[LinkState, List[LinkState]]],
                 addresses: Optional[Dict[str, str]] = None):
        self.states = {k: (list(v) if isinstance(v, list) else v) for k, v in states.items()}
        self.addresses = addresses or {}
        self.queries: List[str] = []

    def state(self, name: str) -> LinkState:
        self.queries.append(name)
        v = self.states.get(name, LinkState.UNKNOWN)
        if isinstance(v, list):
            return v.pop(0) if len(v) > 1 else v[0]
        return v

    def address(self, ifname: str) -> Optional[str]:
        return self.addresses.get(ifname)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
