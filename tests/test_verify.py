import json
from unittest.mock import patch

import pytest
from fakes.fake_system import FakeClock, FakeLinks

from triwan.core.models import LinkState, MigrationConfig, Verdict
from triwan.core.status import IfStatus, poll_until
from triwan.system.verify import classify, verify_links, wait_settled

UP, DOWN, UNKNOWN = LinkState.UP, LinkState.DOWN, LinkState.UNKNOWN
WANS = MigrationConfig().wans


@pytest.mark.parametrize(
    "states, verdict",
    [
        ((UP, UP, UP), Verdict.PASS),
        ((UP, DOWN, DOWN), Verdict.PASS),
        ((DOWN, UNKNOWN, UP), Verdict.PASS),
        ((DOWN, DOWN, DOWN), Verdict.WARN),
        ((UNKNOWN, UNKNOWN, UNKNOWN), Verdict.WARN),
        ((DOWN, UNKNOWN, DOWN), Verdict.WARN),
    ],
)
def test_classify(states, verdict):
    assert classify(states) == verdict


def test_poll_until_gives_up_at_deadline():
    clock = FakeClock()
    calls = []

    assert poll_until(lambda: calls.append(1) and False, 3, 1, clock=clock, sleep=clock.sleep) is False
    assert clock.now == 1003
    assert len(calls) == 4


def test_poll_until_returns_early():
    clock = FakeClock()
    answers = iter([False, True])

    assert poll_until(lambda: next(answers), 10, 2, clock=clock, sleep=clock.sleep) is True
    assert clock.sleeps == [2]


def test_verify_stops_once_everything_is_up():
    clock = FakeClock()
    links = FakeLinks({"wan": UP, "wan2": [DOWN, UP], "wan3": [UNKNOWN, UP]})

    statuses, verdict = verify_links(links, WANS, 10, 1, clock=clock, sleep=clock.sleep)

    assert verdict == Verdict.PASS
    assert [s.state for s in statuses] == [UP, UP, UP]
    assert clock.sleeps == [1]


def test_verify_warns_when_nothing_comes_up():
    clock = FakeClock()
    links = FakeLinks({"wan": DOWN, "wan2": DOWN})

    statuses, verdict = verify_links(links, WANS, 10, 1, clock=clock, sleep=clock.sleep)

    assert verdict == Verdict.WARN
    assert [s.state for s in statuses] == [DOWN, DOWN, UNKNOWN]
    assert clock.now == pytest.approx(1010)


def test_verify_reports_last_observed_state():
    clock = FakeClock()
    links = FakeLinks({"wan": [DOWN, DOWN, UP], "wan2": DOWN, "wan3": DOWN})

    statuses, verdict = verify_links(links, WANS, 5, 1, clock=clock, sleep=clock.sleep)

    assert verdict == Verdict.PASS
    assert statuses[0].state == UP
    assert statuses[0].ifname == "eth4"


def test_wait_settled_returns_once_a_wan_is_up():
    clock = FakeClock()
    links = FakeLinks({"wan": [UNKNOWN, DOWN, UP]})

    assert wait_settled(links, WANS, 5, 1, clock=clock, sleep=clock.sleep) is True
    assert clock.sleeps == [1, 1]


def test_wait_settled_keeps_waiting_while_links_are_pending():
    clock = FakeClock()
    pending = json.dumps({"up": False, "pending": True, "available": True})

    with patch("subprocess.check_output", return_value=pending):
        assert wait_settled(IfStatus(), WANS, 5, 1, clock=clock, sleep=clock.sleep) is False

    assert sum(clock.sleeps) == pytest.approx(5)


class BrokenLinks:
    def state(self, name):
        raise RuntimeError("ubus not running")

    def address(self, ifname):
        return None


def test_verify_treats_query_errors_as_unknown():
    clock = FakeClock()

    statuses, verdict = verify_links(BrokenLinks(), WANS, 2, 1, clock=clock, sleep=clock.sleep)

    assert verdict == Verdict.WARN
    assert [s.state for s in statuses] == [UNKNOWN, UNKNOWN, UNKNOWN]
