import logging
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

for p in (_REPO_ROOT, _THIS_DIR):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from fakes.fake_system import FakeClock, FakeLinks, FakeServices  # noqa: E402
from fakes.fake_uci import FakeUciStore, stock_router  # noqa: E402
from triwan.core.models import LinkState, MigrationConfig, PathConfig, StoreConfig, TimingConfig  # noqa: E402


@pytest.fixture
def cfg(tmp_path):
    store_dir = tmp_path / "config"
    return MigrationConfig(
        stores=StoreConfig(store_dir=str(store_dir)),
        paths=PathConfig(
            backup_root=str(tmp_path / "backups"),
            log_file=str(tmp_path / "3wan_setup.log"),
            bin_dir=str(tmp_path / "bin"),
            report_file=str(tmp_path / "report.yaml"),
        ),
        timing=TimingConfig(network_settle_s=5, verify_timeout_s=10, poll_interval_s=1),
    )


@pytest.fixture
def store(cfg):
    return FakeUciStore(stock_router(), store_dir=cfg.stores.store_dir)


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def links():
    return FakeLinks({"wan": LinkState.UP, "wan2": LinkState.DOWN, "wan3": LinkState.DOWN})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
