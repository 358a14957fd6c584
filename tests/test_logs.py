import logging
import re

import pytest

from triwan.core.logs import setup_logging


pytestmark = pytest.mark.usefixtures("restore_logging")


def test_events_go_to_file_and_terminal(tmp_path, capsys):
    log_file = tmp_path / "logs" / "3wan_setup.log"
    setup_logging(str(log_file))

    logging.getLogger("triwan.test").info("configuring network")
    logging.getLogger("triwan.test").debug("hidden")

    text = log_file.read_text()
    assert re.search(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] INFO configuring network$", text, re.M)
    assert "hidden" not in text
    assert "configuring network" in capsys.readouterr().out


def test_log_file_is_appended(tmp_path):
    log_file = tmp_path / "3wan_setup.log"
    log_file.write_text("previous run\n")

    setup_logging(str(log_file), verbose=True)
    logging.getLogger("triwan.test").debug("second run")

    text = log_file.read_text()
    assert text.startswith("previous run\n")
    assert "DEBUG second run" in text


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    setup_logging()
    assert logging.getLogger().level == logging.WARNING


def test_unwritable_log_file_falls_back_to_terminal(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    setup_logging(str(blocker / "3wan_setup.log"))
    logging.getLogger("triwan.test").info("still visible")

    out = capsys.readouterr().out
    assert "Cannot write log file" in out
    assert "still visible" in out
