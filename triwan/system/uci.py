import logging
import os
import shlex
import subprocess
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from triwan.core.errors import CommitError, StoreError

log = logging.getLogger(__name__)

UCI = "uci"


class Section(BaseModel):
    name: str
    type: str
    options: Dict[str, str] = Field(default_factory=dict)


def _unquote(raw: str) -> str:
    # uci show quotes every value; lists come out as 'a' 'b'
    try:
        parts = shlex.split(raw)
    except ValueError:
        return raw
    return " ".join(parts)


def parse_show(store: str, text: str) -> List[Section]:
    """Parse ``uci -X show <store>`` output into ordered sections."""
    sections: Dict[str, Section] = {}
    prefix = store + "."
    for ln in text.splitlines():
        ln = ln.strip()
        if not ln.startswith(prefix) or "=" not in ln:
            continue
        key, raw = ln[len(prefix):].split("=", 1)
        value = _unquote(raw)
        if "." not in key:
            sections[key] = Section(name=key, type=value)
            continue
        name, option = key.split(".", 1)
        sec = sections.setdefault(name, Section(name=name, type=""))
        sec.options[option] = value
    return list(sections.values())


class UciStore:
    """Store client over the ``uci`` command line.

    Paths follow uci syntax: ``lan``, ``lan.ifname``, ``@zone[1].network``.
    Mutations stay in the uci staging area until ``commit``.
    """

    def __init__(self, store_dir: str = "/etc/config"):
        self.store_dir = store_dir

    def _uci(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [UCI, *args]
        try:
            return subprocess.run(cmd, text=True, capture_output=True)
        except OSError as e:
            return subprocess.CompletedProcess(cmd, 127, "", str(e))

    def store_path(self, store: str) -> str:
        return os.path.join(self.store_dir, store)

    def get(self, store: str, path: str) -> Optional[str]:
        res = self._uci("-q", "get", f"{store}.{path}")
        if res.returncode != 0:
            return None
        return res.stdout.strip()

    def set(self, store: str, path: str, value: str) -> None:
        log.debug("uci set %s.%s=%s", store, path, value)
        res = self._uci("set", f"{store}.{path}={value}")
        if res.returncode != 0:
            raise StoreError(store, f"set {path} failed: {res.stderr.strip()}")

    def add(self, store: str, section_type: str) -> str:
        res = self._uci("add", store, section_type)
        if res.returncode != 0:
            raise StoreError(store, f"add {section_type} failed: {res.stderr.strip()}")
        return res.stdout.strip()

    def commit(self, store: str) -> None:
        res = self._uci("commit", store)
        if res.returncode != 0:
            raise CommitError(store, res.stderr.strip() or "commit failed")

    def show(self, store: str) -> List[Section]:
        res = self._uci("-X", "show", store)
        if res.returncode != 0:
            return []
        return parse_show(store, res.stdout)

    def sections(self, store: str, section_type: str) -> List[Section]:
        return [s for s in self.show(store) if s.type == section_type]
