"""Migration steps.

Each step assigns keys in exactly one store and then commits it. Re-running a
step converges to the same values; the append-only parts (zone membership and
firewall rules) check for existing entries first.
"""

import logging
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from triwan.core.models import MigrationConfig, MigrationState

log = logging.getLogger(__name__)


class TokenSet:
    """Ordered list of whitespace separated tokens.

    Tokens already present are kept exactly as given; ``add_unique`` only
    appends a token that is not a member yet.
    """

    def __init__(self, tokens: Iterable[str] = ()):
        self._tokens: List[str] = list(tokens)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "TokenSet":
        return cls((raw or "").split())

    def add_unique(self, token: str) -> bool:
        if token in self._tokens:
            return False
        self._tokens.append(token)
        return True

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __iter__(self):
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __str__(self) -> str:
        return " ".join(self._tokens)


def _ensure_section(store, name: str, path: str, section_type: str) -> None:
    if store.get(name, path) != section_type:
        store.set(name, path, section_type)


def _set_all(store, name: str, section: str, options: Dict[str, str]) -> None:
    for key, value in options.items():
        store.set(name, f"{section}.{key}", value)


def configure_network(store, cfg: MigrationConfig) -> None:
    store.set("network", "lan.ifname", cfg.lan_ifname)

    for wan in cfg.wans:
        _ensure_section(store, "network", wan.name, "interface")
        _set_all(store, "network", wan.name, {
            "proto": cfg.proto,
            "mtu": str(cfg.mtu),
            "ifname": wan.ifname,
        })

    if cfg.wan3_ipv6:
        new = cfg.new_wan
        v6 = f"{new.name}_6"
        _ensure_section(store, "network", v6, "interface")
        _set_all(store, "network", v6, {
            "ifname": new.ifname,
            "proto": "dhcpv6",
            "reqaddress": "try",
            "reqprefix": "auto",
        })

    store.commit("network")


def configure_multiwan(store, cfg: MigrationConfig) -> None:
    new = cfg.new_wan
    options = {
        "enable": "1",
        f"{new.name}_enable": "1",
        f"{new.name}_link_error": "1",
    }
    for wan in cfg.wans:
        options[wan.weight_key] = str(wan.weight)
    _set_all(store, "dualwan", "common", options)
    store.commit("dualwan")


def configure_switch(store, cfg: MigrationConfig) -> None:
    sw = cfg.switch
    store.set(sw.store, "sw_reg.sw_lan_ports", sw.lan_ports)
    store.set(sw.store, f"{sw.service_section}.{sw.service_option}", cfg.lan_ifname)
    store.commit(sw.store)


def wan_zone_path(store, zone_name: str) -> str:
    for sec in store.sections("firewall", "zone"):
        if sec.options.get("name") == zone_name:
            return sec.name
    # stock layout: lan zone first, wan zone second
    return "@zone[1]"


def firewall_rules(wan: str) -> List[Dict[str, str]]:
    tag = wan.upper()
    return [
        {
            "name": f"Allow-DHCP-Renew-{tag}",
            "src": wan,
            "proto": "udp",
            "dest_port": "68",
            "target": "ACCEPT",
            "family": "ipv4",
        },
        {
            "name": f"Allow-Ping-{tag}",
            "src": wan,
            "proto": "icmp",
            "icmp_type": "echo-request",
            "family": "ipv4",
            "target": "ACCEPT",
        },
    ]


def configure_firewall(store, cfg: MigrationConfig) -> None:
    wan = cfg.new_wan.name
    zone = wan_zone_path(store, cfg.wan_zone)

    networks = TokenSet.parse(store.get("firewall", f"{zone}.network"))
    if networks.add_unique(wan):
        store.set("firewall", f"{zone}.network", str(networks))
        log.info("Added %s to firewall zone %s", wan, cfg.wan_zone)
    else:
        log.info("%s already in firewall zone %s", wan, cfg.wan_zone)

    existing = {s.options.get("name"): s.name for s in store.sections("firewall", "rule")}
    for rule in firewall_rules(wan):
        section = existing.get(rule["name"])
        if section is None:
            section = store.add("firewall", "rule")
            log.info("Added firewall rule %s", rule["name"])
        _set_all(store, "firewall", section, rule)

    store.commit("firewall")


def configure_dhcp(store, cfg: MigrationConfig) -> None:
    wan = cfg.new_wan.name
    _ensure_section(store, "dhcp", wan, "dhcp")
    _set_all(store, "dhcp", wan, {"interface": wan, "ignore": "1"})
    store.commit("dhcp")


class Step(NamedTuple):
    name: str
    apply: Callable[..., None]
    reached: MigrationState


STEPS: List[Step] = [
    Step("network", configure_network, MigrationState.NETWORK_CONFIGURED),
    Step("multiwan", configure_multiwan, MigrationState.POLICY_CONFIGURED),
    Step("switch", configure_switch, MigrationState.SWITCH_CONFIGURED),
    Step("firewall", configure_firewall, MigrationState.FIREWALL_CONFIGURED),
    Step("dhcp", configure_dhcp, MigrationState.DHCP_CONFIGURED),
]
