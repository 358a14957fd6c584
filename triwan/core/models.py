from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

NOT_PRESENT = "not present"


class WanPort(BaseModel):
    name: str
    ifname: str
    weight_key: str
    weight: int = Field(default=1, ge=1)


def _default_wans() -> List[WanPort]:
    return [
        WanPort(name="wan", ifname="eth4", weight_key="weight_wan1"),
        WanPort(name="wan2", ifname="eth3", weight_key="weight_wan2"),
        WanPort(name="wan3", ifname="eth2", weight_key="weight_wan3"),
    ]


class SwitchConfig(BaseModel):
    store: str = "misc"
    lan_ports: str = "1 2"
    # secondary service bound to the LAN ports (samba on the stock firmware)
    service_section: str = "samba"
    service_option: str = "et_ifname"


class StoreConfig(BaseModel):
    store_dir: str = "/etc/config"
    critical: List[str] = Field(
        default_factory=lambda: ["network", "dualwan", "misc", "firewall", "dhcp"]
    )


class PathConfig(BaseModel):
    backup_root: str = "/tmp"
    log_file: str = "/tmp/3wan_setup.log"
    bin_dir: str = "/usr/bin"
    report_file: str = "/tmp/3wan_report.yaml"


class TimingConfig(BaseModel):
    network_settle_s: float = 5.0
    verify_timeout_s: float = 10.0
    poll_interval_s: float = 1.0


class MigrationConfig(BaseModel):
    wans: List[WanPort] = Field(default_factory=_default_wans, min_length=3, max_length=3)
    lan_ifnames: List[str] = Field(default_factory=lambda: ["eth0", "eth1"])
    proto: str = "dhcp"
    mtu: int = 1500
    wan3_ipv6: bool = True
    wan_zone: str = "wan"
    switch: SwitchConfig = Field(default_factory=SwitchConfig)
    stores: StoreConfig = Field(default_factory=StoreConfig)
    paths: PathConfig = Field(default_factory=PathConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    services: List[str] = Field(default_factory=lambda: ["network", "firewall", "dnsmasq"])

    @property
    def new_wan(self) -> WanPort:
        return self.wans[-1]

    @property
    def lan_ifname(self) -> str:
        return " ".join(self.lan_ifnames)


class LinkState(str, Enum):
    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


class Verdict(str, Enum):
    PASS = "pass"
    WARN = "warn"


class MigrationState(str, Enum):
    START = "start"
    PRECONDITION_CHECKED = "precondition_checked"
    BACKED_UP = "backed_up"
    NETWORK_CONFIGURED = "network_configured"
    POLICY_CONFIGURED = "policy_configured"
    SWITCH_CONFIGURED = "switch_configured"
    FIREWALL_CONFIGURED = "firewall_configured"
    DHCP_CONFIGURED = "dhcp_configured"
    SERVICES_RESTARTED = "services_restarted"
    VERIFIED = "verified"
    ARTIFACTS_WRITTEN = "artifacts_written"
    DONE = "done"
    ABORTED = "aborted"


class PreState(BaseModel):
    lan_ifname: str = NOT_PRESENT
    multiwan_enabled: str = NOT_PRESENT
    wan2_ifname: str = NOT_PRESENT


class WanStatus(BaseModel):
    name: str
    ifname: str
    state: LinkState = LinkState.UNKNOWN
    address: Optional[str] = None


class MigrationReport(BaseModel):
    state: MigrationState = MigrationState.START
    pre_state: Optional[PreState] = None
    backup_dir: Optional[str] = None
    committed: List[str] = Field(default_factory=list)
    service_failures: List[str] = Field(default_factory=list)
    links: List[WanStatus] = Field(default_factory=list)
    verdict: Optional[Verdict] = None
    artifacts: List[str] = Field(default_factory=list)
    error: Optional[str] = None
