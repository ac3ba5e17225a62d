"""Data models for NetBird control."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ConnectionState(Enum):
    """NetBird connection state"""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    NEEDS_LOGIN = "needs_login"
    LOADING = "loading"
    ERROR = "error"


class NetworkAction(Enum):
    """Sub-command of 'netbird networks' that changes the selection"""
    SELECT = "select"
    DESELECT = "deselect"


class ToggleIntent(Enum):
    """Where an optimistic UI toggle stands against the daemon's answer"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass
class GeneralOptions:
    """Global flags accepted by every netbird sub-command"""
    management_url: Optional[str] = None
    admin_url: Optional[str] = None
    anonymize: Optional[bool] = None
    daemon_addr: Optional[str] = None
    hostname: Optional[str] = None
    log_file: Optional[str] = None
    log_level: Optional[str] = None
    preshared_key: Optional[str] = None
    service: Optional[str] = None
    setup_key: Optional[str] = None
    setup_key_file: Optional[str] = None


@dataclass
class ConnectionOptions(GeneralOptions):
    """Global flags plus the options of 'netbird up'"""
    # connection
    allow_server_ssh: Optional[bool] = None
    block_inbound: Optional[bool] = None
    block_lan_access: Optional[bool] = None
    disable_auto_connect: Optional[bool] = None

    # routes
    disable_client_routes: Optional[bool] = None
    disable_server_routes: Optional[bool] = None

    # dns
    disable_dns: Optional[bool] = None
    dns_resolver_address: Optional[str] = None
    dns_router_interval: Optional[str] = None
    extra_dns_labels: Optional[str] = None

    # firewall and advanced network
    disable_firewall: Optional[bool] = None
    interface_name: Optional[str] = None
    mtu: Optional[int] = None
    wireguard_port: Optional[int] = None
    external_ip_map: Optional[str] = None
    extra_iface_blacklist: Optional[str] = None
    network_monitor: Optional[bool] = None

    # experimental
    enable_lazy_connection: Optional[bool] = None
    enable_rosenpass: Optional[bool] = None
    rosenpass_permissive: Optional[bool] = None

    # authentication
    no_browser: Optional[bool] = None
    profile: Optional[str] = None


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one netbird invocation"""
    success: bool
    output: str
    error: Optional[str] = None


@dataclass
class ConnectionStatus:
    """Parsed 'netbird status' output"""
    state: ConnectionState = ConnectionState.DISCONNECTED
    management: str = ""
    signal: str = ""
    ip: str = ""
    fqdn: str = ""
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, message: Optional[str]) -> "ConnectionStatus":
        return cls(state=ConnectionState.ERROR,
                   error_message=message or "Failed to get status")


@dataclass(frozen=True)
class NetworkEntry:
    """One record of 'netbird networks list'"""
    id: str
    domains: Optional[str] = None
    network: Optional[str] = None
    selected: bool = False
    resolved_ips: Optional[str] = None

    @property
    def label(self) -> str:
        name = self.id.strip()
        description = self.domains or self.network
        return f"{name}  ({description})" if description else name


@dataclass
class NetworkListResult:
    success: bool
    networks: List[NetworkEntry] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class SelectionResult:
    success: bool
    error: Optional[str] = None


@dataclass
class NetworkToggle:
    """Outcome of an optimistic network switch"""
    network_id: str
    requested: bool
    selected: bool
    intent: ToggleIntent
    error: Optional[str] = None


@dataclass
class ToggleSession:
    """UI-facing mirror of the connection, owned by the controller"""
    state: ConnectionState = ConnectionState.LOADING
    checked: bool = False
    requested: Optional[bool] = None
    intent: ToggleIntent = ToggleIntent.CONFIRMED
    operation_in_progress: bool = False
    network_writes: int = 0
    suppress_next_network_error: bool = False

    @property
    def busy(self) -> bool:
        return self.operation_in_progress or self.network_writes > 0

    def begin(self, requested: bool) -> None:
        self.operation_in_progress = True
        self.requested = requested
        self.checked = requested
        self.intent = ToggleIntent.PENDING
        self.state = ConnectionState.LOADING

    def mirror(self, status: ConnectionStatus) -> None:
        self.state = status.state
        self.checked = status.state is ConnectionState.CONNECTED
        if self.intent is ToggleIntent.PENDING:
            if self.checked == self.requested:
                self.intent = ToggleIntent.CONFIRMED
            else:
                self.intent = ToggleIntent.REVERTED


@dataclass(frozen=True)
class StatusView:
    """How the toggle presents a connection state"""
    checked: bool
    subtitle: Optional[str]
    label: str
    icon: str

    @classmethod
    def for_status(cls, status: ConnectionStatus, checked: bool = False) -> "StatusView":
        state = status.state
        if state is ConnectionState.CONNECTED:
            return cls(True, "Connected", status.fqdn or status.ip or "Connected",
                       "network-shield-symbolic")
        if state is ConnectionState.DISCONNECTED:
            return cls(False, None, "Not Connected", "network-shield-crossed-symbolic")
        if state is ConnectionState.NEEDS_LOGIN:
            return cls(False, "Login Required", "Login Required",
                       "network-shield-question-mark-symbolic")
        if state is ConnectionState.ERROR:
            return cls(False, "Error", "Error", "network-vpn-error-symbolic")
        # loading keeps whatever the user clicked
        return cls(checked, "Loading...", "Loading...", "network-shield-dots-symbolic")
