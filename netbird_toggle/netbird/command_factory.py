"""Factory for creating netbird commands."""

from typing import Optional, Sequence, Tuple

from .commands import NETBIRD, Command
from .models import ConnectionOptions, GeneralOptions, NetworkAction

FlagTable = Sequence[Tuple[str, str]]

# (attribute, flag) pairs; the order of each table is the order on the command line
GLOBAL_FLAGS: FlagTable = (
    ("management_url", "management-url"),
    ("admin_url", "admin-url"),
    ("anonymize", "anonymize"),
    ("daemon_addr", "daemon-addr"),
    ("hostname", "hostname"),
    ("log_file", "log-file"),
    ("log_level", "log-level"),
    ("preshared_key", "preshared-key"),
    ("service", "service"),
    ("setup_key", "setup-key"),
    ("setup_key_file", "setup-key-file"),
)

CONNECTION_FLAGS: FlagTable = (
    ("allow_server_ssh", "allow-server-ssh"),
    ("block_inbound", "block-inbound"),
    ("block_lan_access", "block-lan-access"),
    ("disable_auto_connect", "disable-auto-connect"),
)

ROUTE_FLAGS: FlagTable = (
    ("disable_client_routes", "disable-client-routes"),
    ("disable_server_routes", "disable-server-routes"),
)

DNS_FLAGS: FlagTable = (
    ("disable_dns", "disable-dns"),
    ("dns_resolver_address", "dns-resolver-address"),
    ("dns_router_interval", "dns-router-interval"),
    ("extra_dns_labels", "extra-dns-labels"),
)

NETWORK_FLAGS: FlagTable = (
    ("disable_firewall", "disable-firewall"),
    ("interface_name", "interface-name"),
    ("mtu", "mtu"),
    ("wireguard_port", "wireguard-port"),
    ("external_ip_map", "external-ip-map"),
    ("extra_iface_blacklist", "extra-iface-blacklist"),
)

EXPERIMENTAL_FLAGS: FlagTable = (
    ("enable_lazy_connection", "enable-lazy-connection"),
    ("enable_rosenpass", "enable-rosenpass"),
    ("rosenpass_permissive", "rosenpass-permissive"),
)

AUTH_FLAGS: FlagTable = (
    ("no_browser", "no-browser"),
    ("profile", "profile"),
)

UP_FLAG_GROUPS = (CONNECTION_FLAGS, ROUTE_FLAGS, DNS_FLAGS, NETWORK_FLAGS)


def _add_flag(cmd: Command, flag: str, value: object) -> Command:
    """Append one flag if its value is set; unset and empty values are skipped."""
    if value is None:
        return cmd
    if isinstance(value, bool):
        return cmd.with_flag(flag) if value else cmd
    if isinstance(value, str):
        value = value.strip()
        return cmd.with_option(flag, value) if value else cmd
    if value:
        return cmd.with_option(flag, value)
    return cmd


def _add_flags(cmd: Command, options: object, table: FlagTable) -> Command:
    for attr, flag in table:
        cmd = _add_flag(cmd, flag, getattr(options, attr, None))
    return cmd


class NetbirdCommandFactory:
    """Factory for creating netbird commands.

    Every method is pure: the same options always give the same argv, and
    nothing is validated against the daemon.
    """

    @staticmethod
    def _base(general: Optional[GeneralOptions], binary: str = "netbird") -> Command:
        cmd = NETBIRD if binary == "netbird" else NETBIRD.with_binary(binary)
        return _add_flags(cmd, general or GeneralOptions(), GLOBAL_FLAGS)

    @staticmethod
    def status(general: Optional[GeneralOptions] = None, binary: str = "netbird") -> list[str]:
        """Create status command."""
        return NetbirdCommandFactory._base(general, binary).with_arg("status").build()

    @staticmethod
    def up(options: Optional[ConnectionOptions] = None, binary: str = "netbird") -> list[str]:
        """Create up command with every set up-option, grouped by category."""
        options = options or ConnectionOptions()
        cmd = NetbirdCommandFactory._base(options, binary).with_arg("up")

        for table in UP_FLAG_GROUPS:
            cmd = _add_flags(cmd, options, table)

        # tri-state: unset is omitted, explicit false is passed through
        network_monitor = getattr(options, "network_monitor", None)
        if network_monitor is not None:
            cmd = cmd.with_assignment("network-monitor", "true" if network_monitor else "false")

        cmd = _add_flags(cmd, options, EXPERIMENTAL_FLAGS)
        cmd = _add_flags(cmd, options, AUTH_FLAGS)
        return cmd.build()

    @staticmethod
    def down(general: Optional[GeneralOptions] = None, binary: str = "netbird") -> list[str]:
        """Create down command."""
        return NetbirdCommandFactory._base(general, binary).with_arg("down").build()

    @staticmethod
    def networks_list(general: Optional[GeneralOptions] = None, binary: str = "netbird") -> list[str]:
        """Create networks list command."""
        return NetbirdCommandFactory._base(general, binary).with_args("networks", "list").build()

    @staticmethod
    def networks_toggle(
            general: Optional[GeneralOptions],
            action: NetworkAction,
            network_id: str,
            binary: str = "netbird",
    ) -> list[str]:
        """Create networks select/deselect command.

        Selecting appends to the current selection instead of replacing it.
        """
        cmd = NetbirdCommandFactory._base(general, binary).with_args("networks", action.value)
        if action is NetworkAction.SELECT:
            cmd = cmd.with_flag("append")
        return cmd.with_arg(network_id).build()
