"""Command templates and builders for the netbird binary."""

from typing import FrozenSet, List, Optional
from dataclasses import dataclass

from .exceptions import ValidationError


@dataclass(frozen=True)
class Command:
    """Immutable argv builder with option-name validation."""
    base_cmd: List[str]
    _valid_options: Optional[FrozenSet[str]] = None

    def _validate_option(self, opt: str) -> None:
        """Validate option name if validation rules exist."""
        if self._valid_options is None:
            return
        opt_name = opt.lstrip('-')
        if opt_name not in self._valid_options:
            valid_opts = ", ".join(f"--{name}" for name in sorted(self._valid_options))
            raise ValidationError(
                f"Invalid option '{opt}' for command {self.base_cmd[0]}. "
                f"Valid options are: {valid_opts}"
            )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd or not self.base_cmd[0]:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, valid_options: Optional[FrozenSet[str]] = None) -> 'Command':
        """Create command from string with optional validation rules."""
        command = cls(cmd.split(), valid_options)
        command._validate_executable()
        return command

    def with_binary(self, binary: str) -> 'Command':
        """Replace the executable, keeping arguments and rules."""
        return Command([binary] + self.base_cmd[1:], self._valid_options)

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [arg], self._valid_options)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        return Command(self.base_cmd + list(args), self._valid_options)

    def with_flag(self, opt: str) -> 'Command':
        """Add bare --flag."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean)
        return Command(self.base_cmd + [f"--{opt_clean}"], self._valid_options)

    def with_option(self, opt: str, value: object) -> 'Command':
        """Add --option value."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean)
        return Command(self.base_cmd + [f"--{opt_clean}", str(value)], self._valid_options)

    def with_assignment(self, opt: str, value: str) -> 'Command':
        """Add --option=value as a single argument."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean)
        return Command(self.base_cmd + [f"--{opt_clean}={value}"], self._valid_options)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        return list(self.base_cmd)


GLOBAL_OPTIONS = frozenset({
    'management-url',
    'admin-url',
    'anonymize',
    'daemon-addr',
    'hostname',
    'log-file',
    'log-level',
    'preshared-key',
    'service',
    'setup-key',
    'setup-key-file',
})

UP_OPTIONS = frozenset({
    'allow-server-ssh',
    'block-inbound',
    'block-lan-access',
    'disable-auto-connect',
    'disable-client-routes',
    'disable-server-routes',
    'disable-dns',
    'dns-resolver-address',
    'dns-router-interval',
    'extra-dns-labels',
    'disable-firewall',
    'interface-name',
    'mtu',
    'wireguard-port',
    'external-ip-map',
    'extra-iface-blacklist',
    'network-monitor',
    'enable-lazy-connection',
    'enable-rosenpass',
    'rosenpass-permissive',
    'no-browser',
    'profile',
})

NETWORKS_OPTIONS = frozenset({
    'append',
})

NETBIRD = Command.from_str("netbird", valid_options=GLOBAL_OPTIONS | UP_OPTIONS | NETWORKS_OPTIONS)
