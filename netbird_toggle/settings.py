"""Flat key/value settings store backing the connection options."""

import configparser
import os
from pathlib import Path
from typing import Dict, Mapping, Union

from .logging_utility import logger
from .netbird.exceptions import SettingsError
from .netbird.models import ConnectionOptions

DEFAULT_CONFIG_FILE = "config/netbird_toggle.conf"
DEFAULT_BINARY = "netbird"
DEFAULT_REFRESH_INTERVAL = 3600

GENERAL_KEYS = (
    "management-url",
    "admin-url",
    "anonymize",
    "daemon-addr",
    "hostname",
    "log-file",
    "log-level",
    "preshared-key",
    "service",
    "setup-key",
    "setup-key-file",
)

UP_KEYS = (
    # connection
    "allow-server-ssh",
    "block-inbound",
    "block-lan-access",
    "disable-auto-connect",
    # routes
    "disable-client-routes",
    "disable-server-routes",
    # dns
    "disable-dns",
    "dns-resolver-address",
    "dns-router-interval",
    "extra-dns-labels",
    # firewall
    "disable-firewall",
    # advanced network
    "interface-name",
    "mtu",
    "wireguard-port",
    "external-ip-map",
    "extra-iface-blacklist",
    "network-monitor",
    # experimental
    "enable-lazy-connection",
    "enable-rosenpass",
    "rosenpass-permissive",
    # authentication
    "no-browser",
    "profile",
)

APP_KEYS = ("binary", "refresh-interval")

BOOLEAN_KEYS = frozenset({
    "anonymize",
    "allow-server-ssh",
    "block-inbound",
    "block-lan-access",
    "disable-auto-connect",
    "disable-client-routes",
    "disable-server-routes",
    "disable-dns",
    "disable-firewall",
    "network-monitor",
    "enable-lazy-connection",
    "enable-rosenpass",
    "rosenpass-permissive",
    "no-browser",
})

INTEGER_KEYS = frozenset({"mtu", "wireguard-port", "refresh-interval"})

SECTIONS = {
    "general": GENERAL_KEYS,
    "up": UP_KEYS,
    "app": APP_KEYS,
}

Value = Union[str, bool, int, None]


def _attribute(key: str) -> str:
    return key.replace("-", "_")


class NetbirdSettings:
    """
    INI-file settings with one section per option group.

    An empty or missing value means "unset": the matching flag is left off
    and netbird applies its own default.
    """

    def __init__(self, config_file: Union[str, Path, None] = None):
        self.config_file = Path(config_file or os.environ.get("NETBIRD_TOGGLE_CONFIG", DEFAULT_CONFIG_FILE))
        self.config = self._load_config(self.config_file)

    @staticmethod
    def _load_config(config_file: Path) -> configparser.ConfigParser:
        config = configparser.ConfigParser(interpolation=None)
        config.read(config_file)
        for section in SECTIONS:
            if not config.has_section(section):
                config.add_section(section)
        return config

    @staticmethod
    def _parse(config: configparser.ConfigParser, section: str, key: str) -> Value:
        raw = config.get(section, key, fallback="").strip()
        if not raw:
            return None
        if key in BOOLEAN_KEYS:
            try:
                return config.getboolean(section, key)
            except ValueError:
                raise SettingsError(f"[{section}] {key}: expected a boolean, got '{raw}'")
        if key in INTEGER_KEYS:
            try:
                return int(raw)
            except ValueError:
                raise SettingsError(f"[{section}] {key}: expected an integer, got '{raw}'")
        return raw

    def get(self, section: str, key: str) -> Value:
        return self._parse(self.config, section, key)

    def connection_options(self) -> ConnectionOptions:
        values = {_attribute(key): self.get("general", key) for key in GENERAL_KEYS}
        values.update({_attribute(key): self.get("up", key) for key in UP_KEYS})
        return ConnectionOptions(**values)

    @property
    def binary(self) -> str:
        return self.get("app", "binary") or DEFAULT_BINARY

    @property
    def refresh_interval(self) -> int:
        interval = self.get("app", "refresh-interval")
        return interval if interval and interval > 0 else DEFAULT_REFRESH_INTERVAL

    def as_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            section: {key: self.config.get(section, key, fallback="") for key in keys}
            for section, keys in SECTIONS.items()
        }

    def update(self, values: Mapping[str, Mapping[str, object]], save: bool = True) -> None:
        """
        Validate and apply new values, then write the file.

        Nothing is applied when any value is rejected.

        Raises:
            SettingsError: unknown section/key or a value of the wrong type
        """
        staged = configparser.ConfigParser(interpolation=None)
        staged.read_dict(self.config)

        for section, entries in values.items():
            if section not in SECTIONS:
                raise SettingsError(f"Unknown settings section '{section}'")
            for key, value in entries.items():
                if key not in SECTIONS[section]:
                    raise SettingsError(f"Unknown setting '{key}' in [{section}]")
                if value is None:
                    text = ""
                elif isinstance(value, bool):
                    text = "true" if value else "false"
                else:
                    text = str(value)
                staged.set(section, key, text)
                self._parse(staged, section, key)

        self.config = staged
        logger.info(f"Settings updated: {', '.join(sorted(values))}")
        if save:
            self.save()

    def save(self) -> None:
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            self.config.write(f)