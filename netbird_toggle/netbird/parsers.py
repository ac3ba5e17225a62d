"""Parsers for the human-oriented text printed by the netbird binary."""

import re
from typing import List, Optional

from .models import ConnectionState, ConnectionStatus, NetworkEntry

BLOCK_SEPARATOR = re.compile(r"\n[ \t]*\n")
ID_PREFIXES = ("- ID:", "ID:")


def _value(line: str) -> str:
    """Everything after the first colon, trimmed."""
    return line.partition(":")[2].strip()


def parse_status(output: str) -> ConnectionStatus:
    """
    Parse the output of 'netbird status'.

    Lines are evaluated in order, so a 'Management: Connected' line that
    follows 'Daemon status: NeedsLogin' leaves the state CONNECTED.
    Unknown lines are ignored.

    Args:
        output: stdout of the status command

    Returns:
        ConnectionStatus, DISCONNECTED unless a line says otherwise
    """
    status = ConnectionStatus()

    for line in output.split("\n"):
        line = line.strip()

        if line.startswith("Daemon status:"):
            if _value(line) == "NeedsLogin":
                status.state = ConnectionState.NEEDS_LOGIN
        elif line.startswith("Management:"):
            status.management = _value(line)
            if status.management == "Connected":
                status.state = ConnectionState.CONNECTED
        elif line.startswith("Signal:"):
            status.signal = _value(line)
        elif line.startswith("NetBird IP:"):
            status.ip = _value(line)
        elif line.startswith("FQDN:"):
            status.fqdn = _value(line)

    return status


def _parse_network_block(block: str) -> Optional[NetworkEntry]:
    lines = [line.strip() for line in block.split("\n")]
    if not any(line.startswith(ID_PREFIXES) for line in lines):
        return None

    network_id = ""
    domains = None
    network = None
    selected = False
    resolved_ips = None

    for line in lines:
        if line.startswith(ID_PREFIXES):
            network_id = _value(line)
        elif line.startswith("Domains:"):
            domains = _value(line) or None
        elif line.startswith("Network:"):
            network = _value(line) or None
        elif line.startswith("Status:"):
            selected = _value(line) == "Selected"
        elif line.startswith("Resolved IPs:"):
            value = _value(line)
            resolved_ips = None if value in ("", "-") else value

    if not network_id:
        return None

    return NetworkEntry(
        id=network_id,
        domains=domains,
        network=network,
        selected=selected,
        resolved_ips=resolved_ips,
    )


def parse_networks(output: str) -> List[NetworkEntry]:
    """
    Parse the output of 'netbird networks list'.

    Records are separated by blank lines; blocks without an ID line
    (headers, banners) are dropped.
    """
    networks = []
    for block in BLOCK_SEPARATOR.split(output.replace("\r\n", "\n")):
        entry = _parse_network_block(block)
        if entry is not None:
            networks.append(entry)
    return networks
