"""Tests for status and networks-list parsing."""

from netbird_toggle.netbird.models import ConnectionState, NetworkEntry
from netbird_toggle.netbird.parsers import parse_networks, parse_status

from conftest import CONNECTED_STATUS, NETWORKS_OUTPUT


def test_connected_status():
    status = parse_status("Management: Connected\nNetBird IP: 100.64.0.1\nFQDN: host.netbird\n")

    assert status.state is ConnectionState.CONNECTED
    assert status.ip == "100.64.0.1"
    assert status.fqdn == "host.netbird"
    assert status.management == "Connected"
    assert status.signal == ""
    assert status.error_message is None


def test_full_status_output_ignores_unknown_lines():
    status = parse_status(CONNECTED_STATUS)

    assert status.state is ConnectionState.CONNECTED
    assert status.signal == "Connected"
    assert status.fqdn == "laptop.netbird.cloud"
    assert status.ip == "100.64.0.7/16"


def test_needs_login():
    status = parse_status("Daemon status: NeedsLogin\nManagement: Disconnected\n")
    assert status.state is ConnectionState.NEEDS_LOGIN


def test_lines_are_evaluated_in_order():
    status = parse_status("Daemon status: NeedsLogin\nManagement: Connected\n")
    assert status.state is ConnectionState.CONNECTED

    status = parse_status("Management: Connected\nDaemon status: NeedsLogin\n")
    assert status.state is ConnectionState.NEEDS_LOGIN


def test_disconnected_and_garbage():
    assert parse_status("Management: Disconnected\n").state is ConnectionState.DISCONNECTED
    status = parse_status("something unexpected\n\n")
    assert status.state is ConnectionState.DISCONNECTED
    assert (status.management, status.signal, status.ip, status.fqdn) == ("", "", "", "")


def test_value_keeps_text_after_first_colon():
    status = parse_status("  Management: Connected to https://api.netbird.io:443  \n")
    assert status.management == "Connected to https://api.netbird.io:443"
    assert status.state is ConnectionState.DISCONNECTED


def test_labels_are_case_sensitive():
    assert parse_status("management: Connected\n").state is ConnectionState.DISCONNECTED


def test_parse_status_is_pure():
    assert parse_status(CONNECTED_STATUS) == parse_status(CONNECTED_STATUS)


def test_networks_header_block_is_dropped():
    networks = parse_networks("Available Networks:\n\n- ID: net1\n  Domains: corp.local\n  Status: Selected\n")

    assert networks == [NetworkEntry(id="net1", domains="corp.local", selected=True)]


def test_networks_resolved_ips():
    networks = parse_networks(NETWORKS_OUTPUT)

    assert [n.id for n in networks] == ["corp", "lab"]
    corp, lab = networks
    assert corp.selected is True
    assert corp.resolved_ips == "10.0.0.5"
    assert lab.selected is False
    assert lab.network == "10.10.0.0/16"
    assert lab.resolved_ips is None


def test_networks_blocks_split_on_whitespace_only_lines():
    output = "ID: a\nStatus: Selected\n   \nID: b\nStatus: Deselected\n"
    assert [(n.id, n.selected) for n in parse_networks(output)] == [("a", True), ("b", False)]


def test_networks_block_with_empty_id_is_dropped():
    assert parse_networks("- ID:\n  Domains: example.com\n") == []


def test_networks_without_records():
    assert parse_networks("") == []
    assert parse_networks("No networks available.\n") == []


def test_network_label():
    assert NetworkEntry(id="corp", domains="corp.local").label == "corp  (corp.local)"
    assert NetworkEntry(id="lab", network="10.10.0.0/16").label == "lab  (10.10.0.0/16)"
    assert NetworkEntry(id="plain").label == "plain"
