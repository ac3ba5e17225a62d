"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from netbird_toggle import main
from netbird_toggle.events import Signal
from netbird_toggle.netbird.models import CommandResult

from conftest import CONNECTED_STATUS, DISCONNECTED_STATUS, NETWORKS_OUTPUT


class Daemon:
    """Just enough daemon state for status to follow up/down."""

    def __init__(self, connected=True):
        self.connected = connected

    def status(self, cmd):
        return CommandResult(True, CONNECTED_STATUS if self.connected else DISCONNECTED_STATUS)

    def up(self, cmd):
        self.connected = True
        return CommandResult(True, "Connected")

    def down(self, cmd):
        self.connected = False
        return CommandResult(True, "Disconnected")


@pytest.fixture
def daemon():
    return Daemon()


@pytest.fixture
def app_controller(monkeypatch, settings, make_controller, daemon):
    controller, executor = make_controller(
        status=daemon.status,
        up=daemon.up,
        down=daemon.down,
        networks=CommandResult(True, NETWORKS_OUTPUT),
    )
    monkeypatch.setattr(main, "settings", settings)
    monkeypatch.setattr(main, "controller", controller)
    monkeypatch.setattr(main, "notification_added", Signal("notification-added"))
    return controller, executor


@pytest.fixture
def client(app_controller):
    with TestClient(main.app) as test_client:
        yield test_client


def test_status_after_startup(client):
    response = client.get("/status")

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "connected"
    assert data["checked"] is True
    assert data["subtitle"] == "Connected"
    assert data["fqdn"] == "laptop.netbird.cloud"


def test_home_renders(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "NetBird" in response.text
    assert "corp" in response.text


def test_toggle_off_and_on(client, daemon):
    response = client.post("/toggle", json={"checked": False})

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["success"] is True
    assert body["status"]["state"] == "disconnected"
    assert body["status"]["checked"] is False
    assert daemon.connected is False

    body = client.post("/toggle", json={"checked": True}).json()
    assert body["status"]["state"] == "connected"
    assert daemon.connected is True


def test_network_error_after_disconnect_is_suppressed(client):
    client.post("/disconnect")

    first = client.post("/notifications", json={"source": "System", "title": "Connection failed"})
    second = client.post("/notifications", json={"source": "System", "title": "Connection failed"})

    assert first.json() == {"suppressed": True}
    assert second.json() == {"suppressed": False}


def test_notification_without_disconnect_is_kept(client):
    response = client.post("/notifications", json={"title": "Network failed"})
    assert response.json() == {"suppressed": False}


def test_recent_notifications(client):
    client.post("/disconnect")

    notifications = client.get("/notifications", params={"limit": 1}).json()["notifications"]

    assert len(notifications) == 1
    assert notifications[0]["body"] == "Disconnected from NetBird"
    assert notifications[0]["level"] == "success"


def test_networks(client):
    networks = client.get("/networks").json()["networks"]

    assert [(n["id"], n["selected"]) for n in networks] == [("corp", True), ("lab", False)]
    assert networks[1]["label"] == "lab  (10.10.0.0/16)"
    assert networks[1]["resolved_ips"] is None


def test_networks_failure_is_a_bad_gateway(client, app_controller):
    _, executor = app_controller
    executor.responses["networks"] = CommandResult(False, "", "daemon not running")

    response = client.get("/networks")

    assert response.status_code == 502
    assert response.json()["detail"] == "daemon not running"


def test_select_network(client, app_controller):
    controller, executor = app_controller

    body = client.post("/networks/lab/select").json()

    assert body == {"id": "lab", "requested": True, "selected": True, "intent": "confirmed", "error": None}
    assert executor.calls[-1][-3:] == ["select", "--append", "lab"]
    assert [n.selected for n in controller.networks] == [True, True]


def test_deselect_network_failure_rolls_back(client, app_controller):
    _, executor = app_controller
    executor.responses["networks"] = CommandResult(False, "", "no such network")

    body = client.post("/networks/corp/deselect").json()

    assert body["selected"] is True
    assert body["intent"] == "reverted"
    assert body["error"] == "no such network"


def test_settings_round_trip(client, app_controller):
    controller, _ = app_controller

    response = client.put("/settings", json={"app": {"binary": "/opt/netbird/bin/netbird"},
                                             "up": {"no-browser": True}})

    assert response.status_code == 200
    assert response.json()["up"]["no-browser"] == "true"
    assert controller.client.binary == "/opt/netbird/bin/netbird"
    assert client.get("/settings").json()["app"]["binary"] == "/opt/netbird/bin/netbird"


def test_invalid_settings_are_rejected(client):
    response = client.put("/settings", json={"up": {"mtu": "big"}})

    assert response.status_code == 400
    assert "mtu" in response.json()["detail"]
    assert client.get("/settings").json()["up"]["mtu"] == ""
