import asyncio
import os
import tempfile

import pytest

# keep log files and the settings store out of the working tree
_scratch = tempfile.mkdtemp(prefix="netbird-toggle-tests-")
os.environ.setdefault("NETBIRD_TOGGLE_LOG_DIR", os.path.join(_scratch, "logs"))
os.environ.setdefault("NETBIRD_TOGGLE_CONFIG", os.path.join(_scratch, "netbird_toggle.conf"))

from netbird_toggle.netbird.client import NetbirdClient  # noqa: E402
from netbird_toggle.netbird.controller import ConnectionController  # noqa: E402
from netbird_toggle.netbird.models import CommandResult  # noqa: E402
from netbird_toggle.notify import NotificationManager  # noqa: E402
from netbird_toggle.settings import NetbirdSettings  # noqa: E402

SUBCOMMANDS = ("status", "up", "down", "networks")

CONNECTED_STATUS = (
    "OS: linux/amd64\n"
    "Daemon version: 0.36.0\n"
    "CLI version: 0.36.0\n"
    "Management: Connected\n"
    "Signal: Connected\n"
    "Relays: 3/3 Available\n"
    "Nameservers: 1/1 Available\n"
    "FQDN: laptop.netbird.cloud\n"
    "NetBird IP: 100.64.0.7/16\n"
    "Interface type: Kernel\n"
    "Peers count: 2/4 Connected\n"
)

DISCONNECTED_STATUS = (
    "Daemon status: Idle\n"
    "Management: Disconnected\n"
    "Signal: Disconnected\n"
)

NEEDS_LOGIN_STATUS = "Daemon status: NeedsLogin\n\nRun UP command to log in with SSO (interactive login):\n"

NETWORKS_OUTPUT = (
    "Available Networks:\n"
    "\n"
    "  - ID: corp\n"
    "    Domains: corp.local\n"
    "    Status: Selected\n"
    "    Resolved IPs: 10.0.0.5\n"
    "\n"
    "  - ID: lab\n"
    "    Network: 10.10.0.0/16\n"
    "    Status: Not Selected\n"
    "    Resolved IPs: -\n"
)


def subcommand(cmd):
    for arg in cmd:
        if arg in SUBCOMMANDS:
            return arg
    return None


class FakeExecutor:
    """Scripted stand-in for CommandExecutor, keyed by sub-command.

    A response may be a CommandResult, a list of them (consumed in order,
    the last one repeats) or a callable taking the argv.
    """

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []
        self.gates = {}
        self.cancelled = 0

    def gate(self, name):
        """Make the next calls of `name` wait until the returned event is set."""
        event = asyncio.Event()
        self.gates[name] = event
        return event

    async def execute(self, cmd):
        self.calls.append(list(cmd))
        name = subcommand(cmd)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        response = self.responses.get(name, CommandResult(success=True, output=""))
        if callable(response):
            return response(cmd)
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response

    def cancel(self):
        self.cancelled += 1

    def count(self, name):
        return sum(1 for cmd in self.calls if subcommand(cmd) == name)


@pytest.fixture
def settings(tmp_path):
    return NetbirdSettings(tmp_path / "netbird_toggle.conf")


@pytest.fixture
def make_controller(settings):
    created = []

    def factory(**responses):
        executor = FakeExecutor(**responses)
        controller = ConnectionController(NetbirdClient(executor), settings, NotificationManager())
        created.append(controller)
        return controller, executor

    yield factory
    for controller in created:
        controller.destroy()
