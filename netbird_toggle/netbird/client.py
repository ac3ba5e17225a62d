"""NetBird command/control client."""

from typing import List, Optional

from .command_factory import NetbirdCommandFactory
from .models import (
    CommandResult,
    ConnectionOptions,
    ConnectionStatus,
    GeneralOptions,
    NetworkAction,
    NetworkListResult,
    SelectionResult,
)
from .parsers import parse_networks, parse_status
from .utils import CommandExecutor, format_command
from ..logging_utility import logger


class NetbirdClient:
    """Builds, runs and parses netbird commands. Never raises for command failures."""

    def __init__(self, executor: Optional[CommandExecutor] = None, binary: str = "netbird"):
        self.executor = executor or CommandExecutor()
        self.binary = binary

    async def _run(self, what: str, cmd: List[str]) -> CommandResult:
        logger.info(f"[NetBird] Executing {what}: {format_command(cmd)}")
        result = await self.executor.execute(cmd)
        if result.success:
            logger.info(f"[NetBird] {what.capitalize()} completed successfully")
        else:
            logger.info(f"[NetBird] {what.capitalize()} failed: {result.error or 'Unknown error'}")
        return result

    async def get_status(self, options: Optional[GeneralOptions] = None) -> ConnectionStatus:
        """
        Get the current status of NetBird.

        Args:
            options: Global flags for the status command

        Returns:
            Parsed status, or an ERROR status carrying the executor's message
        """
        result = await self._run("status check", NetbirdCommandFactory.status(options, self.binary))
        if not result.success:
            return ConnectionStatus.failed(result.error)
        return parse_status(result.output)

    async def connect(self, options: Optional[ConnectionOptions] = None) -> CommandResult:
        """Run 'netbird up'; a login URL, if any, is in the output."""
        return await self._run("connect command", NetbirdCommandFactory.up(options, self.binary))

    async def disconnect(self, options: Optional[GeneralOptions] = None) -> CommandResult:
        """Run 'netbird down'."""
        return await self._run("disconnect command", NetbirdCommandFactory.down(options, self.binary))

    async def list_networks(self, options: Optional[GeneralOptions] = None) -> NetworkListResult:
        result = await self._run("networks list", NetbirdCommandFactory.networks_list(options, self.binary))
        if not result.success:
            return NetworkListResult(success=False, error=result.error or "Failed to list networks")
        return NetworkListResult(success=True, networks=parse_networks(result.output))

    async def _toggle_network(self, action: NetworkAction, network_id: str,
                              options: Optional[GeneralOptions]) -> SelectionResult:
        cmd = NetbirdCommandFactory.networks_toggle(options, action, network_id, self.binary)
        result = await self._run(f"network {action.value}", cmd)
        return SelectionResult(success=result.success, error=None if result.success else result.error)

    async def select_network(self, network_id: str,
                             options: Optional[GeneralOptions] = None) -> SelectionResult:
        return await self._toggle_network(NetworkAction.SELECT, network_id, options)

    async def deselect_network(self, network_id: str,
                               options: Optional[GeneralOptions] = None) -> SelectionResult:
        return await self._toggle_network(NetworkAction.DESELECT, network_id, options)

    def cancel(self) -> None:
        """Cancel the ongoing command, if any."""
        self.executor.cancel()

    def destroy(self) -> None:
        self.cancel()
