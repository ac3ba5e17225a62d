"""Connection controller: toggle state machine on top of NetbirdClient."""

import asyncio
import dataclasses
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from .client import NetbirdClient
from .exceptions import SettingsError
from .models import (
    CommandResult,
    ConnectionOptions,
    ConnectionState,
    ConnectionStatus,
    NetworkEntry,
    NetworkListResult,
    NetworkToggle,
    SelectionResult,
    StatusView,
    ToggleIntent,
    ToggleSession,
)
from ..events import Signal
from ..logging_utility import logger
from ..notify import NotificationManager
from ..settings import DEFAULT_REFRESH_INTERVAL, NetbirdSettings

LOGIN_URL = re.compile(r"https?://\S+")
SYSTEM_SOURCE = "System"
BUSY_MESSAGE = "Another operation is in progress"
UNKNOWN_ERROR = "Unknown error"

DISCONNECT_SUPPRESSION_SECONDS = 5


class HostNotification(Protocol):
    """A notification owned by the host's message tray."""
    title: Optional[str]

    def destroy(self) -> None: ...


@dataclass(frozen=True)
class SystemNotificationEvent:
    source: str
    notification: HostNotification


def is_network_error(title: str) -> bool:
    """True for the titles the network stack uses when a tunnel goes away."""
    title = title.lower()
    return (
        ("connection" in title and "failed" in title)
        or ("network" in title and "failed" in title)
        or "disconnected" in title
    )


class ConnectionController:
    """
    Reconciles the UI toggle with netbird.

    Public coroutines never raise: failures come back as results and
    error notifications.
    """

    def __init__(self, client: NetbirdClient, settings: NetbirdSettings,
                 notifications: NotificationManager):
        self.client = client
        self.settings = settings
        self.notifications = notifications
        self.session = ToggleSession()
        self.status = ConnectionStatus(state=ConnectionState.LOADING)
        self.networks: List[NetworkEntry] = []
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._periodic: Optional[asyncio.Task] = None
        self._subscriptions: List[Tuple[Signal, int]] = []
        self._destroyed = False

    def _options(self, options: Optional[ConnectionOptions]) -> ConnectionOptions:
        return options if options is not None else self.settings.connection_options()

    # timers

    def _schedule(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel_timer(name)
        self._timers[name] = asyncio.get_running_loop().call_later(delay, callback)

    def _cancel_timer(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _reset_suppression(self) -> None:
        if self.session.suppress_next_network_error:
            logger.info("[NetBird] Resetting suppression flag")
        self.session.suppress_next_network_error = False

    # queries

    async def get_status(self, options: Optional[ConnectionOptions] = None) -> ConnectionStatus:
        try:
            return await self.client.get_status(self._options(options))
        except Exception as e:
            logger.error(f"[NetBird] Status check failed: {e}")
            return ConnectionStatus.failed(str(e))

    async def _resync(self, options: Optional[ConnectionOptions] = None) -> ConnectionStatus:
        status = await self.get_status(options)
        self.status = status
        self.session.mirror(status)
        return status

    async def refresh_status(self) -> Optional[ConnectionStatus]:
        """Poll the daemon; skipped while a write operation is outstanding."""
        if self._destroyed or self.session.busy:
            logger.debug("[NetBird] Skipping status refresh")
            return None
        status = await self.get_status()
        if self.session.busy:
            # a write started while we were waiting; its own resync wins
            return status
        self.status = status
        self.session.mirror(status)
        return status

    async def list_networks(self, options: Optional[ConnectionOptions] = None) -> NetworkListResult:
        try:
            return await self.client.list_networks(self._options(options))
        except Exception as e:
            logger.error(f"[NetBird] Failed to update networks: {e}")
            return NetworkListResult(success=False, error=str(e))

    async def refresh_networks(self) -> Optional[NetworkListResult]:
        if self._destroyed or self.session.busy:
            logger.debug("[NetBird] Skipping networks refresh")
            return None
        result = await self.list_networks()
        if result.success:
            self.networks = list(result.networks)
        return result

    # connect / disconnect

    async def _run_operation(
            self,
            requested: bool,
            handler: Callable[[ConnectionOptions], Awaitable[CommandResult]],
            options: Optional[ConnectionOptions],
    ) -> CommandResult:
        if self.session.operation_in_progress:
            # the click is dropped; the intent still belongs to the running operation
            logger.info(f"[NetBird] {BUSY_MESSAGE}, reverting toggle")
            self.session.checked = not requested
            return CommandResult(success=False, output="", error=BUSY_MESSAGE)

        self.session.begin(requested)
        try:
            return await handler(self._options(options))
        except Exception as e:
            logger.error(f"[NetBird] Operation failed: {e}")
            if not requested:
                self.session.suppress_next_network_error = False
            self.notifications.notify_error(str(e))
            return CommandResult(success=False, output="", error=str(e))
        finally:
            # always resynchronise with what the daemon reports
            try:
                await self._resync(options)
            finally:
                self.session.operation_in_progress = False

    async def _handle_connect(self, options: ConnectionOptions) -> CommandResult:
        status = await self.client.get_status(options)

        if status.state is ConnectionState.NEEDS_LOGIN:
            result = await self.client.connect(options)
            if result.success:
                match = LOGIN_URL.search(result.output)
                if match:
                    self.notifications.notify_warning(
                        "NetBird Login Required",
                        f"Please login in your browser:\n{match.group(0)}",
                    )
                elif "Connected" in result.output:
                    self.notifications.notify_success("NetBird", "Connected to NetBird")
            else:
                self.notifications.notify_error(f"Failed to connect: {result.error or UNKNOWN_ERROR}")
            return result

        result = await self.client.connect(options)
        if result.success:
            self.notifications.notify_success("NetBird", "Connected to NetBird")
        else:
            self.notifications.notify_error(f"Failed to connect: {result.error or UNKNOWN_ERROR}")
        return result

    async def _handle_disconnect(self, options: ConnectionOptions) -> CommandResult:
        # tearing the tunnel down makes the network stack report a failure
        self._cancel_timer("disconnect-suppression")
        self.session.suppress_next_network_error = True

        result = await self.client.disconnect(options)
        if result.success:
            self.notifications.notify_success("NetBird", "Disconnected from NetBird")
            self._schedule("disconnect-suppression", DISCONNECT_SUPPRESSION_SECONDS,
                           self._reset_suppression)
        else:
            self.session.suppress_next_network_error = False
            self.notifications.notify_error(f"Failed to disconnect: {result.error or UNKNOWN_ERROR}")
        return result

    async def connect(self, options: Optional[ConnectionOptions] = None) -> CommandResult:
        """Bring the tunnel up, handling the login flow."""
        return await self._run_operation(True, self._handle_connect, options)

    async def disconnect(self, options: Optional[ConnectionOptions] = None) -> CommandResult:
        """Bring the tunnel down and open the suppression window."""
        return await self._run_operation(False, self._handle_disconnect, options)

    async def toggle(self, checked: bool) -> CommandResult:
        """Handle a click that moved the toggle to `checked`."""
        if checked:
            return await self.connect()
        return await self.disconnect()

    # networks

    async def _network_write(self, write: Callable[..., Awaitable[SelectionResult]],
                             network_id: str,
                             options: Optional[ConnectionOptions]) -> SelectionResult:
        self.session.network_writes += 1
        try:
            return await write(network_id, self._options(options))
        except Exception as e:
            logger.error(f"[NetBird] Network update failed: {e}")
            return SelectionResult(success=False, error=str(e))
        finally:
            self.session.network_writes -= 1

    async def select_network(self, network_id: str,
                             options: Optional[ConnectionOptions] = None) -> SelectionResult:
        return await self._network_write(self.client.select_network, network_id, options)

    async def deselect_network(self, network_id: str,
                               options: Optional[ConnectionOptions] = None) -> SelectionResult:
        return await self._network_write(self.client.deselect_network, network_id, options)

    async def toggle_network(self, network_id: str, selected: bool) -> NetworkToggle:
        """Apply an optimistic network switch, rolling it back on failure."""
        if selected:
            result = await self.select_network(network_id)
        else:
            result = await self.deselect_network(network_id)

        if result.success:
            logger.info(f'[NetBird] Network "{network_id}" {"selected" if selected else "deselected"} successfully')
            self.networks = [
                dataclasses.replace(entry, selected=selected) if entry.id == network_id else entry
                for entry in self.networks
            ]
            return NetworkToggle(network_id, selected, selected, ToggleIntent.CONFIRMED)

        error = result.error or UNKNOWN_ERROR
        self.notifications.notify_error(
            f'Failed to {"select" if selected else "deselect"} network "{network_id}": {error}'
        )
        return NetworkToggle(network_id, selected, not selected, ToggleIntent.REVERTED, error)

    # notification suppression

    def handle_system_notification(self, notification: HostNotification,
                                   source_title: str = SYSTEM_SOURCE) -> bool:
        """
        Decide whether a host notification is a known artifact of our own disconnect.

        Must be called from the event loop. Matching notifications are destroyed
        on the next loop iteration, after the host has finished delivering them.
        Suppressing consumes the flag, which closes the window early; only one
        notification is swallowed per disconnect.

        Returns:
            True if the notification will be suppressed
        """
        title = getattr(notification, "title", None) or "No Title"
        logger.info(f"[NetBird] System notification added: {title}")

        if source_title != SYSTEM_SOURCE:
            return False
        if not self.session.suppress_next_network_error or not is_network_error(title):
            return False

        logger.info("[NetBird] Suppressing network error notification from disconnect")
        self.session.suppress_next_network_error = False
        asyncio.get_running_loop().call_soon(self._destroy_notification, notification)
        return True

    def _destroy_notification(self, notification: HostNotification) -> None:
        if self._destroyed:
            return
        try:
            if not getattr(notification, "destroyed", False):
                notification.destroy()
                logger.info("[NetBird] Successfully destroyed notification")
        except Exception as e:
            logger.warning(f"[NetBird] Error destroying notification: {e}")

    def watch_notifications(self, signal: "Signal[SystemNotificationEvent]") -> None:
        handler_id = signal.connect(
            lambda event: self.handle_system_notification(event.notification, event.source)
        )
        self._subscriptions.append((signal, handler_id))

    # lifecycle

    def view(self) -> StatusView:
        if self.session.state is ConnectionState.LOADING:
            loading = ConnectionStatus(state=ConnectionState.LOADING)
            return StatusView.for_status(loading, self.session.checked)
        return StatusView.for_status(self.status)

    async def start(self) -> None:
        """Show loading, then load the initial status and networks."""
        self.session.state = ConnectionState.LOADING
        self.session.checked = False
        await self.refresh_status()
        await self.refresh_networks()

    async def _periodic_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.refresh_status()

    def start_periodic_updates(self, interval: Optional[float] = None) -> None:
        self.stop_periodic_updates()
        if interval is None:
            try:
                interval = self.settings.refresh_interval
            except SettingsError as e:
                logger.warning(f"[NetBird] {e}, using default refresh interval")
                interval = DEFAULT_REFRESH_INTERVAL
        self._periodic = asyncio.get_running_loop().create_task(self._periodic_loop(interval))

    def stop_periodic_updates(self) -> None:
        if self._periodic is not None:
            self._periodic.cancel()
            self._periodic = None

    def cancel(self) -> None:
        self.client.cancel()

    def destroy(self) -> None:
        """Cancel timers, subscriptions and the in-flight command."""
        self._destroyed = True
        self.stop_periodic_updates()
        for name in list(self._timers):
            self._cancel_timer(name)
        for signal, handler_id in self._subscriptions:
            signal.disconnect(handler_id)
        self._subscriptions.clear()
        self.client.destroy()
