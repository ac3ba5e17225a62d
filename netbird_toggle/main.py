import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from .events import Signal
from .logging_utility import logger
from .netbird.client import NetbirdClient
from .netbird.controller import ConnectionController, SystemNotificationEvent
from .netbird.exceptions import SettingsError
from .notify import NotificationManager
from .settings import NetbirdSettings


class HostedNotification:
    """A system notification reported by the desktop host."""

    def __init__(self, source: str, title: Optional[str]):
        self.source = source
        self.title = title
        self.destroyed = False

    def destroy(self) -> None:
        self.destroyed = True


def create_controller(settings: NetbirdSettings) -> ConnectionController:
    client = NetbirdClient(binary=settings.binary)
    return ConnectionController(client, settings, NotificationManager())


settings = NetbirdSettings()
controller = create_controller(settings)
notification_added: Signal[SystemNotificationEvent] = Signal("notification-added")
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("Starting NetBird toggle")
    controller.watch_notifications(notification_added)
    await controller.start()
    controller.start_periodic_updates()
    yield
    logger.info("Stopping NetBird toggle")
    controller.destroy()


app = FastAPI(title="NetBird Toggle", lifespan=lifespan)


class ToggleRequest(BaseModel):
    checked: bool


class SystemNotificationRequest(BaseModel):
    source: str = "System"
    title: Optional[str] = None


def _status_payload() -> dict:
    status = controller.status
    view = controller.view()
    return {
        "state": controller.session.state.value,
        "checked": view.checked,
        "intent": controller.session.intent.value,
        "subtitle": view.subtitle,
        "label": view.label,
        "icon": view.icon,
        "management": status.management,
        "signal": status.signal,
        "ip": status.ip,
        "fqdn": status.fqdn,
        "error": status.error_message,
    }


def _result_payload(result) -> dict:
    return {"success": result.success, "output": result.output, "error": result.error}


def _network_payload(entry) -> dict:
    return {
        "id": entry.id,
        "label": entry.label,
        "domains": entry.domains,
        "network": entry.network,
        "selected": entry.selected,
        "resolved_ips": entry.resolved_ips,
    }


def _notification_payload(notification) -> dict:
    return {
        "level": notification.level.name.lower(),
        "title": notification.title,
        "body": notification.body,
        "created": notification.created.isoformat(),
    }


@app.get("/")
async def home(request: Request):
    """Panel with the toggle, the networks and recent notifications"""
    try:
        return templates.TemplateResponse(request, "index.html", {
            "status": _status_payload(),
            "networks": [_network_payload(entry) for entry in controller.networks],
            "notifications": [_notification_payload(n) for n in controller.notifications.recent(10)],
        })
    except Exception as e:
        logger.error(f"Error in home route: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/status")
async def get_status():
    """Refresh and return the connection status"""
    await controller.refresh_status()
    return _status_payload()


@app.post("/toggle")
async def toggle(request: ToggleRequest):
    """User moved the toggle"""
    result = await controller.toggle(request.checked)
    return {"result": _result_payload(result), "status": _status_payload()}


@app.post("/connect")
async def connect():
    result = await controller.connect()
    return {"result": _result_payload(result), "status": _status_payload()}


@app.post("/disconnect")
async def disconnect():
    result = await controller.disconnect()
    return {"result": _result_payload(result), "status": _status_payload()}


@app.post("/cancel")
async def cancel():
    controller.cancel()
    return {"status": "cancelled"}


@app.get("/networks")
async def list_networks():
    """Refresh and return the networks list"""
    result = await controller.refresh_networks()
    if result is not None and not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Failed to load networks")
    return {"networks": [_network_payload(entry) for entry in controller.networks]}


async def _toggle_network(network_id: str, selected: bool) -> dict:
    outcome = await controller.toggle_network(network_id, selected)
    return {
        "id": outcome.network_id,
        "requested": outcome.requested,
        "selected": outcome.selected,
        "intent": outcome.intent.value,
        "error": outcome.error,
    }


@app.post("/networks/{network_id}/select")
async def select_network(network_id: str):
    return await _toggle_network(network_id, True)


@app.post("/networks/{network_id}/deselect")
async def deselect_network(network_id: str):
    return await _toggle_network(network_id, False)


@app.post("/notifications")
async def report_notification(request: SystemNotificationRequest):
    """Host reports a system notification; answer whether it gets suppressed"""
    notification = HostedNotification(request.source, request.title)
    notification_added.emit(SystemNotificationEvent(request.source, notification))
    # suppressed notifications are destroyed on the next loop iteration
    await asyncio.sleep(0)
    return {"suppressed": notification.destroyed}


@app.get("/notifications")
async def recent_notifications(limit: int = 20):
    return {"notifications": [_notification_payload(n) for n in controller.notifications.recent(limit)]}


@app.get("/settings")
async def get_settings():
    return settings.as_dict()


@app.put("/settings")
async def update_settings(values: Dict[str, Dict[str, Any]]):
    """Validate, store and apply new settings"""
    try:
        settings.update(values)
    except SettingsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        logger.error(f"Error saving settings: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save settings")
    controller.client.binary = settings.binary
    return settings.as_dict()
