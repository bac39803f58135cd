"""Change notification sink.

The core calls these hooks after every committed change and for every record
loaded at startup. ChangeNotifier only logs; the host plugs in
WebSocketBroadcaster to push updates to connected browsers.
"""
import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

from field_scheduler.models.blackout import Blackout
from field_scheduler.models.holiday import Holiday
from field_scheduler.models.reservation import Reservation
from field_scheduler.models.site_event import SiteEvent

logger = logging.getLogger(__name__)


class ChangeNotifier:
    async def notify_reservation_changed(self, reservation: Reservation) -> None:
        logger.debug(
            "Reservation changed - %s - %s - %s - %s",
            reservation.id, reservation.date, reservation.slot, reservation.team,
        )

    async def notify_blackout_changed(self, blackout: Blackout) -> None:
        logger.debug("Blackout changed: %s %s", blackout.date, blackout.slot)

    async def notify_site_event_changed(self, event: SiteEvent) -> None:
        logger.debug("Site event changed: %s", event.date)

    async def notify_holiday_changed(self, holiday: Holiday) -> None:
        logger.debug("Holiday changed: %s (%s)", holiday.name, holiday.id)


class WebSocketBroadcaster(ChangeNotifier):
    """Fan every change out to all connected WebSocket clients."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def connect(self, ws: WebSocket) -> None:
        self._clients.add(ws)

    def disconnect(self, ws: WebSocket) -> None:
        self._clients.discard(ws)

    async def broadcast(self, message: dict[str, Any]) -> None:
        text = json.dumps(message)
        clients = list(self._clients)
        results = await asyncio.gather(*(ws.send_text(text) for ws in clients), return_exceptions=True)
        for ws, result in zip(clients, results):
            if isinstance(result, Exception):
                logger.warning("Dropping client after send failure: %s", result)
                self.disconnect(ws)

    async def notify_reservation_changed(self, reservation: Reservation) -> None:
        await self.broadcast({"reservation": reservation.to_json()})

    async def notify_blackout_changed(self, blackout: Blackout) -> None:
        await self.broadcast({"blackout": blackout.to_json()})

    async def notify_site_event_changed(self, event: SiteEvent) -> None:
        await self.broadcast({"siteEvent": event.to_json()})

    async def notify_holiday_changed(self, holiday: Holiday) -> None:
        await self.broadcast({"holiday": holiday.to_json()})
