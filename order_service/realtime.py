# order_service/realtime.py
import asyncio
import logging

from fastapi import WebSocket

from common.ids import new_session_id

logger = logging.getLogger(__name__)

NEW_ORDER = "newOrder"
ORDER_UPDATED = "orderUpdated"


class Broadcaster:
    """Connected admin dashboards for the lifetime of the process.

    All methods run on the event loop and never await between reading and
    changing ``sessions``, so no caller sees a half-updated set. Dashboards
    that are not connected when an event goes out never get it.
    """

    def __init__(self, send_timeout: float = 10.0):
        self.send_timeout = send_timeout
        self.sessions: dict[str, WebSocket] = {}

    def __len__(self):
        return len(self.sessions)

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        session_id = new_session_id()
        self.sessions[session_id] = websocket
        logger.info(f"Dashboard connected: {session_id} ({len(self.sessions)} open)")
        return session_id

    def disconnect(self, session_id: str) -> None:
        if self.sessions.pop(session_id, None) is not None:
            logger.info(f"Dashboard disconnected: {session_id} ({len(self.sessions)} open)")

    async def _send(self, session_id: str, websocket: WebSocket, message: dict) -> bool:
        try:
            await asyncio.wait_for(websocket.send_json(message), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Dropping dashboard {session_id}, send timed out after {self.send_timeout}s")
        except Exception as e:
            logger.warning(f"Dropping dashboard {session_id}, send failed: {e}")
        self.disconnect(session_id)
        return False

    async def broadcast(self, event: str, payload: dict) -> int:
        """Sends to every session at once; a slow dashboard never holds up the rest."""
        message = {"event": event, "data": payload}
        results = await asyncio.gather(
            *(self._send(session_id, websocket, message) for session_id, websocket in list(self.sessions.items()))
        )
        delivered = sum(results)
        logger.info(f"Broadcast {event} to {delivered} dashboard(s)")
        return delivered
