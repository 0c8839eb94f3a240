"""
Realtime notification fan-out.

The lifecycle engine builds a NotificationEvent after a committed mutation
and hands it to a NotificationPort together with a channel key. Delivery is
at-most-once: connections that are gone simply miss the event, and a
failing publish never fails the mutation that triggered it.
"""
import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, Set, runtime_checkable

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    NEW_APPLICATION = "new-application"
    APPLICATION_UPDATED = "application-updated"
    APPLICATION_WITHDRAWN = "application-withdrawn"
    JOB_UPDATED = "job-updated"


@dataclass(frozen=True)
class NotificationEvent:
    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        """Wire format sent to websocket clients."""
        return {"event": self.kind.value, "data": self.payload}


def user_channel(role: str, user_id) -> str:
    """Channel key of a student or recruiter, e.g. `student-<uuid>`."""
    return f"{role}-{user_id}"


def field_channel(field_name: str) -> str:
    """Channel students browsing a field can join for job-updated hints."""
    return f"field-{field_name}"


@runtime_checkable
class NotificationPort(Protocol):
    """Anything that can deliver an event to a channel."""

    async def publish(self, event: NotificationEvent, channel_key: str) -> None:
        """Deliver the event to every subscriber of channel_key."""


class ConnectionManager(NotificationPort):
    """In-process registry of websocket connections grouped by channel."""

    def __init__(self) -> None:
        self._channels: Dict[str, Set[WebSocket]] = defaultdict(set)

    def join(self, websocket: WebSocket, channel_key: str) -> None:
        self._channels[channel_key].add(websocket)
        logger.debug(f"Connection joined channel {channel_key}")

    def leave(self, websocket: WebSocket, channel_key: str) -> None:
        members = self._channels.get(channel_key)
        if not members:
            return
        members.discard(websocket)
        if not members:
            del self._channels[channel_key]

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection from every channel it joined."""
        for channel_key in list(self._channels):
            self.leave(websocket, channel_key)

    def subscribers(self, channel_key: str) -> int:
        return len(self._channels.get(channel_key, ()))

    async def publish(self, event: NotificationEvent, channel_key: str) -> None:
        members = list(self._channels.get(channel_key, ()))
        if not members:
            logger.debug(f"No subscribers on {channel_key} for {event.kind.value}")
            return
        
        message = event.to_message()
        for websocket in members:
            try:
                await websocket.send_json(message)
            except Exception as e:
                # Dead connection: drop it, the client reconciles by polling
                logger.warning(f"Dropping connection on {channel_key}: {str(e)}")
                self.disconnect(websocket)


async def publish_safely(notifier: NotificationPort, event: NotificationEvent, channel_key: str) -> None:
    """Publish an event, logging instead of raising on failure."""
    try:
        await notifier.publish(event, channel_key)
    except Exception as e:
        logger.error(
            f"Failed to publish {event.kind.value} to {channel_key}: {str(e)}",
            exc_info=True
        )


# Global connection manager instance
connection_manager = ConnectionManager()


def get_notifier() -> NotificationPort:
    """FastAPI dependency returning the notification port (overridden in tests)."""
    return connection_manager
