"""
Server-Sent Events manager for real-time celebration notifications.
"""
import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from ioo_rewards.services.celebrations import CelebrationEvent

logger = logging.getLogger(__name__)


@dataclass
class StreamEvent:
    """Celebration event to send to clients."""

    type: str  # "display" | "dismiss" | "connected"
    celebration: dict[str, Any] | None = None
    timestamp: str | None = None


class EventManager:
    """Manages SSE connections and broadcasts celebration events to clients."""

    def __init__(self, max_queue_size: int = 100):
        self._clients: list[asyncio.Queue] = []
        self.max_queue_size = max_queue_size

    async def subscribe(self) -> AsyncGenerator[str, None]:
        """
        Subscribe to celebration events.

        Returns an async generator of SSE-formatted data strings.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._clients.append(queue)

        try:
            # Send initial connection event
            yield self._format_sse(StreamEvent(type="connected", timestamp=_now()))

            while True:
                event = await queue.get()
                yield self._format_sse(event)
        finally:
            self._clients.remove(queue)

    def publish(self, action: str, celebration: CelebrationEvent) -> None:
        """
        Scheduler listener: queue a display/dismiss notification for every client.

        Synchronous so the scheduler can call it from its own (sync) mutations.
        """
        self.broadcast(StreamEvent(type=action, celebration=celebration.to_dict(), timestamp=_now()))

    def broadcast(self, event: StreamEvent) -> None:
        """
        Send event to all connected clients.

        Args:
            event: StreamEvent to broadcast
        """
        for queue in self._clients:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow client; it misses this notification
                logger.warning("SSE client queue full, dropping %s event", event.type)

    def _format_sse(self, event: StreamEvent) -> str:
        """Format event as SSE data string."""
        data = json.dumps(asdict(event), ensure_ascii=False)
        return f"data: {data}\n\n"

    @property
    def client_count(self) -> int:
        """Number of currently connected clients."""
        return len(self._clients)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Singleton instance
event_manager = EventManager()
