"""
notifier
~~~~~~~~

Change notifications: a synchronous same-process bus plus an optional
broadcast transport reaching other contexts ("tabs") on the same channel.
A notification only carries an operation tag; subscribers re-fetch.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "db-updated"

Listener = Callable[[str], None]


class BroadcastTransport:
    """Outbound/inbound adapter for cross-tab delivery."""

    def post(self, message: dict) -> None:
        raise NotImplementedError

    def set_handler(self, handler: Callable[[dict], None]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class LocalBroadcastChannel(BroadcastTransport):
    """Named channel shared by every instance opened with the same name in this process.

    A message posted on one instance is delivered to every other open
    instance, never back to the sender.
    """

    _channels: Dict[str, Set["LocalBroadcastChannel"]] = {}

    def __init__(self, name: str):
        if not name:
            raise ValueError("Broadcast channel name is required")
        self.name = name
        self._handler: Optional[Callable[[dict], None]] = None
        self._closed = False
        self._channels.setdefault(name, set()).add(self)

    def set_handler(self, handler: Callable[[dict], None]) -> None:
        self._handler = handler

    def post(self, message: dict) -> None:
        if self._closed:
            raise RuntimeError(f"Broadcast channel {self.name!r} is closed")
        for peer in list(self._channels.get(self.name, ())):
            if peer is not self and peer._handler is not None:
                peer._handler(dict(message))

    def close(self) -> None:
        self._closed = True
        peers = self._channels.get(self.name)
        if peers is not None:
            peers.discard(self)
            if not peers:
                del self._channels[self.name]


def open_broadcast_transport(name: str) -> Optional[BroadcastTransport]:
    """Open the cross-tab channel; None (same-tab only) when that fails."""
    try:
        return LocalBroadcastChannel(name)
    except Exception as e:
        logger.error("Error initializing broadcast channel: %s", e)
        return None


class ChangeBus:
    def __init__(self, transport: Optional[BroadcastTransport] = None):
        self._listeners: List[Listener] = []
        self.transport = transport
        if transport is not None:
            transport.set_handler(self._on_broadcast)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, operation: str) -> None:
        """Broadcast to other tabs (best effort), then dispatch locally."""
        if self.transport is not None:
            try:
                self.transport.post({"type": MESSAGE_TYPE, "operation": operation})
            except Exception as e:
                logger.error("Error posting message to broadcast channel: %s", e)
        self._dispatch(operation)

    def _on_broadcast(self, message: dict) -> None:
        if message.get("type") == MESSAGE_TYPE:
            self._dispatch(message.get("operation", ""))

    def _dispatch(self, operation: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(operation)
            except Exception as e:
                logger.error("Error in change listener: %s", e)

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()
            self.transport = None
        self._listeners.clear()


class ChangeSubscription:
    """Live counter bumped once per notification.

    ``wait_for_change`` lets a caller block until the counter moves past a
    value it has already seen; its timeout only stops the waiting.
    """

    def __init__(self, bus: ChangeBus):
        self.count = 0
        self.last_operation: Optional[str] = None
        self._waiters: List[asyncio.Future] = []
        self._unsubscribe = bus.subscribe(self._on_change)

    def _on_change(self, operation: str) -> None:
        self.count += 1
        self.last_operation = operation
        logger.info("Database updated: %s", operation)
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(self.count)

    async def wait_for_change(self, since: int, timeout: Optional[float] = None) -> int:
        if self.count > since:
            return self.count
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            return self.count
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    def close(self) -> None:
        self._unsubscribe()
