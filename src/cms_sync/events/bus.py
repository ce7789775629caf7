"""In-process event bus.

Stands in for the commerce backend's event transport when the service runs
on its own: ``emit`` schedules every subscriber as an asyncio task and
returns without waiting. Handler failures are logged, never re-raised into
the emitter.

Example:
    bus = LocalEventBus()
    bus.subscribe("cms-products.sync", handler)
    await bus.emit("cms-products.sync")
    ...
    await bus.close(timeout=30)
"""

import asyncio
import logging
from typing import Any, Optional

from ..sync.domain.ports import EventHandler, IEventBus

logger = logging.getLogger(__name__)


class LocalEventBus(IEventBus):
    """Fire-and-forget asyncio event bus with tracked tasks.

    Attributes:
        handlers: Subscribed handlers per event name
    """

    def __init__(self):
        self.handlers: dict[str, list[EventHandler]] = {}
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    def subscribe(self, name: str, handler: EventHandler) -> None:
        self.handlers.setdefault(name, []).append(handler)

    async def emit(self, name: str, data: Optional[dict[str, Any]] = None) -> None:
        """Schedule all handlers subscribed to ``name``.

        Raises:
            RuntimeError: If the bus has been closed
        """
        if self._closed:
            raise RuntimeError("Event bus is closed")

        handlers = self.handlers.get(name, [])
        if not handlers:
            logger.warning(f"No subscribers for event {name}")
            return

        payload = dict(data or {})
        for handler in handlers:
            task = asyncio.create_task(self._run(name, handler, payload), name=f"event:{name}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.debug(f"Emitted {name} to {len(handlers)} subscriber(s)")

    async def _run(self, name: str, handler: EventHandler, data: dict[str, Any]) -> None:
        try:
            await handler(data)
        except Exception as e:
            logger.error(f"Handler for {name} failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled handler has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self, timeout: float = 30.0) -> None:
        """Stop accepting events and wait for in-flight handlers.

        Handlers still running after ``timeout`` seconds are cancelled.
        """
        self._closed = True
        if not self._tasks:
            return

        try:
            await asyncio.wait_for(self.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Cancelling {len(self._tasks)} event handler(s) still running")
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
