"""Change notification for the shared stores."""

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Keeps a list of change listeners: fn(snapshot), sync or async."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[Any], Any]] = []
        self._tasks: set[asyncio.Future] = set()

    def on_change(self, callback: Callable[[Any], Any]) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _notify(self, snapshot: Any) -> None:
        for cb in list(self._listeners):
            try:
                result = cb(snapshot)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(self._listener_done)
            except Exception as e:
                logger.error(f"Change listener error: {e}")

    def _listener_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Change listener error: {error}", exc_info=error)
