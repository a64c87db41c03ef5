"""Fire-and-forget notification dispatch with tracked completion."""

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Runs blocking notification sends as tracked background tasks.

    Each ``submit`` schedules one attempt in a worker thread and returns
    immediately. Failures are logged once and never retried or surfaced to
    the caller. ``drain`` waits (bounded) for in-flight sends at shutdown.

    Example:
        >>> dispatcher = NotificationDispatcher()
        >>> dispatcher.submit("admin_email", courier.send_email, "admin@example.com", "Hi", "...")
        >>> await dispatcher.drain(timeout=10)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, send: Callable[..., Any], *args: Any) -> asyncio.Task | None:
        """
        Schedule ``send(*args)`` in a worker thread.

        Must be called from within a running event loop. Returns the task, or
        None if the dispatcher has been drained.
        """
        if self._closed:
            logger.warning(f"Dispatcher closed, dropping notification '{name}'")
            return None

        task = asyncio.get_running_loop().create_task(
            self._run(name, send, *args), name=f"notification:{name}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, send: Callable[..., Any], *args: Any) -> None:
        try:
            await asyncio.to_thread(send, *args)
        except Exception as e:
            logger.error(
                f"Failed to send {name} notification: {e}",
                exc_info=True,
                extra={"notification": name},
            )
            return
        logger.debug(f"Sent {name} notification", extra={"notification": name})

    async def drain(self, timeout: float = 10.0) -> None:
        """Stop accepting work and wait up to ``timeout`` seconds for in-flight sends."""
        self._closed = True
        if not self._tasks:
            return

        pending = list(self._tasks)
        logger.info(f"Draining {len(pending)} pending notifications")
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(
                f"Cancelled {len(not_done)} notifications still pending after {timeout}s",
                extra={"cancelled": len(not_done)},
            )
