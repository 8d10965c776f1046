"""Owned, cancellable background task for a single polling run.

Each reconciler run gets its own CancellationToken. The token is checked
before every state delivery, so a run that was cancelled while a read was in
flight can never publish a stale result.
"""

import asyncio
from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class CancellationToken:
    """Shared "cancelled" flag between a polling task and its owner."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class CancellableTask:
    """asyncio.Task with an explicit lifecycle: created on start, cancelled on teardown.

    Example:
        async def run(token: CancellationToken) -> None:
            while not token.cancelled:
                await asyncio.sleep(1)

        task = CancellableTask(run, name="poll")
        task.cancel()
        await task.wait()
    """

    def __init__(
        self,
        coro_func: Callable[[CancellationToken], Awaitable[None]],
        name: str | None = None,
    ):
        self.token = CancellationToken()
        self.name = name
        self._task = asyncio.create_task(coro_func(self.token), name=name)  # type: ignore[arg-type]
        self._task.add_done_callback(self._on_done)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        """Stop the run. Safe to call repeatedly and after completion."""
        self.token.cancel()
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the run to finish; cancellation of the run is not an error here."""
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                # The waiter itself was cancelled
                raise

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(
                "task.crashed",
                task=self.name,
                error_type=type(exc).__name__,
                error_message=str(exc),
                exc_info=exc,
            )
