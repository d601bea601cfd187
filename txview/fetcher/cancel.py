import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal shared between a caller and a request.

    `reason` stays None when cancelled without one; the fetcher treats that
    case differently from an explicit supersede.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class Aborted(Exception):
    """The token fired before the awaited operation finished."""

    def __init__(self, reason: str | None) -> None:
        super().__init__(reason or "aborted without reason")
        self.reason = reason


async def run_cancellable(
    operation: Awaitable[T], cancel: CancelToken | None, timeout: float | None
) -> T:
    """Await `operation` until it finishes, `cancel` fires or `timeout` passes.

    Raises Aborted or TimeoutError; the operation is cancelled in both cases.
    """
    task = asyncio.ensure_future(operation)
    pending: set[asyncio.Future] = {task}
    aborted = None
    if cancel is not None:
        aborted = asyncio.ensure_future(cancel.wait())
        pending.add(aborted)

    try:
        done, _ = await asyncio.wait(
            pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if aborted is not None:
            aborted.cancel()
        if not task.done():
            task.cancel()

    if cancel is not None and cancel.cancelled:
        if task.done() and not task.cancelled():
            task.exception()  # retrieved, result is discarded
        raise Aborted(cancel.reason)
    if task not in done:
        raise TimeoutError()
    return task.result()
