"""Navigation coordinator: keeps one current signature across change sources.

Signature changes arrive from the initial route, programmatic navigation
(graph node clicks), history back/forward and external route changes.
Each change goes cache first, fetcher second. Only the newest load may
publish: every load carries a generation number and its own CancelToken,
and results whose pair is no longer current are dropped.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from loguru import logger

from txview.controller.cache import TransactionCache
from txview.controller.history import (
    Document,
    History,
    HistoryEvent,
    signature_from_url,
    tx_url,
)
from txview.controller.prefetch import Prefetcher
from txview.fetcher.cancel import Aborted, CancelToken, run_cancellable
from txview.fetcher.exceptions import FetchCancelledError, TransactionFetchError
from txview.models.transaction import TransactionRecord

TITLE_SUFFIX = "txview"


class TransactionSource(Protocol):
    async def fetch(
        self, signature: str, cancel: CancelToken | None = None
    ) -> TransactionRecord: ...

    async def list_account_signatures(
        self, address: str, limit: int = 5, cancel: CancelToken | None = None
    ) -> list[str]: ...


class LoadStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SessionState:
    """Everything that lives from mount to unmount."""

    cache: TransactionCache = field(default_factory=TransactionCache)
    signature: str | None = None
    status: LoadStatus = LoadStatus.IDLE
    record: TransactionRecord | None = None
    error: TransactionFetchError | None = None
    generation: int = 0
    inflight: CancelToken | None = None
    programmatic_target: str | None = None  # set while our own URL update settles
    loading_since: float | None = None
    mounted: bool = False


StateListener = Callable[[SessionState], None]


def title_for(signature: str) -> str:
    return f"Transaction {signature[:8]}...{signature[-8:]} | {TITLE_SUFFIX}"


class NavigationCoordinator:
    def __init__(
        self,
        source: TransactionSource,
        history: History,
        document: Document,
        *,
        prefetcher: Prefetcher | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._history = history
        self._document = document
        self._prefetcher = prefetcher
        self.clock = clock
        self.state = SessionState()
        self._listeners: list[StateListener] = []
        self._load_task: asyncio.Task | None = None
        self._pending_tasks: set[asyncio.Task] = set()

    # -- subscriptions -------------------------------------------------

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -- change sources ------------------------------------------------

    def mount(self, route_signature: str) -> asyncio.Task | None:
        """Adopt the route signature unconditionally and start listening."""
        logger.info(f"[NAV] Mount {route_signature[:8]}...")
        self.state.mounted = True
        self._history.subscribe(self.on_history_event)
        return self._adopt(route_signature)

    def navigate(self, signature: str) -> asyncio.Task | None:
        """Programmatic navigation, e.g. a transaction picked in the graph."""
        state = self.state
        if not signature or not state.mounted:
            return None
        if signature == state.signature and state.status is not LoadStatus.ERROR:
            return None

        logger.info(f"[NAV] Navigate {(state.signature or '')[:8]}... -> {signature[:8]}...")
        state.programmatic_target = signature
        self._history.replace(tx_url(signature))
        asyncio.get_running_loop().call_soon(self._settle_programmatic, signature)
        return self._adopt(signature, scroll=True)

    def on_history_event(self, event: HistoryEvent) -> None:
        """Back/forward listener. Echoes of our own URL update are ignored."""
        state = self.state
        if not state.mounted:
            return
        if state.programmatic_target is not None:
            logger.debug(f"[NAV] Ignoring {event.source} echo for {event.url}")
            return
        signature = event.signature
        if signature is None or signature == state.signature:
            return
        logger.info(f"[NAV] History {event.source} -> {signature[:8]}...")
        self._adopt(signature)

    def on_route_change(self, signature: str) -> asyncio.Task | None:
        """External route change (typed URL, followed link)."""
        state = self.state
        if not state.mounted or state.programmatic_target is not None:
            return None
        if not signature or signature == state.signature:
            return None
        logger.info(f"[NAV] Route change -> {signature[:8]}...")
        return self._adopt(signature)

    def select_transaction(self, signature: str) -> None:
        """`onTransactionSelect` callback handed to graph visualizations."""
        self.navigate(signature)

    def reload(self) -> asyncio.Task | None:
        """Start over as a fresh mount of the signature in the current URL."""
        signature = signature_from_url(self._history.current_url()) or self.state.signature
        self._teardown("reload")
        self.state = SessionState(mounted=True)
        if signature is None:
            self._publish()
            return None
        logger.info(f"[NAV] Reload {signature[:8]}...")
        return self._adopt(signature)

    async def wait_settled(self) -> None:
        """Wait until no load is in flight (newer loads included)."""
        while self._load_task is not None and not self._load_task.done():
            await asyncio.wait({self._load_task})

    async def close(self) -> None:
        """Unmount: stop listening, abort work, drop the session."""
        self._history.unsubscribe(self.on_history_event)
        self._teardown("unmounted")
        tasks = list(self._pending_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.state = SessionState()

    # -- internals -----------------------------------------------------

    def _adopt(self, signature: str, *, scroll: bool = False) -> asyncio.Task | None:
        state = self.state
        if state.inflight is not None:
            state.inflight.cancel("superseded")
            state.inflight = None
        state.generation += 1
        state.signature = signature

        cached = state.cache.get(signature)
        if cached is not None:
            logger.debug(f"[NAV] Cache hit {signature[:8]}...")
            self._succeed(cached, scroll=scroll)
            return None

        # Prefetch yields to a miss; a fetch of this very signature is adopted, not repeated
        handoff = None
        if self._prefetcher is not None:
            handoff = self._prefetcher.claim(signature)
            self._prefetcher.cancel()

        token = CancelToken()
        state.inflight = token
        state.status = LoadStatus.LOADING
        state.record = None
        state.error = None
        state.loading_since = self.clock()
        self._publish()

        task = asyncio.create_task(
            self._load(signature, state.generation, token, scroll, handoff),
            name=f"load:{signature[:8]}",
        )
        self._load_task = task
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    def _is_current(self, generation: int, token: CancelToken) -> bool:
        state = self.state
        return state.generation == generation and state.inflight is token and not token.cancelled

    async def _load(
        self,
        signature: str,
        generation: int,
        token: CancelToken,
        scroll: bool,
        handoff: asyncio.Task | None = None,
    ) -> None:
        try:
            if handoff is None:
                record = await self._source.fetch(signature, token)
            else:
                record = await self._join(handoff, token)
        except FetchCancelledError as e:
            logger.debug(f"[NAV] Load of {signature[:8]}... cancelled: {e.reason}")
            return
        except TransactionFetchError as e:
            self._fail(signature, generation, token, e)
            return
        except Exception as e:
            logger.exception(f"[NAV] Unexpected error loading {signature[:8]}...")
            self._fail(signature, generation, token, TransactionFetchError(str(e) or type(e).__name__))
            return

        if not self._is_current(generation, token):
            logger.debug(f"[NAV] Dropping stale result for {signature[:8]}...")
            return

        self.state.inflight = None
        self.state.cache.put(signature, record)
        self._succeed(record, scroll=scroll)

    async def _join(self, fetch: asyncio.Task, token: CancelToken) -> TransactionRecord:
        try:
            return await run_cancellable(fetch, token, None)
        except Aborted as e:
            raise FetchCancelledError(e.reason or "aborted") from e

    def _fail(
        self, signature: str, generation: int, token: CancelToken, error: TransactionFetchError
    ) -> None:
        if not self._is_current(generation, token):
            logger.debug(f"[NAV] Dropping stale error for {signature[:8]}...: {error}")
            return
        logger.warning(f"[NAV] Load of {signature[:8]}... failed ({error.kind}): {error.message}")
        state = self.state
        state.inflight = None
        state.status = LoadStatus.ERROR
        state.record = None
        state.error = error
        state.loading_since = None
        self._publish()

    def _succeed(self, record: TransactionRecord, *, scroll: bool) -> None:
        state = self.state
        state.status = LoadStatus.SUCCESS
        state.record = record
        state.error = None
        state.loading_since = None
        self._document.set_title(title_for(record.signature))
        if scroll:
            self._document.scroll_to_top()
        self._publish()
        if self._prefetcher is not None:
            self._prefetcher.schedule(record, state.cache)

    def _settle_programmatic(self, signature: str) -> None:
        if self.state.programmatic_target == signature:
            self.state.programmatic_target = None

    def _teardown(self, reason: str) -> None:
        state = self.state
        if state.inflight is not None:
            state.inflight.cancel(reason)
            state.inflight = None
        if self._prefetcher is not None:
            self._prefetcher.cancel()
        state.cache.clear()
        state.mounted = False

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception as e:
                logger.error(f"[NAV] State listener failed: {e}")
