"""Browser-side collaborators of the coordinator: URL history and document.

The in-memory implementations mirror browser behaviour closely enough for
the CLI and tests: listeners are notified on the next loop iteration, and
`replace` produces a notification of its own (the echo the coordinator has
to ignore).
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

TX_PATH_PREFIX = "/tx/"


def tx_url(signature: str) -> str:
    return f"{TX_PATH_PREFIX}{signature}"


def signature_from_url(url: str) -> str | None:
    path = url.split("?", 1)[0].split("#", 1)[0]
    if not path.startswith(TX_PATH_PREFIX):
        return None
    signature = path[len(TX_PATH_PREFIX):].strip("/")
    return signature or None


@dataclass(frozen=True)
class HistoryEvent:
    url: str
    source: str  # "replace", "back", "forward"

    @property
    def signature(self) -> str | None:
        return signature_from_url(self.url)


HistoryListener = Callable[[HistoryEvent], None]


class History(Protocol):
    def current_url(self) -> str: ...

    def replace(self, url: str) -> None: ...

    def subscribe(self, listener: HistoryListener) -> None: ...

    def unsubscribe(self, listener: HistoryListener) -> None: ...


class Document(Protocol):
    def set_title(self, title: str) -> None: ...

    def scroll_to_top(self) -> None: ...


class InMemoryHistory:
    """Session history stack with back/forward."""

    def __init__(self, initial_url: str = "/") -> None:
        self._entries = [initial_url]
        self._index = 0
        self._listeners: list[HistoryListener] = []

    def current_url(self) -> str:
        return self._entries[self._index]

    def push(self, url: str) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(url)
        self._index += 1

    def replace(self, url: str) -> None:
        self._entries[self._index] = url
        self._notify(HistoryEvent(url=url, source="replace"))

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        self._notify(HistoryEvent(url=self.current_url(), source="back"))
        return True

    def forward(self) -> bool:
        if self._index >= len(self._entries) - 1:
            return False
        self._index += 1
        self._notify(HistoryEvent(url=self.current_url(), source="forward"))
        return True

    def subscribe(self, listener: HistoryListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: HistoryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: HistoryEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._dispatch(event)
            return
        loop.call_soon(self._dispatch, event)

    def _dispatch(self, event: HistoryEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[HISTORY] Listener failed on {event.source} {event.url}: {e}")


class InMemoryDocument:
    def __init__(self) -> None:
        self.title = ""
        self.scroll_y = 0
        self.scroll_resets = 0

    def set_title(self, title: str) -> None:
        self.title = title

    def scroll_to_top(self) -> None:
        self.scroll_y = 0
        self.scroll_resets += 1
