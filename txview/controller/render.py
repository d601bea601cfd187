"""Derives the Loading / Error / Success view from coordinator state."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from loguru import logger

from txview.controller.coordinator import LoadStatus, NavigationCoordinator
from txview.models.transaction import TransactionRecord

LAMPORTS_PER_SOL = 1_000_000_000

LOADING_MESSAGE = "Loading transaction details..."
SLOW_LOADING_MESSAGE = "This is taking longer than usual. Please wait..."
POSSIBLE_CAUSES = (
    "The transaction signature is invalid",
    "The transaction has been pruned from the ledger",
    "Network connectivity issues",
    "RPC node rate limits",
    "Server-side processing errors",
)


class Panel(Protocol):
    name: str
    placeholder: str

    def render(self, record: TransactionRecord) -> str: ...


@dataclass(frozen=True)
class TransactionView:
    status: LoadStatus
    signature: str | None
    message: str = ""
    slow_hint: bool = False
    causes: tuple[str, ...] = ()
    can_retry: bool = False
    record: TransactionRecord | None = None
    panels: dict[str, str] = field(default_factory=dict)


class OverviewPanel:
    name = "overview"
    placeholder = "Error loading transaction overview"

    def render(self, record: TransactionRecord) -> str:
        when = (
            datetime.fromtimestamp(record.timestamp / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
            if record.timestamp
            else "Unknown"
        )
        return "\n".join([
            f"Signature: {record.signature}",
            f"Status:    {'Success' if record.success else 'Failed'}",
            f"Type:      {record.type or 'Unknown'}",
            f"Timestamp: {when}",
            f"Slot:      {record.slot:,}" if record.slot else "Slot:      Unknown",
        ])


class BalanceChangesPanel:
    name = "balances"
    placeholder = "Error loading transaction details"

    def render(self, record: TransactionRecord) -> str:
        accounts = record.details.accounts
        lines = []
        for change in record.details.sol_changes:
            pubkey = accounts[change.account_index].pubkey
            lines.append(
                f"SOL   #{change.account_index} {pubkey[:8]}... "
                f"{change.change:+,} lamports ({change.change / LAMPORTS_PER_SOL:+.9f} SOL)"
            )
        for change in record.details.token_changes:
            lines.append(f"TOKEN {change.mint[:8]}... {change.change:+g}")
        return "\n".join(lines) or "No balance changes"


DEFAULT_PANELS: tuple[Panel, ...] = (OverviewPanel(), BalanceChangesPanel())


class RenderController:
    def __init__(
        self,
        coordinator: NavigationCoordinator,
        panels: tuple[Panel, ...] | list[Panel] = DEFAULT_PANELS,
        *,
        slow_hint_after_sec: float = 5.0,
    ) -> None:
        self._coordinator = coordinator
        self._panels = tuple(panels)
        self._slow_hint_after_sec = slow_hint_after_sec
        # Bound once so children always receive the same callable
        self.select_transaction = coordinator.select_transaction

    def view(self) -> TransactionView:
        state = self._coordinator.state

        if state.status in (LoadStatus.IDLE, LoadStatus.LOADING):
            slow = (
                state.loading_since is not None
                and self._coordinator.clock() - state.loading_since >= self._slow_hint_after_sec
            )
            return TransactionView(
                status=LoadStatus.LOADING,
                signature=state.signature,
                message=LOADING_MESSAGE,
                slow_hint=slow,
            )

        if state.status is LoadStatus.ERROR or state.record is None:
            message = state.error.message if state.error else "Failed to load transaction"
            return TransactionView(
                status=LoadStatus.ERROR,
                signature=state.signature,
                message=message,
                causes=POSSIBLE_CAUSES,
                can_retry=True,
            )

        return TransactionView(
            status=LoadStatus.SUCCESS,
            signature=state.signature,
            record=state.record,
            panels={panel.name: self._render_panel(panel, state.record) for panel in self._panels},
        )

    def retry(self) -> asyncio.Task | None:
        """Reload the whole view from the current URL."""
        return self._coordinator.reload()

    def _render_panel(self, panel: Panel, record: TransactionRecord) -> str:
        try:
            return panel.render(record)
        except Exception as e:
            logger.error(f"[RENDER] Panel {panel.name} failed: {e}")
            return panel.placeholder


def render_text(view: TransactionView) -> str:
    """Plain-text rendering used by the CLI."""
    lines = []
    if view.status is LoadStatus.LOADING:
        lines.append(view.message)
        if view.slow_hint:
            lines.append(SLOW_LOADING_MESSAGE)
        lines.append(f"Transaction signature: {view.signature}")
    elif view.status is LoadStatus.ERROR:
        lines += ["Error Loading Transaction", view.message, ""]
        lines.append(f"Transaction signature: {view.signature}")
        lines.append("Possible reasons:")
        lines += [f"  - {cause}" for cause in view.causes]
    else:
        for name, body in view.panels.items():
            lines += [f"== {name} ==", body, ""]
    return "\n".join(lines).rstrip() + "\n"
