"""Entry point: open one or more transactions in a session and print the views.

Usage:
    txview <signature> [<next-signature> ...]
    txview <signature> --rpc
    python -m txview.main <signature> --json-logs

The first signature is the initial route; each further signature is opened
as a programmatic navigation within the same session, so cached and
prefetched transactions are reused.

Exit status is 0 when every view loaded, 1 if any of them ended in an error.
"""

import argparse
import asyncio
import sys

from loguru import logger

from config.settings import Settings, settings
from txview.controller.coordinator import LoadStatus, NavigationCoordinator, TransactionSource
from txview.controller.history import InMemoryDocument, InMemoryHistory, tx_url
from txview.controller.prefetch import Prefetcher
from txview.controller.render import RenderController, TransactionView, render_text
from txview.fetcher.client import TransactionFetcher
from txview.rpc.client import SolanaRpcClient
from txview.utils.logger import setup_logger


def build_source(cfg: Settings, use_rpc: bool) -> TransactionSource:
    if use_rpc:
        return SolanaRpcClient(
            cfg.solana_rpc_url, max_rps=cfg.rpc_max_rps, timeout=cfg.fetch_timeout_sec
        )
    return TransactionFetcher(
        cfg.api_base_url, timeout=cfg.fetch_timeout_sec, demo_signature=cfg.demo_signature
    )


async def _settled_view(
    coordinator: NavigationCoordinator, renderer: RenderController, slow_after: float
) -> TransactionView:
    try:
        await asyncio.wait_for(coordinator.wait_settled(), timeout=slow_after)
    except TimeoutError:
        print(render_text(renderer.view()), end="", flush=True)
        await coordinator.wait_settled()
    return renderer.view()


async def run(signatures: list[str], cfg: Settings, *, use_rpc: bool = False, prefetch: bool = True) -> int:
    source = build_source(cfg, use_rpc)
    prefetcher = None
    if prefetch and cfg.prefetch_enabled:
        prefetcher = Prefetcher(
            source,
            delay_sec=cfg.prefetch_delay_sec,
            max_accounts=cfg.prefetch_accounts,
            per_account=cfg.prefetch_per_account,
            max_rps=cfg.prefetch_max_rps,
        )
    history = InMemoryHistory(tx_url(signatures[0]))
    coordinator = NavigationCoordinator(source, history, InMemoryDocument(), prefetcher=prefetcher)
    renderer = RenderController(coordinator, slow_hint_after_sec=cfg.slow_hint_after_sec)

    failed = 0
    try:
        for i, signature in enumerate(signatures):
            if i == 0:
                coordinator.mount(signature)
            else:
                renderer.select_transaction(signature)
            view = await _settled_view(coordinator, renderer, cfg.slow_hint_after_sec)
            print(render_text(view), flush=True)
            if view.status is not LoadStatus.SUCCESS:
                failed += 1
    finally:
        await coordinator.close()
        await source.close()

    if failed:
        logger.warning(f"{failed} of {len(signatures)} transaction(s) failed to load")
    return 1 if failed else 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="txview", description="Solana transaction viewer")
    parser.add_argument("signatures", nargs="+", help="transaction signature(s), opened in order")
    parser.add_argument("--rpc", action="store_true", help="read from Solana RPC instead of the explorer API")
    parser.add_argument("--api-url", default=None, help="explorer API base URL")
    parser.add_argument("--no-prefetch", action="store_true", help="disable background cache warming")
    parser.add_argument("--json-logs", action="store_true", help="structured JSON logs on stderr")
    parser.add_argument("--log-file", default=None, help="also write DEBUG logs to this file")
    return parser.parse_args(argv)


def cli(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    cfg = settings
    if args.api_url:
        cfg = settings.model_copy(update={"api_base_url": args.api_url})

    setup_logger(
        json_logs=args.json_logs or cfg.json_logs, level=cfg.log_level, log_file=args.log_file
    )
    logger.debug(f"Opening {len(args.signatures)} transaction(s)")
    sys.exit(asyncio.run(run(args.signatures, cfg, use_rpc=args.rpc, prefetch=not args.no_prefetch)))


if __name__ == "__main__":
    cli()
