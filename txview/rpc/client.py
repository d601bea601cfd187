"""Solana JSON-RPC transaction source.

Same `fetch` contract as TransactionFetcher, reading straight from an RPC
node instead of the explorer API.
"""

from typing import Any

import httpx
from loguru import logger

from txview.fetcher.cancel import Aborted, CancelToken, run_cancellable
from txview.fetcher.exceptions import (
    FetchCancelledError,
    FetchTimeoutError,
    ForbiddenError,
    NetworkError,
    RateLimitedError,
    ServerError,
    TransactionFetchError,
    TransactionNotFoundError,
)
from txview.models.transaction import TransactionRecord
from txview.rate_limiter import RateLimiter
from txview.rpc.transform import record_from_rpc

DEFAULT_TIMEOUT_SEC = 15.0


class SolanaRpcClient:
    """Async client for getTransaction / getSignaturesForAddress."""

    def __init__(
        self,
        rpc_url: str,
        max_rps: float = 5.0,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout
        self._rate_limiter = RateLimiter(max_rps)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(
        self, signature: str, cancel: CancelToken | None = None
    ) -> TransactionRecord:
        result = await self.get_parsed_transaction(signature, cancel)
        if result is None:
            raise TransactionNotFoundError()
        try:
            return record_from_rpc(signature, result)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning(f"[RPC] Malformed getTransaction result for {signature[:8]}...: {e}")
            raise TransactionFetchError("Invalid transaction payload") from e

    async def get_parsed_transaction(
        self, signature: str, cancel: CancelToken | None = None
    ) -> dict[str, Any] | None:
        return await self._call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": "confirmed",
                },
            ],
            cancel,
        )

    async def list_account_signatures(
        self, address: str, limit: int = 5, cancel: CancelToken | None = None
    ) -> list[str]:
        result = await self._call(
            "getSignaturesForAddress",
            [address, {"limit": min(limit, 1000), "commitment": "confirmed"}],
            cancel,
        )
        return [sig["signature"] for sig in result or [] if sig.get("signature")]

    async def _call(
        self, method: str, params: list[Any], cancel: CancelToken | None
    ) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        await self._rate_limiter.acquire()
        try:
            resp = await run_cancellable(
                self._client.post(self._rpc_url, json=payload), cancel, self._timeout
            )
        except Aborted as e:
            raise FetchCancelledError(e.reason or "aborted") from e
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"[RPC] {method} timed out after {self._timeout}s")
            raise FetchTimeoutError() from e
        except httpx.TransportError as e:
            logger.warning(f"[RPC] {method} failed: {type(e).__name__}: {e}")
            raise NetworkError(f"Network error: {str(e) or type(e).__name__}") from e

        if resp.status_code == 429:
            raise RateLimitedError()
        if resp.status_code == 403:
            raise ForbiddenError()
        if resp.status_code != 200:
            logger.debug(f"[RPC] {method} HTTP {resp.status_code}")
            raise ServerError(f"Server error: RPC returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ServerError("Server error: invalid RPC response") from e
        if not isinstance(data, dict):
            raise ServerError("Server error: invalid RPC response")
        if "error" in data:
            error = data["error"]
            logger.debug(f"[RPC] {method} error: {error}")
            message = error.get("message", "RPC error") if isinstance(error, dict) else str(error)
            raise ServerError(f"Server error: {message}", error)
        return data.get("result")
