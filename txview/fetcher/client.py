"""Explorer API client: fetches transaction records by signature.

One GET per call, no retries. The whole request is bounded by
`timeout` seconds; a CancelToken can abort it earlier.
"""

import json
from typing import Any

import httpx
from loguru import logger

from txview.fetcher.cancel import Aborted, CancelToken, run_cancellable
from txview.fetcher.demo import DEMO_SIGNATURE, build_demo_record
from txview.fetcher.exceptions import (
    EmptyDataError,
    FetchCancelledError,
    FetchTimeoutError,
    ForbiddenError,
    NetworkError,
    RateLimitedError,
    ServerError,
    TransactionFetchError,
    TransactionNotFoundError,
)
from txview.models.parsing import parse_record
from txview.models.transaction import TransactionRecord

DEFAULT_TIMEOUT_SEC = 15.0
DEFAULT_ERROR_MESSAGE = "Failed to fetch transaction"
REQUEST_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class _AbortedWithoutReason(Exception):
    pass


class TransactionFetcher:
    """Async HTTP client for the explorer's transaction endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        demo_signature: str = DEMO_SIGNATURE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._demo_signature = demo_signature
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(
        self, signature: str, cancel: CancelToken | None = None
    ) -> TransactionRecord:
        """Fetch one transaction.

        The reserved demo signature never touches the network. A request
        aborted through a token cancelled without a reason also resolves to
        demo data; every other failure raises a TransactionFetchError.
        """
        if signature == self._demo_signature:
            logger.debug(f"[FETCH] Serving demo record for {signature[:8]}...")
            return build_demo_record(signature)

        try:
            resp = await self._get(f"/api/transaction/{signature}", cancel)
        except _AbortedWithoutReason:
            logger.warning(f"[FETCH] Aborted without reason, using demo data for {signature[:8]}...")
            return build_demo_record(signature)

        if not resp.is_success:
            raise _error_from_response(resp)

        if not resp.text.strip():
            raise EmptyDataError()
        try:
            data = resp.json()
        except ValueError as e:
            raise TransactionFetchError("Invalid transaction payload") from e
        if not data:
            raise EmptyDataError()

        try:
            return parse_record(data)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning(f"[FETCH] Malformed transaction payload for {signature[:8]}...: {e}")
            raise TransactionFetchError("Invalid transaction payload") from e

    async def list_account_signatures(
        self, address: str, limit: int = 5, cancel: CancelToken | None = None
    ) -> list[str]:
        """Recent transaction signatures involving `address`."""
        try:
            resp = await self._get(
                f"/api/account-transactions/{address}", cancel, params={"limit": limit}
            )
        except _AbortedWithoutReason as e:
            raise FetchCancelledError("aborted") from e

        if not resp.is_success:
            raise _error_from_response(resp)

        data = resp.json() or {}
        return [
            tx["signature"]
            for tx in data.get("transactions", [])
            if isinstance(tx, dict) and tx.get("signature")
        ][:limit]

    async def _get(
        self,
        path: str,
        cancel: CancelToken | None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return await run_cancellable(
                self._client.get(path, params=params, headers=REQUEST_HEADERS), cancel, self._timeout
            )
        except Aborted as e:
            if e.reason is None:
                raise _AbortedWithoutReason() from e
            raise FetchCancelledError(e.reason) from e
        except TimeoutError as e:
            logger.warning(f"[FETCH] {path} timed out after {self._timeout}s")
            raise FetchTimeoutError() from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError() from e
        except httpx.TransportError as e:
            logger.warning(f"[FETCH] {path} failed: {type(e).__name__}: {e}")
            raise NetworkError(f"Network error: {str(e) or type(e).__name__}") from e


def _error_from_response(resp: httpx.Response) -> TransactionFetchError:
    """Map a non-2xx response to a typed error, keeping the body's message."""
    text = resp.text
    message = DEFAULT_ERROR_MESSAGE
    details = None
    try:
        body = json.loads(text)
    except ValueError:
        message = text or message
    else:
        if isinstance(body, dict):
            message = body.get("error") or message
            details = body.get("details")

    details_text = f"\n\nDetails:\n{json.dumps(details, indent=2)}" if details else ""
    logger.debug(f"[FETCH] HTTP {resp.status_code}: {message}")

    status = resp.status_code
    if status == 404:
        return TransactionNotFoundError()
    if status == 429:
        return RateLimitedError()
    if status == 403:
        return ForbiddenError()
    if status == 500:
        return ServerError(f"Server error: {message}{details_text}", details)
    return TransactionFetchError(f"{message}{details_text}")
