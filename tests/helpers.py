"""Test doubles and sample payloads shared across test modules."""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx

from txview.fetcher.cancel import CancelToken
from txview.fetcher.client import TransactionFetcher
from txview.models.transaction import AccountMeta, TransactionDetails, TransactionRecord

SIG_A = "5QpShPQKT2ZbBxdrGHP6uaZKR5RuNWSZrtgqFPwif3KPmJxc8NzKEr3HpLyZmHwa8zPrmGC8H8FBHhyFpvjkSAr5"
SIG_B = "3yZe7d4LCGaqLo9gMcH4ZmK5B9zNn6gdsDpc8eNBBvb1GdV6QXjUhJyEwnPh4A9xTmStgvE1rxz3qmYHe1KJQmXy"
SIG_C = "2nBhEBYYvfaAe16UMNqRHre4YNSskvuYgx3M6E4JP1oDYvZEJHvoPzyUidNgNX5r9sTyN1J9UxtbCXy2rqYcuyuv"


def make_record(signature: str, pubkeys: tuple[str, ...] = ("Acc1", "Acc2")) -> TransactionRecord:
    return TransactionRecord(
        signature=signature,
        timestamp=1_700_000_000_000,
        slot=100,
        success=True,
        type="sol",
        details=TransactionDetails(
            accounts=[AccountMeta(pubkey=p, signer=i == 0, writable=True) for i, p in enumerate(pubkeys)]
        ),
    )


def transaction_payload(signature: str = SIG_A) -> dict[str, Any]:
    """Body of a successful /api/transaction/{signature} response."""
    return {
        "signature": signature,
        "timestamp": 1_700_000_000_000,
        "slot": 234567890,
        "success": True,
        "type": "sol",
        "details": {
            "instructions": [
                {
                    "program": "system",
                    "programId": "11111111111111111111111111111111",
                    "accounts": [0, 1],
                    "data": "",
                    "parsed": {"type": "transfer", "info": {"lamports": 1000}},
                }
            ],
            "accounts": [
                {"pubkey": "Sender111", "signer": True, "writable": True},
                {"pubkey": "Receiver222", "signer": False, "writable": True},
            ],
            "preBalances": [10_000, 0],
            "postBalances": [8_995, 1_000],
            "preTokenBalances": [],
            "postTokenBalances": [],
            "logs": ["Program 11111111111111111111111111111111 invoke [1]"],
            "innerInstructions": [],
        },
    }


def mock_fetcher(
    handler: Callable[[httpx.Request], Any], timeout: float = 15.0
) -> TransactionFetcher:
    client = httpx.AsyncClient(
        base_url="http://explorer.test", transport=httpx.MockTransport(handler)
    )
    return TransactionFetcher("http://explorer.test", timeout=timeout, client=client)


class FakeSource:
    """In-memory transaction source with per-signature gates and failures."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.listed: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.errors: dict[str, Exception] = {}
        self.records: dict[str, TransactionRecord] = {}
        self.neighbors: dict[str, list[str]] = {}
        self.tokens: dict[str, CancelToken | None] = {}

    async def fetch(self, signature: str, cancel: CancelToken | None = None) -> TransactionRecord:
        self.calls.append(signature)
        self.tokens[signature] = cancel
        gate = self.gates.get(signature)
        if gate is not None:
            await gate.wait()
        if signature in self.errors:
            raise self.errors[signature]
        return self.records.get(signature) or make_record(signature)

    async def list_account_signatures(
        self, address: str, limit: int = 5, cancel: CancelToken | None = None
    ) -> list[str]:
        self.listed.append(address)
        if address in self.errors:
            raise self.errors[address]
        return self.neighbors.get(address, [])[:limit]

    async def close(self) -> None:
        pass


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now




@asynccontextmanager
async def slow_http_server(body: bytes, delay: float) -> AsyncIterator[str]:
    """Local HTTP server answering every request with `body` after `delay` seconds."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await reader.readuntil(b"\r\n\r\n")
            await asyncio.sleep(delay)
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/json\r\n"
                + f"Content-Length: {len(body)}\r\n".encode()
                + b"Connection: close\r\n\r\n"
                + body
            )
            await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass  # client gave up first
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.close()
        await server.wait_closed()
