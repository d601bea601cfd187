"""Tests for the Solana JSON-RPC transaction source."""

import json

import httpx
import pytest

from helpers import SIG_A, slow_http_server
from txview.fetcher.exceptions import RateLimitedError, ServerError, TransactionNotFoundError
from txview.rpc.client import SolanaRpcClient
from txview.rpc.transform import record_from_rpc

TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def _rpc_result(with_tokens: bool = False) -> dict:
    token_balances = [
        {"accountIndex": 1, "mint": "MintX", "owner": "Owner", "uiTokenAmount": {"amount": "5", "decimals": 0, "uiAmount": 5.0}}
    ]
    return {
        "slot": 250_000_000,
        "blockTime": 1_700_000_123,
        "meta": {
            "err": None,
            "fee": 5000,
            "preBalances": [2_000_000, 0, 1],
            "postBalances": [1_495_000, 500_000, 1],
            "preTokenBalances": token_balances if with_tokens else [],
            "postTokenBalances": token_balances if with_tokens else [],
            "logMessages": ["Program 11111111111111111111111111111111 invoke [1]"],
            "innerInstructions": [
                {"index": 0, "instructions": [{"programId": TOKEN_PROGRAM, "accounts": ["Payer"], "data": "3Bxs"}]}
            ],
        },
        "transaction": {
            "message": {
                "accountKeys": [
                    {"pubkey": "Payer", "signer": True, "writable": True, "source": "transaction"},
                    {"pubkey": "Dest", "signer": False, "writable": True, "source": "transaction"},
                    {"pubkey": "11111111111111111111111111111111", "signer": False, "writable": False},
                ],
                "instructions": [
                    {
                        "program": "system",
                        "programId": "11111111111111111111111111111111",
                        "parsed": {"type": "transfer", "info": {"lamports": 500000}},
                    }
                ],
            }
        },
    }


def _client(handler) -> SolanaRpcClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SolanaRpcClient("http://rpc.test", max_rps=0, client=http)


def test_record_from_rpc_sol_transfer():
    """getTransaction result maps to a sol record with deltas."""
    record = record_from_rpc(SIG_A, _rpc_result())

    assert record.timestamp == 1_700_000_123_000
    assert record.slot == 250_000_000
    assert record.success is True
    assert record.type == "sol"
    assert [a.pubkey for a in record.details.accounts] == ["Payer", "Dest", "11111111111111111111111111111111"]
    assert [(c.account_index, c.change) for c in record.details.sol_changes] == [(0, -505_000), (1, 500_000)]
    assert record.details.instructions[0].parsed["type"] == "transfer"
    assert record.details.inner_instructions[0].instructions[0].accounts == ["Payer"]


def test_record_from_rpc_token_and_failure():
    """Token balances and meta.err map to a failed token record."""
    result = _rpc_result(with_tokens=True)
    result["meta"]["err"] = {"InstructionError": [0, "Custom"]}
    record = record_from_rpc(SIG_A, result)

    assert record.type == "token"
    assert record.success is False
    assert record.details.token_changes[0].change == 0.0


@pytest.mark.asyncio
async def test_fetch_sends_get_transaction():
    """fetch issues getTransaction with jsonParsed encoding."""
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": _rpc_result()})

    client = _client(handler)
    record = await client.fetch(SIG_A)

    assert record.signature == SIG_A
    assert sent[0]["method"] == "getTransaction"
    assert sent[0]["params"][0] == SIG_A
    assert sent[0]["params"][1]["encoding"] == "jsonParsed"
    assert sent[0]["params"][1]["maxSupportedTransactionVersion"] == 0
    await client.close()


@pytest.mark.asyncio
async def test_fetch_null_result_is_not_found():
    """Null result means the transaction was not found."""
    client = _client(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None}))
    with pytest.raises(TransactionNotFoundError):
        await client.fetch(SIG_A)
    await client.close()


@pytest.mark.asyncio
async def test_fetch_rpc_error_object():
    """RPC error object becomes a ServerError with its message."""
    body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}}
    client = _client(lambda request: httpx.Response(200, json=body))
    with pytest.raises(ServerError) as exc:
        await client.fetch(SIG_A)
    assert exc.value.message == "Server error: Invalid param"
    await client.close()


@pytest.mark.asyncio
async def test_fetch_rate_limited():
    """HTTP 429 from the node is RateLimitedError."""
    client = _client(lambda request: httpx.Response(429))
    with pytest.raises(RateLimitedError):
        await client.fetch(SIG_A)
    await client.close()


@pytest.mark.asyncio
async def test_list_account_signatures():
    """Account listing returns non-empty signatures."""
    result = [{"signature": "s1", "slot": 1}, {"signature": "s2", "slot": 2}]
    client = _client(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result}))
    assert await client.list_account_signatures("Payer", limit=2) == ["s1", "s2"]
    await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"null", b'"oops"', b"[1, 2]"])
async def test_fetch_non_object_body_is_server_error(body):
    """A JSON-RPC body that is not an object is reported as an invalid response."""
    client = _client(lambda request: httpx.Response(200, content=body))
    with pytest.raises(ServerError) as exc:
        await client.fetch(SIG_A)
    assert exc.value.message == "Server error: invalid RPC response"
    await client.close()


@pytest.mark.asyncio
async def test_slow_rpc_node_within_fetch_timeout_succeeds():
    """A real node answering after 5.5s is still inside the default 15s bound."""
    body = json.dumps({"jsonrpc": "2.0", "id": 1, "result": _rpc_result()}).encode()
    async with slow_http_server(body, delay=5.5) as url:
        client = SolanaRpcClient(url, max_rps=0)
        try:
            record = await client.fetch(SIG_A)
        finally:
            await client.close()

    assert record.slot == 250_000_000
