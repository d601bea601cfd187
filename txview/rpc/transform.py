"""Convert a jsonParsed `getTransaction` RPC result into a TransactionRecord."""

import time
from typing import Any

from txview.models.deltas import classify, compute_sol_changes, compute_token_changes
from txview.models.parsing import parse_instruction, parse_token_balance
from txview.models.transaction import (
    AccountMeta,
    InnerInstructionSet,
    TransactionDetails,
    TransactionRecord,
)


def record_from_rpc(signature: str, result: dict[str, Any]) -> TransactionRecord:
    meta = result.get("meta") or {}
    message = (result.get("transaction") or {}).get("message") or {}

    pre_balances = list(meta.get("preBalances") or [])
    post_balances = list(meta.get("postBalances") or [])
    pre_tokens = [parse_token_balance(b) for b in meta.get("preTokenBalances") or []]
    post_tokens = [parse_token_balance(b) for b in meta.get("postTokenBalances") or []]

    accounts = []
    for key in message.get("accountKeys") or []:
        # Legacy encoding returns bare pubkey strings
        if isinstance(key, str):
            accounts.append(AccountMeta(pubkey=key))
        else:
            accounts.append(
                AccountMeta(
                    pubkey=str(key.get("pubkey") or ""),
                    signer=bool(key.get("signer", False)),
                    writable=bool(key.get("writable", False)),
                )
            )

    details = TransactionDetails(
        instructions=[parse_instruction(ix) for ix in message.get("instructions") or []],
        accounts=accounts,
        pre_balances=pre_balances,
        post_balances=post_balances,
        pre_token_balances=pre_tokens,
        post_token_balances=post_tokens,
        logs=list(meta.get("logMessages") or []),
        inner_instructions=[
            InnerInstructionSet(
                index=inner.get("index", 0),
                instructions=[parse_instruction(ix) for ix in inner.get("instructions") or []],
            )
            for inner in meta.get("innerInstructions") or []
        ],
        token_changes=compute_token_changes(pre_tokens, post_tokens),
        sol_changes=compute_sol_changes(pre_balances, post_balances),
    )

    block_time = result.get("blockTime")
    return TransactionRecord(
        signature=signature,
        timestamp=block_time * 1000 if block_time else int(time.time() * 1000),
        slot=result.get("slot") or 0,
        success=meta.get("err") is None,
        type=classify(pre_tokens, post_tokens, pre_balances, post_balances),
        details=details,
    )
