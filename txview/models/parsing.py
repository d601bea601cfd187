"""Build records from the explorer API's camelCase JSON."""

import json
from typing import Any

from txview.models.deltas import compute_sol_changes, compute_token_changes
from txview.models.transaction import (
    AccountMeta,
    InnerInstructionSet,
    Instruction,
    SolChange,
    TokenBalance,
    TokenChange,
    TransactionDetails,
    TransactionRecord,
    UiTokenAmount,
)


def parse_instruction(data: dict[str, Any]) -> Instruction:
    raw = data.get("data", "")
    return Instruction(
        program=data.get("program") or "",
        program_id=str(data.get("programId") or ""),
        accounts=[a if isinstance(a, int) else str(a) for a in data.get("accounts") or []],
        data=raw if isinstance(raw, str) else json.dumps(raw),
        parsed=data.get("parsed") if isinstance(data.get("parsed"), dict) else None,
        compute_units=data.get("computeUnits"),
        compute_units_consumed=data.get("computeUnitsConsumed"),
    )


def parse_token_balance(data: dict[str, Any]) -> TokenBalance:
    ui = data.get("uiTokenAmount") or {}
    return TokenBalance(
        account_index=data.get("accountIndex", 0),
        mint=data.get("mint") or "",
        owner=data.get("owner") or "",
        ui_token_amount=UiTokenAmount(
            amount=str(ui.get("amount", "0")),
            decimals=ui.get("decimals", 0),
            ui_amount=ui.get("uiAmount"),
        ),
    )


def parse_details(data: dict[str, Any]) -> TransactionDetails:
    pre_balances = list(data.get("preBalances") or [])
    post_balances = list(data.get("postBalances") or [])
    pre_tokens = [parse_token_balance(b) for b in data.get("preTokenBalances") or []]
    post_tokens = [parse_token_balance(b) for b in data.get("postTokenBalances") or []]

    if "solChanges" in data:
        sol_changes = [
            SolChange(
                account_index=c.get("accountIndex", 0),
                pre_balance=c.get("preBalance", 0),
                post_balance=c.get("postBalance", 0),
                change=c.get("change", 0),
            )
            for c in data["solChanges"] or []
        ]
    else:
        sol_changes = compute_sol_changes(pre_balances, post_balances)

    if "tokenChanges" in data:
        token_changes = [
            TokenChange(
                mint=c.get("mint") or "",
                pre_amount=c.get("preAmount") or 0.0,
                post_amount=c.get("postAmount") or 0.0,
                change=c.get("change") or 0.0,
            )
            for c in data["tokenChanges"] or []
        ]
    else:
        token_changes = compute_token_changes(pre_tokens, post_tokens)

    return TransactionDetails(
        instructions=[parse_instruction(ix) for ix in data.get("instructions") or []],
        accounts=[
            AccountMeta(
                pubkey=str(acc.get("pubkey") or ""),
                signer=bool(acc.get("signer", False)),
                writable=bool(acc.get("writable", False)),
            )
            for acc in data.get("accounts") or []
        ],
        pre_balances=pre_balances,
        post_balances=post_balances,
        pre_token_balances=pre_tokens,
        post_token_balances=post_tokens,
        logs=list(data.get("logs") or []),
        inner_instructions=[
            InnerInstructionSet(
                index=inner.get("index", 0),
                instructions=[parse_instruction(ix) for ix in inner.get("instructions") or []],
            )
            for inner in data.get("innerInstructions") or []
        ],
        token_changes=token_changes,
        sol_changes=sol_changes,
    )


def parse_record(data: dict[str, Any]) -> TransactionRecord:
    """Parse a `/api/transaction/{signature}` response body."""
    return TransactionRecord(
        signature=data["signature"],
        timestamp=int(data.get("timestamp") or 0),
        slot=data.get("slot") or 0,
        success=bool(data.get("success", False)),
        type=data.get("type") or "unknown",
        details=parse_details(data.get("details") or {}),
    )
