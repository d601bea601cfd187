"""Built-in demo transaction served for the reserved signature.

Also returned when a request is aborted without a reason, so the view
always has something to show in that case.
"""

from txview.models.deltas import classify, compute_sol_changes, compute_token_changes
from txview.models.transaction import (
    AccountMeta,
    Instruction,
    TokenBalance,
    TransactionDetails,
    TransactionRecord,
    UiTokenAmount,
)

DEMO_SIGNATURE = (
    "4RwR2w12LydcoutGYJz2TbVxY8HVV44FCN2xoo1L9xu7ZcFxFBpoxxpSFTRWf9MPwMzmr9yTuJZjGqSmzcrawF43"
)
DEMO_TIMESTAMP_MS = 1_700_000_000_000
DEMO_SLOT = 234_567_890

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
DEMO_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

_ACCOUNTS = [
    AccountMeta(pubkey="5ZWj7a1f8tWkjBESHKgrLmXshuXxqeY9SYcfbshpAqPG", signer=True, writable=True),
    AccountMeta(pubkey="9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM", signer=False, writable=True),
    AccountMeta(pubkey=TOKEN_PROGRAM_ID, signer=False, writable=False),
]
_PRE_BALANCES = [1_000_000, 500_000, 300_000]
_POST_BALANCES = [500_000, 1_000_000, 300_000]


def _token_balance(index: int, amount: str, ui_amount: float) -> TokenBalance:
    return TokenBalance(
        account_index=index,
        mint=DEMO_MINT,
        owner=_ACCOUNTS[index].pubkey,
        ui_token_amount=UiTokenAmount(amount=amount, decimals=6, ui_amount=ui_amount),
    )


def build_demo_record(signature: str = DEMO_SIGNATURE) -> TransactionRecord:
    """Deterministic token transfer moving 500000 lamports from account 0 to 1."""
    pre_tokens = [_token_balance(0, "2000000", 2.0), _token_balance(1, "0", 0.0)]
    post_tokens = [_token_balance(0, "1000000", 1.0), _token_balance(1, "1000000", 1.0)]

    details = TransactionDetails(
        instructions=[
            Instruction(
                program="system",
                program_id=SYSTEM_PROGRAM_ID,
                accounts=[0, 1],
                parsed={"type": "transfer", "info": {"lamports": 500_000}},
                compute_units=2400,
                compute_units_consumed=150,
            ),
            Instruction(
                program="spl-token",
                program_id=TOKEN_PROGRAM_ID,
                accounts=[0, 1, 2],
                parsed={"type": "transfer", "info": {"amount": "1000000"}},
                compute_units=2400,
                compute_units_consumed=1800,
            ),
        ],
        accounts=_ACCOUNTS,
        pre_balances=_PRE_BALANCES,
        post_balances=_POST_BALANCES,
        pre_token_balances=pre_tokens,
        post_token_balances=post_tokens,
        logs=[
            f"Program {SYSTEM_PROGRAM_ID} invoke [1]",
            f"Program {SYSTEM_PROGRAM_ID} success",
            f"Program {TOKEN_PROGRAM_ID} invoke [1]",
            "Program log: Instruction: Transfer",
            f"Program {TOKEN_PROGRAM_ID} consumed 1800 of 2400 compute units",
            f"Program {TOKEN_PROGRAM_ID} success",
        ],
        token_changes=compute_token_changes(pre_tokens, post_tokens),
        sol_changes=compute_sol_changes(_PRE_BALANCES, _POST_BALANCES),
    )
    return TransactionRecord(
        signature=signature,
        timestamp=DEMO_TIMESTAMP_MS,
        slot=DEMO_SLOT,
        success=True,
        type=classify(pre_tokens, post_tokens, _PRE_BALANCES, _POST_BALANCES),
        details=details,
    )
