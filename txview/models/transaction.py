"""Pydantic models for explorer transaction records."""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class AccountMeta(BaseModel):
    """Account referenced by a transaction message."""

    pubkey: str = ""
    signer: bool = False
    writable: bool = False


class Instruction(BaseModel):
    """Top-level or inner instruction.

    `accounts` holds indices into `details.accounts` for compiled instructions,
    or pubkeys when the RPC returned a parsed instruction.
    """

    program: str = ""
    program_id: str = ""
    accounts: list[int | str] = []
    data: str = ""
    parsed: dict[str, Any] | None = None
    compute_units: int | None = None
    compute_units_consumed: int | None = None


class InnerInstructionSet(BaseModel):
    """Inner instructions emitted by the top-level instruction at `index`."""

    index: int = 0
    instructions: list[Instruction] = []


class UiTokenAmount(BaseModel):
    amount: str = "0"
    decimals: int = 0
    ui_amount: float | None = None


class TokenBalance(BaseModel):
    """SPL token balance of one account before or after execution."""

    account_index: int
    mint: str = ""
    owner: str = ""
    ui_token_amount: UiTokenAmount = UiTokenAmount()


class SolChange(BaseModel):
    account_index: int
    pre_balance: int = 0  # lamports
    post_balance: int = 0  # lamports
    change: int = 0  # lamports


class TokenChange(BaseModel):
    mint: str = ""
    pre_amount: float = 0.0
    post_amount: float = 0.0
    change: float = 0.0


class TransactionDetails(BaseModel):
    """Execution details of a transaction.

    All account indices (instruction accounts, token balances, SOL changes)
    point into `accounts`.
    """

    instructions: list[Instruction] = []
    accounts: list[AccountMeta] = []
    pre_balances: list[int] = []
    post_balances: list[int] = []
    pre_token_balances: list[TokenBalance] = []
    post_token_balances: list[TokenBalance] = []
    logs: list[str] = []
    inner_instructions: list[InnerInstructionSet] = []
    token_changes: list[TokenChange] = []
    sol_changes: list[SolChange] = []

    @model_validator(mode="after")
    def _check_account_indices(self) -> "TransactionDetails":
        size = len(self.accounts)

        def _check(index: int, where: str) -> None:
            if not 0 <= index < size:
                raise ValueError(
                    f"{where} account index {index} out of range for {size} accounts"
                )

        for change in self.sol_changes:
            _check(change.account_index, "solChanges")
        for balance in (*self.pre_token_balances, *self.post_token_balances):
            _check(balance.account_index, "tokenBalances")
        instructions = list(self.instructions)
        for inner in self.inner_instructions:
            instructions.extend(inner.instructions)
        for ix in instructions:
            for ref in ix.accounts:
                if isinstance(ref, int):
                    _check(ref, "instruction")
        return self


class TransactionRecord(BaseModel):
    """Display data for one transaction. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    signature: str
    timestamp: int = 0  # unix ms
    slot: int = 0
    success: bool = False
    type: str = "unknown"  # "token", "sol", "unknown"
    details: TransactionDetails = TransactionDetails()

    def account_pubkeys(self) -> list[str]:
        return [acc.pubkey for acc in self.details.accounts if acc.pubkey]
