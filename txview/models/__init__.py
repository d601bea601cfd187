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

__all__ = [
    "AccountMeta",
    "Instruction",
    "InnerInstructionSet",
    "UiTokenAmount",
    "TokenBalance",
    "SolChange",
    "TokenChange",
    "TransactionDetails",
    "TransactionRecord",
]
