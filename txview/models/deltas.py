"""SOL/token balance deltas and coarse transaction classification."""

from txview.models.transaction import SolChange, TokenBalance, TokenChange


def compute_sol_changes(pre_balances: list[int], post_balances: list[int]) -> list[SolChange]:
    """Per-account lamport delta, zero changes dropped."""
    changes = []
    for i, post in enumerate(post_balances):
        pre = pre_balances[i] if i < len(pre_balances) else 0
        delta = (post or 0) - (pre or 0)
        if delta != 0:
            changes.append(
                SolChange(account_index=i, pre_balance=pre, post_balance=post, change=delta)
            )
    return changes


def compute_token_changes(
    pre_tokens: list[TokenBalance], post_tokens: list[TokenBalance]
) -> list[TokenChange]:
    """Token deltas matched by account index.

    Entries without a mint, or with zero on both sides, are dropped.
    """
    pre_by_index = {b.account_index: b for b in pre_tokens}
    changes = []
    for post in post_tokens:
        pre = pre_by_index.get(post.account_index)
        pre_amount = (pre.ui_token_amount.ui_amount or 0.0) if pre else 0.0
        post_amount = post.ui_token_amount.ui_amount or 0.0
        if not post.mint or (pre_amount == 0 and post_amount == 0):
            continue
        changes.append(
            TokenChange(
                mint=post.mint,
                pre_amount=pre_amount,
                post_amount=post_amount,
                change=post_amount - pre_amount,
            )
        )
    return changes


def classify(
    pre_tokens: list[TokenBalance],
    post_tokens: list[TokenBalance],
    pre_balances: list[int],
    post_balances: list[int],
) -> str:
    if pre_tokens and post_tokens:
        return "token"
    if pre_balances and post_balances:
        return "sol"
    return "unknown"
