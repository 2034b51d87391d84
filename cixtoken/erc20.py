"""
erc20.py - Standard Token Ledger Operations

Transfers and allowances, gated by transferability:
1. compute_transfer() - Move tokens from the caller
2. compute_approve() - Set an allowance, with the approval race guard
3. compute_transfer_from() - Spend an allowance
4. compute_increase_approval() / compute_decrease_approval() - Adjust an
   allowance without the race guard

Transfers are only possible once minting is finished. Allowances can be set
at any time.

The race guard: approve() may set an allowance from zero to any value, or
from any value to zero, but never from one nonzero value to another.

All functions take TokenView (read-only) and return immutable results.
"""

from __future__ import annotations

from .core import (
    Address, TokenView, PendingTransaction, Move, AllowanceChange,
    MintingPhase, ZERO_ADDRESS,
    OP_TRANSFER, OP_APPROVE, OP_TRANSFER_FROM,
    OP_INCREASE_APPROVAL, OP_DECREASE_APPROVAL, EVENT_APPROVAL,
    InvalidState, InsufficientBalance, InsufficientAllowance,
    ZeroAddressRecipient, ApprovalRaceGuard, InvalidArgument, MAX_UINT256,
    to_address, require_amount, build_transaction, event, transfer_event,
)


def require_transferable(view: TokenView) -> None:
    if view.phase != MintingPhase.FINISHED:
        raise InvalidState("token is not transferable until minting is finished")


def _transfer_moves(source: Address, dest: Address, amount: int, reason: str):
    # Zero-amount and self transfers still emit Transfer but move nothing.
    if amount == 0 or source == dest:
        return []
    return [Move(amount=amount, source=source, dest=dest, reason=reason)]


def compute_transfer(view: TokenView, caller: Address, to: Address, amount: int) -> PendingTransaction:
    """
    Transfer amount from caller to to.

    Raises:
        InvalidState: If the token is not transferable yet.
        ZeroAddressRecipient: If to is the zero address.
        InsufficientBalance: If caller holds less than amount.
    """
    caller = to_address(caller)
    to = to_address(to)
    amount = require_amount(amount)

    require_transferable(view)
    if to == ZERO_ADDRESS:
        raise ZeroAddressRecipient("cannot transfer to the zero address")
    balance = view.get_balance(caller)
    if balance < amount:
        raise InsufficientBalance(f"{caller}: balance {balance} < {amount}")

    return build_transaction(
        caller, OP_TRANSFER,
        moves=_transfer_moves(caller, to, amount, "transfer"),
        events=[transfer_event(caller, to, amount)],
    )


def compute_approve(view: TokenView, caller: Address, spender: Address, amount: int) -> PendingTransaction:
    """
    Allow spender to move up to amount of caller's tokens.

    The zero address is accepted as a spender.

    Raises:
        ApprovalRaceGuard: If the current allowance and amount are both nonzero.
    """
    caller = to_address(caller)
    spender = to_address(spender)
    amount = require_amount(amount)

    current = view.get_allowance(caller, spender)
    if amount != 0 and current != 0:
        raise ApprovalRaceGuard(
            f"allowance {caller}→{spender} is {current}; reset it to 0 before approving {amount}"
        )

    return build_transaction(
        caller, OP_APPROVE,
        allowance_changes=[AllowanceChange(caller, spender, current, amount)],
        events=[event(EVENT_APPROVAL, owner=caller, spender=spender, value=amount)],
    )


def compute_transfer_from(
    view: TokenView,
    caller: Address,
    owner: Address,
    to: Address,
    amount: int,
) -> PendingTransaction:
    """
    Move amount from owner to to, spending caller's allowance.

    The allowance drops by exactly amount.

    Raises:
        InvalidState: If the token is not transferable yet.
        ZeroAddressRecipient: If to is the zero address.
        InsufficientAllowance: If caller's allowance from owner is below amount.
        InsufficientBalance: If owner holds less than amount.
    """
    caller = to_address(caller)
    owner = to_address(owner)
    to = to_address(to)
    amount = require_amount(amount)

    require_transferable(view)
    if to == ZERO_ADDRESS:
        raise ZeroAddressRecipient("cannot transfer to the zero address")
    allowance = view.get_allowance(owner, caller)
    if allowance < amount:
        raise InsufficientAllowance(
            f"allowance {owner}→{caller} is {allowance} < {amount}"
        )
    balance = view.get_balance(owner)
    if balance < amount:
        raise InsufficientBalance(f"{owner}: balance {balance} < {amount}")

    changes = []
    if amount:
        changes.append(AllowanceChange(owner, caller, allowance, allowance - amount))
    return build_transaction(
        caller, OP_TRANSFER_FROM,
        moves=_transfer_moves(owner, to, amount, "transfer_from"),
        allowance_changes=changes,
        events=[transfer_event(owner, to, amount)],
    )


def compute_increase_approval(
    view: TokenView,
    caller: Address,
    spender: Address,
    added_value: int,
) -> PendingTransaction:
    """
    Raise spender's allowance by added_value.

    Raises:
        InvalidArgument: If the result would not fit in a uint256.
    """
    caller = to_address(caller)
    spender = to_address(spender)
    added_value = require_amount(added_value)

    current = view.get_allowance(caller, spender)
    new_amount = current + added_value
    if new_amount > MAX_UINT256:
        raise InvalidArgument(f"allowance {caller}→{spender} would overflow")

    return build_transaction(
        caller, OP_INCREASE_APPROVAL,
        allowance_changes=[AllowanceChange(caller, spender, current, new_amount)],
        events=[event(EVENT_APPROVAL, owner=caller, spender=spender, value=new_amount)],
    )


def compute_decrease_approval(
    view: TokenView,
    caller: Address,
    spender: Address,
    subtracted_value: int,
) -> PendingTransaction:
    """Lower spender's allowance by subtracted_value, stopping at zero."""
    caller = to_address(caller)
    spender = to_address(spender)
    subtracted_value = require_amount(subtracted_value)

    current = view.get_allowance(caller, spender)
    new_amount = max(current - subtracted_value, 0)

    return build_transaction(
        caller, OP_DECREASE_APPROVAL,
        allowance_changes=[AllowanceChange(caller, spender, current, new_amount)],
        events=[event(EVENT_APPROVAL, owner=caller, spender=spender, value=new_amount)],
    )
