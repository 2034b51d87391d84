"""
minting.py - Batch Minting and Burning

This module provides the issuance operations open while minting is STARTED:
1. mint_effects() - Moves and events for crediting one account from issuance
2. compute_batch_mint() - Owner/controller mint to many recipients at once
3. compute_burn() - Owner-only removal of tokens from an account

Every mint is a Move out of SYSTEM_WALLET and every burn a Move into it, so
total minted is always the negated issuance balance and the ledger enforces
the supply cap on the net effect of the whole call:

    batchMint([alice, bob], [100, 200])
        Move(100, system → alice)
        Move(200, system → bob)

A batch that would exceed the cap is rejected as a whole, including the
recipients that came before the one that crossed it.

All functions take TokenView (read-only) and return immutable results.
"""

from __future__ import annotations
from typing import List, Sequence, Tuple

from .core import (
    Address, TokenView, PendingTransaction, TokenStateChange, Move, TokenEvent,
    MintingPhase, SYSTEM_WALLET, ZERO_ADDRESS,
    OP_BATCH_MINT, OP_BURN, EVENT_MINT, EVENT_BURN,
    InvalidState, InvalidArgument, SupplyExceeded, InsufficientBalance,
    ZeroAddressRecipient,
    to_address, require_amount, build_transaction, event, transfer_event,
)
from .access import require_can_mint, require_owner


def mint_effects(dest: Address, amount: int, reason: str) -> Tuple[List[Move], List[TokenEvent]]:
    """
    Moves and events that credit dest with amount newly minted tokens.

    A zero amount produces the events but no move.
    """
    moves = []
    if amount > 0:
        moves.append(Move(amount=amount, source=SYSTEM_WALLET, dest=dest, reason=reason))
    events = [
        event(EVENT_MINT, to=dest, amount=amount),
        transfer_event(SYSTEM_WALLET, dest, amount),
    ]
    return moves, events


def compute_batch_mint(
    view: TokenView,
    caller: Address,
    recipients: Sequence[Address],
    amounts: Sequence[int],
) -> PendingTransaction:
    """
    Mint amounts[i] to recipients[i], in order, as one all-or-nothing call.

    Every minted amount is added to sum_of_private_sale, which sizes the
    advisors and team allocations when minting finishes.

    Args:
        view: Read-only ledger access
        caller: Owner or a controller
        recipients: Accounts to credit
        amounts: Base units per recipient, same length as recipients

    Returns:
        PendingTransaction with one issuance move per nonzero amount and the
        updated sale accumulator.

    Raises:
        Unauthorized: If caller is neither owner nor controller.
        InvalidState: If minting has not started or is finished.
        InvalidArgument: If the lists differ in length or are empty.
        ZeroAddressRecipient: If any recipient is the zero address.
        SupplyExceeded: If the batch would push total minted above the cap.
    """
    caller = to_address(caller)
    require_can_mint(view, caller)

    if view.phase == MintingPhase.NOT_STARTED:
        raise InvalidState("minting has not started")
    if view.phase == MintingPhase.FINISHED:
        raise InvalidState("minting is finished")

    recipients = list(recipients)
    amounts = list(amounts)
    if len(recipients) != len(amounts):
        raise InvalidArgument(
            f"recipients and amounts differ in length: {len(recipients)} != {len(amounts)}"
        )
    if not recipients:
        raise InvalidArgument("batch mint needs at least one recipient")

    cap = view.terms.total_supply
    minted = view.total_minted
    moves: List[Move] = []
    events: List[TokenEvent] = []
    batch_total = 0

    for i, (recipient, amount) in enumerate(zip(recipients, amounts)):
        recipient = to_address(recipient)
        amount = require_amount(amount)
        if recipient == ZERO_ADDRESS:
            raise ZeroAddressRecipient(f"batch mint recipient #{i} is the zero address")
        batch_total += amount
        if minted + batch_total > cap:
            raise SupplyExceeded(
                f"batch mint #{i} would bring total minted to {minted + batch_total} > {cap}"
            )
        m, e = mint_effects(recipient, amount, f"batch_mint_{i}")
        moves.extend(m)
        events.extend(e)

    state = view.get_token_state()
    new_state = {**state, 'sum_of_private_sale': state['sum_of_private_sale'] + batch_total}
    return build_transaction(
        caller, OP_BATCH_MINT,
        moves=moves,
        state_change=TokenStateChange(old_state=state, new_state=new_state),
        events=events,
    )


def compute_burn(view: TokenView, caller: Address, account: Address, amount: int) -> PendingTransaction:
    """
    Destroy amount tokens held by account.

    Total minted drops by amount; sum_of_private_sale is left unchanged.

    Raises:
        Unauthorized: If caller is not the owner.
        InvalidState: If minting is finished.
        InsufficientBalance: If account holds less than amount.
    """
    caller = to_address(caller)
    account = to_address(account)
    amount = require_amount(amount)
    require_owner(view, caller)

    if view.phase == MintingPhase.FINISHED:
        raise InvalidState("tokens cannot be burned after minting is finished")

    balance = view.get_balance(account)
    if balance < amount:
        raise InsufficientBalance(f"{account}: balance {balance} < burn amount {amount}")

    moves = []
    if amount > 0:
        moves.append(Move(amount=amount, source=account, dest=SYSTEM_WALLET, reason="burn"))
    events = [
        event(EVENT_BURN, burner=account, value=amount),
        transfer_event(account, SYSTEM_WALLET, amount),
    ]
    return build_transaction(caller, OP_BURN, moves=moves, events=events)
