"""
access.py - Owner and Controller Access Control

Guards are pure predicates over the caller and the role sets in a TokenView:
1. is_owner() / can_mint() - capability checks, never raise
2. require_owner() / require_can_mint() - raise Unauthorized
3. compute_add_controller() / compute_remove_controller() - owner-only
   changes to the controller set

The owner is fixed at construction. Controllers may call batchMint in
addition to the owner; every other privileged operation is owner-only.
"""

from __future__ import annotations

from .core import (
    Address, TokenView, PendingTransaction, TokenStateChange,
    OP_ADD_CONTROLLER, OP_REMOVE_CONTROLLER,
    EVENT_CONTROLLER_ADDED, EVENT_CONTROLLER_REMOVED,
    ZERO_ADDRESS, Unauthorized, InvalidArgument,
    to_address, build_transaction, event,
)


def is_owner(view: TokenView, caller: Address) -> bool:
    return caller == view.owner


def can_mint(view: TokenView, caller: Address) -> bool:
    """True if caller is the owner or a controller."""
    return is_owner(view, caller) or view.is_controller(caller)


def require_owner(view: TokenView, caller: Address) -> None:
    if not is_owner(view, caller):
        raise Unauthorized(f"{caller} is not the owner")


def require_can_mint(view: TokenView, caller: Address) -> None:
    if not can_mint(view, caller):
        raise Unauthorized(f"{caller} is neither the owner nor a controller")


def compute_add_controller(view: TokenView, caller: Address, controller: Address) -> PendingTransaction:
    """
    Authorize controller to batch mint.

    Adding an existing controller succeeds and leaves the set unchanged.

    Raises:
        Unauthorized: If caller is not the owner.
        InvalidArgument: If controller is malformed or the zero address.
    """
    caller = to_address(caller)
    controller = to_address(controller)
    require_owner(view, caller)
    if controller == ZERO_ADDRESS:
        raise InvalidArgument("controller cannot be the zero address")

    state = view.get_token_state()
    new_state = {**state, 'controllers': state['controllers'] | {controller}}
    return build_transaction(
        caller, OP_ADD_CONTROLLER,
        state_change=TokenStateChange(old_state=state, new_state=new_state),
        events=[event(EVENT_CONTROLLER_ADDED, controller=controller)],
    )


def compute_remove_controller(view: TokenView, caller: Address, controller: Address) -> PendingTransaction:
    """
    Revoke controller's minting right. Removing a non-controller is a no-op.

    Raises:
        Unauthorized: If caller is not the owner.
    """
    caller = to_address(caller)
    controller = to_address(controller)
    require_owner(view, caller)

    state = view.get_token_state()
    new_state = {**state, 'controllers': state['controllers'] - {controller}}
    return build_transaction(
        caller, OP_REMOVE_CONTROLLER,
        state_change=TokenStateChange(old_state=state, new_state=new_state),
        events=[event(EVENT_CONTROLLER_REMOVED, controller=controller)],
    )
