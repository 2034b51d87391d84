"""
supply.py - Supply Controller and Fund Allocation

This module drives the one-way minting lifecycle NOT_STARTED → STARTED → FINISHED:
1. compute_start_minting() - Credits the forget and bonus funds, opens minting
2. compute_allocation() - Pure arithmetic for the closing fund allocations
3. compute_finish_minting() - Mints advisors/team/reserve parts, closes minting
   and makes the token transferable

Allocation at finish (integer arithmetic, percentages from TokenTerms):

    base               = sum_of_private_sale + forget_fund_amount
    advisors_fund_part = base * 3 // 100
    team_fund_part     = base * 7 // 100
    reserve_fund_amount = total_supply - advisors_fund_part - team_fund_part
                          - sum_of_private_sale - forget_fund_amount
                          - bonus_fund_amount

The reserve absorbs the rounding remainder, so without burns the five funds
and the sale recipients together hold exactly total_supply once minting is
finished.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .core import (
    Address, TokenView, TokenTerms, PendingTransaction, TokenStateChange,
    Move, TokenEvent, MintingPhase,
    OP_START_MINTING, OP_FINISH_MINTING,
    EVENT_MINTING_STARTED, EVENT_MINTING_FINISHED,
    SupplyExceeded,
    to_address, require_amount, check_transition, build_transaction, event,
)
from .access import require_owner
from .minting import mint_effects


@dataclass(frozen=True, slots=True)
class FundAllocation:
    """
    Amounts minted to the closing funds when minting finishes.

    Attributes:
        advisors_fund_part: Advisors share of the sale base
        team_fund_part: Team share of the sale base
        reserve_fund_amount: Everything left under the supply cap
    """
    advisors_fund_part: int
    team_fund_part: int
    reserve_fund_amount: int

    @property
    def total(self) -> int:
        return self.advisors_fund_part + self.team_fund_part + self.reserve_fund_amount

    def as_dict(self) -> Dict[str, int]:
        return {
            'advisors_fund_part': self.advisors_fund_part,
            'team_fund_part': self.team_fund_part,
            'reserve_fund_amount': self.reserve_fund_amount,
        }


def compute_allocation(
    terms: TokenTerms,
    sum_of_private_sale: int,
    forget_fund_amount: int,
    bonus_fund_amount: int,
) -> FundAllocation:
    """
    Compute the closing fund allocation.

    Args:
        terms: Token parameters (total supply and fund percentages)
        sum_of_private_sale: Total batch minted since minting started
        forget_fund_amount: Amount given to the forget fund at start
        bonus_fund_amount: Amount given to the bonus fund at start

    Returns:
        FundAllocation

    Raises:
        SupplyExceeded: If the sale and fund amounts leave no room for a
            non-negative reserve.

    Example:
        >>> a = compute_allocation(TokenTerms(total_supply=1000), 100, 100, 300)
        >>> (a.advisors_fund_part, a.team_fund_part, a.reserve_fund_amount)
        (6, 14, 480)
    """
    base = sum_of_private_sale + forget_fund_amount
    advisors = base * terms.advisors_fund_percent // 100
    team = base * terms.team_fund_percent // 100
    reserve = (
        terms.total_supply - advisors - team
        - sum_of_private_sale - forget_fund_amount - bonus_fund_amount
    )
    if reserve < 0:
        raise SupplyExceeded(
            f"allocation overshoots total supply by {-reserve} "
            f"(sale={sum_of_private_sale}, forget={forget_fund_amount}, bonus={bonus_fund_amount})"
        )
    return FundAllocation(
        advisors_fund_part=advisors,
        team_fund_part=team,
        reserve_fund_amount=reserve,
    )


def compute_start_minting(
    view: TokenView,
    caller: Address,
    forget_fund_amount: int,
    bonus_fund_amount: int,
) -> PendingTransaction:
    """
    Open minting, crediting the forget and bonus funds immediately.

    Both amounts are recorded in the token state for the closing allocation.

    Raises:
        Unauthorized: If caller is not the owner.
        InvalidState: If minting was already started.
        SupplyExceeded: If the two amounts together exceed total supply.
    """
    caller = to_address(caller)
    forget_fund_amount = require_amount(forget_fund_amount)
    bonus_fund_amount = require_amount(bonus_fund_amount)
    require_owner(view, caller)
    check_transition(view.phase, MintingPhase.STARTED)

    if forget_fund_amount + bonus_fund_amount > view.terms.total_supply:
        raise SupplyExceeded(
            f"forget + bonus fund amounts {forget_fund_amount + bonus_fund_amount} "
            f"exceed total supply {view.terms.total_supply}"
        )

    funds = view.funds
    moves: List[Move] = []
    events: List[TokenEvent] = []
    for dest, amount, reason in (
        (funds.forget_fund, forget_fund_amount, "forget_fund"),
        (funds.bonus_fund, bonus_fund_amount, "bonus_fund"),
    ):
        m, e = mint_effects(dest, amount, reason)
        moves.extend(m)
        events.extend(e)
    events.append(event(EVENT_MINTING_STARTED))

    state = view.get_token_state()
    new_state = {
        **state,
        'phase': MintingPhase.STARTED,
        'forget_fund_amount': forget_fund_amount,
        'bonus_fund_amount': bonus_fund_amount,
    }
    return build_transaction(
        caller, OP_START_MINTING,
        moves=moves,
        state_change=TokenStateChange(old_state=state, new_state=new_state),
        events=events,
    )


def compute_finish_minting(view: TokenView, caller: Address) -> PendingTransaction:
    """
    Mint the closing allocations and finish minting for good.

    After this call the token is transferable and no further minting or
    burning is possible.

    Raises:
        Unauthorized: If caller is not the owner.
        InvalidState: If minting is not started or already finished.
        SupplyExceeded: If the allocation would breach the cap.
    """
    caller = to_address(caller)
    require_owner(view, caller)
    check_transition(view.phase, MintingPhase.FINISHED)

    state = view.get_token_state()
    allocation = compute_allocation(
        view.terms,
        state['sum_of_private_sale'],
        state['forget_fund_amount'],
        state['bonus_fund_amount'],
    )
    if view.total_minted + allocation.total > view.terms.total_supply:
        raise SupplyExceeded(
            f"closing allocation {allocation.total} would bring total minted above "
            f"{view.terms.total_supply}"
        )

    funds = view.funds
    moves: List[Move] = []
    events: List[TokenEvent] = []
    for dest, amount, reason in (
        (funds.advisors_fund, allocation.advisors_fund_part, "advisors_fund"),
        (funds.team_fund, allocation.team_fund_part, "team_fund"),
        (funds.reserve_fund, allocation.reserve_fund_amount, "reserve_fund"),
    ):
        m, e = mint_effects(dest, amount, reason)
        moves.extend(m)
        events.extend(e)
    events.append(event(EVENT_MINTING_FINISHED))

    new_state = {**state, 'phase': MintingPhase.FINISHED}
    return build_transaction(
        caller, OP_FINISH_MINTING,
        moves=moves,
        state_change=TokenStateChange(old_state=state, new_state=new_state),
        events=events,
    )
