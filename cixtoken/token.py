"""
token.py - CryptoIndexToken

The contract-shaped entry point: construct a token with its owner and five
fund addresses, then call operations with an explicit caller, the way the
host chain would deliver msg.sender.

    token = CryptoIndexToken(owner, forget, team, advisors, bonus, reserve)
    token.start_minting(owner, forget_amount, bonus_amount)
    token.batch_mint(owner, [alice, bob], [100, 200])
    token.finish_minting(owner)
    token.transfer(alice, bob, 50)

Every mutating call goes through transact(), which maps the operation name to
its pure compute function, and then through TokenLedger.execute(), which
applies the result atomically or raises.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Sequence

from .core import (
    Address, TokenView, TokenTerms, FundAddresses, PendingTransaction,
    Transaction, TokenEvent, MintingPhase, InvalidArgument,
    OP_START_MINTING, OP_FINISH_MINTING, OP_ADD_CONTROLLER, OP_REMOVE_CONTROLLER,
    OP_BATCH_MINT, OP_BURN, OP_TRANSFER, OP_APPROVE, OP_TRANSFER_FROM,
    OP_INCREASE_APPROVAL, OP_DECREASE_APPROVAL,
    to_address,
)
from .ledger import TokenLedger
from .access import compute_add_controller, compute_remove_controller
from .supply import compute_start_minting, compute_finish_minting
from .minting import compute_batch_mint, compute_burn
from .erc20 import (
    compute_transfer, compute_approve, compute_transfer_from,
    compute_increase_approval, compute_decrease_approval,
)


OPERATIONS: Dict[str, Callable[..., PendingTransaction]] = {
    OP_START_MINTING: compute_start_minting,
    OP_FINISH_MINTING: compute_finish_minting,
    OP_ADD_CONTROLLER: compute_add_controller,
    OP_REMOVE_CONTROLLER: compute_remove_controller,
    OP_BATCH_MINT: compute_batch_mint,
    OP_BURN: compute_burn,
    OP_TRANSFER: compute_transfer,
    OP_APPROVE: compute_approve,
    OP_TRANSFER_FROM: compute_transfer_from,
    OP_INCREASE_APPROVAL: compute_increase_approval,
    OP_DECREASE_APPROVAL: compute_decrease_approval,
}


def transact(view: TokenView, operation: str, caller: Address, **kwargs: Any) -> PendingTransaction:
    """
    Compute the effects of one call by operation name.

    Args:
        view: Read-only ledger access
        operation: ABI name, one of OPERATIONS (e.g. "batchMint")
        caller: Address sending the call
        **kwargs: Operation arguments, named as in the compute function

    Returns:
        PendingTransaction ready for TokenLedger.execute()

    Raises:
        InvalidArgument: If the operation is unknown.
        LedgerError: Whatever the compute function raises.

    Example:
        pending = transact(ledger, "transfer", alice, to=bob, amount=100)
        ledger.execute(pending)
    """
    handler = OPERATIONS.get(operation)
    if handler is None:
        raise InvalidArgument(f"unknown operation: {operation!r}")
    return handler(view, caller, **kwargs)


class CryptoIndexToken:
    """
    CIX100 token: supply-capped minting across five funds, then a plain
    transferable ledger.

    Attributes:
        ledger: The TokenLedger holding all state
    """

    def __init__(
        self,
        owner: Address,
        forget_fund: Address,
        team_fund: Address,
        advisors_fund: Address,
        bonus_fund: Address,
        reserve_fund: Address,
        terms: Optional[TokenTerms] = None,
        name: str = "cix",
        verbose: bool = False,
    ):
        funds = FundAddresses(
            forget_fund=forget_fund,
            team_fund=team_fund,
            advisors_fund=advisors_fund,
            bonus_fund=bonus_fund,
            reserve_fund=reserve_fund,
        )
        self.ledger = TokenLedger(name, owner, funds, terms=terms, verbose=verbose)

    def _call(self, operation: str, caller: Address, **kwargs: Any) -> Transaction:
        return self.ledger.execute(transact(self.ledger, operation, caller, **kwargs))

    # ------------------------------------------------------------------
    # Supply controller
    # ------------------------------------------------------------------

    def start_minting(self, caller: Address, forget_fund_amount: int, bonus_fund_amount: int) -> Transaction:
        return self._call(
            OP_START_MINTING, caller,
            forget_fund_amount=forget_fund_amount,
            bonus_fund_amount=bonus_fund_amount,
        )

    def finish_minting(self, caller: Address) -> Transaction:
        return self._call(OP_FINISH_MINTING, caller)

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def add_controller(self, caller: Address, controller: Address) -> Transaction:
        return self._call(OP_ADD_CONTROLLER, caller, controller=controller)

    def remove_controller(self, caller: Address, controller: Address) -> Transaction:
        return self._call(OP_REMOVE_CONTROLLER, caller, controller=controller)

    def controllers(self, account: Address) -> bool:
        """True if account may batch mint besides the owner."""
        return self.ledger.is_controller(to_address(account))

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def batch_mint(self, caller: Address, recipients: Sequence[Address], amounts: Sequence[int]) -> Transaction:
        return self._call(OP_BATCH_MINT, caller, recipients=recipients, amounts=amounts)

    def burn(self, caller: Address, account: Address, amount: int) -> Transaction:
        return self._call(OP_BURN, caller, account=account, amount=amount)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def transfer(self, caller: Address, to: Address, amount: int) -> Transaction:
        return self._call(OP_TRANSFER, caller, to=to, amount=amount)

    def approve(self, caller: Address, spender: Address, amount: int) -> Transaction:
        return self._call(OP_APPROVE, caller, spender=spender, amount=amount)

    def transfer_from(self, caller: Address, owner: Address, to: Address, amount: int) -> Transaction:
        return self._call(OP_TRANSFER_FROM, caller, owner=owner, to=to, amount=amount)

    def increase_approval(self, caller: Address, spender: Address, added_value: int) -> Transaction:
        return self._call(OP_INCREASE_APPROVAL, caller, spender=spender, added_value=added_value)

    def decrease_approval(self, caller: Address, spender: Address, subtracted_value: int) -> Transaction:
        return self._call(OP_DECREASE_APPROVAL, caller, spender=spender, subtracted_value=subtracted_value)

    # ------------------------------------------------------------------
    # Read accessors (never raise for unknown accounts)
    # ------------------------------------------------------------------

    def balance_of(self, account: Address) -> int:
        return self.ledger.get_balance(to_address(account))

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.ledger.get_allowance(to_address(owner), to_address(spender))

    def total_supply(self) -> int:
        """The supply cap, not the amount minted so far."""
        return self.ledger.terms.total_supply

    def total_minted(self) -> int:
        return self.ledger.total_minted

    @property
    def owner(self) -> Address:
        return self.ledger.owner

    @property
    def funds(self) -> FundAddresses:
        return self.ledger.funds

    @property
    def name(self) -> str:
        return self.ledger.terms.name

    @property
    def symbol(self) -> str:
        return self.ledger.terms.symbol

    @property
    def decimals(self) -> int:
        return self.ledger.terms.decimals

    @property
    def phase(self) -> MintingPhase:
        return self.ledger.phase

    @property
    def minting_started(self) -> bool:
        return self.ledger.phase != MintingPhase.NOT_STARTED

    @property
    def minting_finished(self) -> bool:
        return self.ledger.phase == MintingPhase.FINISHED

    @property
    def transferable(self) -> bool:
        return self.minting_finished

    @property
    def sum_of_private_sale(self) -> int:
        return self.ledger.get_token_state()['sum_of_private_sale']

    def events(self, name: Optional[str] = None) -> List[TokenEvent]:
        return self.ledger.get_events(name)
