"""
ledger.py - Stateful Token Ledger

The TokenLedger class is the central state manager for the token.
It is the only module that mutates state, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements the TokenView protocol for safe read-only access by pure functions
    - Executes pending transactions atomically (all effects apply or none do)
    - Maintains balances, allowances and the token-wide state (phase, controllers,
      sale accumulators)
    - Enforces the supply cap, non-negative balances and the minting lifecycle
      on every transaction, whatever produced it
    - Always validates and always logs, enabling clone() and replay()
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple, Any

from .core import (
    # Types
    Address, Move, Transaction, PendingTransaction, TokenEvent,
    TokenTerms, FundAddresses, MintingPhase, TokenState, Balances,
    # Constants
    SYSTEM_WALLET,
    # Exceptions
    LedgerError, InsufficientBalance, InvalidState,
    SupplyExceeded,
    # Helpers
    to_address, check_transition, initial_token_state,
)


class TokenLedger:
    """
    Token ledger with full validation and audit trail.

    Implements the TokenView protocol, so the ledger can be passed to the
    compute functions, which only use its read-only methods.

    Design Principles:
        - Always validates: Every transaction is checked against stale state,
          non-negative balances, the supply cap and the minting lifecycle
          before anything is written.
        - Always logs: Every applied transaction is appended to the audit
          trail, enabling replay().

    Thread Safety:
        Not thread-safe. Calls must be serialized by the host.

    Example:
        ledger = TokenLedger("main", owner, funds)
        pending = compute_start_minting(ledger, owner, 10, 30)
        tx = ledger.execute(pending)
    """

    def __init__(
        self,
        name: str,
        owner: Address,
        funds: FundAddresses,
        terms: Optional[TokenTerms] = None,
        verbose: bool = False,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            owner: Address of the deploying account (immutable)
            funds: The five fund addresses
            terms: Token parameters (default: TokenTerms())
            verbose: Print one line per applied or rejected call
        """
        self.name = name
        self._owner = to_address(owner)
        self._funds = funds
        self._terms = terms or TokenTerms()
        self.verbose = verbose
        self.balances: Balances = defaultdict(int)
        self.allowances: Dict[str, Dict[str, int]] = defaultdict(dict)
        self._state: TokenState = initial_token_state()
        self.transaction_log: List[Transaction] = []
        self._next_sequence: int = 0

    # ========================================================================
    # TokenView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def owner(self) -> Address:
        return self._owner

    @property
    def terms(self) -> TokenTerms:
        return self._terms

    @property
    def funds(self) -> FundAddresses:
        return self._funds

    @property
    def phase(self) -> MintingPhase:
        return self._state['phase']

    @property
    def total_minted(self) -> int:
        """Tokens in circulation: the negated issuance balance."""
        return -self.balances.get(SYSTEM_WALLET, 0)

    def get_balance(self, account: str) -> int:
        """
        Get the balance of an account.

        Returns 0 for accounts that never held tokens and for SYSTEM_WALLET,
        which is not a holder.
        """
        if account == SYSTEM_WALLET:
            return 0
        return self.balances.get(account, 0)

    def get_allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def is_controller(self, account: Address) -> bool:
        return account in self._state['controllers']

    def get_token_state(self) -> TokenState:
        """Return a copy of the token-wide state (controllers is a frozenset)."""
        return dict(self._state)

    def get_holders(self) -> Dict[str, int]:
        """Return every account with a nonzero balance."""
        return {
            account: balance
            for account, balance in self.balances.items()
            if account != SYSTEM_WALLET and balance != 0
        }

    def list_controllers(self) -> Set[Address]:
        return set(self._state['controllers'])

    def sum_of_balances(self) -> int:
        """Sum of all holder balances, accumulated in a deterministic order."""
        holders = self.get_holders()
        return sum(holders[a] for a in sorted(holders))

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the supply invariants hold.

        Checks:
        - the sum of all holder balances equals total minted
        - total minted is within [0, total_supply]
        - no holder balance is negative

        Returns:
            Dict with keys:
            - 'valid': bool - True if every invariant holds
            - 'total_minted': int
            - 'sum_of_balances': int
            - 'discrepancies': List[str] - description of each violation

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], result['discrepancies']
        """
        discrepancies = []
        holders = self.get_holders()
        total = sum(holders[a] for a in sorted(holders))
        minted = self.total_minted

        if total != minted:
            discrepancies.append(f"sum of balances {total} != total minted {minted}")
        if minted < 0:
            discrepancies.append(f"total minted is negative: {minted}")
        if minted > self._terms.total_supply:
            discrepancies.append(
                f"total minted {minted} exceeds total supply {self._terms.total_supply}"
            )
        for account, balance in sorted(holders.items()):
            if balance < 0:
                discrepancies.append(f"{account} has negative balance {balance}")

        return {
            'valid': len(discrepancies) == 0,
            'total_minted': minted,
            'sum_of_balances': total,
            'discrepancies': discrepancies,
        }

    def get_events(self, name: Optional[str] = None) -> List[TokenEvent]:
        """Return every emitted event in order, optionally filtered by name."""
        return [
            ev
            for tx in self.transaction_log
            for ev in tx.events
            if name is None or ev.name == name
        ]

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """
        Generate a unique execution ID.

        Format: exec:{ledger_name}:{sequence:012d}
        """
        return f"exec:{self.name}:{sequence:012d}"

    def execute(self, pending: PendingTransaction) -> Transaction:
        """
        Execute a PendingTransaction atomically.

        The whole transaction is validated before any state is written, so a
        failure leaves balances, allowances, token state and the log untouched.

        Args:
            pending: PendingTransaction to execute

        Returns:
            The Transaction record appended to the log

        Raises:
            LedgerError: The subclass describing why the call reverted.
        """
        if pending.is_empty():
            raise LedgerError(f"empty transaction from {pending.origin}")

        try:
            self._validate_pending(pending)
        except LedgerError as e:
            if self.verbose:
                print(f"✗ REJECTED: {pending.origin!r}: {type(e).__name__}: {e}")
            raise

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            origin=pending.origin,
            moves=pending.moves,
            allowance_changes=pending.allowance_changes,
            state_change=pending.state_change,
            events=pending.events,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            sequence_number=sequence,
        )

        # Effects are committed here and nowhere else.
        self._execute_moves(tx.moves)
        for ac in tx.allowance_changes:
            if ac.new_amount:
                self.allowances[ac.owner][ac.spender] = ac.new_amount
            else:
                self.allowances[ac.owner].pop(ac.spender, None)
        if tx.state_change is not None:
            self._state = dict(tx.state_change.new_state)

        self.transaction_log.append(tx)

        if self.verbose:
            print(f"✓ APPLIED: {tx.exec_id} {tx.origin!r} "
                  f"({len(tx.moves)} moves, {len(tx.events)} events)")
        return tx

    def _validate_pending(self, pending: PendingTransaction) -> None:
        """
        Validate a pending transaction against all constraints.

        Checks performed:
        1. The state snapshot and allowance snapshots are not stale
        2. The phase change, if any, is in the transition table
        3. No mint or burn after minting finished; no transfer before it
        4. No holder balance goes negative
        5. Total minted stays within [0, total_supply]

        Raises:
            LedgerError: The subclass matching the first failed check.
        """
        target_phase = self.phase
        if pending.state_change is not None:
            if pending.state_change.old_state != self._state:
                changed = sorted(
                    k for k in set(self._state) | set(pending.state_change.old_state)
                    if self._state.get(k) != pending.state_change.old_state.get(k)
                )
                raise LedgerError(f"stale token state: {', '.join(changed)}")
            target_phase = pending.state_change.new_state["phase"]
            if target_phase != self.phase:
                check_transition(self.phase, target_phase)

        # Minting is open while STARTED, including the call that starts it.
        minting_open = MintingPhase.STARTED in (self.phase, target_phase)

        for ac in pending.allowance_changes:
            current = self.get_allowance(ac.owner, ac.spender)
            if current != ac.old_amount:
                raise LedgerError(
                    f"stale allowance {ac.owner}→{ac.spender}: "
                    f"expected {ac.old_amount}, found {current}"
                )

        for move in pending.moves:
            touches_issuance = move.is_mint or move.is_burn
            if touches_issuance and not minting_open:
                raise InvalidState(f"tokens cannot be minted or burned while minting is {self.phase.value}")
            if not touches_issuance and self.phase != MintingPhase.FINISHED:
                raise InvalidState("token is not transferable until minting is finished")

        net: Dict[str, int] = {}
        for move in pending.moves:
            net[move.source] = net.get(move.source, 0) - move.amount
            net[move.dest] = net.get(move.dest, 0) + move.amount

        for account, delta in sorted(net.items()):
            if account == SYSTEM_WALLET:
                continue
            proposed = self.balances.get(account, 0) + delta
            if proposed < 0:
                raise InsufficientBalance(
                    f"{account}: balance {self.balances.get(account, 0)} < {-delta}"
                )

        minted = self.total_minted - net.get(SYSTEM_WALLET, 0)
        if minted > self._terms.total_supply:
            raise SupplyExceeded(
                f"total minted {minted} would exceed total supply {self._terms.total_supply}"
            )
        if minted < 0:
            raise InsufficientBalance(f"total minted would be negative: {minted}")

    def _execute_moves(self, moves: Tuple[Move, ...]) -> None:
        """Apply moves to balances, dropping accounts that reach zero."""
        for move in moves:
            self.balances[move.source] -= move.amount
            self.balances[move.dest] += move.amount
            for account in (move.source, move.dest):
                if self.balances[account] == 0:
                    del self.balances[account]

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> TokenLedger:
        """
        Create a deep copy of this ledger.

        Modifications to the clone do not affect the original, and vice versa.
        Records in the transaction log are immutable and shared.
        """
        cloned = TokenLedger.__new__(TokenLedger)
        cloned.name = self.name
        cloned._owner = self._owner
        cloned._funds = self._funds
        cloned._terms = self._terms
        cloned.verbose = self.verbose
        cloned.balances = defaultdict(int, self.balances)
        cloned.allowances = defaultdict(dict)
        for owner, spenders in self.allowances.items():
            cloned.allowances[owner] = dict(spenders)
        cloned._state = dict(self._state)
        cloned.transaction_log = list(self.transaction_log)
        cloned._next_sequence = self._next_sequence
        return cloned

    def replay(self, from_tx: int = 0) -> TokenLedger:
        """
        Create a new ledger by re-executing the transaction log.

        Each logged Transaction is converted back into a PendingTransaction and
        executed with full validation against the rebuilt state.

        Args:
            from_tx: Index of the first transaction to replay. Replaying from a
                nonzero index only succeeds if the skipped prefix had no
                effect the remaining transactions depend on.

        Returns:
            New TokenLedger named "{name}_replayed"

        Raises:
            LedgerError: If any transaction is rejected during replay
        """
        new_ledger = TokenLedger(
            name=f"{self.name}_replayed",
            owner=self._owner,
            funds=self._funds,
            terms=self._terms,
            verbose=self.verbose,
        )
        for tx in self.transaction_log[from_tx:]:
            pending = PendingTransaction(
                origin=tx.origin,
                moves=tx.moves,
                allowance_changes=tx.allowance_changes,
                state_change=tx.state_change,
                events=tx.events,
            )
            try:
                new_ledger.execute(pending)
            except LedgerError as e:
                raise LedgerError(f"Replay failed at tx {tx.exec_id}: {e}") from e
        return new_ledger
