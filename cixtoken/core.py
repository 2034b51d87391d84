"""
Core types and pure functions for the CryptoIndexToken ledger.

This module provides the foundational data structures and protocols for the token:
1. Protocols: TokenView for read-only ledger access
2. Immutable data structures: Move, AllowanceChange, TokenStateChange, TokenEvent,
   PendingTransaction, Transaction
3. Exceptions: LedgerError and the revert kinds raised by token operations
4. Configuration: TokenTerms and FundAddresses
5. The minting lifecycle: MintingPhase and its transition table
6. Address and amount validation helpers

All functions in this module are pure and operate on read-only views.
No function can mutate ledger state directly.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, localcontext
from enum import Enum
import re
from typing import (
    Dict, List, Optional, Any, Protocol, Tuple, FrozenSet, Mapping,
    runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# Every mint is a move out of this wallet and every burn a move into it, so its
# balance is always -total_minted. It is not an address and is never reported
# by balance_of().
SYSTEM_WALLET = "system"

ZERO_ADDRESS = "0x" + "0" * 40

DECIMALS = 18
TOTAL_SUPPLY = 300_000_000 * 10 ** DECIMALS

# Amounts are uint256 on the host chain.
MAX_UINT256 = 2 ** 256 - 1

ADVISORS_FUND_PERCENT = 3
TEAM_FUND_PERCENT = 7

# Operation names (ABI names of the contract methods).
OP_START_MINTING = "startMinting"
OP_FINISH_MINTING = "finishMinting"
OP_ADD_CONTROLLER = "addController"
OP_REMOVE_CONTROLLER = "removeController"
OP_BATCH_MINT = "batchMint"
OP_BURN = "burn"
OP_TRANSFER = "transfer"
OP_APPROVE = "approve"
OP_TRANSFER_FROM = "transferFrom"
OP_INCREASE_APPROVAL = "increaseApproval"
OP_DECREASE_APPROVAL = "decreaseApproval"

# Event names.
EVENT_TRANSFER = "Transfer"
EVENT_APPROVAL = "Approval"
EVENT_MINT = "Mint"
EVENT_BURN = "Burn"
EVENT_MINTING_STARTED = "MintingStarted"
EVENT_MINTING_FINISHED = "MintingFinished"
EVENT_CONTROLLER_ADDED = "ControllerAdded"
EVENT_CONTROLLER_REMOVED = "ControllerRemoved"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


# ============================================================================
# TYPE ALIASES
# ============================================================================

# 0x-prefixed, lower-case, 20-byte hex account identifier.
Address = str

# Mapping from account to balance in base units.
Balances = Dict[str, int]

# Mapping from owner to {spender: amount}.
Allowances = Dict[str, Dict[str, int]]

# Token-wide state: phase, controllers and the sale accumulators.
TokenState = Dict[str, Any]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for every reverted token call."""
    pass


class Unauthorized(LedgerError):
    """Raised when the caller lacks the owner or controller role."""
    pass


class InvalidState(LedgerError):
    """Raised when an operation is not valid in the current minting phase."""
    pass


class SupplyExceeded(LedgerError):
    """Raised when a call would push total minted above the total supply cap."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when an account would be debited below zero."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a spender's allowance is smaller than the requested amount."""
    pass


class ZeroAddressRecipient(LedgerError):
    """Raised when the zero address is used as a recipient."""
    pass


class ApprovalRaceGuard(LedgerError):
    """Raised when a nonzero allowance is changed to another nonzero value."""
    pass


class InvalidArgument(LedgerError, ValueError):
    """Raised for malformed addresses, out-of-range amounts and mismatched batches."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def is_address(value: Any) -> bool:
    """Return True if value is a well-formed 0x-prefixed 20-byte hex string."""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def to_address(value: Any) -> Address:
    """
    Validate and normalize an address to lower case.

    Raises:
        InvalidArgument: If value is not a 0x-prefixed 40-hex-digit string.
    """
    if not is_address(value):
        raise InvalidArgument(f"invalid address: {value!r}")
    return value.lower()


def require_amount(amount: Any) -> int:
    """
    Validate a uint256 amount.

    Booleans are rejected even though they are ints.

    Raises:
        InvalidArgument: If amount is not an int in [0, MAX_UINT256].
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidArgument(f"amount must be an int, got {type(amount).__name__}")
    if amount < 0 or amount > MAX_UINT256:
        raise InvalidArgument(f"amount out of uint256 range: {amount}")
    return amount


def to_base_units(tokens: Decimal, decimals: int = DECIMALS) -> int:
    """
    Convert a whole-token Decimal into base units, truncating dust.

    Example:
        to_base_units(Decimal("1.5")) == 1_500_000_000_000_000_000
    """
    if not isinstance(tokens, Decimal):
        tokens = Decimal(str(tokens))
    if tokens.is_nan() or tokens.is_infinite():
        raise InvalidArgument(f"token amount must be finite, got {tokens}")
    # uint256 needs 78 significant digits
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = (tokens * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_DOWN)
    return require_amount(int(scaled))


def from_base_units(amount: int, decimals: int = DECIMALS) -> Decimal:
    """Convert base units into a whole-token Decimal."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(amount).scaleb(-decimals)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class TokenTerms:
    """
    Fixed parameters of a token deployment.

    Attributes:
        name: Human-readable token name.
        symbol: Ticker symbol.
        decimals: Number of decimal places of one whole token.
        total_supply: Supply cap in base units. Nothing is credited at
            construction; the cap is reached only through minting.
        advisors_fund_percent: Share of (private sale + forget fund amount)
            minted to the advisors fund when minting finishes.
        team_fund_percent: Share of the same base minted to the team fund.
    """
    name: str = "CryptoIndexToken"
    symbol: str = "CIX100"
    decimals: int = DECIMALS
    total_supply: int = TOTAL_SUPPLY
    advisors_fund_percent: int = ADVISORS_FUND_PERCENT
    team_fund_percent: int = TEAM_FUND_PERCENT

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("TokenTerms name cannot be empty")
        if not self.symbol or not self.symbol.strip():
            raise ValueError("TokenTerms symbol cannot be empty")
        if not 0 <= self.decimals <= 77:
            raise ValueError(f"decimals out of range: {self.decimals}")
        if not 0 < self.total_supply <= MAX_UINT256:
            raise ValueError(f"total_supply out of range: {self.total_supply}")
        for pct in (self.advisors_fund_percent, self.team_fund_percent):
            if not 0 <= pct <= 100:
                raise ValueError(f"fund percent must be within [0, 100], got {pct}")
        if self.advisors_fund_percent + self.team_fund_percent > 100:
            raise ValueError("advisors and team percents exceed 100 combined")


@dataclass(frozen=True, slots=True)
class FundAddresses:
    """
    The five fund accounts fixed at construction.

    Addresses are normalized to lower case. They must be non-zero and distinct.
    """
    forget_fund: Address
    team_fund: Address
    advisors_fund: Address
    bonus_fund: Address
    reserve_fund: Address

    def __post_init__(self):
        seen = set()
        for name in ("forget_fund", "team_fund", "advisors_fund", "bonus_fund", "reserve_fund"):
            addr = to_address(getattr(self, name))
            if addr == ZERO_ADDRESS:
                raise InvalidArgument(f"{name} cannot be the zero address")
            if addr in seen:
                raise InvalidArgument(f"{name} duplicates another fund address: {addr}")
            seen.add(addr)
            object.__setattr__(self, name, addr)

    def as_dict(self) -> Dict[str, Address]:
        return {
            'forget_fund': self.forget_fund,
            'team_fund': self.team_fund,
            'advisors_fund': self.advisors_fund,
            'bonus_fund': self.bonus_fund,
            'reserve_fund': self.reserve_fund,
        }


# ============================================================================
# MINTING LIFECYCLE
# ============================================================================

class MintingPhase(Enum):
    """
    One-way minting lifecycle.

    NOT_STARTED: only the owner may start minting; nothing is transferable.
    STARTED: batch minting and burning are allowed; nothing is transferable.
    FINISHED: supply is fully allocated; transfers are allowed, minting and
              burning are not.
    """
    NOT_STARTED = "not_started"
    STARTED = "started"
    FINISHED = "finished"


MINTING_TRANSITIONS: Mapping[MintingPhase, FrozenSet[MintingPhase]] = {
    MintingPhase.NOT_STARTED: frozenset({MintingPhase.STARTED}),
    MintingPhase.STARTED: frozenset({MintingPhase.FINISHED}),
    MintingPhase.FINISHED: frozenset(),
}


def check_transition(current: MintingPhase, target: MintingPhase) -> None:
    """
    Reject any phase change that is not in MINTING_TRANSITIONS.

    Raises:
        InvalidState: If current -> target is not an allowed transition.
    """
    if target not in MINTING_TRANSITIONS[current]:
        raise InvalidState(
            f"minting cannot move from {current.value} to {target.value}"
        )


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TokenView(Protocol):
    """
    Read-only interface to token ledger state.

    Compute functions accept a TokenView to declare that they never mutate
    state. TokenLedger implements this protocol; tests use FakeView.
    """

    @property
    def owner(self) -> Address:
        ...

    @property
    def terms(self) -> TokenTerms:
        ...

    @property
    def funds(self) -> FundAddresses:
        ...

    @property
    def phase(self) -> MintingPhase:
        ...

    @property
    def total_minted(self) -> int:
        ...

    def get_balance(self, account: str) -> int:
        """Return the balance of account, 0 if it never held tokens."""
        ...

    def get_allowance(self, owner: Address, spender: Address) -> int:
        """Return what spender may still move out of owner's balance."""
        ...

    def is_controller(self, account: Address) -> bool:
        ...

    def get_token_state(self) -> TokenState:
        """Return a copy of the token-wide state dictionary."""
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class CallOrigin:
    """
    Who made a call and which operation it was.

    Attributes:
        caller: Address of the account that sent the call.
        operation: ABI name of the operation (e.g. "batchMint").
    """
    caller: Address
    operation: str

    def __repr__(self) -> str:
        return f"Origin({self.operation} from {self.caller})"


@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of tokens between two accounts.

    Mints move out of SYSTEM_WALLET, burns move into it.

    Attributes:
        amount: Base units to transfer (strictly positive).
        source: Account debited.
        dest: Account credited.
        reason: Short label of what generated the move.
    """
    amount: int
    source: str
    dest: str
    reason: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.reason or not self.reason.strip():
            raise ValueError("Move reason cannot be empty")
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"Move amount must be int, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"Move amount must be positive, got {self.amount}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    @property
    def is_mint(self) -> bool:
        return self.source == SYSTEM_WALLET

    @property
    def is_burn(self) -> bool:
        return self.dest == SYSTEM_WALLET

    def __repr__(self) -> str:
        return f"Move({self.amount}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class AllowanceChange:
    """
    Record of an allowance update, with the value it replaces.

    The ledger rejects the change if old_amount no longer matches.
    """
    owner: Address
    spender: Address
    old_amount: int
    new_amount: int

    def __post_init__(self):
        require_amount(self.old_amount)
        require_amount(self.new_amount)


@dataclass(frozen=True, slots=True)
class TokenStateChange:
    """
    Complete before/after snapshot of the token-wide state.

    Attributes:
        old_state: State the change was computed against.
        new_state: State after the change.
    """
    old_state: TokenState
    new_state: TokenState

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Return {field: (old, new)} for fields that differ."""
        changes = {}
        for key in set(self.old_state) | set(self.new_state):
            old_val = self.old_state.get(key)
            new_val = self.new_state.get(key)
            if old_val != new_val:
                changes[key] = (old_val, new_val)
        return changes


@dataclass(frozen=True, slots=True)
class TokenEvent:
    """
    A log entry emitted by an applied call.

    Attributes:
        name: Event name (e.g. "Transfer").
        args: Ordered (argument, value) pairs.
    """
    name: str
    args: Tuple[Tuple[str, Any], ...] = ()

    def __getitem__(self, key: str) -> Any:
        for arg, value in self.args:
            if arg == key:
                return value
        raise KeyError(key)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.args)

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v}" for k, v in self.args)
        return f"{self.name}({args})"


def event(name: str, **args: Any) -> TokenEvent:
    """Build a TokenEvent, keeping keyword order."""
    return TokenEvent(name=name, args=tuple(args.items()))


def transfer_event(source: str, dest: str, value: int) -> TokenEvent:
    """
    Transfer event for a move; SYSTEM_WALLET is reported as the zero address.
    """
    return event(
        EVENT_TRANSFER,
        **{
            'from': ZERO_ADDRESS if source == SYSTEM_WALLET else source,
            'to': ZERO_ADDRESS if dest == SYSTEM_WALLET else dest,
            'value': value,
        }
    )


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A call's effects before execution - represents INTENT.

    Created by the compute functions and submitted to TokenLedger.execute().

    Attributes:
        origin: Caller and operation
        moves: Balance transfers, applied in order
        allowance_changes: Allowance updates
        state_change: Token-wide state update, if any
        events: Events emitted, in order
    """
    origin: CallOrigin
    moves: Tuple[Move, ...] = ()
    allowance_changes: Tuple[AllowanceChange, ...] = ()
    state_change: Optional[TokenStateChange] = None
    events: Tuple[TokenEvent, ...] = ()

    def is_empty(self) -> bool:
        return (
            not self.moves and not self.allowance_changes
            and self.state_change is None and not self.events
        )

    def __repr__(self) -> str:
        return (
            f"PendingTransaction({len(self.moves)} moves, "
            f"{len(self.allowance_changes)} allowances, {len(self.events)} events, {self.origin})"
        )


def build_transaction(
    caller: Address,
    operation: str,
    moves: Optional[List[Move]] = None,
    allowance_changes: Optional[List[AllowanceChange]] = None,
    state_change: Optional[TokenStateChange] = None,
    events: Optional[List[TokenEvent]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction for a call.

    The state snapshots are copied so later mutation of the caller's dicts
    cannot leak into the intent.
    """
    copied_change = None
    if state_change is not None:
        copied_change = TokenStateChange(
            old_state=dict(state_change.old_state),
            new_state=dict(state_change.new_state),
        )
    return PendingTransaction(
        origin=CallOrigin(caller=caller, operation=operation),
        moves=tuple(moves or ()),
        allowance_changes=tuple(allowance_changes or ()),
        state_change=copied_change,
        events=tuple(events or ()),
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An applied, immutable record of a call - represents FACT.

    Attributes:
        origin: Caller and operation
        moves: Balance transfers that were applied
        allowance_changes: Allowance updates that were applied
        state_change: Token-wide state update, if any
        events: Events emitted
        exec_id: Unique execution identifier (ledger + sequence)
        ledger_name: Name of the ledger that applied it
        sequence_number: Monotonic position within the ledger
    """
    origin: CallOrigin
    moves: Tuple[Move, ...]
    allowance_changes: Tuple[AllowanceChange, ...]
    state_change: Optional[TokenStateChange]
    events: Tuple[TokenEvent, ...]
    exec_id: str
    ledger_name: str
    sequence_number: int

    def __repr__(self) -> str:
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   ledger_name    : ' + self.ledger_name)}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   origin         : ' + repr(self.origin))}│",
        ]
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
        for i, move in enumerate(self.moves):
            lines.append(f"│{pad(f'   [{i}] {move.amount}: {move.source} → {move.dest}')}│")
        if self.allowance_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Allowances (' + str(len(self.allowance_changes)) + '):')}│")
            for ac in self.allowance_changes:
                lines.append(f"│{pad(f'   {ac.owner} → {ac.spender}: {ac.old_amount} → {ac.new_amount}')}│")
        if self.state_change is not None:
            changed = self.state_change.changed_fields()
            if changed:
                lines.append(f"├{bar}┤")
                lines.append(f"│{pad(' State Changes:')}│")
                for field_name, (old_val, new_val) in sorted(changed.items()):
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        if self.events:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Events (' + str(len(self.events)) + '):')}│")
            for ev in self.events:
                lines.append(f"│{pad('   ' + repr(ev))}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


def initial_token_state() -> TokenState:
    """Token-wide state of a freshly constructed token."""
    return {
        'phase': MintingPhase.NOT_STARTED,
        'controllers': frozenset(),
        'forget_fund_amount': 0,
        'bonus_fund_amount': 0,
        'sum_of_private_sale': 0,
    }
