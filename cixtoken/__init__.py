"""
cixtoken - CryptoIndexToken Ledger State Machine

A transactional model of the CIX100 token: a one-way minting lifecycle,
controller-gated batch minting, supply-capped allocation across five funds,
and a standard transfer/approve ledger that opens once minting finishes.

Usage:
    from cixtoken import CryptoIndexToken, TOTAL_SUPPLY

    token = CryptoIndexToken(owner, forget, team, advisors, bonus, reserve)
    token.start_minting(owner, TOTAL_SUPPLY // 10, TOTAL_SUPPLY * 3 // 10)
    token.batch_mint(owner, [alice, bob], [500, 500])
    token.finish_minting(owner)

    token.transfer(alice, bob, 100)
    assert token.balance_of(bob) == 600
"""

# Core types
from .core import (
    TokenView,
    TokenTerms,
    FundAddresses,
    MintingPhase,
    MINTING_TRANSITIONS,
    check_transition,
    CallOrigin,
    Move,
    AllowanceChange,
    TokenStateChange,
    TokenEvent,
    PendingTransaction,
    Transaction,
    build_transaction,
    event,
    transfer_event,
    initial_token_state,
    is_address,
    to_address,
    require_amount,
    to_base_units,
    from_base_units,
    LedgerError,
    Unauthorized,
    InvalidState,
    SupplyExceeded,
    InsufficientBalance,
    InsufficientAllowance,
    ZeroAddressRecipient,
    ApprovalRaceGuard,
    InvalidArgument,
    SYSTEM_WALLET,
    ZERO_ADDRESS,
    DECIMALS,
    TOTAL_SUPPLY,
    MAX_UINT256,
    ADVISORS_FUND_PERCENT,
    TEAM_FUND_PERCENT,
)

# Ledger
from .ledger import TokenLedger

# Access control
from .access import (
    is_owner,
    can_mint,
    require_owner,
    require_can_mint,
    compute_add_controller,
    compute_remove_controller,
)

# Supply controller
from .supply import (
    FundAllocation,
    compute_allocation,
    compute_start_minting,
    compute_finish_minting,
)

# Minting
from .minting import (
    mint_effects,
    compute_batch_mint,
    compute_burn,
)

# ERC20 ledger operations
from .erc20 import (
    require_transferable,
    compute_transfer,
    compute_approve,
    compute_transfer_from,
    compute_increase_approval,
    compute_decrease_approval,
)

# Token
from .token import CryptoIndexToken, OPERATIONS, transact

__all__ = [
    # Core
    'TokenView', 'TokenTerms', 'FundAddresses', 'MintingPhase', 'MINTING_TRANSITIONS',
    'check_transition', 'CallOrigin', 'Move', 'AllowanceChange', 'TokenStateChange',
    'TokenEvent', 'PendingTransaction', 'Transaction', 'build_transaction', 'event',
    'transfer_event', 'initial_token_state',
    'is_address', 'to_address', 'require_amount', 'to_base_units', 'from_base_units',
    'LedgerError', 'Unauthorized', 'InvalidState', 'SupplyExceeded', 'InsufficientBalance',
    'InsufficientAllowance', 'ZeroAddressRecipient', 'ApprovalRaceGuard', 'InvalidArgument',
    'SYSTEM_WALLET', 'ZERO_ADDRESS', 'DECIMALS', 'TOTAL_SUPPLY', 'MAX_UINT256',
    'ADVISORS_FUND_PERCENT', 'TEAM_FUND_PERCENT',
    # Ledger
    'TokenLedger',
    # Access control
    'is_owner', 'can_mint', 'require_owner', 'require_can_mint',
    'compute_add_controller', 'compute_remove_controller',
    # Supply controller
    'FundAllocation', 'compute_allocation', 'compute_start_minting', 'compute_finish_minting',
    # Minting
    'mint_effects', 'compute_batch_mint', 'compute_burn',
    # ERC20
    'require_transferable', 'compute_transfer', 'compute_approve', 'compute_transfer_from',
    'compute_increase_approval', 'compute_decrease_approval',
    # Token
    'CryptoIndexToken', 'OPERATIONS', 'transact',
]

__version__ = '2.0.0'
