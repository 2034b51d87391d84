"""
helpers.py - Test accounts, deployment amounts and ledger utilities

Mirrors the account roles of a deployment: the owner, the five funds and two
ordinary holders.
"""

from typing import Dict, Any

from cixtoken import CryptoIndexToken, TokenLedger, TOTAL_SUPPLY


def addr(n: int) -> str:
    """Deterministic test address, e.g. addr(1) == '0x000...001'."""
    return f"0x{n:040x}"


OWNER = addr(1)
FORGET_FUND = addr(2)
TEAM_FUND = addr(3)
ADVISORS_FUND = addr(4)
BONUS_FUND = addr(5)
RESERVE_FUND = addr(6)
RECIPIENT = addr(7)
ANOTHER_ACCOUNT = addr(8)

FUNDS = (FORGET_FUND, TEAM_FUND, ADVISORS_FUND, BONUS_FUND, RESERVE_FUND)

FORGET_FUND_AMOUNT = TOTAL_SUPPLY // 10
BONUS_FUND_AMOUNT = TOTAL_SUPPLY * 3 // 10


def deploy(**kwargs) -> CryptoIndexToken:
    """Deploy a token with the standard test accounts."""
    return CryptoIndexToken(
        OWNER, FORGET_FUND, TEAM_FUND, ADVISORS_FUND, BONUS_FUND, RESERVE_FUND,
        **kwargs
    )


def snapshot(ledger: TokenLedger) -> Dict[str, Any]:
    """Capture everything a call could change, for before/after comparisons."""
    return {
        'balances': dict(ledger.balances),
        'allowances': {o: dict(s) for o, s in ledger.allowances.items() if s},
        'state': ledger.get_token_state(),
        'log_length': len(ledger.transaction_log),
        'total_minted': ledger.total_minted,
    }


def assert_conserved(ledger: TokenLedger) -> None:
    result = ledger.verify_conservation()
    assert result['valid'], result['discrepancies']
