"""
conftest.py - Shared pytest fixtures for token tests

Provides common fixtures used across unit, conformance and functional tests:
- A freshly deployed token
- Tokens in each minting phase
"""

import pytest

from tests.helpers import OWNER, FORGET_FUND_AMOUNT, BONUS_FUND_AMOUNT, deploy


@pytest.fixture
def token():
    """Freshly deployed token, minting not started."""
    return deploy()


@pytest.fixture
def started_token(token):
    """Token with minting started: forget fund 10%, bonus fund 30% of supply."""
    token.start_minting(OWNER, FORGET_FUND_AMOUNT, BONUS_FUND_AMOUNT)
    return token


@pytest.fixture
def finished_token(started_token):
    """Transferable token where the owner holds 100 base units."""
    started_token.batch_mint(OWNER, [OWNER], [100])
    started_token.finish_minting(OWNER)
    return started_token
