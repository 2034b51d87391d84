"""
Atomicity Conformance Tests

INVARIANT: Calls are all-or-nothing.

    ∀ call C:
        C succeeds ⟹ every move, allowance change, state change and event
                     of C is applied
        C fails    ⟹ balances, allowances, token state and the log are
                     exactly as before C

A batch mint that breaks the cap on its last recipient mints nothing.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cixtoken import (
    TokenTerms, LedgerError, SupplyExceeded, ZeroAddressRecipient,
    InsufficientBalance, ZERO_ADDRESS,
)

from tests.helpers import OWNER, RECIPIENT, ANOTHER_ACCOUNT, addr, deploy, snapshot, assert_conserved


CAP = 10_000


def started_small():
    token = deploy(terms=TokenTerms(total_supply=CAP))
    token.start_minting(OWNER, 1000, 3000)
    return token


class TestAtomicityProperties:
    """Property-based atomicity tests."""

    @given(st.lists(st.integers(min_value=0, max_value=CAP), min_size=1, max_size=8))
    @settings(max_examples=100)
    def test_batch_mint_all_or_nothing(self, amounts):
        """
        PROPERTY: A batch either credits every recipient or none.
        """
        token = started_small()
        recipients = [addr(100 + i) for i in range(len(amounts))]
        before = snapshot(token.ledger)

        try:
            token.batch_mint(OWNER, recipients, amounts)
        except SupplyExceeded:
            assert snapshot(token.ledger) == before
            assert 4000 + sum(amounts) > CAP
        else:
            for r, a in zip(recipients, amounts):
                assert token.balance_of(r) == a
            assert token.sum_of_private_sale == sum(amounts)
            assert len(token.ledger.transaction_log) == before['log_length'] + 1
        assert_conserved(token.ledger)

    @given(
        amounts=st.lists(st.integers(min_value=1, max_value=100), min_size=1, max_size=6),
        bad_index=st.integers(min_value=0, max_value=5),
    )
    @settings(max_examples=50)
    def test_zero_recipient_anywhere_rejects_batch(self, amounts, bad_index):
        """
        PROPERTY: One bad recipient rejects the whole batch.
        """
        token = started_small()
        recipients = [addr(100 + i) for i in range(len(amounts))]
        recipients[bad_index % len(amounts)] = ZERO_ADDRESS
        before = snapshot(token.ledger)

        with pytest.raises(ZeroAddressRecipient):
            token.batch_mint(OWNER, recipients, amounts)
        assert snapshot(token.ledger) == before


class TestAtomicityExamples:
    """Explicit atomicity examples."""

    def test_cap_crossed_by_last_recipient(self):
        token = started_small()
        before = snapshot(token.ledger)
        with pytest.raises(SupplyExceeded):
            token.batch_mint(OWNER, [RECIPIENT, ANOTHER_ACCOUNT], [5000, 1001])
        assert snapshot(token.ledger) == before
        assert token.balance_of(RECIPIENT) == 0

    def test_failed_transfer_changes_nothing(self, finished_token):
        before = snapshot(finished_token.ledger)
        with pytest.raises(InsufficientBalance):
            finished_token.transfer(OWNER, RECIPIENT, 101)
        assert snapshot(finished_token.ledger) == before

    def test_failed_transfer_from_keeps_allowance(self, finished_token):
        finished_token.approve(OWNER, RECIPIENT, 500)
        before = snapshot(finished_token.ledger)
        with pytest.raises(InsufficientBalance):
            finished_token.transfer_from(RECIPIENT, OWNER, ANOTHER_ACCOUNT, 101)
        assert snapshot(finished_token.ledger) == before
        assert finished_token.allowance(OWNER, RECIPIENT) == 500

    def test_every_failure_is_a_ledger_error(self, token):
        with pytest.raises(LedgerError):
            token.batch_mint(OWNER, [RECIPIENT], [1])
        with pytest.raises(LedgerError):
            token.transfer(OWNER, RECIPIENT, 1)
