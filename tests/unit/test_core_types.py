"""
test_core_types.py - Unit tests for core.py

Tests:
- Address and amount validation
- Base unit conversion
- TokenTerms and FundAddresses validation
- MintingPhase transition table
- Move, AllowanceChange, TokenStateChange, TokenEvent records
- build_transaction copying
"""

import pytest
from decimal import Decimal

from cixtoken import (
    TokenTerms, FundAddresses, MintingPhase, MINTING_TRANSITIONS, check_transition,
    Move, AllowanceChange, TokenStateChange, PendingTransaction, CallOrigin,
    build_transaction, event, transfer_event, initial_token_state,
    is_address, to_address, require_amount, to_base_units, from_base_units,
    InvalidArgument, InvalidState, LedgerError,
    SYSTEM_WALLET, ZERO_ADDRESS, TOTAL_SUPPLY, MAX_UINT256, DECIMALS,
)

from tests.helpers import addr, OWNER, RECIPIENT, FUNDS


class TestAddresses:

    def test_valid_address(self):
        assert is_address(addr(1))
        assert is_address("0x" + "aB" * 20)

    @pytest.mark.parametrize("value", [
        "", "0x", "0x123", "1" * 40, "0x" + "g" * 40, "0x" + "0" * 41, None, 42, SYSTEM_WALLET,
    ])
    def test_invalid_address(self, value):
        assert not is_address(value)
        with pytest.raises(InvalidArgument, match="invalid address"):
            to_address(value)

    def test_to_address_lowercases(self):
        assert to_address("0x" + "AB" * 20) == "0x" + "ab" * 20

    def test_zero_address_is_valid(self):
        assert to_address(ZERO_ADDRESS) == ZERO_ADDRESS


class TestAmounts:

    def test_bounds(self):
        assert require_amount(0) == 0
        assert require_amount(MAX_UINT256) == MAX_UINT256

    def test_rejects_negative_and_overflow(self):
        with pytest.raises(InvalidArgument):
            require_amount(-1)
        with pytest.raises(InvalidArgument):
            require_amount(MAX_UINT256 + 1)

    @pytest.mark.parametrize("value", [True, False, 1.0, Decimal("1"), "1", None])
    def test_rejects_non_int(self, value):
        with pytest.raises(InvalidArgument, match="must be an int"):
            require_amount(value)

    def test_invalid_argument_is_a_value_error(self):
        with pytest.raises(ValueError):
            require_amount(-1)

    def test_base_unit_conversion(self):
        assert to_base_units(Decimal("1")) == 10 ** DECIMALS
        assert to_base_units(Decimal("1.5")) == 15 * 10 ** 17
        assert to_base_units(Decimal("300000000")) == TOTAL_SUPPLY
        assert from_base_units(TOTAL_SUPPLY) == Decimal("300000000")
        assert from_base_units(1) == Decimal("1E-18")

    def test_base_unit_conversion_truncates_dust(self):
        assert to_base_units(Decimal("0.0000000000000000019")) == 1

    def test_base_unit_conversion_rejects_negative(self):
        with pytest.raises(InvalidArgument):
            to_base_units(Decimal("-1"))


class TestTokenTerms:

    def test_defaults(self):
        terms = TokenTerms()
        assert terms.name == "CryptoIndexToken"
        assert terms.symbol == "CIX100"
        assert terms.decimals == 18
        assert terms.total_supply == 300_000_000 * 10 ** 18
        assert terms.advisors_fund_percent == 3
        assert terms.team_fund_percent == 7

    def test_rejects_zero_supply(self):
        with pytest.raises(ValueError, match="total_supply"):
            TokenTerms(total_supply=0)

    def test_rejects_bad_percent(self):
        with pytest.raises(ValueError, match="percent"):
            TokenTerms(team_fund_percent=101)
        with pytest.raises(ValueError, match="exceed 100"):
            TokenTerms(advisors_fund_percent=60, team_fund_percent=60)

    def test_immutable(self):
        terms = TokenTerms()
        with pytest.raises(AttributeError):
            terms.total_supply = 1


class TestFundAddresses:

    def test_normalizes(self):
        upper = ["0x" + f"{i:040X}" for i in range(10, 15)]
        funds = FundAddresses(*upper)
        assert funds.forget_fund == upper[0].lower()
        assert list(funds.as_dict()) == [
            'forget_fund', 'team_fund', 'advisors_fund', 'bonus_fund', 'reserve_fund',
        ]

    def test_rejects_duplicates(self):
        with pytest.raises(InvalidArgument, match="duplicates"):
            FundAddresses(FUNDS[0], FUNDS[0], FUNDS[2], FUNDS[3], FUNDS[4])

    def test_rejects_zero_address(self):
        with pytest.raises(InvalidArgument, match="zero address"):
            FundAddresses(ZERO_ADDRESS, *FUNDS[1:])

    def test_rejects_malformed(self):
        with pytest.raises(InvalidArgument):
            FundAddresses("team", *FUNDS[1:])


class TestMintingPhase:

    def test_transition_table(self):
        assert MINTING_TRANSITIONS[MintingPhase.NOT_STARTED] == {MintingPhase.STARTED}
        assert MINTING_TRANSITIONS[MintingPhase.STARTED] == {MintingPhase.FINISHED}
        assert MINTING_TRANSITIONS[MintingPhase.FINISHED] == frozenset()

    def test_allowed(self):
        check_transition(MintingPhase.NOT_STARTED, MintingPhase.STARTED)
        check_transition(MintingPhase.STARTED, MintingPhase.FINISHED)

    @pytest.mark.parametrize("current,target", [
        (MintingPhase.NOT_STARTED, MintingPhase.FINISHED),
        (MintingPhase.NOT_STARTED, MintingPhase.NOT_STARTED),
        (MintingPhase.STARTED, MintingPhase.STARTED),
        (MintingPhase.STARTED, MintingPhase.NOT_STARTED),
        (MintingPhase.FINISHED, MintingPhase.FINISHED),
        (MintingPhase.FINISHED, MintingPhase.STARTED),
        (MintingPhase.FINISHED, MintingPhase.NOT_STARTED),
    ])
    def test_rejected(self, current, target):
        with pytest.raises(InvalidState):
            check_transition(current, target)

    def test_initial_state(self):
        state = initial_token_state()
        assert state['phase'] == MintingPhase.NOT_STARTED
        assert state['controllers'] == frozenset()
        assert state['sum_of_private_sale'] == 0


class TestMove:

    def test_valid(self):
        move = Move(100, SYSTEM_WALLET, RECIPIENT, "mint")
        assert move.is_mint
        assert not move.is_burn
        assert Move(5, RECIPIENT, SYSTEM_WALLET, "burn").is_burn

    @pytest.mark.parametrize("amount", [0, -1])
    def test_rejects_non_positive(self, amount):
        with pytest.raises(ValueError, match="positive"):
            Move(amount, OWNER, RECIPIENT, "x")

    def test_rejects_non_int(self):
        with pytest.raises(ValueError, match="must be int"):
            Move(1.5, OWNER, RECIPIENT, "x")
        with pytest.raises(ValueError, match="must be int"):
            Move(True, OWNER, RECIPIENT, "x")

    def test_rejects_self_move(self):
        with pytest.raises(ValueError, match="different"):
            Move(1, OWNER, OWNER, "x")

    def test_rejects_empty_fields(self):
        with pytest.raises(ValueError, match="source"):
            Move(1, "", RECIPIENT, "x")
        with pytest.raises(ValueError, match="reason"):
            Move(1, OWNER, RECIPIENT, " ")


class TestRecords:

    def test_allowance_change_validates_amounts(self):
        with pytest.raises(InvalidArgument):
            AllowanceChange(OWNER, RECIPIENT, 0, -1)

    def test_state_change_fields(self):
        old = initial_token_state()
        new = {**old, 'phase': MintingPhase.STARTED, 'forget_fund_amount': 10}
        changed = TokenStateChange(old, new).changed_fields()
        assert changed == {
            'phase': (MintingPhase.NOT_STARTED, MintingPhase.STARTED),
            'forget_fund_amount': (0, 10),
        }

    def test_event_access(self):
        ev = event("Approval", owner=OWNER, spender=RECIPIENT, value=5)
        assert ev["value"] == 5
        assert list(ev.as_dict()) == ["owner", "spender", "value"]
        with pytest.raises(KeyError):
            ev["missing"]
        assert repr(ev).startswith("Approval(owner=")

    def test_transfer_event_reports_zero_address_for_issuance(self):
        mint = transfer_event(SYSTEM_WALLET, RECIPIENT, 7)
        assert mint.as_dict() == {'from': ZERO_ADDRESS, 'to': RECIPIENT, 'value': 7}
        burn = transfer_event(RECIPIENT, SYSTEM_WALLET, 7)
        assert burn['to'] == ZERO_ADDRESS

    def test_events_are_hashable(self):
        assert len({event("MintingStarted"), event("MintingStarted")}) == 1


class TestBuildTransaction:

    def test_copies_state(self):
        old = initial_token_state()
        new = {**old, 'sum_of_private_sale': 5}
        pending = build_transaction(OWNER, "batchMint", state_change=TokenStateChange(old, new))
        new['sum_of_private_sale'] = 999
        assert pending.state_change.new_state['sum_of_private_sale'] == 5
        assert pending.origin == CallOrigin(OWNER, "batchMint")

    def test_empty(self):
        assert build_transaction(OWNER, "transfer").is_empty()
        assert not build_transaction(OWNER, "transfer", events=[event("X")]).is_empty()

    def test_pending_is_immutable(self):
        pending = PendingTransaction(origin=CallOrigin(OWNER, "transfer"))
        with pytest.raises(AttributeError):
            pending.moves = ()

    def test_ledger_error_hierarchy(self):
        assert issubclass(InvalidArgument, LedgerError)
        assert issubclass(InvalidState, LedgerError)
