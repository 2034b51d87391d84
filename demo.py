#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The CIX100 Token Step by Step

Walks one token through its whole life: deployment, the private sale,
controller minting, a burn, the closing fund allocation and the first
transfers. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Minting      - Deployment, startMinting, batch minting by controllers
  4-5: Guard rails  - Rejected calls, the supply cap, burning
  6-7: Closing      - finishMinting and the fund allocation
  8-9: Trading      - Transfers, approvals, and the conservation proof

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List
import sys

from cixtoken import (
    CryptoIndexToken, LedgerError,
    TOTAL_SUPPLY, SYSTEM_WALLET,
    compute_allocation, from_base_units, to_base_units,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

def account(n: int) -> str:
    return f"0x{n:040x}"


@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    owner: str = account(0xA0)
    forget_fund: str = account(0xF1)
    team_fund: str = account(0xF2)
    advisors_fund: str = account(0xF3)
    bonus_fund: str = account(0xF4)
    reserve_fund: str = account(0xF5)
    alice: str = account(0xA1)
    bob: str = account(0xB0)
    broker: str = account(0xC0)

    # Fractions of total supply minted at startMinting
    forget_fund_share: Decimal = Decimal("0.1")
    bonus_fund_share: Decimal = Decimal("0.3")

    # Private sale, in whole tokens
    sale_tokens: List[Decimal] = field(default_factory=lambda: [
        Decimal("1500000"), Decimal("2500000"),
    ])


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def tokens(amount: int) -> str:
    return f"{from_base_units(amount):,} CIX100"


def show_balances(token: CryptoIndexToken):
    names = {
        CONFIG.forget_fund: "forget fund",
        CONFIG.team_fund: "team fund",
        CONFIG.advisors_fund: "advisors fund",
        CONFIG.bonus_fund: "bonus fund",
        CONFIG.reserve_fund: "reserve fund",
        CONFIG.alice: "alice",
        CONFIG.bob: "bob",
        CONFIG.broker: "broker",
        CONFIG.owner: "owner",
    }
    for address, balance in sorted(token.ledger.get_holders().items()):
        print(f"  {names.get(address, address):<14} {tokens(balance):>32}")
    print(f"  {'TOTAL MINTED':<14} {tokens(token.total_minted()):>32}")


def try_call(description: str, call):
    print(f">>> {description}")
    try:
        call()
    except LedgerError as e:
        print(f"    rejected: {type(e).__name__}: {e}")
    else:
        print("    applied")


# ============================================================================
# PHASE 1: MINTING (Steps 1-3)
# ============================================================================

def step_01_deploy():
    step_header(1, "Deployment",
        "A token starts with an owner, five fund addresses and nothing minted.")

    token = CryptoIndexToken(
        CONFIG.owner,
        CONFIG.forget_fund,
        CONFIG.team_fund,
        CONFIG.advisors_fund,
        CONFIG.bonus_fund,
        CONFIG.reserve_fund,
        name="tutorial",
        verbose=True,
    )

    print(f"Name / symbol:  {token.name} / {token.symbol}")
    print(f"Decimals:       {token.decimals}")
    print(f"Total supply:   {tokens(token.total_supply())}")
    print(f"Total minted:   {tokens(token.total_minted())}")
    print(f"Phase:          {token.phase.value}")

    section_header("Key Insight")
    print(f"""
    Every mint is a move out of '{SYSTEM_WALLET}' and every burn a move back
    into it. Total minted is the issuance account's balance, negated, so the
    holders' balances always add up to it.
    """)
    return token


def step_02_start_minting(token: CryptoIndexToken):
    step_header(2, "startMinting",
        "Open minting and credit the forget and bonus funds in one call.")

    forget = to_base_units(from_base_units(TOTAL_SUPPLY) * CONFIG.forget_fund_share)
    bonus = to_base_units(from_base_units(TOTAL_SUPPLY) * CONFIG.bonus_fund_share)
    tx = token.start_minting(CONFIG.owner, forget, bonus)
    print(tx)
    show_balances(token)
    return token


def step_03_private_sale(token: CryptoIndexToken):
    step_header(3, "Private Sale",
        "The owner or a controller mints to many buyers in one batch.")

    token.add_controller(CONFIG.owner, CONFIG.broker)
    print(f"broker is a controller: {token.controllers(CONFIG.broker)}")

    amounts = [to_base_units(t) for t in CONFIG.sale_tokens]
    token.batch_mint(CONFIG.broker, [CONFIG.alice, CONFIG.bob], amounts)

    section_header("After the sale")
    show_balances(token)
    print(f"\nsum_of_private_sale = {tokens(token.sum_of_private_sale)}")
    return token


# ============================================================================
# PHASE 2: GUARD RAILS (Steps 4-5)
# ============================================================================

def step_04_rejections(token: CryptoIndexToken):
    step_header(4, "Rejected Calls",
        "Failed calls change nothing: no balance, no log entry.")

    log_length = len(token.ledger.transaction_log)
    try_call("alice mints to herself", lambda: token.batch_mint(CONFIG.alice, [CONFIG.alice], [1]))
    try_call("broker finishes minting", lambda: token.finish_minting(CONFIG.broker))
    try_call("alice transfers before minting finished",
             lambda: token.transfer(CONFIG.alice, CONFIG.bob, 1))
    try_call("owner mints the whole supply again",
             lambda: token.batch_mint(CONFIG.owner, [CONFIG.alice, CONFIG.bob], [1, TOTAL_SUPPLY]))

    print(f"\nLog entries before: {log_length}, after: {len(token.ledger.transaction_log)}")
    return token


def step_05_burn(token: CryptoIndexToken):
    step_header(5, "Burning",
        "The owner can burn while minting is open; the sale total stays put.")

    sale_before = token.sum_of_private_sale
    token.burn(CONFIG.owner, CONFIG.bob, to_base_units(Decimal("500000")))
    show_balances(token)
    print(f"\nsum_of_private_sale unchanged: {token.sum_of_private_sale == sale_before}")
    return token


# ============================================================================
# PHASE 3: CLOSING (Steps 6-7)
# ============================================================================

def step_06_allocation_preview(token: CryptoIndexToken):
    step_header(6, "Allocation Preview",
        "The closing funds are sized from the sale and the forget fund.")

    state = token.ledger.get_token_state()
    allocation = compute_allocation(
        token.ledger.terms,
        state['sum_of_private_sale'],
        state['forget_fund_amount'],
        state['bonus_fund_amount'],
    )
    print("    base = sum_of_private_sale + forget_fund_amount")
    print("    advisors = base * 3 // 100, team = base * 7 // 100, reserve = the rest\n")
    for name, amount in allocation.as_dict().items():
        print(f"  {name:<22} {tokens(amount):>32}")
    return token


def step_07_finish(token: CryptoIndexToken):
    step_header(7, "finishMinting",
        "Mint the closing allocation; the token becomes transferable for good.")

    token.finish_minting(CONFIG.owner)
    show_balances(token)
    print(f"\nTransferable: {token.transferable}")
    try_call("owner starts minting again", lambda: token.start_minting(CONFIG.owner, 0, 0))
    try_call("owner burns after finish", lambda: token.burn(CONFIG.owner, CONFIG.alice, 1))
    return token


# ============================================================================
# PHASE 4: TRADING (Steps 8-9)
# ============================================================================

def step_08_trading(token: CryptoIndexToken):
    step_header(8, "Transfers and Approvals",
        "Plain ERC20 behaviour, with the approval race guard.")

    one_k = to_base_units(Decimal("1000"))
    token.transfer(CONFIG.alice, CONFIG.bob, one_k)
    token.approve(CONFIG.alice, CONFIG.broker, one_k)
    try_call("alice changes a nonzero allowance directly",
             lambda: token.approve(CONFIG.alice, CONFIG.broker, 2 * one_k))
    token.increase_approval(CONFIG.alice, CONFIG.broker, one_k)
    token.transfer_from(CONFIG.broker, CONFIG.alice, CONFIG.bob, one_k)

    print(f"\nallowance(alice, broker) = {tokens(token.allowance(CONFIG.alice, CONFIG.broker))}")
    show_balances(token)
    return token


def step_09_conservation(token: CryptoIndexToken):
    step_header(9, "Conservation Proof",
        "Replay the log into a fresh ledger and verify the invariants.")

    result = token.ledger.verify_conservation()
    print(f"valid:            {result['valid']}")
    print(f"total minted:     {tokens(result['total_minted'])}")
    print(f"sum of balances:  {tokens(result['sum_of_balances'])}")

    token.ledger.verbose = False
    replayed = token.ledger.replay()
    print(f"\nReplayed {len(replayed.transaction_log)} transactions into '{replayed.name}'")
    print(f"Same balances: {dict(replayed.balances) == dict(token.ledger.balances)}")

    section_header("Events")
    for name in ("Mint", "Burn", "Transfer", "Approval"):
        print(f"  {name:<10} {len(token.events(name))}")
    return token


def main():
    print("=" * 70)
    print("       CIX100 TOKEN - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    token = step_01_deploy()
    for step in (
        step_02_start_minting,
        step_03_private_sale,
        step_04_rejections,
        step_05_burn,
        step_06_allocation_preview,
        step_07_finish,
        step_08_trading,
        step_09_conservation,
    ):
        wait_for_enter()
        token = step(token)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See cixtoken/supply.py for the allocation rules
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
