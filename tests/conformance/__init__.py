"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the token ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_conservation.py - Sum of balances equals total minted, within the cap
2. test_atomicity.py - All-or-nothing call semantics
3. test_lifecycle.py - One-way minting phases and the transferability gate
4. test_determinism.py - Replaying the log reproduces the ledger

These tests use hypothesis for property-based testing.
"""
