"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the replay engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_lock.py - A chargeback locks an account for good
2. test_disputes.py - Dispute, resolve and chargeback arithmetic
3. test_replay.py - Account creation, unknown references, balance identity
4. test_rounding.py - Four-place amounts everywhere

These tests use hypothesis for property-based testing.
"""
