"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of a coordinated account pair.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - balance_a + balance_b is constant across transfers
2. exclusion.py - critical sections never overlap
3. detection.py - a torn or mismatched pair is caught on the next transfer

These tests use hypothesis for property-based testing.
"""
