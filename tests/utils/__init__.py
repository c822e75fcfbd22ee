"""
Test Utilities
==============

Shared fakes and helpers for the test suite.
"""
