"""
Test Suite
==========

Test suite matching the canvas_art/ directory structure.

Test Categories:
- unit: Unit tests for individual components
- integration: API tests with faked external services
"""
