"""
Test suite for asset valuation core

Contains:
- tests/unit/          : Unit tests for individual modules
"""
