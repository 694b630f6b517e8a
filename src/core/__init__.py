"""
Core domain models, mathematical primitives, contracts and errors.

This module contains the foundational building blocks of the valuation
pipeline that are independent of external systems (feeds, displays, ledgers).
"""
