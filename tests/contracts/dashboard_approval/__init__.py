# Dashboard Approval Service Contracts

"""
Dashboard Approval Service Contract Module

This module contains:
- data_contract.py: production models re-exported for tests plus test data factories
"""
