"""
Daara Ledger - Source Package

Monthly bookkeeping for a community Daara: contributions (cotisations),
other income and expenses per month, a derived net balance, and the
allocation of that net across three reserve funds.

PRINCIPLES:
1. Derived values are always recomputed, never typed in
2. Reads never create data
3. Bad input is coerced to zero, never blocks an entry
4. Storage layer is swappable
"""

__version__ = "1.0.0"
