"""
Financas - Ledger Calculation Engine

Turns a single ledger snapshot (transactions, credit cards, fixed bills,
goals) into account balance, monthly totals, card invoices, installment
schedules and a month-end forecast.

DESIGN PRINCIPLES:
1. Snapshots are values: operations return new ones, never edit in place
2. Fail early, fail visibly
3. No silent corrections
4. Every derived figure is recomputed from raw transactions
"""

__version__ = "1.0.0"
__author__ = "Financas Team"
