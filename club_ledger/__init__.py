"""
Club Ledger - Source Package

Records the money movements of a small club and the household behind it,
and derives sales, costs, royalties, money owed, net profit and cost of
living for any day, month or year.

DESIGN PRINCIPLES:
1. Classify once, at entry time; never re-derive
2. Fail early, fail visibly (no partial records)
3. Indicators are fresh reductions over an immutable snapshot
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Club Ledger Team"
