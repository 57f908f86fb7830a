"""
Budget Ledger - Source Package

A personal ledger for recurring and one-time financial entries, built
around a recurring-transaction scheduling and reconciliation engine.

DESIGN PRINCIPLES:
1. Memory is authoritative; persistence is best-effort and retried
2. Every operation is idempotent under replay
3. One writer: all mutations go through the Ledger, one at a time
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
