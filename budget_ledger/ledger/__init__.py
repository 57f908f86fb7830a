"""Ledger package: the collections and the operations that move entries between them."""

from budget_ledger.ledger.flush import CollectionFlusher
from budget_ledger.ledger.ledger import DeleteScope, Ledger, RegenerationReport

__all__ = [
    "CollectionFlusher",
    "DeleteScope",
    "Ledger",
    "RegenerationReport",
]
