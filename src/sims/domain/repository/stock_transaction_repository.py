"""Abstract repository for the StockTransaction aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from sims.domain.model.stock_transaction import StockTransaction


class StockTransactionRepository(ABC):

    @abstractmethod
    def next_transaction_number(self, at: datetime) -> str:
        """Reserve the next ``ST<YY><MM><NNNN>`` number for the period of *at*.

        Must be atomic: two callers never receive the same number.
        """

    @abstractmethod
    def get_by_id(self, transaction_id: str) -> StockTransaction | None:
        """Return a transaction by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[StockTransaction]:
        """Return every transaction, oldest first."""

    @abstractmethod
    def save(self, transaction: StockTransaction) -> None:
        """Persist a new or updated transaction.

        Assigns an ID to new transactions.  Raises
        ConcurrentModificationError if the stored version differs from
        ``transaction.version``; bumps the version on success.
        """

    @abstractmethod
    def delete(self, transaction_id: str) -> None:
        """Remove a transaction."""
