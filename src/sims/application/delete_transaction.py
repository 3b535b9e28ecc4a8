"""Application service: Delete Transaction use case.

Only drafts can be deleted.  Anything that has been submitted is part
of the stock history and must be cancelled instead.
"""

from __future__ import annotations

from sims.domain.exceptions import EntityNotFoundError, ValidationError
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class DeleteTransactionHandler:

    def __init__(self, transaction_repo: StockTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str) -> None:
        transaction = self._transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")

        if not transaction.is_deletable:
            raise ValidationError(
                f"Cannot delete transaction {transaction.transaction_number} - "
                f"only draft transactions can be deleted"
            )
        self._transaction_repo.delete(transaction_id)
