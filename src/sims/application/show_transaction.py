"""Application service: Show Transaction use case (query)."""

from __future__ import annotations

from sims.application.dto import TransactionDTO
from sims.domain.exceptions import EntityNotFoundError
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class ShowTransactionHandler:

    def __init__(self, transaction_repo: StockTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str) -> TransactionDTO:
        transaction = self._transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")
        return TransactionDTO.from_domain(transaction)
