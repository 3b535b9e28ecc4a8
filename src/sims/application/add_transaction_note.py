"""Application service: Add Transaction Note use case.

Notes stay appendable after a transaction is completed or cancelled;
everything else about a closed transaction is frozen.
"""

from __future__ import annotations

from sims.application.dto import Actor, TransactionDTO
from sims.domain.exceptions import EntityNotFoundError
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class AddTransactionNoteHandler:

    def __init__(self, transaction_repo: StockTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(self, transaction_id: str, text: str, actor: Actor) -> TransactionDTO:
        transaction = self._transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")

        transaction.append_note(f"{actor.name}: {text}")
        self._transaction_repo.save(transaction)
        return TransactionDTO.from_domain(transaction)
