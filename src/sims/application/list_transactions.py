"""Application service: List Transactions use case (query)."""

from __future__ import annotations

from sims.application.dto import TransactionDTO
from sims.application.parsing import parse_choice
from sims.domain.model.stock_transaction import TransactionStatus, TransactionType
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class ListTransactionsHandler:

    def __init__(self, transaction_repo: StockTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(
        self,
        status: str | None = None,
        transaction_type: str | None = None,
        department: str | None = None,
    ) -> list[TransactionDTO]:
        """Return transactions matching every given filter, newest first."""
        wanted_status = parse_choice(TransactionStatus, status, "status") if status else None
        wanted_type = (
            parse_choice(TransactionType, transaction_type, "transaction type")
            if transaction_type
            else None
        )

        matches = [
            t
            for t in self._transaction_repo.list_all()
            if (wanted_status is None or t.status == wanted_status)
            and (wanted_type is None or t.transaction_type == wanted_type)
            and (department is None or t.department == department)
        ]
        matches.sort(key=lambda t: t.created_at, reverse=True)
        return [TransactionDTO.from_domain(t) for t in matches]
