"""Application service: Update Transaction Items use case (drafts only)."""

from __future__ import annotations

from sims.application.create_transaction import build_items
from sims.application.dto import ItemSpec, TransactionDTO
from sims.domain.exceptions import EntityNotFoundError
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


class UpdateTransactionItemsHandler:

    def __init__(
        self,
        transaction_repo: StockTransactionRepository,
        part_repo: PartRepository,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._part_repo = part_repo

    def handle(self, transaction_id: str, specs: list[ItemSpec]) -> TransactionDTO:
        transaction = self._transaction_repo.get_by_id(transaction_id)
        if transaction is None:
            raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")

        items = build_items(
            self._part_repo,
            specs,
            source_location=transaction.source_location,
            destination_location=transaction.destination_location,
        )
        transaction.replace_items(items)
        self._transaction_repo.save(transaction)
        return TransactionDTO.from_domain(transaction)
