"""Application service: Change Transaction Status use case.

The wire-facing entry point of the state machine.  Accepts the raw
status string from the request and maps the domain outcome onto a
``TransactionResult``.  Rejections are results, not exceptions; only a
missing transaction or an unavailable store raises.
"""

from __future__ import annotations

from sims.application.dto import (
    Actor,
    InventoryUpdateDTO,
    ShortfallDTO,
    TransactionDTO,
    TransactionResult,
    TransitionErrorDTO,
)
from sims.application.parsing import parse_choice
from sims.domain.exceptions import EntityNotFoundError, ValidationError
from sims.domain.model.stock_transaction import TransactionStatus
from sims.domain.repository.audit_log import AuditLog
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository
from sims.domain.service.transaction_state_machine import (
    TransactionStateMachine,
    TransitionOutcome,
)


class ChangeTransactionStatusHandler:

    def __init__(
        self,
        transaction_repo: StockTransactionRepository,
        part_repo: PartRepository,
        audit_log: AuditLog | None = None,
        history: InventoryHistoryRepository | None = None,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._part_repo = part_repo
        self._audit_log = audit_log
        self._history = history

    def handle(
        self,
        transaction_id: str,
        status: str,
        actor: Actor,
        notes: str | None = None,
    ) -> TransactionResult:
        try:
            new_status = parse_choice(TransactionStatus, status, "status")
        except ValidationError as exc:
            transaction = self._transaction_repo.get_by_id(transaction_id)
            if transaction is None:
                raise EntityNotFoundError(
                    f"Stock transaction {transaction_id} not found"
                ) from exc
            return TransactionResult(
                transaction=TransactionDTO.from_domain(transaction),
                error=TransitionErrorDTO(kind="invalid_status", message=str(exc)),
            )

        machine = TransactionStateMachine(
            self._transaction_repo,
            self._part_repo,
            audit_log=self._audit_log,
            history=self._history,
        )
        outcome = machine.transition(
            transaction_id, new_status, actor.id, actor.name, notes=notes
        )
        return self._to_result(outcome)

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_result(outcome: TransitionOutcome) -> TransactionResult:
        dto = TransactionDTO.from_domain(outcome.transaction)

        if outcome.failure is not None:
            return TransactionResult(
                transaction=dto,
                error=TransitionErrorDTO(
                    kind=outcome.failure.kind,
                    message=outcome.failure.message,
                    issues=[
                        ShortfallDTO(
                            part_id=i.part_id,
                            part_number=i.part_number,
                            required=i.required,
                            available=i.available,
                        )
                        for i in outcome.failure.issues
                    ],
                ),
            )

        update = None
        if outcome.reconciliation is not None:
            rec = outcome.reconciliation
            message = rec.message
            if not rec.success:
                message += " - manual inventory reconciliation required"
            update = InventoryUpdateDTO(
                success=rec.success,
                total_updated=rec.total_updated,
                total_failed=rec.total_failed,
                message=message,
                failures=[f"{f.part_number}: {f.message}" for f in rec.failures],
            )
        return TransactionResult(transaction=dto, inventory_update=update)
