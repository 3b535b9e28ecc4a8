"""Domain service: Transaction State Machine.

Owns the status changes of a stock transaction and the inventory effects
tied to them:

- entering ``approved`` or ``completed`` while nothing is applied runs the
  availability check, then applies the deltas;
- entering ``approved`` or ``completed`` while already applied changes the
  status only (this is what stops ``pending -> approved -> completed``
  from deducting stock twice);
- entering ``cancelled`` while applied reverses the recorded deltas.

Validation-class problems (illegal edge, shortfall) come back as a
``TransitionFailure`` with nothing mutated.  Partial per-item failures
still commit the status and are flagged in the result.  Storage errors
propagate, after any inventory already written has been rolled back.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from sims.domain.exceptions import (
    EntityNotFoundError,
    InsufficientInventoryError,
    InvalidTransitionError,
    StorageError,
)
from sims.domain.model.reconciliation import ReconciliationResult, ShortfallIssue
from sims.domain.model.stock_transaction import (
    INVENTORY_STATUSES,
    StockTransaction,
    TransactionStatus,
)
from sims.domain.repository.audit_log import AuditLog
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository
from sims.domain.service.availability_validator import AvailabilityValidator
from sims.domain.service.inventory_reconciler import InventoryReconciler

logger = logging.getLogger(__name__)


class TransactionLocks:
    """One mutex per transaction ID, held only while someone needs it.

    Entries are reference-counted and dropped when the last holder
    leaves, so the registry stays as small as the set of transactions
    currently being changed.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    @contextmanager
    def hold(self, transaction_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(transaction_id, threading.Lock())
            self._users[transaction_id] = self._users.get(transaction_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[transaction_id] -= 1
                if self._users[transaction_id] == 0:
                    del self._users[transaction_id]
                    del self._locks[transaction_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Shared by every state machine in the process.
_DEFAULT_LOCKS = TransactionLocks()


@dataclass(frozen=True)
class TransitionFailure:
    kind: str
    message: str
    issues: list[ShortfallIssue] = field(default_factory=list)


@dataclass
class TransitionOutcome:
    transaction: StockTransaction
    previous_status: TransactionStatus
    reconciliation: ReconciliationResult | None = None
    failure: TransitionFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class TransactionStateMachine:

    def __init__(
        self,
        transaction_repo: StockTransactionRepository,
        part_repo: PartRepository,
        audit_log: AuditLog | None = None,
        locks: TransactionLocks | None = None,
        history: InventoryHistoryRepository | None = None,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._validator = AvailabilityValidator(part_repo)
        self._reconciler = InventoryReconciler(part_repo, history)
        self._audit_log = audit_log
        self._locks = locks if locks is not None else _DEFAULT_LOCKS

    def transition(
        self,
        transaction_id: str,
        new_status: TransactionStatus,
        actor_id: str,
        actor_name: str,
        notes: str | None = None,
    ) -> TransitionOutcome:
        """Move a transaction to *new_status*.

        Raises EntityNotFoundError for an unknown transaction and
        StorageError when the store is unavailable; every other rejection
        is returned as ``outcome.failure``.
        """
        with self._locks.hold(transaction_id):
            transaction = self._transaction_repo.get_by_id(transaction_id)
            if transaction is None:
                raise EntityNotFoundError(f"Stock transaction {transaction_id} not found")

            previous_status = transaction.status

            try:
                transaction.ensure_transition(new_status)
                reconciliation = self._reconcile(
                    transaction, new_status, actor_id, actor_name
                )
            except InvalidTransitionError as exc:
                return TransitionOutcome(
                    transaction=transaction,
                    previous_status=previous_status,
                    failure=TransitionFailure(kind="invalid_transition", message=str(exc)),
                )
            except InsufficientInventoryError as exc:
                return TransitionOutcome(
                    transaction=transaction,
                    previous_status=previous_status,
                    failure=TransitionFailure(
                        kind="insufficient_inventory",
                        message=str(exc),
                        issues=exc.issues,
                    ),
                )

            transaction.change_status(new_status, actor_id, actor_name, notes)

            try:
                self._transaction_repo.save(transaction)
            except StorageError:
                if reconciliation is not None:
                    logger.error(
                        "Could not persist %s; rolling back its inventory %s",
                        transaction.transaction_number,
                        reconciliation.operation,
                    )
                    self._reconciler.rollback(reconciliation)
                raise

        logger.info(
            "Transaction %s: %s -> %s",
            transaction.transaction_number,
            previous_status.value,
            new_status.value,
        )
        if reconciliation is not None and not reconciliation.success:
            logger.warning(
                "Transaction %s is %s but inventory needs manual reconciliation: %s",
                transaction.transaction_number,
                new_status.value,
                reconciliation.message,
            )

        self._notify_audit(transaction, previous_status, actor_id, actor_name, reconciliation)
        return TransitionOutcome(
            transaction=transaction,
            previous_status=previous_status,
            reconciliation=reconciliation,
        )

    # --- Internal helpers -----------------------------------------------------

    def _reconcile(
        self,
        transaction: StockTransaction,
        new_status: TransactionStatus,
        actor_id: str,
        actor_name: str,
    ) -> ReconciliationResult | None:
        if new_status in INVENTORY_STATUSES:
            if transaction.inventory_applied:
                logger.debug(
                    "Inventory for %s already applied; status change only",
                    transaction.transaction_number,
                )
                return None
            self._validator.ensure_available(transaction)
            result = self._reconciler.apply(
                transaction, actor_id=actor_id, actor_name=actor_name
            )
            transaction.record_applied(result.processed_deltas)
            return result

        if new_status == TransactionStatus.CANCELLED and transaction.inventory_applied:
            result = self._reconciler.reverse(
                transaction, actor_id=actor_id, actor_name=actor_name
            )
            transaction.record_reversed(result.processed_deltas)
            return result

        return None

    def _notify_audit(
        self,
        transaction: StockTransaction,
        previous_status: TransactionStatus,
        actor_id: str,
        actor_name: str,
        reconciliation: ReconciliationResult | None,
    ) -> None:
        if self._audit_log is None:
            return
        event = {
            "transaction_id": transaction.id,
            "transaction_number": transaction.transaction_number,
            "from_status": previous_status.value,
            "to_status": transaction.status.value,
            "actor_id": actor_id,
            "actor_name": actor_name,
            "at": transaction.updated_at.isoformat(),
            "inventory_update": (
                {
                    "success": reconciliation.success,
                    "total_updated": reconciliation.total_updated,
                    "total_failed": reconciliation.total_failed,
                    "message": reconciliation.message,
                }
                if reconciliation is not None
                else None
            ),
        }
        try:
            self._audit_log.record(event)
        except Exception:
            # The transition is already committed; auditing must not undo it.
            logger.exception(
                "Audit log rejected event for %s", transaction.transaction_number
            )
