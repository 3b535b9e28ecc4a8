"""Domain service: Inventory Reconciler.

Applies a transaction's deltas to the part store, or undoes them.

Each line item is processed on its own: a part that vanished or a
reversal that would drive stock negative fails that item only, and the
failure is reported in the result.  A StorageError is different: the
store itself is unavailable, so whatever this run already wrote is
compensated and the error propagates.

``reverse`` never recomputes deltas from the current state.  It inverts
the ledger recorded on the transaction by ``apply``, so repeated
apply/reverse cycles cancel out exactly.

Every quantity change that reaches the store, rollbacks included, is
also written to the part history when one is configured.
"""

from __future__ import annotations

import logging
from itertools import groupby

from sims.domain.exceptions import EntityNotFoundError, StorageError, ValidationError
from sims.domain.model.inventory_movement import ChangeType, InventoryMovement, MovementType
from sims.domain.model.reconciliation import ItemOutcome, ReconciliationResult
from sims.domain.model.stock_transaction import (
    InventoryDelta,
    StockTransaction,
    TransactionType,
)
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository
from sims.domain.service.delta_rules import plan_deltas

logger = logging.getLogger(__name__)


class InventoryReconciler:

    def __init__(
        self,
        part_repo: PartRepository,
        history: InventoryHistoryRepository | None = None,
    ) -> None:
        self._part_repo = part_repo
        self._history = history

    def apply(
        self,
        transaction: StockTransaction,
        *,
        actor_id: str = "system",
        actor_name: str = "System",
    ) -> ReconciliationResult:
        """Write the deltas of every line item to the store."""
        plan = plan_deltas(transaction, self._part_repo)
        result = ReconciliationResult(
            operation="apply", transaction=transaction, actor_id=actor_id, actor_name=actor_name
        )

        try:
            for index, item in enumerate(transaction.items):
                if index in plan.skipped:
                    result.outcomes.append(
                        ItemOutcome(
                            item_index=index,
                            part_id=item.part_id,
                            part_number=item.part_number,
                            success=True,
                            skipped=True,
                            message="Not a stock item; inventory unchanged",
                        )
                    )
                elif index in plan.unresolved:
                    result.outcomes.append(
                        ItemOutcome(
                            item_index=index,
                            part_id=item.part_id,
                            part_number=item.part_number,
                            success=False,
                            message=plan.unresolved[index],
                        )
                    )
                else:
                    result.outcomes.append(
                        self._run_item(
                            index, item.part_number, plan.for_item(index), result, reversal=False
                        )
                    )
        except StorageError:
            logger.error(
                "Store unavailable while applying %s; compensating %d delta(s)",
                transaction.transaction_number,
                len(result.processed_deltas),
            )
            self.rollback(result)
            raise

        self._log_result(transaction, result)
        return result

    def reverse(
        self,
        transaction: StockTransaction,
        *,
        actor_id: str = "system",
        actor_name: str = "System",
    ) -> ReconciliationResult:
        """Undo the deltas recorded on *transaction* by a previous apply."""
        result = ReconciliationResult(
            operation="reverse", transaction=transaction, actor_id=actor_id, actor_name=actor_name
        )
        ledger = sorted(transaction.applied_deltas, key=lambda d: d.item_index)

        try:
            for index, group in groupby(ledger, key=lambda d: d.item_index):
                # Undo legs last-first: a transfer takes stock back from the
                # destination before crediting the source.
                deltas = list(group)[::-1]
                part_number = _part_number_of(transaction, index)
                result.outcomes.append(
                    self._run_item(index, part_number, deltas, result, reversal=True)
                )
        except StorageError:
            logger.error(
                "Store unavailable while reversing %s; re-applying %d delta(s)",
                transaction.transaction_number,
                len(result.processed_deltas),
            )
            self.rollback(result)
            raise

        self._log_result(transaction, result)
        return result

    def rollback(self, result: ReconciliationResult) -> None:
        """Best-effort undo of a finished or aborted run.

        Used when the surrounding transition cannot be committed.  Errors
        are logged per delta; there is nothing left to fall back on.
        """
        undoing_apply = result.operation == "apply"
        for delta in reversed(result.processed_deltas):
            amount = -delta.amount if undoing_apply else delta.amount
            try:
                change = self._part_repo.apply_delta(
                    delta.part_id,
                    amount,
                    consumption=delta.consumption,
                    reversal=undoing_apply,
                )
            except (StorageError, ValidationError, EntityNotFoundError) as exc:
                logger.error(
                    "Could not roll back delta %+d on part %s: %s",
                    amount,
                    delta.part_id,
                    exc,
                )
                continue
            self._record_movement(result, delta, amount, change, rollback=True)
        result.processed_deltas.clear()

    # --- Internal helpers -----------------------------------------------------

    def _run_item(
        self,
        index: int,
        part_number: str,
        deltas: list[InventoryDelta],
        result: ReconciliationResult,
        *,
        reversal: bool,
    ) -> ItemOutcome:
        """Write the legs of one item, stopping at the first failing leg."""
        first: tuple[int, int] | None = None

        for delta in deltas:
            amount = -delta.amount if reversal else delta.amount
            try:
                change = self._part_repo.apply_delta(
                    delta.part_id,
                    amount,
                    consumption=delta.consumption,
                    reversal=reversal,
                    unit_cost=None if reversal else delta.unit_cost,
                )
            except (ValidationError, EntityNotFoundError) as exc:
                return ItemOutcome(
                    item_index=index,
                    part_id=delta.part_id,
                    part_number=part_number,
                    success=False,
                    message=str(exc),
                )
            result.processed_deltas.append(delta)
            self._record_movement(result, delta, amount, change)
            if first is None:
                first = change

        verb = "Reversed" if reversal else "Updated"
        previous, new = first if first is not None else (None, None)
        return ItemOutcome(
            item_index=index,
            part_id=deltas[0].part_id if deltas else "",
            part_number=part_number,
            success=True,
            message=f"{verb} {part_number}",
            previous_quantity=previous,
            new_quantity=new,
        )

    def _record_movement(
        self,
        result: ReconciliationResult,
        delta: InventoryDelta,
        amount: int,
        change: tuple[int, int],
        *,
        rollback: bool = False,
    ) -> None:
        transaction = result.transaction
        if self._history is None or transaction is None:
            return

        forward = result.operation == "apply" and not rollback
        if forward:
            change_type = _forward_change_type(transaction)
            reason = f"Applied {transaction.transaction_type.value} {transaction.transaction_number}"
        elif rollback:
            change_type = ChangeType.CORRECTION
            reason = f"Rolled back {result.operation} of {transaction.transaction_number}"
        else:
            change_type = ChangeType.CORRECTION
            reason = f"Reversed {transaction.transaction_number}"

        item = (
            transaction.items[delta.item_index]
            if 0 <= delta.item_index < len(transaction.items)
            else None
        )
        previous, new = change
        movement = InventoryMovement(
            part_id=delta.part_id,
            part_number=item.part_number if item else "?",
            part_name=item.part_name if item else "",
            location=delta.location,
            department=transaction.department,
            change_type=change_type,
            movement_type=_movement_type(transaction.transaction_type, amount),
            previous_quantity=previous,
            quantity_change=amount,
            new_quantity=new,
            transaction_id=transaction.id,
            transaction_number=transaction.transaction_number,
            performed_by=result.actor_id,
            performed_by_name=result.actor_name,
            reason=reason,
            cost=delta.unit_cost * abs(amount) if forward and delta.unit_cost else None,
            notes=item.notes if item else None,
        )
        try:
            self._history.record(movement)
        except Exception:
            # The stock change is already written; a lost history line must not undo it.
            logger.exception(
                "Could not record history for part %s (%s)",
                delta.part_id,
                transaction.transaction_number,
            )

    @staticmethod
    def _log_result(transaction: StockTransaction, result: ReconciliationResult) -> None:
        if result.success:
            logger.info("%s: %s", transaction.transaction_number, result.message)
            return
        for failure in result.failures:
            logger.warning(
                "%s: %s of item %d (%s) failed: %s",
                transaction.transaction_number,
                result.operation,
                failure.item_index,
                failure.part_number,
                failure.message,
            )


def _forward_change_type(transaction: StockTransaction) -> ChangeType:
    if transaction.is_opening_stock:
        return ChangeType.INITIAL
    if transaction.transaction_type == TransactionType.ADJUSTMENT:
        return ChangeType.ADJUSTMENT
    return ChangeType.TRANSACTION


def _movement_type(transaction_type: TransactionType, amount: int) -> MovementType:
    if transaction_type == TransactionType.TRANSFER:
        return MovementType.TRANSFER_IN if amount > 0 else MovementType.TRANSFER_OUT
    return MovementType(transaction_type.value)


def _part_number_of(transaction: StockTransaction, index: int) -> str:
    if 0 <= index < len(transaction.items):
        return transaction.items[index].part_number
    return "?"
