"""Unit tests for TransactionStateMachine: status changes and their inventory effects."""

import threading

import pytest

from sims.domain.exceptions import EntityNotFoundError, StorageError
from sims.domain.model.inventory_movement import ChangeType
from sims.domain.model.part import Part
from sims.domain.model.stock_transaction import (
    StockTransaction,
    StockTransactionItem,
    TransactionStatus,
    TransactionType,
)
from sims.domain.model.value_objects import Quantity
from sims.domain.service.transaction_state_machine import (
    TransactionLocks,
    TransactionStateMachine,
)
from tests.fakes import (
    FailingAuditLog,
    FakeAuditLog,
    FakeInventoryHistory,
    FakePartRepository,
    FakeStockTransactionRepository,
    SaveFailingTransactionRepository,
    StorageFailingPartRepository,
)

S = TransactionStatus


def _setup(kind=TransactionType.ISSUE, lines=(("P", 4),), stock=None, part_repo=None,
           txn_repo=None, audit=None, status=S.PENDING, history=None, locks=None):
    stock = stock or {"P": 10}
    parts = part_repo or FakePartRepository([
        Part(pid, pid, f"Part {pid}", "maintenance", "MAIN", quantity=qty)
        for pid, qty in stock.items()
    ])
    repo = txn_repo or FakeStockTransactionRepository()

    items = []
    for line in lines:
        src, dst = (line[2], line[3]) if len(line) == 4 else (None, None)
        items.append(StockTransactionItem(line[0], line[0], line[0], Quantity(line[1]), None, src, dst))
    txn = StockTransaction(
        id=None,
        transaction_number="ST24030001",
        transaction_type=kind,
        department="maintenance",
        description="test",
        items=items,
        created_by="u1",
        created_by_name="Dana",
        status=status,
    )
    repo.save(txn)

    machine = TransactionStateMachine(
        repo,
        parts,
        audit_log=audit,
        locks=locks if locks is not None else TransactionLocks(),
        history=history,
    )
    return machine, repo, parts, txn.id


def _move(machine, txn_id, status, notes=None):
    return machine.transition(txn_id, status, "u2", "Lee", notes=notes)


class TestIssueLifecycle:

    def test_approval_deducts_stock(self):
        machine, repo, parts, tid = _setup()
        outcome = _move(machine, tid, S.APPROVED)

        assert outcome.ok
        assert parts.quantity_of("P") == 6
        assert repo.get_by_id(tid).inventory_applied is True
        assert outcome.reconciliation.success

    def test_completion_after_approval_does_not_deduct_again(self):
        machine, repo, parts, tid = _setup()
        _move(machine, tid, S.APPROVED)
        outcome = _move(machine, tid, S.COMPLETED)

        assert outcome.ok
        assert outcome.reconciliation is None
        assert parts.quantity_of("P") == 6
        assert repo.get_by_id(tid).status == S.COMPLETED

    def test_cancelling_completed_restores_stock(self):
        machine, repo, parts, tid = _setup()
        _move(machine, tid, S.APPROVED)
        _move(machine, tid, S.COMPLETED)
        outcome = _move(machine, tid, S.CANCELLED)

        assert outcome.ok
        assert parts.quantity_of("P") == 10
        assert repo.get_by_id(tid).inventory_applied is False

    def test_shortfall_rejects_without_touching_anything(self):
        machine, repo, parts, tid = _setup(lines=(("P", 5),), stock={"P": 2})
        outcome = _move(machine, tid, S.APPROVED)

        assert not outcome.ok
        assert outcome.failure.kind == "insufficient_inventory"
        [issue] = outcome.failure.issues
        assert (issue.part_id, issue.required, issue.available) == ("P", 5, 2)
        assert parts.quantity_of("P") == 2
        stored = repo.get_by_id(tid)
        assert stored.status == S.PENDING
        assert stored.inventory_applied is False

    def test_stock_never_negative_across_two_items(self):
        machine, _, parts, tid = _setup(lines=(("P", 3), ("P", 3)), stock={"P": 5})
        outcome = _move(machine, tid, S.APPROVED)
        assert outcome.failure.issues[0].required == 6
        assert parts.quantity_of("P") == 5


class TestTransferLifecycle:

    def test_transfer_round_trip(self):
        parts = FakePartRepository([
            Part("A", "PMP-1", "Pump", "maintenance", "LOC-A", quantity=5),
            Part("B", "PMP-1", "Pump", "maintenance", "LOC-B", quantity=1),
        ])
        machine, _, _, tid = _setup(
            kind=TransactionType.TRANSFER,
            lines=(("A", 3, "LOC-A", "LOC-B"),),
            part_repo=parts,
        )

        _move(machine, tid, S.APPROVED)
        assert (parts.quantity_of("A"), parts.quantity_of("B")) == (2, 4)

        _move(machine, tid, S.CANCELLED)
        assert (parts.quantity_of("A"), parts.quantity_of("B")) == (5, 1)

    def test_transfer_into_non_stock_record_touches_neither_side(self):
        parts = FakePartRepository([
            Part("A", "PMP-1", "Pump", "maintenance", "LOC-A", quantity=5),
            Part("B", "PMP-1", "Pump", "maintenance", "LOC-B", quantity=1, is_stock_item=False),
        ])
        machine, repo, _, tid = _setup(
            kind=TransactionType.TRANSFER,
            lines=(("A", 3, "LOC-A", "LOC-B"),),
            part_repo=parts,
        )

        outcome = _move(machine, tid, S.APPROVED)

        assert outcome.ok
        assert outcome.reconciliation.total_failed == 1
        assert "is not a stock item" in outcome.reconciliation.failures[0].message
        assert (parts.quantity_of("A"), parts.quantity_of("B")) == (5, 1)
        assert repo.get_by_id(tid).inventory_applied is False


class TestCancellationWithoutInventory:

    @pytest.mark.parametrize("start", [S.DRAFT, S.PENDING])
    def test_cancel_before_approval_leaves_stock_alone(self, start):
        machine, repo, parts, tid = _setup(status=start)
        outcome = _move(machine, tid, S.CANCELLED)

        assert outcome.ok
        assert outcome.reconciliation is None
        assert parts.quantity_of("P") == 10
        assert repo.get_by_id(tid).status == S.CANCELLED

    def test_repeated_cycles_leave_stock_unchanged(self):
        parts = FakePartRepository([Part("P", "P", "Part P", "maintenance", "MAIN", quantity=10)])
        repo = FakeStockTransactionRepository()
        for _ in range(3):
            machine, _, _, tid = _setup(part_repo=parts, txn_repo=repo)
            _move(machine, tid, S.APPROVED)
            _move(machine, tid, S.CANCELLED)
        assert parts.quantity_of("P") == 10


class TestRejectedTransitions:

    def test_illegal_edge_is_a_result_not_an_exception(self):
        machine, repo, parts, tid = _setup(status=S.DRAFT)
        outcome = _move(machine, tid, S.COMPLETED)

        assert outcome.failure.kind == "invalid_transition"
        assert "from draft to completed" in outcome.failure.message
        assert repo.get_by_id(tid).status == S.DRAFT
        assert parts.quantity_of("P") == 10

    def test_cancelled_is_terminal(self):
        machine, _, _, tid = _setup(status=S.CANCELLED)
        assert _move(machine, tid, S.PENDING).failure.kind == "invalid_transition"

    def test_unknown_transaction_raises(self):
        machine, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            _move(machine, "nope", S.APPROVED)


class TestPartialFailure:

    def test_vanished_part_commits_status_and_flags_failure(self):
        machine, repo, parts, tid = _setup(lines=(("P", 2), ("Q", 1)), stock={"P": 10, "Q": 5})
        parts.remove("Q")

        outcome = _move(machine, tid, S.APPROVED)

        assert outcome.ok
        assert not outcome.reconciliation.success
        assert outcome.reconciliation.total_failed == 1
        stored = repo.get_by_id(tid)
        assert stored.status == S.APPROVED
        assert stored.inventory_applied is True
        assert parts.quantity_of("P") == 8

    def test_cancel_after_partial_apply_only_reverses_what_was_applied(self):
        machine, _, parts, tid = _setup(lines=(("P", 2), ("Q", 1)), stock={"P": 10, "Q": 5})
        parts.remove("Q")
        _move(machine, tid, S.APPROVED)

        outcome = _move(machine, tid, S.CANCELLED)

        assert outcome.reconciliation.success
        assert parts.quantity_of("P") == 10

    def test_nothing_applied_keeps_flag_false(self):
        machine, repo, parts, tid = _setup(lines=(("Q", 1),), stock={"Q": 5})
        parts.remove("Q")
        _move(machine, tid, S.APPROVED)
        assert repo.get_by_id(tid).inventory_applied is False

    def test_partial_reversal_still_cancels_and_keeps_outstanding_deltas(self):
        machine, repo, parts, tid = _setup(
            kind=TransactionType.RECEIPT, lines=(("P", 2), ("Q", 3)), stock={"P": 10, "Q": 5}
        )
        _move(machine, tid, S.APPROVED)
        # The received Q stock was used up elsewhere.
        parts.apply_delta("Q", -8)

        outcome = _move(machine, tid, S.CANCELLED)

        assert outcome.ok
        assert outcome.reconciliation.total_failed == 1
        stored = repo.get_by_id(tid)
        assert stored.status == S.CANCELLED
        assert stored.inventory_applied is True
        assert [(d.part_id, d.amount) for d in stored.applied_deltas] == [("Q", 3)]
        assert parts.quantity_of("P") == 10
        assert parts.quantity_of("Q") == 0


class TestStorageFailures:

    def test_part_store_failure_aborts_transition(self):
        parts = StorageFailingPartRepository(
            [Part("P", "P", "Part P", "maintenance", "MAIN", quantity=10),
             Part("Q", "Q", "Part Q", "maintenance", "MAIN", quantity=10)],
            fail_on_call=2,
        )
        machine, repo, _, tid = _setup(lines=(("P", 2), ("Q", 1)), part_repo=parts)

        with pytest.raises(StorageError):
            _move(machine, tid, S.APPROVED)

        assert parts.quantity_of("P") == 10
        assert repo.get_by_id(tid).status == S.PENDING

    def test_transaction_store_failure_rolls_inventory_back(self):
        repo = SaveFailingTransactionRepository()
        machine, _, parts, tid = _setup(txn_repo=repo)
        repo.fail_saves = True

        with pytest.raises(StorageError):
            _move(machine, tid, S.APPROVED)

        assert parts.quantity_of("P") == 10
        assert repo.get_by_id(tid).inventory_applied is False


class TestAuditAndNotes:

    def test_committed_transition_is_audited(self):
        audit = FakeAuditLog()
        machine, _, _, tid = _setup(audit=audit)
        _move(machine, tid, S.APPROVED)

        [event] = audit.events
        assert (event["from_status"], event["to_status"]) == ("pending", "approved")
        assert event["actor_name"] == "Lee"
        assert event["inventory_update"]["total_updated"] == 1

    def test_rejected_transition_is_not_audited(self):
        audit = FakeAuditLog()
        machine, _, _, tid = _setup(audit=audit, status=S.DRAFT)
        _move(machine, tid, S.COMPLETED)
        assert audit.events == []

    def test_audit_failure_does_not_undo_transition(self):
        machine, repo, parts, tid = _setup(audit=FailingAuditLog())
        outcome = _move(machine, tid, S.APPROVED)

        assert outcome.ok
        assert repo.get_by_id(tid).status == S.APPROVED
        assert parts.quantity_of("P") == 6

    def test_notes_recorded_in_history(self):
        machine, repo, _, tid = _setup()
        _move(machine, tid, S.APPROVED, notes="signed off")
        assert "Status changed to approved by Lee: signed off" in repo.get_by_id(tid).internal_notes


class TestConcurrency:

    def test_parallel_approvals_apply_once(self):
        machine, repo, parts, tid = _setup()
        outcomes = []

        def approve():
            outcomes.append(_move(machine, tid, S.APPROVED))

        threads = [threading.Thread(target=approve) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for o in outcomes if o.ok) == 1
        assert parts.quantity_of("P") == 6

    def test_lock_registry_is_empty_after_transitions(self):
        locks = TransactionLocks()
        machine, _, _, tid = _setup(locks=locks)

        _move(machine, tid, S.APPROVED)
        _move(machine, tid, S.PENDING)  # rejected
        with pytest.raises(EntityNotFoundError):
            _move(machine, "nope", S.APPROVED)

        assert len(locks) == 0

    def test_lock_entry_shared_while_held(self):
        locks = TransactionLocks()
        with locks.hold("t1"):
            assert len(locks) == 1
            with locks.hold("t2"):
                assert len(locks) == 2
            assert len(locks) == 1
        assert len(locks) == 0


class TestHistory:

    def test_approve_and_cancel_are_recorded_with_actor(self):
        history = FakeInventoryHistory()
        machine, _, _, tid = _setup(history=history)

        _move(machine, tid, S.APPROVED)
        machine.transition(tid, S.CANCELLED, "u3", "Ana")

        applied, reversed_ = history.movements
        assert (applied.quantity_change, applied.performed_by_name) == (-4, "Lee")
        assert applied.change_type == ChangeType.TRANSACTION
        assert (reversed_.quantity_change, reversed_.performed_by_name) == (4, "Ana")
        assert reversed_.change_type == ChangeType.CORRECTION
        assert applied.transaction_id == tid

    def test_save_failure_rollback_is_recorded(self):
        history = FakeInventoryHistory()
        repo = SaveFailingTransactionRepository()
        machine, _, parts, tid = _setup(txn_repo=repo, history=history)
        repo.fail_saves = True

        with pytest.raises(StorageError):
            _move(machine, tid, S.APPROVED)

        assert [m.quantity_change for m in history.movements] == [-4, 4]
        assert history.movements[-1].change_type == ChangeType.CORRECTION
        assert parts.quantity_of("P") == 10
