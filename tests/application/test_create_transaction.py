"""Integration tests for the CreateTransaction and UpdateTransactionItems use cases."""

from datetime import datetime, timezone

import pytest

from sims.application.create_transaction import CreateTransactionHandler
from sims.application.dto import Actor, ItemSpec, TransactionSpec
from sims.application.update_transaction_items import UpdateTransactionItemsHandler
from sims.domain.exceptions import EntityNotFoundError, ValidationError
from sims.domain.model.part import Part
from sims.domain.model.stock_transaction import TransactionStatus
from sims.domain.model.value_objects import Money
from tests.fakes import FakePartRepository, FakeStockTransactionRepository

ACTOR = Actor(id="u1", name="Dana", department="maintenance")
ISSUE_TO = {"asset_id": "PUMP-07", "technician": "Sam"}


def _setup():
    parts = FakePartRepository([
        Part("p1", "BRG-6204", "Bearing", "maintenance", "MAIN", quantity=10),
        Part("p2", "FLT-220", "Filter", "maintenance", "MAIN", quantity=4),
    ])
    return FakeStockTransactionRepository(), parts


class TestCreateTransactionHappyPath:

    def test_creates_numbered_draft(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec(
                transaction_type="receipt",
                description="PO delivery",
                items=[ItemSpec("p1", 5, unit_cost="3.20"), ItemSpec("p2", 2)],
                destination_location="MAIN",
                supplier="Acme Bearings",
            ),
            ACTOR,
        )

        period = f"{datetime.now(timezone.utc):%y%m}"
        assert dto.transaction_number == f"ST{period}0001"
        assert dto.status == "draft"
        assert dto.department == "maintenance"
        assert dto.total_quantity == 7
        assert dto.total_amount == "$16.00"
        assert [i.part_number for i in dto.items] == ["BRG-6204", "FLT-220"]
        assert all(i.to_location == "MAIN" for i in dto.items)

    def test_numbers_increase_within_period(self):
        txn_repo, parts = _setup()
        handler = CreateTransactionHandler(txn_repo, parts)
        spec = TransactionSpec("issue", "Line 2 repair", [ItemSpec("p1", 1)], **ISSUE_TO)
        first = handler.handle(spec, ACTOR)
        second = handler.handle(spec, ACTOR)
        assert int(second.transaction_number[-4:]) == int(first.transaction_number[-4:]) + 1

    def test_creation_does_not_touch_inventory(self):
        txn_repo, parts = _setup()
        CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec("issue", "Line 2 repair", [ItemSpec("p1", 8)], **ISSUE_TO), ACTOR
        )
        assert parts.quantity_of("p1") == 10

    def test_payload_hides_bookkeeping(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec("issue", "Line 2 repair", [ItemSpec("p1", 1)], **ISSUE_TO), ACTOR
        )
        payload = dto.as_payload()
        assert payload["transactionNumber"] == dto.transaction_number
        assert "inventoryApplied" not in payload
        assert "inventory_applied" not in payload


class TestCreateTransactionValidation:

    def test_unknown_part_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(EntityNotFoundError, match="Part not found"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec("issue", "x", [ItemSpec("nope", 1)], **ISSUE_TO), ACTOR
            )

    def test_unknown_type_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(ValidationError, match="Invalid transaction type 'loan'"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec("loan", "x", [ItemSpec("p1", 1)]), ACTOR
            )

    def test_zero_quantity_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec("issue", "x", [ItemSpec("p1", 0)], **ISSUE_TO), ACTOR
            )

    def test_adjustment_without_direction_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(ValidationError, match="require a direction"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec("adjustment", "count", [ItemSpec("p1", 1)]), ACTOR
            )
        assert txn_repo.list_all() == []

    def test_receipt_without_supplier_rejected_before_numbering(self):
        txn_repo, parts = _setup()
        handler = CreateTransactionHandler(txn_repo, parts)
        with pytest.raises(ValidationError, match="require a supplier"):
            handler.handle(TransactionSpec("receipt", "x", [ItemSpec("p1", 1)]), ACTOR)
        dto = handler.handle(
            TransactionSpec("receipt", "x", [ItemSpec("p1", 1)], supplier="Acme Bearings"), ACTOR
        )
        assert dto.transaction_number.endswith("0001")

    def test_issue_without_asset_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(ValidationError, match="require an asset"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec("issue", "x", [ItemSpec("p1", 1)], technician="Sam"), ACTOR
            )

    def test_unknown_recipient_type_rejected(self):
        txn_repo, parts = _setup()
        with pytest.raises(ValidationError, match="Invalid recipient type 'robot'"):
            CreateTransactionHandler(txn_repo, parts).handle(
                TransactionSpec(
                    "issue", "x", [ItemSpec("p1", 1)], asset_id="PUMP-07",
                    recipient="R2", recipient_type="robot",
                ),
                ACTOR,
            )


class TestCounterpartyFields:

    def test_issue_counterparty_reaches_payload(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec(
                "issue",
                "Line 2 repair",
                [ItemSpec("p1", 1)],
                asset_id="PUMP-07",
                asset_name="Boiler feed pump",
                recipient="Line 2 crew",
                recipient_type="Department",
                work_order_id="wo-1",
                work_order_number="WO-2024-031",
            ),
            ACTOR,
        )
        assert dto.recipient_type == "department"
        payload = dto.as_payload()
        assert payload["assetId"] == "PUMP-07"
        assert payload["assetName"] == "Boiler feed pump"
        assert payload["recipient"] == "Line 2 crew"
        assert payload["recipientType"] == "department"
        assert payload["workOrderNumber"] == "WO-2024-031"
        assert payload["technician"] is None

    def test_counterparty_survives_reload(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec("receipt", "PO", [ItemSpec("p1", 1)], supplier="Acme Bearings"),
            ACTOR,
        )
        assert txn_repo.get_by_id(dto.id).supplier == "Acme Bearings"


class TestUpdateItems:

    def test_draft_items_replaced(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec("issue", "x", [ItemSpec("p1", 1)], **ISSUE_TO), ACTOR
        )
        updated = UpdateTransactionItemsHandler(txn_repo, parts).handle(
            dto.id, [ItemSpec("p2", 3)]
        )
        assert [i.part_id for i in updated.items] == ["p2"]

    def test_submitted_items_locked(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec("issue", "x", [ItemSpec("p1", 1)], **ISSUE_TO), ACTOR
        )
        txn = txn_repo.get_by_id(dto.id)
        txn.status = TransactionStatus.PENDING
        txn_repo.save(txn)

        with pytest.raises(ValidationError, match="locked"):
            UpdateTransactionItemsHandler(txn_repo, parts).handle(dto.id, [ItemSpec("p2", 3)])


class TestMoneyOnItems:

    def test_unit_cost_parsed(self):
        txn_repo, parts = _setup()
        dto = CreateTransactionHandler(txn_repo, parts).handle(
            TransactionSpec(
                "receipt", "x", [ItemSpec("p1", 2, unit_cost="1.25")], supplier="Acme Bearings"
            ),
            ACTOR,
        )
        txn = txn_repo.get_by_id(dto.id)
        assert txn.items[0].unit_cost == Money.of("1.25")
