"""Domain service: pre-flight availability check.

Simulates the outbound deltas of a transaction against current stock
without writing anything.  Several items drawing on the same record are
summed, so two issues of 3 against a stock of 5 are caught up front.
"""

from __future__ import annotations

import logging

from sims.domain.exceptions import InsufficientInventoryError
from sims.domain.model.reconciliation import AvailabilityReport, ShortfallIssue
from sims.domain.model.stock_transaction import StockTransaction
from sims.domain.repository.part_repository import PartRepository
from sims.domain.service.delta_rules import plan_deltas

logger = logging.getLogger(__name__)


class AvailabilityValidator:

    def __init__(self, part_repo: PartRepository) -> None:
        self._part_repo = part_repo

    def validate(self, transaction: StockTransaction) -> AvailabilityReport:
        plan = plan_deltas(transaction, self._part_repo)

        required: dict[str, int] = {}
        for delta in plan.deltas:
            if delta.is_outbound:
                required[delta.part_id] = required.get(delta.part_id, 0) - delta.amount

        issues: list[ShortfallIssue] = []
        for part_id, need in required.items():
            part = self._part_repo.get_by_id(part_id)
            if part is None:
                # Vanished between planning and now; apply reports it per item.
                continue
            if part.quantity - need < 0:
                issues.append(
                    ShortfallIssue(
                        part_id=part.id,
                        part_number=part.part_number,
                        required=need,
                        available=part.quantity,
                    )
                )

        return AvailabilityReport(issues=issues)

    def ensure_available(self, transaction: StockTransaction) -> None:
        """Raise InsufficientInventoryError listing every shortfall."""
        report = self.validate(transaction)
        if report.valid:
            return
        logger.info(
            "Transaction %s rejected: %d shortfall(s)",
            transaction.transaction_number,
            len(report.issues),
        )
        raise InsufficientInventoryError(
            "Insufficient inventory: " + "; ".join(str(i) for i in report.issues),
            issues=report.issues,
        )
