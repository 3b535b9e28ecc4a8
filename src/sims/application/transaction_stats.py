"""Application service: Transaction Statistics use case (query).

Counts and values per status, type and department, plus period counts
for the current month and year.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from sims.domain.model.stock_transaction import TransactionStatus
from sims.domain.model.value_objects import Money
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository


@dataclass
class Bucket:
    count: int = 0
    value: Money = field(default_factory=Money.zero)


@dataclass
class TransactionStatsDTO:
    total: int = 0
    pending: int = 0
    completed: int = 0
    monthly: int = 0
    yearly: int = 0
    total_value: Money = field(default_factory=Money.zero)
    by_status: dict[str, Bucket] = field(default_factory=dict)
    by_type: dict[str, Bucket] = field(default_factory=dict)
    by_department: dict[str, Bucket] = field(default_factory=dict)


class TransactionStatsHandler:

    def __init__(self, transaction_repo: StockTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(
        self,
        department: str | None = None,
        now: datetime | None = None,
    ) -> TransactionStatsDTO:
        now = now or datetime.now(timezone.utc)
        stats = TransactionStatsDTO()

        for t in self._transaction_repo.list_all():
            if department is not None and t.department != department:
                continue

            amount = t.total_amount
            stats.total += 1
            stats.total_value = stats.total_value + amount
            if t.status == TransactionStatus.PENDING:
                stats.pending += 1
            elif t.status == TransactionStatus.COMPLETED:
                stats.completed += 1
            if t.created_at.year == now.year:
                stats.yearly += 1
                if t.created_at.month == now.month:
                    stats.monthly += 1

            for buckets, key in (
                (stats.by_status, t.status.value),
                (stats.by_type, t.transaction_type.value),
                (stats.by_department, t.department),
            ):
                bucket = buckets.setdefault(key, Bucket())
                bucket.count += 1
                bucket.value = bucket.value + amount

        return stats
