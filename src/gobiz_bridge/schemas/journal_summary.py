"""
Journal aggregation.

Totals and per-payment-type / per-status breakdowns over journal records
returned by /journals/search. Records are loosely structured; missing
fields never raise:
- no metadata.transaction → record kept, not aggregated
- no gross_amount → counted with amount 0
- no payment_type / status → grouped under "unknown"
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

UNKNOWN_KEY = "unknown"


@dataclass
class BucketTotal:
    """Count and amount for one breakdown key."""

    count: int = 0
    amount: Decimal = Decimal("0")

    def add(self, amount: Decimal) -> None:
        self.count += 1
        self.amount += amount

    def to_dict(self) -> dict:
        return {"count": self.count, "amount": float(self.amount)}


@dataclass
class JournalSummary:
    """Aggregated view of a set of journal records."""

    total_transactions: int
    total_amount: Decimal = Decimal("0")
    by_payment_type: dict[str, BucketTotal] = field(default_factory=dict)
    by_status: dict[str, BucketTotal] = field(default_factory=dict)
    transactions: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_transactions": self.total_transactions,
            "total_amount": float(self.total_amount),
            "by_payment_type": {k: v.to_dict() for k, v in self.by_payment_type.items()},
            "by_status": {k: v.to_dict() for k, v in self.by_status.items()},
            "transactions": self.transactions,
        }


def _transaction_metadata(record: Any) -> Optional[dict]:
    if not isinstance(record, dict):
        return None
    metadata = record.get("metadata")
    if not isinstance(metadata, dict):
        return None
    transaction = metadata.get("transaction")
    return transaction if isinstance(transaction, dict) else None


def gross_amount(record: Any) -> Decimal:
    """Gross amount of one record, 0 when absent or unparseable."""
    transaction = _transaction_metadata(record)
    if transaction is None:
        return Decimal("0")
    raw = transaction.get("gross_amount")
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return Decimal("0")


def sum_gross_amount(records: Iterable[Any]) -> Decimal:
    """Total gross amount over records."""
    return sum((gross_amount(r) for r in records), Decimal("0"))


def summarize_journals(records: Iterable[dict], total: Optional[int] = None) -> JournalSummary:
    """
    Aggregate journal records.

    Args:
        records: Journal results (as returned by GoBiz)
        total: Server-reported total; defaults to the number of records

    Returns:
        JournalSummary with totals and breakdowns
    """
    transactions = list(records)
    summary = JournalSummary(
        total_transactions=total if total is not None else len(transactions),
        transactions=transactions,
    )

    for record in transactions:
        transaction = _transaction_metadata(record)
        if transaction is None:
            continue

        amount = gross_amount(record)
        payment_type = transaction.get("payment_type") or UNKNOWN_KEY
        status = transaction.get("status") or UNKNOWN_KEY

        summary.total_amount += amount
        summary.by_payment_type.setdefault(payment_type, BucketTotal()).add(amount)
        summary.by_status.setdefault(status, BucketTotal()).add(amount)

    return summary
