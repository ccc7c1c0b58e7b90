"""Tests for journal aggregation."""

from decimal import Decimal

from gobiz_bridge.schemas import gross_amount, sum_gross_amount, summarize_journals


class TestGrossAmount:
    """Test amount extraction from loosely structured records."""

    def test_reads_amount(self, journal_factory):
        assert gross_amount(journal_factory(1, gross_amount=12500)) == Decimal("12500")

    def test_float_amount(self, journal_factory):
        assert gross_amount(journal_factory(1, gross_amount=99.5)) == Decimal("99.5")

    def test_missing_pieces_count_as_zero(self):
        assert gross_amount({}) == 0
        assert gross_amount({"metadata": None}) == 0
        assert gross_amount({"metadata": {"transaction": {}}}) == 0
        assert gross_amount({"metadata": {"transaction": {"gross_amount": None}}}) == 0
        assert gross_amount({"metadata": {"transaction": {"gross_amount": "n/a"}}}) == 0
        assert gross_amount("not a record") == 0

    def test_sum(self, journal_factory):
        records = [journal_factory(1, 100), journal_factory(2, 250)]
        assert sum_gross_amount(records) == 350
        assert sum_gross_amount([]) == 0


class TestSummarizeJournals:
    """Test summarize_journals."""

    def test_missing_amount_does_not_break_total(self, journal_factory):
        missing = journal_factory(3)
        del missing["metadata"]["transaction"]["gross_amount"]
        records = [journal_factory(1, 100), journal_factory(2, 200), missing]

        summary = summarize_journals(records)

        assert summary.total_amount == 300
        assert summary.total_transactions == 3
        assert summary.by_payment_type["qris"].count == 3

    def test_breakdowns(self, journal_factory):
        records = [
            journal_factory(1, 100, payment_type="qris", status="settlement"),
            journal_factory(2, 200, payment_type="gopay", status="settlement"),
            journal_factory(3, 50, payment_type="qris", status="refund"),
        ]

        summary = summarize_journals(records, total=10)

        assert summary.total_transactions == 10
        assert summary.total_amount == 350
        assert summary.by_payment_type["qris"].count == 2
        assert summary.by_payment_type["qris"].amount == 150
        assert summary.by_payment_type["gopay"].amount == 200
        assert summary.by_status["settlement"].count == 2
        assert summary.by_status["refund"].amount == 50

    def test_missing_type_and_status_grouped_as_unknown(self):
        records = [{"metadata": {"transaction": {"gross_amount": 10}}}]

        summary = summarize_journals(records)

        assert summary.by_payment_type["unknown"].count == 1
        assert summary.by_status["unknown"].amount == 10

    def test_records_without_transaction_kept_but_not_aggregated(self, journal_factory):
        records = [{"id": "bare"}, journal_factory(1, 100)]

        summary = summarize_journals(records)

        assert summary.transactions == records
        assert summary.total_amount == 100
        assert sum(b.count for b in summary.by_status.values()) == 1

    def test_empty(self):
        summary = summarize_journals([])
        assert summary.total_transactions == 0
        assert summary.total_amount == 0
        assert summary.by_payment_type == {}

    def test_to_dict(self, journal_factory):
        summary = summarize_journals([journal_factory(1, 100)], total=1)

        data = summary.to_dict()

        assert data["total_transactions"] == 1
        assert data["total_amount"] == 100.0
        assert data["by_payment_type"] == {"qris": {"count": 1, "amount": 100.0}}
        assert data["by_status"] == {"settlement": {"count": 1, "amount": 100.0}}
        assert len(data["transactions"]) == 1
