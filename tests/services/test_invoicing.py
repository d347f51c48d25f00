"""
Unit tests for invoice settlement: pure function, no DB.
"""
from datetime import datetime, timezone
from decimal import Decimal

from stowpilot.services.invoicing import settle

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
EARLIER = datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)


class TestSettle:
    def test_exact_payment_marks_paid(self):
        assert settle("sent", Decimal("300"), Decimal("300"), None, NOW) == ("paid", NOW)

    def test_overpayment_marks_paid(self):
        assert settle("overdue", Decimal("300"), Decimal("350"), None, NOW) == ("paid", NOW)

    def test_existing_paid_at_is_kept(self):
        assert settle("paid", Decimal("300"), Decimal("300"), EARLIER, NOW) == ("paid", EARLIER)

    def test_partial_payment_leaves_status(self):
        assert settle("sent", Decimal("300"), Decimal("100"), None, NOW) == ("sent", None)

    def test_partial_payment_on_overdue_stays_overdue(self):
        assert settle("overdue", Decimal("300"), Decimal("299.99"), None, NOW) == ("overdue", None)

    def test_refund_reopens_paid_invoice(self):
        assert settle("paid", Decimal("300"), Decimal("0"), EARLIER, NOW) == ("sent", None)
