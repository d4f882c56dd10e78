"""Unit tests for late fee application"""

from datetime import datetime
from decimal import Decimal

from src.domain.invoice import InvoiceStatus
from src.domain.late_fee import apply_late_fee


class TestApplyLateFee:

    def test_fee_folded_into_tax_and_total(self, make_invoice):
        """
        Given: 20,000 outstanding, 5% fee, 5,000 cap
        When: apply_late_fee is called
        Then: 1,000 is added to tax_amount and total, and the stamp is set
        """
        invoice = make_invoice(
            total="20000.00",
            subtotal=Decimal("20000.00"),
            tax_amount=Decimal("0.00"),
        )
        now = datetime(2024, 3, 10)

        result = apply_late_fee(invoice, Decimal("5"), Decimal("5000"), now)

        assert result.is_ok()
        assert result.value == Decimal("1000.00")
        assert invoice.tax_amount == Decimal("1000.00")
        assert invoice.total == Decimal("21000.00")
        assert invoice.late_fee_amount == Decimal("1000.00")
        assert invoice.late_fee_applied_at == now
        assert invoice.status == InvoiceStatus.SENT

    def test_fee_applies_to_outstanding_only(self, make_invoice):
        invoice = make_invoice(status=InvoiceStatus.PARTIALLY_PAID, paid_amount="38000.00")

        result = apply_late_fee(invoice, Decimal("10"), Decimal("0"), datetime.utcnow())

        assert result.value == Decimal("2000.00")
        assert invoice.total == Decimal("60000.00")
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID

    def test_applied_at_most_once(self, make_invoice):
        invoice = make_invoice()
        apply_late_fee(invoice, Decimal("5"), Decimal("5000"), datetime.utcnow())
        total_after_first = invoice.total

        result = apply_late_fee(invoice, Decimal("5"), Decimal("5000"), datetime.utcnow())

        assert result.is_err()
        assert result.error.code == "LATE_FEE_ALREADY_APPLIED"
        assert invoice.total == total_after_first

    def test_paid_invoice_is_rejected(self, make_invoice):
        invoice = make_invoice(status=InvoiceStatus.PAID, paid_amount="58000.00")

        result = apply_late_fee(invoice, Decimal("5"), Decimal("5000"), datetime.utcnow())

        assert result.is_err()
        assert invoice.late_fee_applied_at is None

    def test_zero_percent_charges_nothing(self, make_invoice):
        invoice = make_invoice()

        result = apply_late_fee(invoice, Decimal("0"), Decimal("5000"), datetime.utcnow())

        assert result.is_err()
        assert result.error.code == "NO_LATE_FEE"
        assert invoice.total == Decimal("58000.00")
