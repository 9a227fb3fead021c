import datetime
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import NotFoundError
from ..models import BranchItem, Invoice, InvoiceItem, JournalEntry, Payment, StockLedger
from ..services.callbacks import handle_callback
from ..services.invoicing import create_sale_invoice
from ..tasks import send_invoice_notification
from .helpers import journal_legs, make_company, make_item, stock_up


class PaymentCallbackTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.item = make_item(self.company)
        stock_up(self.branch, self.item, 10)
        # Online order: invoice booked, stock not yet taken
        self.invoice = Invoice.objects.create(
            company=self.company,
            branch=self.branch,
            type="SALE",
            invoice_number="WEB-1",
            date=datetime.date(2025, 9, 1),
            total_amount=Decimal("200.00"),
        )
        InvoiceItem.objects.create(
            invoice=self.invoice,
            item=self.item,
            product=self.item.product,
            quantity=2,
            price=Decimal("100.00"),
            total=Decimal("200.00"),
        )

    def _callback(self, status="SUCCESS", payment_id="pay_123", amount="200.00", invoice_id=None):
        return handle_callback(
            payment_id=payment_id,
            invoice_id=invoice_id or self.invoice.pk,
            status=status,
            amount=amount,
            gateway="bucksbox",
            raw_response={"id": payment_id, "status": status},
        )

    def _on_hand(self):
        return BranchItem.objects.get(branch=self.branch, item=self.item).quantity

    def test_success_marks_paid_and_takes_stock(self):
        result = self._callback()

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "PAID")
        self.assertIsNotNone(self.invoice.paid_at)
        self.assertFalse(result["duplicate"])
        self.assertEqual(result["invoice_id"], self.invoice.pk)
        payment = Payment.objects.get(gateway_payment_id="pay_123")
        self.assertEqual(result["payment_id"], payment.pk)
        self.assertEqual(payment.raw_response, {"id": "pay_123", "status": "SUCCESS"})
        self.assertEqual(self._on_hand(), 8)
        self.assertEqual(
            journal_legs(journal__source_type="payment_callback"),
            {
                "Cash": (Decimal("200.00"), Decimal("0")),
                "Accounts Receivable": (Decimal("0"), Decimal("200.00")),
            },
        )

    def test_duplicate_delivery_is_absorbed(self):
        first = self._callback()
        with self.assertLogs("ledger_core", level="WARNING"):
            second = self._callback()

        self.assertEqual(second["payment_id"], first["payment_id"])
        self.assertEqual(second["invoice_id"], first["invoice_id"])
        self.assertTrue(second["duplicate"])
        self.assertEqual(Payment.objects.filter(gateway_payment_id="pay_123").count(), 1)
        self.assertEqual(StockLedger.objects.filter(type="SALE").count(), 1)
        self.assertEqual(self._on_hand(), 8)
        self.assertEqual(JournalEntry.objects.filter(source_type="payment_callback").count(), 1)

    def test_duplicate_answered_before_invoice_is_looked_up(self):
        first = self._callback()
        with self.assertLogs("ledger_core", level="WARNING"):
            repeat = handle_callback(
                payment_id="pay_123",
                invoice_id=987654,
                status="SUCCESS",
                amount="not-a-number",
                gateway="bucksbox",
            )
        self.assertTrue(repeat["duplicate"])
        self.assertEqual(repeat["payment_id"], first["payment_id"])
        self.assertEqual(repeat["invoice_id"], self.invoice.pk)
        self.assertEqual(Payment.objects.count(), 1)

    def test_garbage_amount_on_first_delivery_is_rejected(self):
        for bad in ("abc", "Infinity"):
            with self.subTest(amount=bad), self.assertRaises(ValidationError):
                self._callback(amount=bad, payment_id=f"pay_{bad}")
        self.assertFalse(Payment.objects.exists())

    def test_duplicate_with_other_status_changes_nothing(self):
        self._callback(status="SUCCESS")
        self._callback(status="FAILED")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "PAID")

    def test_new_payment_id_does_not_take_stock_twice(self):
        self._callback(payment_id="pay_1")
        self._callback(payment_id="pay_2")
        self.assertEqual(Payment.objects.count(), 2)
        self.assertEqual(self._on_hand(), 8)

    def test_stock_already_taken_at_checkout_is_not_taken_again(self):
        invoice = create_sale_invoice(
            self.company, branch=self.branch, items=[{"item_id": self.item.pk, "quantity": 3}]
        )
        self.assertEqual(self._on_hand(), 7)
        self._callback(invoice_id=invoice.pk, amount="300.00")
        self.assertEqual(self._on_hand(), 7)

    def test_failed_payment_marks_invoice_failed(self):
        result = self._callback(status="FAILED")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "FAILED")
        self.assertEqual(Payment.objects.get(pk=result["payment_id"]).status, "FAILED")
        self.assertEqual(self._on_hand(), 10)
        self.assertFalse(JournalEntry.objects.filter(source_type="payment_callback").exists())

    def test_pending_only_records_payment(self):
        self._callback(status="pending")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, "PENDING")
        self.assertEqual(Payment.objects.get().status, "PENDING")
        self.assertEqual(self._on_hand(), 10)

    def test_captured_payment_overdraws_short_stock(self):
        BranchItem.objects.filter(branch=self.branch, item=self.item).update(quantity=1)
        with self.assertLogs("ledger_core", level="WARNING"):
            self._callback()
        self.assertEqual(self._on_hand(), -1)

    def test_invoice_without_branch_uses_main(self):
        Invoice.objects.filter(pk=self.invoice.pk).update(branch=None)
        self._callback()
        self.assertEqual(self._on_hand(), 8)

    def test_unknown_invoice_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self._callback(invoice_id=424242)
        self.assertFalse(Payment.objects.exists())

    def test_unknown_status_rejected(self):
        with self.assertRaises(ValidationError):
            self._callback(status="REFUNDED")

    def test_success_queues_notification(self):
        with mock.patch.object(send_invoice_notification, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self._callback()
        delay.assert_called_once_with(self.invoice.pk)
