from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import NotFoundError
from ..models import AuditLog, Invoice, JournalLine, Payment
from ..services.invoicing import create_purchase_invoice, create_sale_invoice
from ..services.payment import (create_payment, delete_payment, list_payments,
                                recompute_invoice_status)
from .helpers import journal_legs, make_company, make_item, make_tax_rate, stock_up


class PaymentReconcilerTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.item = make_item(self.company)
        stock_up(self.branch, self.item, 10)
        self.invoice = create_sale_invoice(
            self.company,
            branch=self.branch,
            items=[{"item_id": self.item.pk, "quantity": 2, "price": "100.00"}],
        )

    def _pay(self, amount, invoice=None):
        return create_payment(
            self.company,
            invoice_id=(invoice or self.invoice).pk,
            amount=amount,
            method="CASH",
        )

    def _status(self):
        self.invoice.refresh_from_db()
        return self.invoice.status

    def test_status_follows_payments(self):
        self.assertEqual(self._status(), "PENDING")

        self._pay("50.00")
        self.assertEqual(self._status(), "PARTIAL")
        self.assertIsNone(self.invoice.paid_at)

        self._pay("150.00")
        self.assertEqual(self._status(), "PAID")
        self.assertIsNotNone(self.invoice.paid_at)

    def test_overpayment_is_paid(self):
        self._pay("500.00")
        self.assertEqual(self._status(), "PAID")

    def test_deleting_all_payments_returns_to_pending(self):
        first = self._pay("100.00")
        second = self._pay("100.00")
        self.assertEqual(self._status(), "PAID")

        delete_payment(self.company, second.pk)
        self.assertEqual(self._status(), "PARTIAL")
        self.assertIsNone(self.invoice.paid_at)

        invoice = delete_payment(self.company, first.pk)
        self.assertEqual(invoice.status, "PENDING")
        self.assertEqual(self._status(), "PENDING")
        self.assertTrue(AuditLog.objects.filter(action="delete", object_type="Payment").exists())

    def test_deleting_payment_keeps_journal_lines(self):
        payment = self._pay("100.00")
        lines_before = JournalLine.objects.count()
        delete_payment(self.company, payment.pk)
        self.assertEqual(JournalLine.objects.count(), lines_before)

    def test_sale_payment_posts_cash_against_receivable(self):
        payment = self._pay("80.00")
        self.assertEqual(
            journal_legs(journal__source_type="payment", journal__source_id=payment.pk),
            {
                "Cash": (Decimal("80.00"), Decimal("0")),
                "Accounts Receivable": (Decimal("0"), Decimal("80.00")),
            },
        )

    def test_purchase_payment_posts_payable_against_cash(self):
        purchase = create_purchase_invoice(
            self.company, items=[{"item_id": self.item.pk, "quantity": 1, "price": "40.00"}]
        )
        payment = self._pay("40.00", invoice=purchase)
        self.assertEqual(
            journal_legs(journal__source_type="payment", journal__source_id=payment.pk),
            {
                "Accounts Payable": (Decimal("40.00"), Decimal("0")),
                "Cash": (Decimal("0"), Decimal("40.00")),
            },
        )
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, "PAID")

    def test_status_ignores_non_success_payments(self):
        Payment.objects.create(
            company=self.company, invoice=self.invoice, amount=Decimal("200.00"),
            method="GATEWAY", status="PENDING",
        )
        self.assertEqual(recompute_invoice_status(self.invoice), "PENDING")

    def test_failed_invoice_stays_failed(self):
        Invoice.objects.filter(pk=self.invoice.pk).update(status="FAILED")
        self._pay("200.00")
        self.assertEqual(self._status(), "FAILED")

    def test_status_compares_against_pre_tax_total(self):
        gst = make_tax_rate(self.company, "18")
        taxed = create_sale_invoice(
            self.company,
            branch=self.branch,
            items=[{"item_id": self.item.pk, "quantity": 1, "price": "100.00", "tax_rate_id": gst.pk}],
        )
        self._pay("100.00", invoice=taxed)
        taxed.refresh_from_db()
        self.assertEqual(taxed.status, "PAID")

    def test_amount_must_be_positive(self):
        for bad in ("0", "-5"):
            with self.assertRaises(ValidationError):
                self._pay(bad)
        self.assertFalse(Payment.objects.exists())

    def test_unknown_invoice(self):
        with self.assertRaises(NotFoundError):
            create_payment(self.company, invoice_id=987654, amount="1", method="CASH")

    def test_other_tenant_cannot_pay_or_delete(self):
        other, _ = make_company("Other Shop")
        with self.assertRaises(NotFoundError):
            create_payment(other, invoice_id=self.invoice.pk, amount="1", method="CASH")
        payment = self._pay("10.00")
        with self.assertRaises(NotFoundError):
            delete_payment(other, payment.pk)

    def test_list_payments_filters_by_invoice(self):
        self._pay("10.00")
        self._pay("20.00")
        self.assertEqual(list_payments(self.company, invoice_id=self.invoice.pk).count(), 2)
        self.assertEqual(list_payments(self.company, invoice_id=0).count(), 0)
