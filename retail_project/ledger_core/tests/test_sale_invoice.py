import datetime
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import AccountNotFound, ConflictError, InsufficientStock, TaxRateNotFound
from ..models import (Account, AuditLog, BranchItem, Invoice, InvoiceItem,
                      InvoiceTax, JournalEntry, StockLedger)
from ..services.invoicing import create_sale_invoice, money
from ..tasks import send_invoice_notification
from .helpers import journal_legs, make_company, make_item, make_tax_rate, stock_up


class MoneyTests(TestCase):

    def test_rounds_half_up_to_cents(self):
        self.assertEqual(money(Decimal("2.675")), Decimal("2.68"))
        self.assertEqual(money("10.005"), Decimal("10.01"))
        self.assertEqual(money(0.1 + 0.2), Decimal("0.30"))

    def test_missing_amount_is_a_validation_error(self):
        with self.assertRaises(ValidationError):
            money(None)

    def test_garbage_and_non_finite_amounts_are_validation_errors(self):
        for bad in ("abc", "NaN", "Infinity", "-inf", float("nan"), Decimal("NaN"), [1]):
            with self.subTest(amount=bad), self.assertRaises(ValidationError):
                money(bad)


class SaleInvoiceTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.gst = make_tax_rate(self.company, "18")
        self.item = make_item(self.company)
        stock_up(self.branch, self.item, 10)

    def _sell(self, quantity=2, price="100.00", tax_rate_id=None, **kwargs):
        return create_sale_invoice(
            self.company,
            branch=self.branch,
            items=[
                {
                    "item_id": self.item.pk,
                    "quantity": quantity,
                    "price": price,
                    "tax_rate_id": tax_rate_id,
                }
            ],
            date=datetime.date(2025, 9, 1),
            **kwargs,
        )

    def test_two_at_hundred_with_18_percent_round_trip(self):
        invoice = self._sell(tax_rate_id=self.gst.pk)

        line = InvoiceItem.objects.get(invoice=invoice)
        tax = InvoiceTax.objects.get(invoice=invoice)
        self.assertEqual(line.total, Decimal("200.00"))
        self.assertEqual(tax.amount, Decimal("36.00"))
        self.assertEqual(tax.invoice_type, "SALE")
        self.assertEqual(invoice.total_amount, Decimal("200.00"))
        self.assertEqual(invoice.tax_amount, Decimal("36.00"))
        self.assertEqual(invoice.status, "PENDING")

        self.assertEqual(
            journal_legs(journal__source_type="sale_invoice", journal__source_id=invoice.pk),
            {
                "Accounts Receivable": (Decimal("236.00"), Decimal("0")),
                "Sales Revenue": (Decimal("0"), Decimal("200.00")),
                "Tax Payable": (Decimal("0"), Decimal("36.00")),
            },
        )
        je = JournalEntry.objects.get(source_type="sale_invoice", source_id=invoice.pk)
        self.assertEqual(je.status, "posted")
        self.assertTrue(je.is_balanced())

    def test_stock_moves_with_the_invoice(self):
        invoice = self._sell(quantity=3)

        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 7)
        movement = StockLedger.objects.get(type="SALE")
        self.assertEqual(movement.reference, str(invoice.pk))
        self.assertEqual(movement.quantity, 3)

    def test_untaxed_sale_posts_no_tax_line(self):
        invoice = self._sell()
        legs = journal_legs(journal__source_id=invoice.pk, journal__source_type="sale_invoice")
        self.assertNotIn("Tax Payable", legs)
        self.assertEqual(legs["Accounts Receivable"][0], Decimal("200.00"))

    def test_untaxed_sale_needs_no_tax_account(self):
        Account.objects.for_company(self.company).filter(name="Tax Payable").delete()
        invoice = self._sell()
        self.assertEqual(
            journal_legs(journal__source_id=invoice.pk, journal__source_type="sale_invoice"),
            {
                "Accounts Receivable": (Decimal("200.00"), Decimal("0")),
                "Sales Revenue": (Decimal("0"), Decimal("200.00")),
            },
        )

    def test_fractional_quantity_is_refused_not_truncated(self):
        for bad in (2.9, "2.5", "two", None):
            with self.subTest(quantity=bad), self.assertRaises(ValidationError):
                self._sell(quantity=bad, price="10.00")
        self.assertFalse(Invoice.objects.exists())
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 10)

    def test_whole_number_written_as_decimal_is_accepted(self):
        invoice = self._sell(quantity="3.0", price="10.00")
        self.assertEqual(InvoiceItem.objects.get(invoice=invoice).quantity, 3)

    def test_price_defaults_to_branch_price(self):
        invoice = create_sale_invoice(
            self.company, branch=self.branch, items=[{"item_id": self.item.pk, "quantity": 1}]
        )
        self.assertEqual(invoice.total_amount, Decimal("100.00"))

    def test_tax_is_rounded_per_line(self):
        invoice = self._sell(quantity=1, price="0.99", tax_rate_id=self.gst.pk)
        # 0.99 * 18% = 0.1782
        self.assertEqual(invoice.tax_amount, Decimal("0.18"))
        self.assertEqual(invoice.total_amount, Decimal("0.99"))

    def test_oversell_rolls_everything_back(self):
        invoices_before = Invoice.objects.count()
        with self.assertRaises(InsufficientStock):
            self._sell(quantity=11, tax_rate_id=self.gst.pk)

        self.assertEqual(Invoice.objects.count(), invoices_before)
        self.assertFalse(InvoiceItem.objects.exists())
        self.assertFalse(InvoiceTax.objects.exists())
        self.assertFalse(JournalEntry.objects.filter(source_type="sale_invoice").exists())
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 10)
        self.assertFalse(StockLedger.objects.filter(type="SALE").exists())

    def test_second_line_short_undoes_first_line(self):
        other = make_item(self.company, name="Mouse", sku="MOU-1", variant="Black", price="20.00")
        with self.assertRaises(InsufficientStock):
            create_sale_invoice(
                self.company,
                branch=self.branch,
                items=[
                    {"item_id": self.item.pk, "quantity": 2},
                    {"item_id": other.pk, "quantity": 1},
                ],
            )
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 10)
        self.assertFalse(Invoice.objects.exists())

    def test_branch_is_required(self):
        with self.assertRaises(ValidationError):
            create_sale_invoice(self.company, branch=None, items=[{"item_id": self.item.pk, "quantity": 1}])

    def test_unknown_tax_rate_rolls_back(self):
        with self.assertRaises(TaxRateNotFound):
            self._sell(tax_rate_id=999999)
        self.assertFalse(Invoice.objects.exists())
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 10)

    def test_missing_chart_account_rolls_back(self):
        Account.objects.for_company(self.company).filter(name="Sales Revenue").delete()
        with self.assertRaises(AccountNotFound):
            self._sell()
        self.assertFalse(Invoice.objects.exists())
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 10)

    def test_duplicate_invoice_number_is_a_conflict(self):
        self._sell(quantity=1, invoice_number="INV-1001")
        with self.assertRaises(ConflictError):
            self._sell(quantity=1, invoice_number="INV-1001")
        self.assertEqual(Invoice.objects.filter(invoice_number="INV-1001").count(), 1)
        self.assertEqual(BranchItem.objects.get(branch=self.branch, item=self.item).quantity, 9)

    def test_audit_row_written(self):
        invoice = self._sell()
        log = AuditLog.objects.get(object_type="Invoice", object_id=str(invoice.pk))
        self.assertEqual(log.action, "create")
        self.assertEqual(log.changes["total_amount"], "200.00")

    def test_notification_queued_after_commit(self):
        with mock.patch.object(send_invoice_notification, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                invoice = self._sell()
        self.assertEqual(len(callbacks), 1)
        delay.assert_called_once_with(invoice.pk)

    def test_no_notification_when_sale_fails(self):
        with mock.patch.object(send_invoice_notification, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(InsufficientStock):
                    self._sell(quantity=50)
        self.assertEqual(callbacks, [])
        delay.assert_not_called()
