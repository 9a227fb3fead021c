from decimal import Decimal

from django.core import mail
from django.test import TestCase, override_settings

from ..models import Customer
from ..services.invoicing import create_sale_invoice
from ..tasks import send_invoice_notification
from .helpers import make_company, make_item, stock_up


@override_settings(LEDGER_NOTIFY_FROM_EMAIL="billing@shop.test")
class InvoiceNotificationTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.item = make_item(self.company, price="12.50")
        stock_up(self.branch, self.item, 10)

    def _invoice(self, customer=None):
        return create_sale_invoice(
            self.company,
            branch=self.branch,
            customer=customer,
            notify=False,
            items=[{"item_id": self.item.pk, "quantity": 2}],
        )

    def test_mails_customer(self):
        customer = Customer.objects.create(company=self.company, name="Ravi", email="ravi@example.com")
        invoice = self._invoice(customer)

        self.assertTrue(send_invoice_notification(invoice.pk))

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["ravi@example.com"])
        self.assertEqual(message.from_email, "billing@shop.test")
        self.assertIn(invoice.invoice_number, message.subject)
        self.assertIn("2 x Laptop @ 12.50 = 25.00", message.body)
        self.assertIn(f"Total: {Decimal('25.00')}", message.body)

    def test_no_address_no_mail(self):
        walk_in = Customer.objects.create(company=self.company, name="Walk-in")
        self.assertFalse(send_invoice_notification(self._invoice(walk_in).pk))
        self.assertFalse(send_invoice_notification(self._invoice().pk))
        self.assertEqual(mail.outbox, [])

    def test_missing_invoice_is_skipped(self):
        with self.assertLogs("ledger_core", level="WARNING"):
            self.assertFalse(send_invoice_notification(123456))
