from decimal import Decimal
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone
from ..managers import TenantManager
from .company import Company
from .invoice import Invoice

PAYMENT_STATUS_CHOICES = [
    ("SUCCESS", "Success"),  # counts towards the invoice
    ("PENDING", "Pending"),  # gateway has not confirmed yet
    ("FAILED", "Failed"),
]


class Payment(models.Model):
    """Money received (or paid) against an invoice.
    Rows are never edited; deleting one re-derives the invoice status."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,  # invoices with payments can't disappear
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(max_length=40)  # CASH, CARD, UPI, <gateway>...
    reference_no = models.CharField(max_length=100, null=True, blank=True)
    # Idempotency key of gateway callbacks
    gateway_payment_id = models.CharField(
        max_length=120, null=True, blank=True, unique=True
    )
    raw_response = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS_CHOICES, default="SUCCESS"
    )
    date = models.DateTimeField(default=timezone.now)
    note = models.TextField(blank=True, default="")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "invoice"], name="ledger_core_company_7b3e5f_idx"),
            models.Index(fields=["company", "date"], name="ledger_core_company_d8c1a4_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=Decimal("0")),
                name="payment_amount_non_negative",
            ),
        ]

    def __str__(self):
        return f"Payment {self.pk} {self.amount} [{self.status}] -> {self.invoice_id}"
