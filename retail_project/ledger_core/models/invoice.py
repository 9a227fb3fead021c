from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .catalog import Item, Product
from .company import Branch, Company
from .customer import Customer
from .tax import TaxRate
from .vendor import Vendor

INVOICE_TYPES = [
    ("SALE", "Sale"),  # customer owes us (AR)
    ("PURCHASE", "Purchase"),  # we owe a vendor (AP)
    ("EXPENSE", "Expense"),  # taxed operating expense
]

INVOICE_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PARTIAL", "Partially paid"),
    ("PAID", "Paid"),
    ("FAILED", "Failed"),  # terminal: gateway reported a failed payment
]
""" Workflow:
    PENDING -> PARTIAL -> PAID, derived from SUCCESS payments.
    FAILED is only set by a failed gateway callback. """


class Invoice(models.Model):  # Sale, purchase or expense document

    # Invoice belongs to one company (multi-tenant)
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    # Branch whose stock moves with this invoice
    branch = models.ForeignKey(
        Branch, null=True, blank=True, on_delete=models.PROTECT
    )
    # Counterparty: customer for SALE, vendor for PURCHASE
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        # walk-in customers are removed when a POS cart is finished
        on_delete=models.SET_NULL,
    )
    vendor = models.ForeignKey(
        Vendor, null=True, blank=True, on_delete=models.PROTECT
    )

    type = models.CharField(max_length=10, choices=INVOICE_TYPES, default="SALE")
    status = models.CharField(
        max_length=10, choices=INVOICE_STATUS_CHOICES, default="PENDING"
    )

    # Identifiers and key dates
    # human-readable (e.g. "INV-3f9c...")
    invoice_number = models.CharField(max_length=64, unique=True)
    date = models.DateField()  # issue date
    due_date = models.DateField(null=True, blank=True)

    # Sum of line totals (pre-tax)
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Sum of per-line taxes
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    note = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "type", "status"], name="ledger_core_company_9d14b6_idx"),
            models.Index(fields=["company", "customer"], name="ledger_core_company_2e5c08_idx"),
            models.Index(fields=["company", "date"], name="ledger_core_company_f1a7c3_idx"),
        ]

    def __str__(self):
        return f"{self.type} {self.invoice_number}"

    @property
    def gross_amount(self):
        return self.total_amount + self.tax_amount

    def clean(self):
        """Counterparties and branch must live in the invoice's company"""
        for field in ("branch", "customer", "vendor"):
            related = getattr(self, field)
            if related is not None and related.company_id != self.company_id:
                raise ValidationError(
                    f"{field.capitalize()} must belong to the same company."
                )


class InvoiceItem(models.Model):  # Stores invoice lines (immutable)
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="items"
    )
    item = models.ForeignKey(Item, on_delete=models.PROTECT)
    product = models.ForeignKey(Product, on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=18, decimal_places=2)
    tax_rate = models.ForeignKey(
        TaxRate, null=True, blank=True, on_delete=models.PROTECT
    )
    # quantity * price, rounded
    total = models.DecimalField(max_digits=18, decimal_places=2)

    def __str__(self):
        return f"{self.quantity} x {self.item} @ {self.price}"


class InvoiceTax(models.Model):  # Per-line tax breakdown
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="taxes"
    )
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    tax_rate = models.ForeignKey(TaxRate, on_delete=models.PROTECT)
    invoice_type = models.CharField(max_length=10, choices=INVOICE_TYPES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    # Enforce tenant scoping
    objects = TenantManager()

    def __str__(self):
        return f"{self.tax_rate.name}: {self.amount}"
