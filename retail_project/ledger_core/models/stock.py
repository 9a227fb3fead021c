from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .catalog import Item
from .company import Branch, Company

STOCK_MOVEMENT_TYPES = [
    ("PURCHASE", "Purchase"),  # goods in  (+)
    ("SALE", "Sale"),  # goods out (-)
    ("ADJUSTMENT", "Adjustment"),  # manual correction (+)
]


# ---------- Branch stock ----------
class BranchItem(models.Model):
    """Authoritative on-hand quantity of one item in one branch.
    Only the stock service mutates `quantity`, always together
    with a StockLedger row."""

    branch = models.ForeignKey(
        Branch, on_delete=models.CASCADE, related_name="stock"
    )
    item = models.ForeignKey(
        Item, on_delete=models.CASCADE, related_name="branch_stock"
    )
    # Signed: a captured gateway payment may overdraw a branch
    quantity = models.IntegerField(default=0)
    # Branch selling price (falls back to item price)
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    mrp = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )

    class Meta:
        constraints = [
            # one stock row per branch/item pair
            models.UniqueConstraint(
                fields=["branch", "item"], name="uq_branch_item"
            ),
        ]

    def __str__(self):
        return f"{self.branch.name} / {self.item} = {self.quantity}"

    def clean(self):
        if self.branch.company_id != self.item.company_id:
            raise ValidationError("Branch and item must belong to the same company.")


# ---------- Stock ledger (append-only) ----------
class StockLedger(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE)
    item = models.ForeignKey(Item, on_delete=models.CASCADE)
    type = models.CharField(max_length=12, choices=STOCK_MOVEMENT_TYPES)
    # Unsigned; direction comes from `type`
    quantity = models.PositiveIntegerField()
    # Invoice id for invoice-driven movements (idempotency key with item+type)
    reference = models.CharField(max_length=100, null=True, blank=True)
    note = models.CharField(max_length=400, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "branch", "item"], name="ledger_core_company_6a0e91_idx"),
            models.Index(fields=["reference", "item", "type"], name="ledger_core_referen_b3c7d2_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0), name="stock_ledger_qty_positive"
            ),
        ]

    def __str__(self):
        return f"{self.type} {self.signed_quantity:+d} {self.item} @ {self.branch.name}"

    @property
    def signed_quantity(self):
        return -self.quantity if self.type == "SALE" else self.quantity

    def save(self, *args, **kwargs):
        # Movements are never rewritten; corrections are new ADJUSTMENT rows
        if self.pk and StockLedger.objects.filter(pk=self.pk).exists():
            raise ValidationError("Stock ledger rows are immutable.")
        return super().save(*args, **kwargs)
