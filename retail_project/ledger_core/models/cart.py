from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .catalog import Item, Product
from .company import Branch, Company
from .customer import Customer
from .tax import TaxRate

CART_STATUS_CHOICES = [
    ("ACTIVE", "Active"),  # being filled
    ("DRAFT", "Draft"),  # parked at the POS
    ("CHECKEDOUT", "Checked out"),  # consumed by an invoice
    ("CANCELLED", "Cancelled"),
]


class Cart(models.Model):  # Short-lived pre-invoice aggregate
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    branch = models.ForeignKey(
        Branch, null=True, blank=True, on_delete=models.SET_NULL
    )
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="carts",
    )
    status = models.CharField(
        max_length=12, choices=CART_STATUS_CHOICES, default="ACTIVE"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "status"], name="ledger_core_company_4c1d9e_idx")]
        constraints = [
            # one ACTIVE cart per customer per company
            models.UniqueConstraint(
                fields=["company", "customer"],
                condition=models.Q(status="ACTIVE", customer__isnull=False),
                name="uq_active_cart_per_customer",
            ),
        ]

    def __str__(self):
        return f"Cart {self.pk} [{self.status}]"

    @property
    def total(self):
        return sum((line.total for line in self.items.all()), Decimal("0.00"))


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    item = models.ForeignKey(Item, on_delete=models.CASCADE)
    product = models.ForeignKey(Product, on_delete=models.CASCADE)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=18, decimal_places=2)
    tax_rate = models.ForeignKey(
        TaxRate, null=True, blank=True, on_delete=models.SET_NULL
    )
    # price * quantity, refreshed on every quantity change
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["cart", "item"], name="uq_cart_item"),
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0), name="cart_item_qty_positive"
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.item}"

    def save(self, *args, **kwargs):
        self.total = self.price * self.quantity
        return super().save(*args, **kwargs)
