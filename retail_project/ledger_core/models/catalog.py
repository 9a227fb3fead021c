from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .company import Company
from .tax import TaxRate


# ---------- Categories ----------
class Category(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    # sub-categories point at their parent
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="children",
    )

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


# ---------- Products ----------
class Product(models.Model):  # Catalog entry; owns one or more Items (variants)
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=80)
    description = models.TextField(blank=True, default="")
    category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="products",
    )
    sub_category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="sub_products",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "name"], name="ledger_core_company_a41b09_idx")]
        # Ensure each SKU is unique within a company
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sku"], name="uq_company_product_sku"
            )
        ]

    def __str__(self):
        return self.name


# ---------- Items (sellable variants) ----------
class Item(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="items"
    )
    sku = models.CharField(max_length=80, blank=True, default="")
    variant = models.CharField(max_length=120, blank=True, default="")  # "Blue / XL"

    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    mrp = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    # Legacy company-wide quantity, kept in step with BranchItem movements.
    # BranchItem.quantity is the authoritative on-hand figure.
    quantity = models.IntegerField(default=0)

    tax_rate = models.ForeignKey(
        TaxRate, null=True, blank=True, on_delete=models.SET_NULL
    )
    location = models.CharField(max_length=120, blank=True, default="")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "product"], name="ledger_core_company_3d6f10_idx"),
            models.Index(fields=["company", "sku"], name="ledger_core_company_77c2e4_idx"),
        ]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        # "Laptop (Blue)" - used in operator-facing stock errors
        product_name = self.product.name if self.product_id else "?"
        label = self.variant or self.sku
        return f"{product_name} ({label})" if label else product_name

    def clean(self):
        """Can't attach a variant of Company A to a product of Company B"""
        if self.product_id and self.product.company_id != self.company_id:
            raise ValidationError("Item and product must belong to the same company.")
        if self.tax_rate_id and self.tax_rate.company_id != self.company_id:
            raise ValidationError("Tax rate must belong to the same company as the item.")
        if self.price is not None and self.price < 0:
            raise ValidationError("Price must be >= 0")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
