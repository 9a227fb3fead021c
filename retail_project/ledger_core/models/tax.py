from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .company import Company


# ---------- Tax rates ----------
class TaxRate(models.Model):
    """Percentage applied per invoice line (never per invoice total)."""

    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="tax_rates"
    )
    name = models.CharField(max_length=100)  # "GST 18%"
    # Percentage, e.g. 18.0000 means 18 %
    rate = models.DecimalField(max_digits=7, decimal_places=4)
    type = models.CharField(max_length=30, blank=True, default="")  # GST, VAT...
    is_default = models.BooleanField(default=False)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "name"], name="ledger_core_company_5c2e77_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rate__gte=0), name="tax_rate_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.rate}%)"

    def clean(self):
        if self.rate is not None and self.rate < Decimal("0"):
            raise ValidationError("Tax rate must be >= 0")
