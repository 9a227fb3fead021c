from django.db import models

from ..managers import TenantManager
from .company import Company


# ---------- Customer ----------
# Represents client who receives sale invoices (AR side)
class Customer(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, null=True, blank=True)
    address = models.CharField(max_length=400, blank=True, default="")
    # Ephemeral POS customer created at checkout; removed when the cart is finished
    is_walk_in = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="ledger_core_company_c90d3e_idx"),
            models.Index(fields=["company", "phone"], name="ledger_core_company_4f8a26_idx"),
        ]

    def __str__(self):
        return self.name
