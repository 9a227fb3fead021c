from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .company import Company

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("ASSET", "Asset"),
    ("LIABILITY", "Liability"),
    ("EQUITY", "Equity"),
    ("INCOME", "Income"),
    ("EXPENSE", "Expense"),
]


class Account(models.Model):
    """
    Chart of accounts row.
    - name is unique per company: postings resolve accounts by name
    - balance is never stored; it is sum(debit) - sum(credit) of its lines
    """

    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="accounts"
    )
    name = models.CharField(max_length=200)  # "Cash", "Tax Payable"
    code = models.CharField(max_length=32)  # sorts accounts in reports

    ac_type = models.CharField(max_length=10, choices=AC_TYPES)

    # Optional hierarchy (e.g. 1000 Cash, 1001 Petty Cash)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        # you can't delete a parent if children exist
    )
    # "soft deactivate" accounts without deleting history
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "ac_type"], name="ledger_core_company_8b7d21_idx"),
            models.Index(fields=["company", "code"], name="ledger_core_company_0e9a53_idx"),
        ]
        # Each company defines its own chart of accounts.
        # Names repeat across companies but must be unique within one.
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_account_name"
            )
        ]

    def __str__(self):
        # Example: "acme:1000 – Cash"
        return f"{self.company.slug}:{self.code} – {self.name}"

    def clean(self):
        """Enforce company consistency (multi-tenancy)"""
        if self.parent and self.parent.company_id != self.company_id:
            raise ValidationError(
                "Parent & child accounts must belong to the same company"
            )

    def save(self, *args, **kwargs):
        """Can't disable accounts used in journal lines"""
        if self.pk:
            old = Account.objects.filter(pk=self.pk).first()
            # If account was active before, but now being set to inactive
            if old and old.is_active and not self.is_active:
                from .journal import JournalLine

                if JournalLine.objects.filter(account=self).exists():
                    raise ValidationError(
                        "Cannot disable an account that is used in journal lines."
                    )
        self.full_clean()
        return super().save(*args, **kwargs)
