from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.text import slugify

from ..managers import TenantManager

BRANCH_TYPES = [
    ("MAIN", "Main"),  # exactly one per company
    ("SUB", "Sub-branch"),
]

ROLE_CHOICES = [
    ("ADMIN", "Admin"),  # full control of the company
    ("BRANCHADMIN", "Branch admin"),  # runs one branch
    ("CASHIER", "Cashier"),  # POS only
    ("VIEWER", "Viewer"),  # read-only access
]


# ---------- Tenant / Company ----------
class Company(models.Model):
    """Tenant root. Every other row carries company_id."""

    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same slug
    )
    email = models.EmailField(null=True, blank=True)

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)[:80]
        super().save(*args, **kwargs)


# ---------- Branch ----------
class Branch(models.Model):
    """Physical/logical sub-unit of a company holding its own stock."""

    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="branches"
    )
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=10, choices=BRANCH_TYPES, default="SUB")
    address = models.CharField(max_length=400, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "branches"
        indexes = [models.Index(fields=["company", "type"], name="ledger_core_company_1f0c4a_idx")]
        constraints = [
            # only one MAIN branch per company
            models.UniqueConstraint(
                fields=["company"],
                condition=models.Q(type="MAIN"),
                name="uq_company_main_branch",
            ),
        ]

    def __str__(self):
        return f"{self.company} / {self.name}"


# ---------- Membership ----------
class Membership(models.Model):
    """Bridge between a user and a company; source of the principal."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ledger_memberships",
    )
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="memberships"
    )
    # Branch the user works in (None = company-wide)
    branch = models.ForeignKey(
        Branch, null=True, blank=True, on_delete=models.SET_NULL
    )
    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default="VIEWER"
    )
    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        constraints = [
            # one user can only have one membership per company
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        if self.branch_id and self.branch.company_id != self.company_id:
            raise ValidationError("Branch must belong to the membership's company.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
