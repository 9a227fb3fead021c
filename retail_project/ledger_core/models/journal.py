import hashlib
import json
from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import AlreadyPostedDifferentPayload, UnbalancedJournalError
from ..managers import TenantManager
from .account import Account
from .company import Company

JOURNAL_STATUS = [
    ("draft", "Draft"),  # lines still being written
    ("posted", "Posted"),  # finalized
]


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # Groups the lines of one posting operation
    # Multi-tenant: every entry belongs to a company
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    # Business metadata
    date = models.DateField()
    reference = models.CharField(max_length=200, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=JOURNAL_STATUS, default="draft"
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    # Track user who created it
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Where the entry originated (sale_invoice, payment, callback, expense...)
    source_type = models.CharField(max_length=50, null=True, blank=True)
    source_id = models.BigIntegerField(null=True, blank=True)
    # Fingerprint-based idempotency (safe to call twice if nothing has changed)
    posting_fingerprint = models.CharField(
        max_length=64, null=True, blank=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["company", "date"], name="ledger_core_company_0c6d2b_idx"),
            models.Index(fields=["company", "source_type", "source_id"], name="ledger_core_company_95e4f7_idx"),
        ]
        constraints = [
            # Within one company, each journal reference must be unique
            models.UniqueConstraint(
                fields=["company", "reference"], name="uq_je_company_ref"
            )
        ]

    def __str__(self):
        return f"JE {self.pk} {self.date} [{self.status}]"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        """Return debits, credits sums for lines"""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    # True if double-entry rule holds: total debits = total credits
    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def _posting_payload(self):
        """Deterministic JSON snapshot of what matters for posting,
        so a re-post can tell whether this exact version was already posted.
        """
        lines = [
            {
                "acct": line.account_id,
                "debit": str(line.debit),
                "credit": str(line.credit),
                "desc": line.description or "",
            }
            for line in self.lines.order_by("id").all()
        ]
        payload = {
            "company": self.company_id,
            "date": self.date.isoformat(),
            "lines": lines,
        }
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    def _fingerprint(self):
        return hashlib.sha256(self._posting_payload().encode()).hexdigest()

    # Post the entry safely inside a database transaction
    @transaction.atomic
    def post(self, user=None):
        """Validate balance and tenant consistency, then mark posted."""

        # Lock row + lines to prevent concurrent modifications
        je = JournalEntry.objects.select_for_update().get(pk=self.pk)
        lines = je.lines.select_for_update().all()

        if not lines.exists():  # Prevent posting an empty entry
            raise ValidationError(
                "JournalEntry must have at least one JournalLine.")

        # Recompute totals fresh from DB
        td, tc = je.compute_totals()
        if td != tc:
            raise UnbalancedJournalError(
                f"Journal not balanced: debits={td}, credits={tc}"
            )

        # every line must belong to same company as journal
        if lines.exclude(company_id=je.company_id).exists():
            raise ValidationError(
                "All journal lines must belong to same company as journal."
            )

        fp = je._fingerprint()

        if je.status == "posted":
            if je.posting_fingerprint == fp:
                # Idempotent: safe to return without raising
                return je
            raise AlreadyPostedDifferentPayload(
                "Journal already posted with different payload."
            )

        je.status = "posted"
        je.posted_at = timezone.now()
        if user:
            je.created_by = user
        je.posting_fingerprint = fp
        je.save(
            update_fields=[
                "status", "posted_at", "created_by", "posting_fingerprint"]
        )
        self.status, self.posted_at = je.status, je.posted_at
        self.posting_fingerprint = fp
        return je

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).first()
            if orig and orig.status == "posted" and self.status != "posted":
                # disallow toggling posted flag
                raise ValidationError("Cannot unpost a posted journal")
        super().save(*args, **kwargs)


class JournalLine(models.Model):  # Stores Lines ( credits / debits )
    """
    One side of a double-entry posting. Belongs to a journal entry and a
    GL account; optionally points at the invoice that caused it.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # can't delete account if lines exist
    account = models.ForeignKey(Account, on_delete=models.PROTECT)
    description = models.CharField(max_length=400, null=True, blank=True)

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    # Link posting line back to the invoice that caused it
    invoice = models.ForeignKey(
        "Invoice", null=True, blank=True, on_delete=models.SET_NULL
    )

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "account"], name="ledger_core_company_a9f2e1_idx"),
            models.Index(fields=["company", "journal"], name="ledger_core_company_63b8d0_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit=0) & models.Q(credit=0)),
                name="jl_debit_or_credit_nonzero",
            ),
        ]

    def __str__(self):
        return f"{self.journal_id} | {self.account.name} | D:{self.debit} C:{self.credit}"

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError(
                "JournalLine should not have both debit and credit > 0"
            )
        if self.debit == 0 and self.credit == 0:
            raise ValidationError(
                "JournalLine requires a non-0 amount on either debit or credit"
            )
        if self.account.company_id != self.company_id:
            raise ValidationError("JournalLine.account must belong to the same company.")
        if self.journal.company_id != self.company_id:
            raise ValidationError(
                "JournalLine.company must equal JournalEntry.company"
            )
        if self.invoice_id and self.invoice.company_id != self.company_id:
            raise ValidationError(
                "JournalLine.invoice must belong to the same company."
            )
        # Lines of a posted journal are frozen
        if JournalEntry.objects.filter(pk=self.journal_id, status="posted").exists():
            raise ValidationError(
                "Cannot add or change JournalLine: parent journal is posted."
            )

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.journal_id, status="posted").exists():
            raise ValidationError(
                "Cannot delete JournalLine: parent JournalEntry is posted."
            )
        return super().delete(*args, **kwargs)

    def save(self, *args, **kwargs):
        # If company not set, copy it from the journal
        if not self.company_id and self.journal_id:
            self.company_id = self.journal.company_id
        self.full_clean()
        return super().save(*args, **kwargs)
