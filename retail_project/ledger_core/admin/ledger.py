from django.contrib import admin
from django.db.models import Prefetch

from ledger_core.models import Account, AuditLog, JournalEntry, JournalLine, StockLedger

from .inlines import JournalLineInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("code", "name", "ac_type", "parent", "is_active", "company")
    list_filter = ("ac_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("company", "code")


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyAdmin):
    list_display = ("id", "date", "reference", "source_type", "status", "posted_at", "balanced")
    list_filter = ("status", "source_type", "date")
    search_fields = ("reference", "description")
    inlines = [JournalLineInline]

    # Fetch lines and their accounts up front
    def get_queryset(self, request):
        lines = JournalLine.objects.select_related("account")
        return super().get_queryset(request).prefetch_related(Prefetch("lines", queryset=lines))

    @admin.display(boolean=True)
    def balanced(self, obj):
        return obj.is_balanced()


@admin.register(JournalLine)
class JournalLineAdmin(ReadOnlyAdmin):
    list_display = ("journal", "account", "debit", "credit", "invoice")
    list_filter = ("account__ac_type",)
    search_fields = ("account__name", "description")


@admin.register(StockLedger)
class StockLedgerAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "branch", "item", "type", "quantity", "reference")
    list_filter = ("type", "branch")
    search_fields = ("reference", "item__sku", "item__product__name")


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "user", "action", "object_type", "object_id")
    list_filter = ("action", "object_type")
    search_fields = ("object_id",)
