from django.contrib import admin

from ledger_core.models import Cart, Invoice, Payment

from .inlines import CartItemInline, InvoiceItemInline, InvoiceTaxInline, PaymentInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Invoices are composed by the invoicing service; the admin only shows them
@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyAdmin):
    list_display = (
        "invoice_number",
        "type",
        "status",
        "date",
        "total_amount",
        "tax_amount",
        "customer",
        "vendor",
    )
    list_filter = ("type", "status", "date")
    search_fields = ("invoice_number",)
    inlines = [InvoiceItemInline, InvoiceTaxInline, PaymentInline]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ("id", "invoice", "amount", "method", "status", "gateway_payment_id", "date")
    list_filter = ("status", "method")
    search_fields = ("gateway_payment_id", "reference_no", "invoice__invoice_number")


@admin.register(Cart)
class CartAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "customer", "branch", "status", "updated_at")
    list_filter = ("status",)
    inlines = [CartItemInline]
