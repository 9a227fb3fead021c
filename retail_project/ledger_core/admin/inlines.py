from django.contrib import admin

from ledger_core.models import CartItem, InvoiceItem, InvoiceTax, JournalLine, Payment


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False


class JournalLineInline(ReadOnlyInline):
    """Show JournalLine rows on JournalEntry page"""

    model = JournalLine
    fields = ("account", "description", "debit", "credit", "invoice")


class InvoiceItemInline(ReadOnlyInline):
    model = InvoiceItem
    fields = ("item", "product", "quantity", "price", "tax_rate", "total")


class InvoiceTaxInline(ReadOnlyInline):
    model = InvoiceTax
    fields = ("tax_rate", "amount")


class PaymentInline(ReadOnlyInline):
    model = Payment
    fields = ("amount", "method", "status", "gateway_payment_id", "date")


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("item", "quantity", "price", "total")
    readonly_fields = ("total",)
