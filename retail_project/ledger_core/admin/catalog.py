from django.contrib import admin

from ledger_core.models import (BranchItem, Category, Customer, Item, Product,
                                TaxRate, Vendor)

from .mixins import TenantAdminMixin


@admin.register(TaxRate)
class TaxRateAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "rate", "type", "is_default", "company")
    list_filter = ("is_default",)


@admin.register(Category)
class CategoryAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "parent", "company")
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "sku", "category", "company")
    search_fields = ("name", "sku")


@admin.register(Item)
class ItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("display_name", "sku", "price", "quantity", "tax_rate", "company")
    search_fields = ("sku", "variant", "product__name")
    # stock only moves through the stock ledger
    readonly_fields = ("quantity",)


@admin.register(BranchItem)
class BranchItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    tenant_lookup = "branch__company"
    list_display = ("branch", "item", "quantity", "price")
    readonly_fields = ("quantity",)


@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "email", "phone", "is_walk_in", "company")
    list_filter = ("is_walk_in",)
    search_fields = ("name", "email", "phone")


@admin.register(Vendor)
class VendorAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "email", "phone", "company")
    search_fields = ("name",)
