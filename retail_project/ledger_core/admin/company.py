from django.contrib import admin

from ledger_core.models import Branch, Company, Membership

from .mixins import TenantAdminMixin


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "email", "created_at")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        company = getattr(request, "company", None)
        return qs.filter(pk=company.pk) if company is not None else qs.none()


@admin.register(Branch)
class BranchAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "type")
    list_filter = ("type",)
    search_fields = ("name",)


@admin.register(Membership)
class MembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "company", "branch", "role", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("user__username", "user__email")
