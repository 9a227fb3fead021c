from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        # accept a Company instance or a raw id
        company_id = getattr(company, "pk", company)
        return self.filter(company_id=company_id)

    def active(self, company):
        return self.for_company(company).filter(is_active=True)
    # Enables query:
    # Account.objects.active(request.company)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Every model using TenantManager can call
    Invoice.objects.for_company(request.company)"""
    pass
