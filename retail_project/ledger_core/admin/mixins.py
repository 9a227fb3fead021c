class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.company (set by CurrentPrincipalMiddleware).
    `tenant_lookup` names the path to the company for models
    that reach it through a parent (e.g. "branch__company").
    """

    tenant_lookup = "company"

    def _get_request_company(self, request):
        return getattr(request, "company", None)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Superusers see every tenant
        if request.user.is_superuser:
            return qs
        company = self._get_request_company(request)
        if company is None:
            return qs.none()
        return qs.filter(**{self.tenant_lookup: company})

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """Restrict FK dropdowns to the current company where appropriate."""
        if not request.user.is_superuser:
            company = self._get_request_company(request)
            rel_model = db_field.related_model
            if db_field.name == "company":
                kwargs["queryset"] = (
                    rel_model.objects.filter(pk=company.pk)
                    if company is not None
                    else rel_model.objects.none()
                )
            elif any(f.name == "company" for f in rel_model._meta.fields):
                kwargs["queryset"] = (
                    rel_model.objects.filter(company=company)
                    if company is not None
                    else rel_model.objects.none()
                )
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Always owned by the admin's company (unless superuser)
        if not request.user.is_superuser and self.tenant_lookup == "company":
            company = self._get_request_company(request)
            if company is not None:
                obj.company = company
        super().save_model(request, obj, form, change)
