from django.utils.deprecation import MiddlewareMixin

from .models import Membership
from .principal import Principal


class CurrentPrincipalMiddleware(MiddlewareMixin):
    # Run on every request and attach .principal, .company and .branch
    # based on the logged-in user's active membership
    def process_request(self, request):
        request.principal = None
        request.company = None
        request.branch = None

        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return

        memberships = Membership.objects.filter(
            user=user, is_active=True
        ).select_related("company", "branch")

        # If user switched companies,
        # choice is stored in the session as "active_company_id"
        session = getattr(request, "session", None)
        company_id = session.get("active_company_id") if session is not None else None
        if company_id:
            # user must be a member of that company, otherwise no tenant at all
            memberships = memberships.filter(company_id=company_id)

        membership = memberships.order_by("id").first()
        if membership is None:
            return

        request.principal = Principal.from_membership(membership)
        request.company = membership.company
        request.branch = membership.branch
