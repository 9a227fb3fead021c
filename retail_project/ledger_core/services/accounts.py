import enum
import logging
from decimal import Decimal
from django.db import transaction
from django.db.models import Sum
from ..exceptions import AccountNotFound
from ..models import Account, Branch, Company, JournalLine

logger = logging.getLogger(__name__)


class ChartAccount(str, enum.Enum):
    """Well-known account names postings resolve against."""

    CASH = "Cash"
    BANK = "Bank"
    ACCOUNTS_RECEIVABLE = "Accounts Receivable"
    INVENTORY = "Inventory"
    TAX_RECEIVABLE = "Tax Receivable"
    ACCOUNTS_PAYABLE = "Accounts Payable"
    TAX_PAYABLE = "Tax Payable"
    OWNER_EQUITY = "Owner Equity"
    SALES_REVENUE = "Sales Revenue"
    PURCHASES = "Purchases"
    RENT_EXPENSE = "Rent Expense"
    SALARIES_EXPENSE = "Salaries Expense"
    UTILITIES_EXPENSE = "Utilities Expense"


# (name, ac_type, code) seeded for every new company
DEFAULT_CHART = [
    # Assets
    (ChartAccount.CASH, "ASSET", "1000"),
    (ChartAccount.BANK, "ASSET", "1010"),
    (ChartAccount.ACCOUNTS_RECEIVABLE, "ASSET", "1100"),
    (ChartAccount.INVENTORY, "ASSET", "1200"),
    (ChartAccount.TAX_RECEIVABLE, "ASSET", "1300"),
    # Liabilities
    (ChartAccount.ACCOUNTS_PAYABLE, "LIABILITY", "2000"),
    (ChartAccount.TAX_PAYABLE, "LIABILITY", "2100"),
    # Equity
    (ChartAccount.OWNER_EQUITY, "EQUITY", "3000"),
    # Income
    (ChartAccount.SALES_REVENUE, "INCOME", "4000"),
    # Expenses
    (ChartAccount.PURCHASES, "EXPENSE", "5000"),
    (ChartAccount.RENT_EXPENSE, "EXPENSE", "5100"),
    (ChartAccount.SALARIES_EXPENSE, "EXPENSE", "5200"),
    (ChartAccount.UTILITIES_EXPENSE, "EXPENSE", "5300"),
]


def _account_name(name):
    return name.value if isinstance(name, ChartAccount) else name


def resolve_account(company, name) -> Account:
    """Exact {company, name} lookup; a miss means onboarding never seeded it."""
    name = _account_name(name)
    try:
        return Account.objects.for_company(company).get(name=name)
    except Account.DoesNotExist:
        raise AccountNotFound(
            f"Account '{name}' is not configured for this company."
        ) from None


class AccountResolver:
    """
    Per-operation cache of resolved accounts.
    Build one inside each atomic block; never share it between
    transactions, a concurrent seed or rename would go unnoticed.
    """

    def __init__(self, company):
        self.company = company
        self._cache = {}

    def __call__(self, name) -> Account:
        key = _account_name(name)
        if key not in self._cache:
            self._cache[key] = resolve_account(self.company, key)
        return self._cache[key]


def seed_chart_of_accounts(company):
    """Create any missing DEFAULT_CHART account. Returns the created ones."""
    existing = set(
        Account.objects.for_company(company).values_list("name", flat=True)
    )
    created = []
    for name, ac_type, code in DEFAULT_CHART:
        if name.value in existing:
            continue
        created.append(
            Account.objects.create(
                company=company, name=name.value, ac_type=ac_type, code=code
            )
        )
    return created


def create_company(name, *, slug=None, email=None, main_branch_name="Main"):
    """Onboard a tenant: company, its MAIN branch and the default chart."""
    with transaction.atomic():
        company = Company.objects.create(name=name, slug=slug or "", email=email)
        Branch.objects.create(company=company, name=main_branch_name, type="MAIN")
        seed_chart_of_accounts(company)
    logger.info("Created company %s (%s)", company.pk, company.slug)
    return company


def account_balance(account, *, start=None, end=None) -> Decimal:
    """Derived balance: sum(debit) - sum(credit) over posted lines."""
    qs = JournalLine.objects.filter(account=account, journal__status="posted")
    if start:
        qs = qs.filter(journal__date__gte=start)
    if end:
        qs = qs.filter(journal__date__lte=end)
    aggs = qs.aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return (aggs["debit"] or Decimal("0.00")) - (aggs["credit"] or Decimal("0.00"))
