import datetime
from decimal import Decimal

import pytest
from django.db.models import ProtectedError
from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import AccountNotFound
from ..models import Account, Branch, Company
from ..services.accounts import (DEFAULT_CHART, AccountResolver, ChartAccount,
                                 account_balance, create_company,
                                 resolve_account, seed_chart_of_accounts)
from ..services.posting import JournalLeg, post_journal


class OnboardingTests(TestCase):

    def test_create_company_seeds_main_branch_and_chart(self):
        company = create_company("Corner Shop")

        self.assertEqual(company.slug, "corner-shop")
        self.assertEqual(
            list(Branch.objects.for_company(company).values_list("type", flat=True)),
            ["MAIN"],
        )
        names = set(Account.objects.for_company(company).values_list("name", flat=True))
        self.assertEqual(names, {name.value for name, _, _ in DEFAULT_CHART})

    def test_seeding_twice_creates_nothing_new(self):
        company = create_company("Corner Shop")
        self.assertEqual(seed_chart_of_accounts(company), [])
        self.assertEqual(Account.objects.for_company(company).count(), len(DEFAULT_CHART))

    def test_second_main_branch_is_rejected(self):
        from django.db import IntegrityError, transaction

        company = create_company("Corner Shop")
        with self.assertRaises(IntegrityError), transaction.atomic():
            Branch.objects.create(company=company, name="Another main", type="MAIN")


class ResolverTests(TestCase):

    def setUp(self):
        self.company = create_company("Corner Shop")

    def test_resolves_by_exact_name(self):
        account = resolve_account(self.company, ChartAccount.SALES_REVENUE)
        self.assertEqual(account.code, "4000")
        self.assertEqual(resolve_account(self.company, "Tax Payable").ac_type, "LIABILITY")

    def test_missing_account_raises(self):
        Account.objects.for_company(self.company).filter(name="Tax Payable").delete()
        with self.assertRaises(AccountNotFound) as ctx:
            resolve_account(self.company, ChartAccount.TAX_PAYABLE)
        self.assertEqual(ctx.exception.http_status, 500)

    def test_other_company_accounts_are_invisible(self):
        bare = Company.objects.create(name="No Chart")
        with self.assertRaises(AccountNotFound):
            resolve_account(bare, ChartAccount.CASH)

    def test_resolver_caches_within_one_operation(self):
        resolver = AccountResolver(self.company)
        first = resolver(ChartAccount.CASH)
        with self.assertNumQueries(0):
            again = resolver("Cash")
        self.assertEqual(first.pk, again.pk)


class AccountGuardTests(TestCase):

    def setUp(self):
        self.company = create_company("Corner Shop")
        self.cash = resolve_account(self.company, ChartAccount.CASH)
        self.equity = resolve_account(self.company, ChartAccount.OWNER_EQUITY)
        post_journal(
            self.company,
            date=datetime.date(2025, 1, 1),
            description="Owner investment",
            lines=[
                JournalLeg(self.cash, debit=Decimal("500.00")),
                JournalLeg(self.equity, credit=Decimal("500.00")),
            ],
        )

    def test_balance_is_derived_from_lines(self):
        self.assertEqual(account_balance(self.cash), Decimal("500.00"))
        self.assertEqual(account_balance(self.equity), Decimal("-500.00"))
        self.assertEqual(account_balance(self.cash, end=datetime.date(2024, 12, 31)), Decimal("0.00"))

    def test_used_account_cannot_be_deactivated(self):
        self.cash.is_active = False
        with self.assertRaises(ValidationError):
            self.cash.save()

    def test_used_account_cannot_be_deleted(self):
        with self.assertRaises((ValidationError, ProtectedError)):
            self.cash.delete()


@pytest.mark.django_db
def test_account_names_are_unique_per_company():
    company = create_company("Corner Shop")
    with pytest.raises(ValidationError):
        Account.objects.create(company=company, name="Cash", code="1001", ac_type="ASSET")
    # the same name is fine in another tenant
    other = Company.objects.create(name="Other")
    Account.objects.create(company=other, name="Cash", code="1000", ac_type="ASSET")
