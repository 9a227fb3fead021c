from collections import OrderedDict
from decimal import Decimal
from django.db.models import Q, Sum
from ..exceptions import NotFoundError
from ..models import Account, JournalLine

ZERO = Decimal("0.00")

AC_TYPE_ORDER = ["ASSET", "LIABILITY", "EQUITY", "INCOME", "EXPENSE"]


def _posted_lines(company, start=None, end=None):
    qs = JournalLine.objects.for_company(company).filter(journal__status="posted")
    if start:
        qs = qs.filter(journal__date__gte=start)
    if end:
        qs = qs.filter(journal__date__lte=end)
    return qs


def _line_row(line, running):
    return {
        "date": line.journal.date,
        "journal_id": line.journal_id,
        "reference": line.journal.reference,
        "description": line.description,
        "debit": line.debit,
        "credit": line.credit,
        "balance": running,
    }


def account_ledger(company, account_id, *, start=None, end=None):
    """Posted lines of one account with a running (debit - credit) balance."""
    try:
        account = Account.objects.for_company(company).get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Account {account_id} not found.") from None

    # Opening balance: everything before the window
    opening = ZERO
    if start:
        aggs = (
            JournalLine.objects.for_company(company)
            .filter(account=account, journal__status="posted", journal__date__lt=start)
            .aggregate(debit=Sum("debit"), credit=Sum("credit"))
        )
        opening = (aggs["debit"] or ZERO) - (aggs["credit"] or ZERO)

    running = opening
    rows = []
    lines = (
        _posted_lines(company, start, end)
        .filter(account=account)
        .select_related("journal")
        .order_by("journal__date", "id")
    )
    for line in lines:
        running += line.debit - line.credit
        rows.append(_line_row(line, running))

    return {
        "account": {"id": account.pk, "name": account.name, "code": account.code, "type": account.ac_type},
        "opening_balance": opening,
        "closing_balance": running,
        "rows": rows,
    }


def general_ledger(company, *, start=None, end=None):
    """Per-account ledger sections for every account with activity."""
    sections = OrderedDict()
    lines = (
        _posted_lines(company, start, end)
        .select_related("journal", "account")
        .order_by("account__code", "account__name", "journal__date", "id")
    )
    for line in lines:
        section = sections.get(line.account_id)
        if section is None:
            section = sections[line.account_id] = {
                "account": {
                    "id": line.account_id,
                    "name": line.account.name,
                    "code": line.account.code,
                    "type": line.account.ac_type,
                },
                "rows": [],
                "balance": ZERO,
            }
        section["balance"] += line.debit - line.credit
        section["rows"].append(_line_row(line, section["balance"]))
    return list(sections.values())


def trial_balance(company, *, start=None, end=None):
    """
    Debit/credit totals per account grouped by account type.
    The ledger is balanced when total debits equal total credits.
    """
    date_filter = Q(journalline__journal__status="posted")
    if start:
        date_filter &= Q(journalline__journal__date__gte=start)
    if end:
        date_filter &= Q(journalline__journal__date__lte=end)

    accounts = (
        Account.objects.for_company(company)
        .annotate(
            total_debit=Sum("journalline__debit", filter=date_filter),
            total_credit=Sum("journalline__credit", filter=date_filter),
        )
        .order_by("code", "name")
    )

    groups = OrderedDict((ac_type, []) for ac_type in AC_TYPE_ORDER)
    total_debit = ZERO
    total_credit = ZERO
    for account in accounts:
        debit = account.total_debit or ZERO
        credit = account.total_credit or ZERO
        if not debit and not credit:
            continue
        total_debit += debit
        total_credit += credit
        groups[account.ac_type].append(
            {
                "id": account.pk,
                "code": account.code,
                "name": account.name,
                "debit": debit,
                "credit": credit,
                "balance": debit - credit,
            }
        )

    return {
        "groups": {ac_type: rows for ac_type, rows in groups.items() if rows},
        "total_debit": total_debit,
        "total_credit": total_credit,
        "is_balanced": total_debit == total_credit,
    }
