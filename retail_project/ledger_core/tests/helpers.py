from decimal import Decimal

from django.db import transaction

from ledger_core.models import Item, Product, TaxRate
from ledger_core.services.accounts import create_company
from ledger_core.services.stock import adjust_stock, main_branch


def make_company(name="Acme Retail"):
    """Company + MAIN branch + default chart, as onboarding does."""
    company = create_company(name)
    return company, main_branch(company)


def make_tax_rate(company, rate="18", name="GST 18%"):
    return TaxRate.objects.create(company=company, name=name, rate=Decimal(rate), type="GST")


def make_item(company, *, name="Laptop", sku="LAP-1", variant="Blue", price="100.00", tax_rate=None):
    product = Product.objects.create(company=company, name=name, sku=sku)
    return Item.objects.create(
        company=company,
        product=product,
        sku=f"{sku}-{variant}",
        variant=variant,
        price=Decimal(price),
        tax_rate=tax_rate,
    )


def stock_up(branch, item, quantity):
    with transaction.atomic():
        return adjust_stock(branch, item, "PURCHASE", quantity, note="opening stock")


def journal_legs(**filters):
    """{account name: (debit, credit)} summed over the matching journal lines."""
    from ledger_core.models import JournalLine

    legs = {}
    for line in JournalLine.objects.filter(**filters).select_related("account"):
        debit, credit = legs.get(line.account.name, (Decimal("0"), Decimal("0")))
        legs[line.account.name] = (debit + line.debit, credit + line.credit)
    return legs
