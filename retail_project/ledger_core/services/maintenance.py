import logging
from django.db import transaction
from ..models import (Account, AuditLog, Branch, BranchItem, Cart, CartItem,
                      Category, Customer, Invoice, InvoiceItem, InvoiceTax,
                      Item, JournalEntry, JournalLine, Membership, Payment,
                      Product, StockLedger, TaxRate, Vendor)

logger = logging.getLogger(__name__)


def _purge_plan(company):
    """Tenant tables, children before parents."""
    return [
        ("journal lines", JournalLine.objects.filter(company=company)),
        ("journal entries", JournalEntry.objects.filter(company=company)),
        ("payments", Payment.objects.filter(company=company)),
        ("invoice taxes", InvoiceTax.objects.filter(invoice__company=company)),
        ("invoice items", InvoiceItem.objects.filter(invoice__company=company)),
        ("invoices", Invoice.objects.filter(company=company)),
        ("cart items", CartItem.objects.filter(cart__company=company)),
        ("carts", Cart.objects.filter(company=company)),
        ("stock ledger", StockLedger.objects.filter(company=company)),
        ("branch items", BranchItem.objects.filter(branch__company=company)),
        ("items", Item.objects.filter(company=company)),
        ("products", Product.objects.filter(company=company)),
        # sub-categories first
        ("sub-categories", Category.objects.filter(company=company, parent__isnull=False)),
        ("categories", Category.objects.filter(company=company)),
        ("customers", Customer.objects.filter(company=company)),
        ("vendors", Vendor.objects.filter(company=company)),
        ("tax rates", TaxRate.objects.filter(company=company)),
        ("child accounts", Account.objects.filter(company=company, parent__isnull=False)),
        ("accounts", Account.objects.filter(company=company)),
        ("audit log", AuditLog.objects.filter(company=company)),
        ("memberships", Membership.objects.filter(company=company)),
        ("branches", Branch.objects.filter(company=company)),
    ]


def purge_company_data(company):
    """
    Dev reset: delete every row of one tenant in a fixed order, keeping
    the Company row itself. Returns {table label: rows deleted}.
    """
    counts = {}
    with transaction.atomic():
        for label, qs in _purge_plan(company):
            counts[label], _ = qs.delete()
    logger.warning("Purged tenant %s: %s", company.slug, counts)
    return counts
