import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from ..exceptions import AccountNotFound, ConflictError, NotFoundError, TaxRateNotFound
from ..models import (Account, Branch, Customer, Invoice, InvoiceItem,
                      InvoiceTax, Item, Product, TaxRate, Vendor)
from ..tasks import send_invoice_notification
from .accounts import AccountResolver, ChartAccount
from .audit_helper import log_action
from .posting import JournalLeg, post_journal
from .stock import adjust_stock, ensure_branch_item, main_branch, whole_quantity

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    """Round to cents (half-up). Only call at persistence boundaries."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """Caller input as a finite Decimal; anything else is a ValidationError."""
    if value is None or value == "":
        raise ValidationError("Amount is required.")
    if isinstance(value, Decimal):
        parsed = value
    else:
        # str() first so floats keep their printed value, not their binary one
        try:
            parsed = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid amount '{value}'.") from None
    if not parsed.is_finite():
        raise ValidationError(f"Invalid amount '{value}'.")
    return parsed


def _new_invoice_number(prefix):
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def _get_owned(model, company, pk, label):
    """Tenant-scoped lookup; accepts an instance or a primary key."""
    if isinstance(pk, model):
        if pk.company_id != company.pk:
            raise NotFoundError(f"{label} {pk.pk} not found.")
        return pk
    try:
        return model.objects.for_company(company).get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"{label} {pk} not found.") from None


def _get_tax_rate(company, tax_rate_id):
    if not tax_rate_id:
        return None
    try:
        return TaxRate.objects.for_company(company).get(pk=tax_rate_id)
    except (TaxRate.DoesNotExist, ValueError, TypeError):
        raise TaxRateNotFound(f"Tax rate {tax_rate_id} not found.") from None


def _quantity(line):
    return whole_quantity(line.get("quantity"), "Line quantity")


def _create_invoice_shell(company, **fields):
    """Invoice row with zero totals; its id keys the stock ledger rows."""
    try:
        # savepoint so a duplicate number surfaces as a clean conflict
        with transaction.atomic():
            return Invoice.objects.create(
                company=company,
                total_amount=ZERO,
                tax_amount=ZERO,
                **fields,
            )
    except IntegrityError as exc:
        raise ConflictError(
            f"Invoice number {fields.get('invoice_number')} already exists."
        ) from exc


def _add_line(invoice, item, quantity, price, tax_rate):
    """Write one InvoiceItem (+ InvoiceTax); returns unrounded (total, tax)."""
    line_total = quantity * price
    line_tax = ZERO
    if tax_rate is not None:
        line_tax = line_total * tax_rate.rate / HUNDRED
        InvoiceTax.objects.create(
            invoice=invoice,
            company=invoice.company,
            tax_rate=tax_rate,
            invoice_type=invoice.type,
            amount=money(line_tax),
        )
    InvoiceItem.objects.create(
        invoice=invoice,
        item=item,
        product=item.product,
        quantity=quantity,
        price=money(price),
        tax_rate=tax_rate,
        total=money(line_total),
    )
    return line_total, line_tax


def _finalize_totals(invoice, total, tax):
    invoice.total_amount = money(total)
    invoice.tax_amount = money(tax)
    invoice.save(update_fields=["total_amount", "tax_amount"])


def _queue_notification(invoice):
    # Fire-and-forget, only once the unit of work has committed
    transaction.on_commit(lambda: send_invoice_notification.delay(invoice.pk))


# ----------------------------
# Sale invoices
# ----------------------------
def create_sale_invoice(
    company,
    *,
    branch,
    items,
    customer=None,
    date=None,
    due_date=None,
    invoice_number=None,
    user=None,
    notify=True,
) -> Invoice:
    """
    Build a SALE invoice, take its stock out of `branch` and post
        Dr Accounts Receivable   total + tax
            Cr Sales Revenue     total
            Cr Tax Payable       tax
    in one atomic unit. Any failure (stock, tax rate, missing account)
    leaves no invoice, stock movement or journal behind.
    """
    if not branch:
        raise ValidationError("A branch is required to create a sale invoice.")
    if not items:
        raise ValidationError("A sale invoice needs at least one line.")

    with transaction.atomic():
        branch = _get_owned(Branch, company, branch, "Branch")
        if customer is not None:
            customer = _get_owned(Customer, company, customer, "Customer")

        invoice = _create_invoice_shell(
            company,
            branch=branch,
            customer=customer,
            type="SALE",
            status="PENDING",
            date=date or timezone.localdate(),
            due_date=due_date,
            invoice_number=invoice_number or _new_invoice_number("INV"),
        )

        total = ZERO
        total_tax = ZERO
        for line in items:
            quantity = _quantity(line)
            try:
                item = (
                    Item.objects.for_company(company)
                    .select_related("product")
                    .get(pk=line.get("item_id"))
                )
            except (Item.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Item {line.get('item_id')} not found.") from None

            branch_item = ensure_branch_item(branch, item)
            if line.get("price") is not None:
                price = to_decimal(line["price"])
            else:
                price = branch_item.price or item.price
            tax_rate = _get_tax_rate(company, line.get("tax_rate_id"))

            line_total, line_tax = _add_line(invoice, item, quantity, price, tax_rate)
            total += line_total
            total_tax += line_tax

            adjust_stock(
                branch,
                item,
                "SALE",
                quantity,
                reference=str(invoice.pk),
                note=f"Sale {invoice.invoice_number}",
            )

        _finalize_totals(invoice, total, total_tax)

        account = AccountResolver(company)
        legs = [
            JournalLeg(
                account(ChartAccount.ACCOUNTS_RECEIVABLE),
                debit=invoice.total_amount + invoice.tax_amount,
                invoice=invoice,
            ),
            JournalLeg(
                account(ChartAccount.SALES_REVENUE),
                credit=invoice.total_amount,
                invoice=invoice,
            ),
        ]
        # Tax Payable is only needed when there is tax to book
        if invoice.tax_amount > 0:
            legs.append(
                JournalLeg(
                    account(ChartAccount.TAX_PAYABLE),
                    credit=invoice.tax_amount,
                    invoice=invoice,
                )
            )
        post_journal(
            company,
            date=invoice.date,
            description=f"Sale invoice {invoice.invoice_number}",
            reference=invoice.invoice_number,
            source_type="sale_invoice",
            source_id=invoice.pk,
            user=user,
            lines=legs,
        )

        log_action(
            action="create",
            instance=invoice,
            user=user,
            changes={
                "type": "SALE",
                "total_amount": invoice.total_amount,
                "tax_amount": invoice.tax_amount,
            },
        )
        if notify:
            _queue_notification(invoice)

    logger.info(
        "Created sale invoice %s total=%s tax=%s",
        invoice.invoice_number, invoice.total_amount, invoice.tax_amount,
    )
    return invoice


# ----------------------------
# Purchase invoices
# ----------------------------
def _purchase_item(company, line):
    """
    Resolve the Item a purchase line refers to, creating catalog rows
    on the fly: item_id -> existing item; product_id -> new variant of
    that product; product_data -> product (matched by sku) + new item.
    """
    if line.get("item_id"):
        try:
            return (
                Item.objects.for_company(company)
                .select_related("product")
                .get(pk=line["item_id"])
            )
        except (Item.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Item {line['item_id']} not found.") from None

    if line.get("product_id"):
        product = _get_owned(Product, company, line["product_id"], "Product")
    else:
        data = line.get("product_data")
        if not data or not data.get("name"):
            raise ValidationError(
                "product_data is required when item_id and product_id are absent."
            )
        sku = data.get("sku") or line.get("sku") or uuid.uuid4().hex[:10].upper()
        product, created = Product.objects.get_or_create(
            company=company,
            sku=sku,
            defaults={
                "name": data["name"],
                "description": data.get("description", ""),
                "category_id": data.get("category_id") or line.get("category_id"),
                "sub_category_id": data.get("sub_category_id") or line.get("sub_category_id"),
            },
        )
        if created:
            logger.info("Created product %s (%s) from purchase intake", product.pk, sku)

    return Item.objects.create(
        company=company,
        product=product,
        sku=line.get("sku", ""),
        variant=line.get("variant", ""),
        price=money(line.get("selling_price", line["price"])),
        location=line.get("location", ""),
        tax_rate=_get_tax_rate(company, line.get("tax_rate_id")),
    )


def create_purchase_invoice(
    company,
    *,
    items,
    vendor=None,
    branch=None,
    date=None,
    due_date=None,
    invoice_number=None,
    user=None,
) -> Invoice:
    """
    Build a PURCHASE invoice, bring its stock into `branch`
    (MAIN when omitted) and post
        Dr Purchases             total
        Dr Tax Receivable        tax
            Cr Accounts Payable  total + tax
    """
    if not items:
        raise ValidationError("A purchase invoice needs at least one line.")

    with transaction.atomic():
        branch = _get_owned(Branch, company, branch, "Branch") if branch else main_branch(company)
        if vendor is not None:
            vendor = _get_owned(Vendor, company, vendor, "Vendor")

        invoice = _create_invoice_shell(
            company,
            branch=branch,
            vendor=vendor,
            type="PURCHASE",
            status="PENDING",
            date=date or timezone.localdate(),
            due_date=due_date,
            invoice_number=invoice_number or _new_invoice_number("PINV"),
        )

        total = ZERO
        total_tax = ZERO
        for line in items:
            quantity = _quantity(line)
            if line.get("price") is None:
                raise ValidationError("Purchase lines need a price.")
            price = to_decimal(line["price"])
            item = _purchase_item(company, line)
            tax_rate = _get_tax_rate(company, line.get("tax_rate_id"))

            line_total, line_tax = _add_line(invoice, item, quantity, price, tax_rate)
            total += line_total
            total_tax += line_tax

            # Goods are received when the invoice is booked
            adjust_stock(
                branch,
                item,
                "PURCHASE",
                quantity,
                reference=str(invoice.pk),
                note=f"Purchase {invoice.invoice_number}",
            )

        _finalize_totals(invoice, total, total_tax)

        account = AccountResolver(company)
        legs = [
            JournalLeg(
                account(ChartAccount.PURCHASES),
                debit=invoice.total_amount,
                invoice=invoice,
            ),
            JournalLeg(
                account(ChartAccount.ACCOUNTS_PAYABLE),
                credit=invoice.total_amount + invoice.tax_amount,
                invoice=invoice,
            ),
        ]
        if invoice.tax_amount > 0:
            legs.append(
                JournalLeg(
                    account(ChartAccount.TAX_RECEIVABLE),
                    debit=invoice.tax_amount,
                    invoice=invoice,
                )
            )
        post_journal(
            company,
            date=invoice.date,
            description=f"Purchase invoice {invoice.invoice_number}",
            reference=invoice.invoice_number,
            source_type="purchase_invoice",
            source_id=invoice.pk,
            user=user,
            lines=legs,
        )

        log_action(
            action="create",
            instance=invoice,
            user=user,
            changes={
                "type": "PURCHASE",
                "total_amount": invoice.total_amount,
                "tax_amount": invoice.tax_amount,
            },
        )

    logger.info(
        "Created purchase invoice %s total=%s tax=%s",
        invoice.invoice_number, invoice.total_amount, invoice.tax_amount,
    )
    return invoice


# ----------------------------
# Expenses
# ----------------------------
def _expense_account(company, category):
    account = (
        Account.objects.for_company(company)
        .filter(ac_type="EXPENSE", name__icontains=category, is_active=True)
        .exclude(name=ChartAccount.PURCHASES.value)
        .order_by("code")
        .first()
    )
    if account is None:
        raise AccountNotFound(f"No expense account matches '{category}'.")
    return account


def create_expense(
    company,
    *,
    category,
    amount,
    date=None,
    tax_rate_id=None,
    note=None,
    user=None,
):
    """
    Book a cash-paid expense. Untaxed: a plain journal
    (Dr expense / Cr Cash) is returned. Taxed: a PAID EXPENSE invoice
    carries the tax breakdown and the journal adds Dr Tax Receivable.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValidationError("Expense amount must be greater than 0.")
    date = date or timezone.localdate()

    with transaction.atomic():
        expense_account = _expense_account(company, category)
        account = AccountResolver(company)
        description = note or f"{category} expense"

        if not tax_rate_id:
            je = post_journal(
                company,
                date=date,
                description=description,
                source_type="expense",
                user=user,
                lines=[
                    JournalLeg(expense_account, debit=money(amount)),
                    JournalLeg(account(ChartAccount.CASH), credit=money(amount)),
                ],
            )
            log_action(action="expense", instance=je, user=user,
                       changes={"category": category, "amount": money(amount)})
            logger.info("Booked %s expense of %s", category, money(amount))
            return je

        tax_rate = _get_tax_rate(company, tax_rate_id)
        tax = money(amount * tax_rate.rate / HUNDRED)
        invoice = _create_invoice_shell(
            company,
            type="EXPENSE",
            status="PAID",
            date=date,
            paid_at=timezone.now(),
            note=description,
            invoice_number=_new_invoice_number("EXP"),
        )
        InvoiceTax.objects.create(
            invoice=invoice,
            company=company,
            tax_rate=tax_rate,
            invoice_type="EXPENSE",
            amount=tax,
        )
        _finalize_totals(invoice, amount, tax)

        legs = [
            JournalLeg(expense_account, debit=invoice.total_amount, invoice=invoice),
            JournalLeg(account(ChartAccount.CASH), credit=invoice.gross_amount, invoice=invoice),
        ]
        # a 0% rate books no tax line
        if invoice.tax_amount > 0:
            legs.append(
                JournalLeg(account(ChartAccount.TAX_RECEIVABLE), debit=invoice.tax_amount, invoice=invoice)
            )
        post_journal(
            company,
            date=date,
            description=description,
            reference=invoice.invoice_number,
            source_type="expense",
            source_id=invoice.pk,
            user=user,
            lines=legs,
        )
        log_action(action="expense", instance=invoice, user=user,
                   changes={"category": category, "amount": invoice.total_amount,
                            "tax_amount": invoice.tax_amount})

    logger.info("Booked taxed %s expense %s", category, invoice.invoice_number)
    return invoice
