import logging
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from ..exceptions import NotFoundError
from ..models import Invoice, Payment
from .accounts import AccountResolver, ChartAccount
from .audit_helper import log_action
from .invoicing import money, to_decimal
from .posting import JournalLeg, post_journal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ----------------------------
# Invoice status derivation
# ----------------------------
def recompute_invoice_status(invoice) -> str:
    """
    Re-derive invoice.status from its SUCCESS payments:
        nothing paid      -> PENDING
        0 < paid < total  -> PARTIAL
        paid >= total     -> PAID
    FAILED is terminal and left alone. paid_at follows PAID.
    Call with the invoice row locked, inside the caller's transaction.
    """
    if invoice.status == "FAILED":
        return invoice.status

    paid = (
        Payment.objects.filter(invoice=invoice, status="SUCCESS")
        .aggregate(total=Sum("amount"))["total"]
        or ZERO
    )
    if paid <= ZERO:
        status = "PENDING"
    elif paid < invoice.total_amount:
        status = "PARTIAL"
    else:
        status = "PAID"

    if status == "PAID":
        invoice.paid_at = invoice.paid_at or timezone.now()
    else:
        invoice.paid_at = None
    invoice.status = status
    invoice.save(update_fields=["status", "paid_at"])
    return status


def _lock_invoice(company, invoice_id):
    try:
        return Invoice.objects.select_for_update().for_company(company).get(pk=invoice_id)
    except (Invoice.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Invoice {invoice_id} not found.") from None


def payment_legs(invoice, amount, account):
    """Cash side of a payment: money in for sales, money out otherwise."""
    if invoice.type == "SALE":
        return [
            JournalLeg(account(ChartAccount.CASH), debit=amount, invoice=invoice),
            JournalLeg(account(ChartAccount.ACCOUNTS_RECEIVABLE), credit=amount, invoice=invoice),
        ]
    return [
        JournalLeg(account(ChartAccount.ACCOUNTS_PAYABLE), debit=amount, invoice=invoice),
        JournalLeg(account(ChartAccount.CASH), credit=amount, invoice=invoice),
    ]


# ----------------------------
# Payment-related workflows
# ----------------------------
def create_payment(
    company,
    *,
    invoice_id,
    amount,
    method,
    reference_no=None,
    date=None,
    note=None,
    user=None,
) -> Payment:
    """
    Record a payment, re-derive the invoice status and post the
    cash-side journal. Locks the invoice row for the whole unit.
    """
    amount = money(to_decimal(amount))
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than 0.")
    if not method:
        raise ValidationError("Payment method is required.")

    with transaction.atomic():
        invoice = _lock_invoice(company, invoice_id)
        payment = Payment.objects.create(
            company=invoice.company,
            invoice=invoice,
            amount=amount,
            method=method,
            reference_no=reference_no,
            status="SUCCESS",
            date=date or timezone.now(),
            note=note or "",
        )
        status = recompute_invoice_status(invoice)

        post_journal(
            company,
            date=timezone.localdate(payment.date),
            description=f"Payment for {invoice.type.lower()} invoice {invoice.invoice_number}",
            reference=f"PAY-{payment.pk}",
            source_type="payment",
            source_id=payment.pk,
            user=user,
            lines=payment_legs(invoice, amount, AccountResolver(company)),
        )
        log_action(
            action="create",
            instance=payment,
            user=user,
            changes={"invoice": invoice.pk, "amount": amount, "status": status},
        )

    logger.info(
        "Recorded payment %s of %s on invoice %s -> %s",
        payment.pk, amount, invoice.invoice_number, status,
    )
    return payment


def delete_payment(company, payment_id, *, user=None) -> Invoice:
    """
    Remove a payment and re-derive its invoice status.
    Stock and journal lines already posted are left untouched.
    """
    with transaction.atomic():
        try:
            payment = Payment.objects.for_company(company).get(pk=payment_id)
        except (Payment.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Payment {payment_id} not found.") from None

        invoice = _lock_invoice(company, payment.invoice_id)
        log_action(
            action="delete",
            instance=payment,
            user=user,
            changes={"invoice": invoice.pk, "amount": payment.amount},
        )
        payment.delete()
        status = recompute_invoice_status(invoice)

    logger.info("Deleted payment %s; invoice %s -> %s", payment_id, invoice.invoice_number, status)
    return invoice


def list_payments(company, *, invoice_id=None):
    qs = Payment.objects.for_company(company).select_related("invoice").order_by("-date", "-id")
    if invoice_id is not None:
        qs = qs.filter(invoice_id=invoice_id)
    return qs
