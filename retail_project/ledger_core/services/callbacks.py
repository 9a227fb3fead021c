import logging
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from ..exceptions import NotFoundError
from ..models import Invoice, Payment
from ..tasks import send_invoice_notification
from .accounts import AccountResolver
from .audit_helper import log_action
from .invoicing import money, to_decimal
from .payment import payment_legs
from .posting import post_journal
from .stock import adjust_stock, has_stock_movement, main_branch

logger = logging.getLogger(__name__)

CALLBACK_STATUSES = ("SUCCESS", "PENDING", "FAILED")


def _result(payment, *, duplicate, message=None):
    return {
        "message": message or "Payment already processed",
        "invoice_id": payment.invoice_id,
        "payment_id": payment.pk,
        "duplicate": duplicate,
    }


def _apply_success(invoice, payment):
    """PAID + cash journal + at-most-once stock decrement per line."""
    invoice.status = "PAID"
    invoice.paid_at = timezone.now()
    invoice.save(update_fields=["status", "paid_at"])

    if payment.amount > 0:
        post_journal(
            invoice.company,
            date=timezone.localdate(),
            description=f"Gateway payment for invoice {invoice.invoice_number}",
            reference=f"CB-{payment.gateway_payment_id}",
            source_type="payment_callback",
            source_id=payment.pk,
            lines=payment_legs(invoice, payment.amount, AccountResolver(invoice.company)),
        )

    if invoice.type != "SALE":
        return
    branch = invoice.branch or main_branch(invoice.company)
    reference = str(invoice.pk)
    for line in invoice.items.select_related("item__product"):
        # A checkout or an earlier delivery may already have moved this stock
        if has_stock_movement(reference, line.item, "SALE"):
            continue
        # The gateway has captured the money, so the sale stands even short
        adjust_stock(
            branch,
            line.item,
            "SALE",
            line.quantity,
            reference=reference,
            note=f"Gateway payment {payment.gateway_payment_id}",
            allow_overdraw=True,
        )


def handle_callback(*, payment_id, invoice_id, status, amount, gateway, raw_response=None) -> dict:
    """
    Idempotent payment-gateway webhook. The gateway payment id is the
    idempotency key: repeated or concurrent deliveries yield one Payment
    row and one stock decrement per invoice line, and every repeat is
    answered with the stored result instead of an error.
    """
    if not payment_id:
        raise ValidationError("Gateway payment id is required.")

    # A known gateway id is answered from the stored payment, whatever
    # the rest of the delivery says
    existing = Payment.objects.filter(gateway_payment_id=payment_id).first()
    if existing is not None:
        logger.warning("Duplicate callback for gateway payment %s absorbed", payment_id)
        return _result(existing, duplicate=True)

    status = (status or "").upper()
    if status not in CALLBACK_STATUSES:
        raise ValidationError(f"Unknown payment status '{status}'.")
    amount = money(to_decimal(amount))

    try:
        with transaction.atomic():
            try:
                invoice = Invoice.objects.select_for_update().select_related("company").get(pk=invoice_id)
            except (Invoice.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Invoice {invoice_id} not found.") from None

            # A concurrent first delivery may have committed while we waited
            # for the lock; the unique gateway id catches anything later
            existing = Payment.objects.filter(gateway_payment_id=payment_id).first()
            if existing is not None:
                logger.warning("Duplicate callback for gateway payment %s absorbed", payment_id)
                return _result(existing, duplicate=True)

            payment = Payment.objects.create(
                company=invoice.company,
                invoice=invoice,
                amount=amount,
                method=gateway or "GATEWAY",
                gateway_payment_id=payment_id,
                raw_response=raw_response,
                status=status,
            )

            if status == "FAILED":
                invoice.status = "FAILED"
                invoice.paid_at = None
                invoice.save(update_fields=["status", "paid_at"])
                message = "Payment failed"
            elif status == "SUCCESS":
                _apply_success(invoice, payment)
                message = "Payment successful"
                transaction.on_commit(lambda: send_invoice_notification.delay(invoice.pk))
            else:
                message = "Payment pending"

            log_action(
                action="callback",
                instance=payment,
                changes={"gateway": gateway, "status": status, "amount": amount},
            )
    except IntegrityError:
        # A concurrent delivery inserted the same gateway id first
        existing = Payment.objects.filter(gateway_payment_id=payment_id).first()
        if existing is None:
            raise
        logger.warning("Concurrent callback for gateway payment %s absorbed", payment_id)
        return _result(existing, duplicate=True)

    logger.info("Callback %s for invoice %s: %s", payment_id, invoice_id, status)
    return _result(payment, duplicate=False, message=message)
