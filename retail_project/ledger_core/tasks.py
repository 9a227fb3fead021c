import logging
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def send_invoice_notification(invoice_id):
    """E-mail the invoice summary to its customer; no-op without an address."""
    # import models lazily to avoid circular imports at module import time
    from .models import Invoice

    invoice = (
        Invoice.objects.select_related("company", "customer")
        .filter(pk=invoice_id)
        .first()
    )
    if invoice is None:
        logger.warning("Notification skipped: invoice %s no longer exists", invoice_id)
        return False
    if invoice.customer is None or not invoice.customer.email:
        return False

    lines = [
        f"{line.quantity} x {line.product.name} @ {line.price} = {line.total}"
        for line in invoice.items.select_related("product")
    ]
    body = "\n".join(
        [
            f"Hello {invoice.customer.name},",
            "",
            f"Invoice {invoice.invoice_number} from {invoice.company.name}",
            f"Date: {invoice.date:%Y-%m-%d}",
            "",
            *lines,
            "",
            f"Subtotal: {invoice.total_amount}",
            f"Tax: {invoice.tax_amount}",
            f"Total: {invoice.gross_amount}",
            f"Status: {invoice.get_status_display()}",
        ]
    )
    send_mail(
        subject=f"Invoice {invoice.invoice_number}",
        message=body,
        from_email=settings.LEDGER_NOTIFY_FROM_EMAIL,
        recipient_list=[invoice.customer.email],
    )
    logger.info("Sent invoice %s to %s", invoice.invoice_number, invoice.customer.email)
    return True
