from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Account, Invoice, JournalLine, Payment

"""Block invoice deletion if any payments are recorded."""


# pre_delete fires just before Django deletes an Invoice
@receiver(pre_delete, sender=Invoice)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if Payment.objects.filter(invoice=instance).exists():
        raise ValidationError("Cannot delete invoice with recorded payments.")


"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines.")
