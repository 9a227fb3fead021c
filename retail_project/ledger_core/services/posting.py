import logging
from decimal import Decimal
from typing import NamedTuple, Optional
from django.db import transaction
from ..models import Account, Invoice, JournalEntry, JournalLine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class JournalLeg(NamedTuple):
    """One debit or credit side of a posting."""

    account: Account
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    invoice: Optional[Invoice] = None
    description: Optional[str] = None


def post_journal(
    company,
    *,
    date,
    description,
    lines,
    reference=None,
    source_type=None,
    source_id=None,
    user=None,
) -> Optional[JournalEntry]:
    """
    Create a journal header plus its lines and post it.
    Zero legs are skipped (e.g. no tax on an untaxed invoice);
    returns None when nothing is left to post.
    JournalEntry.post() raises UnbalancedJournalError when
    debits and credits differ, aborting the caller's transaction.
    """
    legs = [leg for leg in lines if leg.debit or leg.credit]
    if not legs:
        return None

    with transaction.atomic():
        je = JournalEntry.objects.create(
            company=company,
            date=date,
            reference=reference,
            description=description,
            status="draft",
            source_type=source_type,
            source_id=source_id,
            created_by=user,
        )
        for leg in legs:
            JournalLine.objects.create(
                company=company,
                journal=je,
                account=leg.account,
                description=leg.description or description,
                debit=leg.debit,
                credit=leg.credit,
                invoice=leg.invoice,
            )
        # Post (this runs the balance check & fingerprints the entry)
        je.post(user=user)
    logger.debug("Posted journal %s (%s %s)", je.pk, source_type, source_id)
    return je
