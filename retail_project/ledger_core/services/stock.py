import logging
from decimal import Decimal, InvalidOperation
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Case, F, IntegerField, Sum, When
from ..exceptions import InsufficientStock, NotFoundError
from ..models import Branch, BranchItem, Item, StockLedger

logger = logging.getLogger(__name__)

# Direction of each movement type
STOCK_SIGN = {"PURCHASE": 1, "SALE": -1, "ADJUSTMENT": 1}


def whole_quantity(value, label="Quantity") -> int:
    """Positive whole number from caller input; 2.9 or "two" is refused, never truncated."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number.") from None
    if not parsed.is_finite() or parsed != parsed.to_integral_value():
        raise ValidationError(f"{label} must be a whole number.")
    if parsed <= 0:
        raise ValidationError(f"{label} must be greater than 0.")
    return int(parsed)


def main_branch(company) -> Branch:
    try:
        return Branch.objects.for_company(company).get(type="MAIN")
    except Branch.DoesNotExist:
        raise ValidationError("Company has no MAIN branch.") from None


def ensure_branch_item(branch, item, *, defaults=None) -> BranchItem:
    """Existing stock row for branch/item, or a fresh one holding 0 units."""
    values = {"quantity": 0, "price": item.price, "mrp": item.mrp}
    values.update(defaults or {})
    values["quantity"] = 0  # stock only ever enters through adjust_stock
    branch_item, _ = BranchItem.objects.get_or_create(
        branch=branch, item=item, defaults=values
    )
    return branch_item


def adjust_stock(
    branch,
    item,
    movement_type,
    quantity,
    *,
    reference=None,
    note=None,
    allow_overdraw=False,
) -> StockLedger:
    """
    Move stock for one branch/item and write the matching ledger row.
    Call inside transaction.atomic(): the BranchItem row stays locked
    until the caller's unit of work commits.
    """
    if movement_type not in STOCK_SIGN:
        raise ValidationError(f"Unknown stock movement type '{movement_type}'.")
    quantity = whole_quantity(quantity, "Stock quantity")

    ensure_branch_item(branch, item)
    # Lock the stock row: check-then-decrement must not race
    branch_item = BranchItem.objects.select_for_update().get(branch=branch, item=item)

    if movement_type == "SALE" and branch_item.quantity < quantity:
        if not allow_overdraw:
            raise InsufficientStock(
                f"Insufficient stock for {item.display_name}: "
                f"available {branch_item.quantity}, required {quantity}.",
                available=branch_item.quantity,
                required=quantity,
            )
        logger.warning(
            "Overdrawing %s at branch %s: available %s, required %s (ref %s)",
            item.display_name, branch.pk, branch_item.quantity, quantity, reference,
        )

    delta = STOCK_SIGN[movement_type] * quantity
    entry = StockLedger.objects.create(
        company_id=branch.company_id,
        branch=branch,
        item=item,
        type=movement_type,
        quantity=quantity,
        reference=reference,
        note=note,
    )
    BranchItem.objects.filter(pk=branch_item.pk).update(quantity=F("quantity") + delta)
    # Keep the legacy company-wide counter in step
    Item.objects.filter(pk=item.pk).update(quantity=F("quantity") + delta)
    return entry


def has_stock_movement(reference, item, movement_type) -> bool:
    """True when {reference, item, type} already moved stock (retry guard)."""
    return StockLedger.objects.filter(
        reference=str(reference), item=item, type=movement_type
    ).exists()


def record_stock(company, *, item_id, movement_type, quantity, branch=None, note=None):
    """Standalone manual movement (goods received, stock-take correction...)."""
    with transaction.atomic():
        try:
            item = Item.objects.for_company(company).select_related("product").get(pk=item_id)
        except Item.DoesNotExist:
            raise NotFoundError(f"Item {item_id} not found.") from None
        branch = branch or main_branch(company)
        if branch.company_id != item.company_id:
            raise ValidationError("Branch must belong to the item's company.")
        entry = adjust_stock(branch, item, movement_type, quantity, note=note)
    logger.info(
        "Recorded %s of %s for item %s at branch %s",
        movement_type, quantity, item.pk, branch.pk,
    )
    return entry


def _signed_ledger_sum():
    return Sum(
        Case(
            When(type="SALE", then=-F("quantity")),
            default=F("quantity"),
            output_field=IntegerField(),
        )
    )


def ledger_quantity(branch, item) -> int:
    """On-hand quantity as replayed from the stock ledger."""
    total = StockLedger.objects.filter(branch=branch, item=item).aggregate(
        total=_signed_ledger_sum()
    )["total"]
    return total or 0


def find_stock_drift(company):
    """
    Branch/item pairs whose BranchItem.quantity disagrees with the
    signed sum of their stock ledger rows.
    """
    sums = {
        (row["branch_id"], row["item_id"]): row["total"]
        for row in StockLedger.objects.for_company(company)
        .values("branch_id", "item_id")
        .annotate(total=_signed_ledger_sum())
    }
    drift = []
    for bi in BranchItem.objects.filter(branch__company=company).select_related("item__product", "branch"):
        expected = sums.pop((bi.branch_id, bi.item_id), 0) or 0
        if expected != bi.quantity:
            drift.append(
                {
                    "branch_id": bi.branch_id,
                    "item_id": bi.item_id,
                    "item": bi.item.display_name,
                    "quantity": bi.quantity,
                    "ledger_quantity": expected,
                }
            )
    # Ledger rows with no stock row at all
    for (branch_id, item_id), expected in sums.items():
        if expected:
            drift.append(
                {
                    "branch_id": branch_id,
                    "item_id": item_id,
                    "item": None,
                    "quantity": 0,
                    "ledger_quantity": expected,
                }
            )
    return drift
