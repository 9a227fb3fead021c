import logging
from django.core.exceptions import ValidationError
from django.db import transaction
from ..exceptions import NotFoundError
from ..models import BranchItem, Cart, CartItem, Customer, Item
from .audit_helper import log_action
from .invoicing import create_sale_invoice
from .payment import create_payment
from .stock import main_branch, whole_quantity

logger = logging.getLogger(__name__)

OPEN_CART_STATUSES = ("ACTIVE", "DRAFT")


# ----------------------------
# Lookups
# ----------------------------
def _customer(company, customer):
    if customer is None or isinstance(customer, Customer):
        if customer is not None and customer.company_id != company.pk:
            raise NotFoundError(f"Customer {customer.pk} not found.")
        return customer
    try:
        return Customer.objects.for_company(company).get(pk=customer)
    except (Customer.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Customer {customer} not found.") from None


def get_cart(company, cart_id, *, lock=False) -> Cart:
    qs = Cart.objects.for_company(company)
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=cart_id)
    except (Cart.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Cart {cart_id} not found.") from None


def _cart_item(company, cart_item_id) -> CartItem:
    """A line of an open (ACTIVE or DRAFT) cart of this company."""
    try:
        line = (
            CartItem.objects.select_related("cart")
            .get(pk=cart_item_id, cart__company=company)
        )
    except (CartItem.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Cart item {cart_item_id} not found.") from None
    if line.cart.status not in OPEN_CART_STATUSES:
        raise ValidationError(f"Cart {line.cart_id} is {line.cart.status} and can't be changed.")
    return line


def _unit_price(cart, item):
    if cart.branch_id:
        branch_price = (
            BranchItem.objects.filter(branch_id=cart.branch_id, item=item)
            .values_list("price", flat=True)
            .first()
        )
        if branch_price:
            return branch_price
    return item.price


def list_customer_carts(company, customer):
    customer = _customer(company, customer)
    return Cart.objects.for_company(company).filter(customer=customer).prefetch_related("items")


def list_draft_carts(company):
    return Cart.objects.for_company(company).filter(status="DRAFT").prefetch_related("items")


# ----------------------------
# Cart lifecycle
# ----------------------------
def get_or_create_active_cart(company, customer) -> Cart:
    """The customer's single ACTIVE cart, created on first use."""
    customer = _customer(company, customer)
    cart, created = Cart.objects.get_or_create(
        company=company, customer=customer, status="ACTIVE"
    )
    if created:
        logger.debug("Opened cart %s for customer %s", cart.pk, customer.pk)
    return cart


def initialize_cart(company, *, branch=None, customer=None) -> Cart:
    """POS cart: optional branch, optional customer."""
    if customer is not None:
        cart = get_or_create_active_cart(company, customer)
        if branch is not None and cart.branch_id != branch.pk:
            cart.branch = branch
            cart.save(update_fields=["branch", "updated_at"])
        return cart
    return Cart.objects.create(company=company, branch=branch, status="ACTIVE")


def _open_cart(company, cart_id):
    cart = get_cart(company, cart_id)
    if cart.status not in OPEN_CART_STATUSES:
        raise ValidationError(f"Cart {cart.pk} is {cart.status} and can't be changed.")
    return cart


def add_item_to_cart(company, *, item_id, quantity=1, customer=None, cart_id=None) -> CartItem:
    """
    Put `quantity` of an item in a cart (by id, or the customer's ACTIVE
    cart). Adding an item already in the cart grows that line.
    """
    quantity = whole_quantity(quantity)
    if cart_id is None and customer is None:
        raise ValidationError("Either a cart or a customer is required.")

    with transaction.atomic():
        try:
            item = Item.objects.for_company(company).select_related("product").get(pk=item_id)
        except (Item.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Item {item_id} not found.") from None

        if cart_id is not None:
            cart = _open_cart(company, cart_id)
        else:
            cart = get_or_create_active_cart(company, customer)

        line = CartItem.objects.select_for_update().filter(cart=cart, item=item).first()
        if line is not None:
            line.quantity += quantity
        else:
            line = CartItem(
                cart=cart,
                item=item,
                product=item.product,
                quantity=quantity,
                price=_unit_price(cart, item),
                tax_rate=item.tax_rate,
            )
        line.save()
    return line


def increment_cart_item(company, cart_item_id) -> CartItem:
    with transaction.atomic():
        line = _cart_item(company, cart_item_id)
        line.quantity += 1
        line.save()
    return line


def decrement_cart_item(company, cart_item_id):
    """Returns (line, deleted); a line dropping to 0 is removed, never negative."""
    with transaction.atomic():
        line = _cart_item(company, cart_item_id)
        if line.quantity <= 1:
            line.delete()
            return None, True
        line.quantity -= 1
        line.save()
    return line, False


def set_cart_item_quantity(company, cart_item_id, quantity) -> CartItem:
    quantity = whole_quantity(quantity)
    with transaction.atomic():
        line = _cart_item(company, cart_item_id)
        line.quantity = quantity
        line.save()
    return line


def delete_cart_item(company, cart_item_id) -> Cart:
    line = _cart_item(company, cart_item_id)
    cart = line.cart
    line.delete()
    return cart


def save_cart_as_draft(company, cart_id) -> Cart:
    cart = _open_cart(company, cart_id)
    if not cart.items.exists():
        raise ValidationError("Can't park an empty cart.")
    cart.status = "DRAFT"
    cart.save(update_fields=["status", "updated_at"])
    return cart


def discard_cart(company, cart_id) -> Cart:
    cart = _open_cart(company, cart_id)
    cart.status = "CANCELLED"
    cart.save(update_fields=["status", "updated_at"])
    return cart


def finish_cart(company, cart_id):
    """End of a POS order: drop the cart, its lines and its walk-in customer."""
    with transaction.atomic():
        cart = get_cart(company, cart_id, lock=True)
        customer = cart.customer
        cart.items.all().delete()
        cart.delete()
        if customer is not None and customer.is_walk_in:
            customer.delete()


# ----------------------------
# Checkout
# ----------------------------
def _walk_in_customer(company, data):
    """Upsert the POS customer, matched by phone."""
    phone = (data.get("phone") or "").strip() or None
    customer = None
    if phone:
        customer = Customer.objects.for_company(company).filter(phone=phone).first()
    if customer is None:
        return Customer.objects.create(
            company=company,
            name=data.get("name") or "Walk-in customer",
            email=data.get("email") or None,
            phone=phone,
            address=data.get("address", ""),
            is_walk_in=True,
        )
    changed = []
    for field in ("name", "email", "address"):
        if data.get(field) and getattr(customer, field) != data[field]:
            setattr(customer, field, data[field])
            changed.append(field)
    if changed:
        customer.save(update_fields=changed)
    return customer


def checkout_cart(
    company,
    cart_id,
    *,
    payment_method=None,
    branch=None,
    customer_data=None,
    invoice_number=None,
    user=None,
):
    """
    Turn a cart into a SALE invoice (stock out + journal), optionally
    settle it in full, and consume the cart. All or nothing: short stock
    anywhere leaves the cart, stock and ledgers as they were.
    """
    with transaction.atomic():
        cart = get_cart(company, cart_id, lock=True)
        if cart.status not in OPEN_CART_STATUSES:
            raise ValidationError(f"Cart {cart.pk} is {cart.status}.")
        lines = list(cart.items.select_related("item").order_by("id"))
        if not lines:
            raise ValidationError("Cart is empty.")

        branch = branch or cart.branch or main_branch(company)
        customer = _walk_in_customer(company, customer_data) if customer_data else cart.customer

        invoice = create_sale_invoice(
            company,
            branch=branch,
            customer=customer,
            invoice_number=invoice_number,
            user=user,
            items=[
                {
                    "item_id": line.item_id,
                    "quantity": line.quantity,
                    "price": line.price,
                    "tax_rate_id": line.tax_rate_id,
                }
                for line in lines
            ],
        )
        if payment_method:
            create_payment(
                company,
                invoice_id=invoice.pk,
                amount=invoice.gross_amount,
                method=payment_method,
                user=user,
            )
            invoice.refresh_from_db()

        cart.items.all().delete()
        cart.status = "CHECKEDOUT"
        cart.customer = customer
        cart.save(update_fields=["status", "customer", "updated_at"])
        log_action(
            action="checkout",
            instance=cart,
            user=user,
            changes={"invoice": invoice.pk, "lines": len(lines)},
        )

    logger.info("Checked out cart %s as invoice %s", cart.pk, invoice.invoice_number)
    return invoice
