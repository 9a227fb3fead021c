import functools
import json
import logging
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from .exceptions import LedgerError
from .services.callbacks import handle_callback
from .services.cart import (add_item_to_cart, checkout_cart, decrement_cart_item,
                            delete_cart_item, increment_cart_item)
from .services.invoicing import create_purchase_invoice, create_sale_invoice
from .services.payment import create_payment, delete_payment
from .services.reports import trial_balance

logger = logging.getLogger(__name__)

# Roles allowed to change data; VIEWER is read-only
WRITE_ROLES = ("ADMIN", "BRANCHADMIN", "CASHIER")


# ----------------------------
# Plumbing
# ----------------------------
def _error(kind, message, status):
    return JsonResponse({"error": kind, "message": message}, status=status)


def _validation_message(exc):
    return "; ".join(exc.messages) if hasattr(exc, "messages") else str(exc)


def json_errors(view):
    """Translate domain errors into {"error": kind, "message": ...} responses."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return _error("validation_error", _validation_message(exc), 400)
        except LedgerError as exc:
            if exc.http_status >= 500:
                logger.error("%s: %s", exc.kind, exc)
            return _error(exc.kind, str(exc), exc.http_status)

    return wrapper


def tenant_view(write=False):
    """Require a resolved tenant (and a writer role for mutations)."""

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            principal = getattr(request, "principal", None)
            if principal is None:
                return _error("forbidden", "No active company membership.", 403)
            if write and principal.role not in WRITE_ROLES:
                return _error("forbidden", f"Role {principal.role} is read-only.", 403)
            return view(request, *args, **kwargs)

        return json_errors(wrapper)

    return decorator


def _body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except ValueError:
        raise ValidationError("Request body must be valid JSON.") from None
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _date(value):
    if not value:
        return None
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ValidationError(f"Invalid date '{value}'.")
    return parsed


def _user(request):
    return request.user if request.user.is_authenticated else None


# ----------------------------
# Serializers
# ----------------------------
def payment_to_dict(payment):
    return {
        "id": payment.pk,
        "invoice_id": payment.invoice_id,
        "amount": payment.amount,
        "method": payment.method,
        "reference_no": payment.reference_no,
        "gateway_payment_id": payment.gateway_payment_id,
        "status": payment.status,
        "date": payment.date,
    }


def invoice_to_dict(invoice):
    return {
        "id": invoice.pk,
        "invoice_number": invoice.invoice_number,
        "type": invoice.type,
        "status": invoice.status,
        "branch_id": invoice.branch_id,
        "customer_id": invoice.customer_id,
        "vendor_id": invoice.vendor_id,
        "date": invoice.date,
        "due_date": invoice.due_date,
        "total_amount": invoice.total_amount,
        "tax_amount": invoice.tax_amount,
        "paid_at": invoice.paid_at,
        "items": [
            {
                "id": line.pk,
                "item_id": line.item_id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "price": line.price,
                "tax_rate_id": line.tax_rate_id,
                "total": line.total,
            }
            for line in invoice.items.order_by("id")
        ],
        "payments": [payment_to_dict(p) for p in invoice.payments.order_by("id")],
    }


def cart_item_to_dict(line):
    return {
        "id": line.pk,
        "cart_id": line.cart_id,
        "item_id": line.item_id,
        "product_id": line.product_id,
        "quantity": line.quantity,
        "price": line.price,
        "total": line.total,
    }


def cart_to_dict(cart):
    items = [cart_item_to_dict(line) for line in cart.items.order_by("id")]
    return {
        "id": cart.pk,
        "status": cart.status,
        "customer_id": cart.customer_id,
        "branch_id": cart.branch_id,
        "items": items,
        "total": sum((line["total"] for line in items), 0),
    }


# ----------------------------
# Invoices
# ----------------------------
@require_POST
@tenant_view(write=True)
def sale_invoice_view(request):
    data = _body(request)
    invoice = create_sale_invoice(
        request.company,
        branch=data.get("branch_id") or request.principal.branch_id,
        customer=data.get("customer_id"),
        items=data.get("items") or [],
        date=_date(data.get("date")),
        due_date=_date(data.get("due_date")),
        invoice_number=data.get("invoice_number"),
        user=_user(request),
    )
    return JsonResponse(invoice_to_dict(invoice), status=201)


@require_POST
@tenant_view(write=True)
def purchase_invoice_view(request):
    data = _body(request)
    invoice = create_purchase_invoice(
        request.company,
        vendor=data.get("vendor_id"),
        branch=data.get("branch_id") or request.principal.branch_id,
        items=data.get("items") or [],
        date=_date(data.get("date")),
        due_date=_date(data.get("due_date")),
        invoice_number=data.get("invoice_number"),
        user=_user(request),
    )
    return JsonResponse(invoice_to_dict(invoice), status=201)


# ----------------------------
# Payments
# ----------------------------
@require_POST
@tenant_view(write=True)
def payment_create_view(request):
    data = _body(request)
    payment = create_payment(
        request.company,
        invoice_id=data.get("invoice_id"),
        amount=data.get("amount"),
        method=data.get("method"),
        reference_no=data.get("reference_no"),
        note=data.get("note"),
        user=_user(request),
    )
    return JsonResponse(payment_to_dict(payment), status=201)


@require_http_methods(["DELETE"])
@tenant_view(write=True)
def payment_delete_view(request, payment_id):
    invoice = delete_payment(request.company, payment_id, user=_user(request))
    return JsonResponse({"invoice_id": invoice.pk, "status": invoice.status})


# Gateway webhook: no session, no CSRF token
@csrf_exempt
@require_POST
@json_errors
def payment_callback_view(request):
    data = _body(request)
    result = handle_callback(
        payment_id=data.get("payment_id"),
        invoice_id=data.get("invoice_id"),
        status=data.get("status"),
        amount=data.get("amount"),
        gateway=data.get("gateway"),
        raw_response=data.get("raw_response", data),
    )
    return JsonResponse(result)


# ----------------------------
# Carts
# ----------------------------
@require_POST
@tenant_view(write=True)
def cart_add_view(request):
    data = _body(request)
    line = add_item_to_cart(
        request.company,
        item_id=data.get("item_id"),
        quantity=data.get("quantity", 1),
        customer=data.get("customer_id"),
        cart_id=data.get("cart_id"),
    )
    return JsonResponse(cart_item_to_dict(line), status=201)


@require_POST
@tenant_view(write=True)
def cart_item_increment_view(request, cart_item_id):
    line = increment_cart_item(request.company, cart_item_id)
    return JsonResponse(cart_item_to_dict(line))


@require_POST
@tenant_view(write=True)
def cart_item_decrement_view(request, cart_item_id):
    line, deleted = decrement_cart_item(request.company, cart_item_id)
    if deleted:
        return JsonResponse({"id": cart_item_id, "deleted": True})
    return JsonResponse({**cart_item_to_dict(line), "deleted": False})


@require_http_methods(["DELETE"])
@tenant_view(write=True)
def cart_item_delete_view(request, cart_item_id):
    cart = delete_cart_item(request.company, cart_item_id)
    return JsonResponse(cart_to_dict(cart))


@require_POST
@tenant_view(write=True)
def cart_checkout_view(request, cart_id):
    data = _body(request)
    branch = request.branch
    invoice = checkout_cart(
        request.company,
        cart_id,
        payment_method=data.get("payment_method"),
        branch=branch,
        customer_data=data.get("customer"),
        invoice_number=data.get("invoice_number"),
        user=_user(request),
    )
    return JsonResponse(invoice_to_dict(invoice), status=201)


# ----------------------------
# Reports
# ----------------------------
@require_GET
@tenant_view()
def trial_balance_view(request):
    report = trial_balance(
        request.company,
        start=_date(request.GET.get("start")),
        end=_date(request.GET.get("end")),
    )
    return JsonResponse(report)
