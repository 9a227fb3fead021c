from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("invoices/sale/", views.sale_invoice_view, name="sale-invoice"),
    path("invoices/purchase/", views.purchase_invoice_view, name="purchase-invoice"),
    path("payments/", views.payment_create_view, name="payment-create"),
    path("payments/<int:payment_id>/", views.payment_delete_view, name="payment-delete"),
    path("payments/callback/", views.payment_callback_view, name="payment-callback"),
    path("carts/items/", views.cart_add_view, name="cart-add"),
    path("cart-items/<int:cart_item_id>/increment/", views.cart_item_increment_view, name="cart-item-increment"),
    path("cart-items/<int:cart_item_id>/decrement/", views.cart_item_decrement_view, name="cart-item-decrement"),
    path("cart-items/<int:cart_item_id>/", views.cart_item_delete_view, name="cart-item-delete"),
    path("carts/<int:cart_id>/checkout/", views.cart_checkout_view, name="cart-checkout"),
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
]
