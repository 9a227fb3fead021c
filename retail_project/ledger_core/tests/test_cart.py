from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import InsufficientStock, NotFoundError
from ..models import BranchItem, Cart, CartItem, Customer, Invoice, StockLedger
from ..services.cart import (add_item_to_cart, checkout_cart, decrement_cart_item,
                             delete_cart_item, discard_cart, finish_cart,
                             get_or_create_active_cart, increment_cart_item,
                             initialize_cart, list_customer_carts, list_draft_carts,
                             save_cart_as_draft, set_cart_item_quantity)
from .helpers import make_company, make_item, make_tax_rate, stock_up


class CartEngineTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.customer = Customer.objects.create(company=self.company, name="Dana", phone="555-0101")
        self.item = make_item(self.company, price="25.00")

    def test_one_active_cart_per_customer(self):
        first = get_or_create_active_cart(self.company, self.customer)
        second = get_or_create_active_cart(self.company, self.customer.pk)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(list(list_customer_carts(self.company, self.customer)), [first])

    def test_add_merges_lines_for_same_item(self):
        line = add_item_to_cart(self.company, item_id=self.item.pk, quantity=2, customer=self.customer)
        again = add_item_to_cart(self.company, item_id=self.item.pk, quantity=3, customer=self.customer)

        self.assertEqual(line.pk, again.pk)
        self.assertEqual(again.quantity, 5)
        self.assertEqual(again.total, Decimal("125.00"))
        self.assertEqual(CartItem.objects.count(), 1)

    def test_branch_price_wins_over_item_price(self):
        BranchItem.objects.create(branch=self.branch, item=self.item, quantity=0, price=Decimal("19.99"))
        cart = initialize_cart(self.company, branch=self.branch)
        line = add_item_to_cart(self.company, item_id=self.item.pk, cart_id=cart.pk)
        self.assertEqual(line.price, Decimal("19.99"))

    def test_add_rejects_bad_input(self):
        with self.assertRaises(ValidationError):
            add_item_to_cart(self.company, item_id=self.item.pk, quantity=0, customer=self.customer)
        with self.assertRaises(ValidationError):
            add_item_to_cart(self.company, item_id=self.item.pk)
        with self.assertRaises(NotFoundError):
            add_item_to_cart(self.company, item_id=999999, customer=self.customer)

    def test_quantity_must_be_a_whole_number(self):
        for bad in ("two", 1.5, "NaN"):
            with self.subTest(quantity=bad), self.assertRaises(ValidationError):
                add_item_to_cart(self.company, item_id=self.item.pk, quantity=bad, customer=self.customer)
        self.assertFalse(CartItem.objects.exists())

        line = add_item_to_cart(self.company, item_id=self.item.pk, quantity="2", customer=self.customer)
        self.assertEqual(line.quantity, 2)
        for bad in ("three", 2.5):
            with self.subTest(quantity=bad), self.assertRaises(ValidationError):
                set_cart_item_quantity(self.company, line.pk, bad)
        line.refresh_from_db()
        self.assertEqual(line.quantity, 2)

    def test_increment_decrement_and_set(self):
        line = add_item_to_cart(self.company, item_id=self.item.pk, quantity=2, customer=self.customer)

        line = increment_cart_item(self.company, line.pk)
        self.assertEqual(line.quantity, 3)
        self.assertEqual(line.total, Decimal("75.00"))

        line, deleted = decrement_cart_item(self.company, line.pk)
        self.assertFalse(deleted)
        self.assertEqual(line.quantity, 2)

        line = set_cart_item_quantity(self.company, line.pk, 7)
        self.assertEqual(line.total, Decimal("175.00"))
        with self.assertRaises(ValidationError):
            set_cart_item_quantity(self.company, line.pk, 0)

    def test_decrement_to_zero_removes_line(self):
        line = add_item_to_cart(self.company, item_id=self.item.pk, customer=self.customer)
        removed, deleted = decrement_cart_item(self.company, line.pk)
        self.assertIsNone(removed)
        self.assertTrue(deleted)
        self.assertFalse(CartItem.objects.exists())

    def test_delete_line(self):
        line = add_item_to_cart(self.company, item_id=self.item.pk, customer=self.customer)
        cart = delete_cart_item(self.company, line.pk)
        self.assertEqual(cart.items.count(), 0)
        with self.assertRaises(NotFoundError):
            delete_cart_item(self.company, line.pk)

    def test_other_tenant_cannot_touch_lines(self):
        other, _ = make_company("Other Shop")
        line = add_item_to_cart(self.company, item_id=self.item.pk, customer=self.customer)
        with self.assertRaises(NotFoundError):
            increment_cart_item(other, line.pk)
        with self.assertRaises(NotFoundError):
            get_or_create_active_cart(other, self.customer)

    def test_draft_and_discard(self):
        cart = initialize_cart(self.company, branch=self.branch)
        with self.assertRaises(ValidationError):
            save_cart_as_draft(self.company, cart.pk)

        add_item_to_cart(self.company, item_id=self.item.pk, cart_id=cart.pk)
        save_cart_as_draft(self.company, cart.pk)
        self.assertEqual(list(list_draft_carts(self.company)), [cart])

        discard_cart(self.company, cart.pk)
        with self.assertRaises(ValidationError):
            add_item_to_cart(self.company, item_id=self.item.pk, cart_id=cart.pk)

    def test_lines_of_closed_carts_are_frozen(self):
        cart = initialize_cart(self.company, branch=self.branch)
        line = add_item_to_cart(self.company, item_id=self.item.pk, quantity=2, cart_id=cart.pk)
        discard_cart(self.company, cart.pk)

        for change in (
            lambda: increment_cart_item(self.company, line.pk),
            lambda: decrement_cart_item(self.company, line.pk),
            lambda: set_cart_item_quantity(self.company, line.pk, 5),
            lambda: delete_cart_item(self.company, line.pk),
        ):
            with self.assertRaises(ValidationError):
                change()
        line.refresh_from_db()
        self.assertEqual(line.quantity, 2)

    def test_draft_cart_lines_stay_editable(self):
        cart = initialize_cart(self.company, branch=self.branch)
        line = add_item_to_cart(self.company, item_id=self.item.pk, cart_id=cart.pk)
        save_cart_as_draft(self.company, cart.pk)
        self.assertEqual(increment_cart_item(self.company, line.pk).quantity, 2)

    def test_finish_cart_drops_walk_in_customer(self):
        walk_in = Customer.objects.create(company=self.company, name="Walk-in", is_walk_in=True)
        cart = initialize_cart(self.company, customer=walk_in)
        add_item_to_cart(self.company, item_id=self.item.pk, cart_id=cart.pk)

        finish_cart(self.company, cart.pk)
        self.assertFalse(Cart.objects.filter(pk=cart.pk).exists())
        self.assertFalse(Customer.objects.filter(pk=walk_in.pk).exists())
        self.assertTrue(Customer.objects.filter(pk=self.customer.pk).exists())


class CheckoutTests(TestCase):

    def setUp(self):
        self.company, self.branch = make_company()
        self.item = make_item(self.company, price="25.00")
        stock_up(self.branch, self.item, 5)

    def _cart_with(self, quantity):
        cart = initialize_cart(self.company, branch=self.branch)
        add_item_to_cart(self.company, item_id=self.item.pk, quantity=quantity, cart_id=cart.pk)
        return cart

    def _on_hand(self):
        return BranchItem.objects.get(branch=self.branch, item=self.item).quantity

    def test_checkout_consumes_stock_then_refuses_oversell(self):
        first = self._cart_with(2)
        invoice = checkout_cart(self.company, first.pk)

        self.assertEqual(invoice.type, "SALE")
        self.assertEqual(invoice.total_amount, Decimal("50.00"))
        self.assertEqual(self._on_hand(), 3)
        first.refresh_from_db()
        self.assertEqual(first.status, "CHECKEDOUT")
        self.assertEqual(first.items.count(), 0)

        second = self._cart_with(4)
        with self.assertRaises(InsufficientStock) as ctx:
            checkout_cart(self.company, second.pk)
        self.assertEqual(ctx.exception.available, 3)
        self.assertEqual(ctx.exception.required, 4)

        # Nothing from the failed attempt survives
        second.refresh_from_db()
        self.assertEqual(second.status, "ACTIVE")
        self.assertEqual(second.items.get().quantity, 4)
        self.assertEqual(self._on_hand(), 3)
        self.assertEqual(Invoice.objects.count(), 1)
        self.assertEqual(StockLedger.objects.filter(type="SALE").count(), 1)

    def test_checkout_with_payment_settles_gross(self):
        gst = make_tax_rate(self.company, "10")
        self.item.tax_rate = gst
        self.item.save()
        cart = self._cart_with(2)

        invoice = checkout_cart(self.company, cart.pk, payment_method="CARD")

        self.assertEqual(invoice.tax_amount, Decimal("5.00"))
        self.assertEqual(invoice.status, "PAID")
        self.assertEqual(invoice.payments.get().amount, Decimal("55.00"))

    def test_checkout_upserts_walk_in_by_phone(self):
        known = Customer.objects.create(company=self.company, name="Sam", phone="555-0199")
        invoice = checkout_cart(
            self.company,
            self._cart_with(1).pk,
            customer_data={"name": "Sam Lee", "phone": "555-0199", "email": "sam@example.com"},
        )
        known.refresh_from_db()
        self.assertEqual(invoice.customer_id, known.pk)
        self.assertEqual(known.name, "Sam Lee")
        self.assertEqual(known.email, "sam@example.com")

        invoice = checkout_cart(self.company, self._cart_with(1).pk, customer_data={"name": "New"})
        self.assertTrue(invoice.customer.is_walk_in)

    def test_empty_or_closed_cart_cannot_checkout(self):
        cart = initialize_cart(self.company, branch=self.branch)
        with self.assertRaises(ValidationError):
            checkout_cart(self.company, cart.pk)

        cart = self._cart_with(1)
        checkout_cart(self.company, cart.pk)
        with self.assertRaises(ValidationError):
            checkout_cart(self.company, cart.pk)
