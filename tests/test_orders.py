"""Tests for checkout and order history endpoints."""

import json
import re

import pytest

from storefront.database import ORDERS, PRODUCTS
from storefront.models.cart import CartItem
from storefront.models.order import Order
from storefront.models.product import Product


def _add_to_cart(client, headers, product_id, quantity=1, **extra):
    response = client.post("/api/cart", json={"product_id": product_id, "quantity": quantity, **extra}, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]


def _set_stock(databases, product_id, qty):
    db = databases.session(PRODUCTS)
    try:
        db.query(Product).filter(Product.id == product_id).update({Product.stock_quantity: qty})
        db.commit()
    finally:
        db.close()


def _order_count(read_store):
    return read_store(ORDERS, lambda db: db.query(Order).count())


class TestCreateOrder:
    def test_total_with_tax_and_shipping(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        product = make_product(name="Saree A", price=1200, stock=5)
        _add_to_cart(client, headers, product.id, 1)

        response = client.post(
            "/api/orders",
            json={
                "shipping_address": shipping_address,
                "payment_method": "cod",
                "tax_amount": 60,
                "shipping_amount": 50,
                "discount_amount": 0,
            },
            headers=headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        order = body["data"]
        assert order["subtotal"] == 1200
        assert order["total_amount"] == 1310
        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["currency"] == "INR"
        assert re.match(r"^ORD-\d{8}-[0-9A-F]{8}$", order["order_number"])
        assert len(order["items"]) == 1
        assert order["items"][0]["product_name"] == "Saree A"
        assert order["items"][0]["total_price"] == 1200

    def test_total_invariant_across_lines(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        a = make_product(name="Kurti", price=499.5, stock=10)
        b = make_product(name="Dupatta", price=250, stock=3)
        _add_to_cart(client, headers, a.id, 2)
        _add_to_cart(client, headers, b.id, 3)

        response = client.post(
            "/api/orders",
            json={
                "shipping_address": shipping_address,
                "payment_method": "card",
                "tax_amount": 87.35,
                "shipping_amount": 0,
                "discount_amount": 100,
            },
            headers=headers,
        )

        assert response.status_code == 201
        order = response.json()["data"]
        assert order["subtotal"] == pytest.approx(1749.0)
        expected = order["subtotal"] + order["tax_amount"] + order["shipping_amount"] - order["discount_amount"]
        assert order["total_amount"] == pytest.approx(expected)

    def test_billing_defaults_to_shipping(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        product = make_product()
        _add_to_cart(client, headers, product.id)

        order = client.post(
            "/api/orders", json={"shipping_address": shipping_address, "payment_method": "upi"}, headers=headers
        ).json()["data"]

        assert order["billing_address_line_1"] == shipping_address["address_line_1"]
        assert order["billing_city"] == shipping_address["city"]

    def test_snapshot_decrements_stock_and_clears_cart(
        self, client, auth_headers, make_product, shipping_address, read_store
    ):
        headers = auth_headers()
        product = make_product(price=800, stock=5, sku="SKU-1")
        _add_to_cart(client, headers, product.id, 2, size="M", color="Red")

        order = client.post(
            "/api/orders", json={"shipping_address": shipping_address, "payment_method": "cod"}, headers=headers
        ).json()["data"]

        item = order["items"][0]
        assert (item["sku"], item["size"], item["color"], item["quantity"]) == ("SKU-1", "M", "Red", 2)
        assert read_store(PRODUCTS, lambda db: db.get(Product, product.id).stock_quantity) == 3
        assert read_store(PRODUCTS, lambda db: db.query(CartItem).count()) == 0

    def test_empty_cart(self, client, auth_headers, shipping_address, read_store):
        response = client.post(
            "/api/orders",
            json={"shipping_address": shipping_address, "payment_method": "cod"},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Cart is empty"
        assert _order_count(read_store) == 0

    def test_insufficient_stock(self, client, auth_headers, make_product, shipping_address, databases, read_store):
        headers = auth_headers()
        product = make_product(stock=5)
        _add_to_cart(client, headers, product.id, 4)
        _set_stock(databases, product.id, 2)

        response = client.post(
            "/api/orders", json={"shipping_address": shipping_address, "payment_method": "cod"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Insufficient stock")
        assert _order_count(read_store) == 0
        # Cart and stock untouched
        assert read_store(PRODUCTS, lambda db: db.query(CartItem).count()) == 1
        assert read_store(PRODUCTS, lambda db: db.get(Product, product.id).stock_quantity) == 2

    def test_discount_larger_than_order(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        product = make_product(price=100)
        _add_to_cart(client, headers, product.id)

        response = client.post(
            "/api/orders",
            json={"shipping_address": shipping_address, "payment_method": "cod", "discount_amount": 500},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["data"]["field"] == "discount_amount"

    @pytest.mark.parametrize("field,literal", [
        ("tax_amount", "Infinity"),
        ("shipping_amount", "NaN"),
        ("discount_amount", "-Infinity"),
    ])
    def test_non_finite_amounts_rejected_before_any_write(
        self, client, auth_headers, make_product, shipping_address, read_store, field, literal
    ):
        headers = auth_headers()
        product = make_product(stock=5)
        _add_to_cart(client, headers, product.id, 1)

        body = json.dumps({"shipping_address": shipping_address, "payment_method": "cod"})
        body = body[:-1] + f', "{field}": {literal}}}'
        response = client.post(
            "/api/orders", content=body, headers={**headers, "content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["data"]["fields"] == [field]
        assert _order_count(read_store) == 0
        assert read_store(PRODUCTS, lambda db: db.query(CartItem).count()) == 1
        assert read_store(PRODUCTS, lambda db: db.get(Product, product.id).stock_quantity) == 5

    def test_missing_fields(self, client, auth_headers):
        response = client.post("/api/orders", json={}, headers=auth_headers())

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Missing required fields"
        assert "payment_method" in body["data"]["fields"]

    def test_saved_address_checkout(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        address = client.post("/api/addresses", json=shipping_address, headers=headers).json()["data"]
        product = make_product()
        _add_to_cart(client, headers, product.id)

        response = client.post(
            "/api/orders",
            json={"shipping_address_id": address["id"], "payment_method": "cod"},
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["shipping_postal_code"] == "560001"

    def test_other_users_saved_address(self, client, auth_headers, make_product, shipping_address):
        address = client.post("/api/addresses", json=shipping_address, headers=auth_headers("user_bob")).json()["data"]
        headers = auth_headers()
        _add_to_cart(client, headers, make_product().id)

        response = client.post(
            "/api/orders", json={"shipping_address_id": address["id"], "payment_method": "cod"}, headers=headers
        )

        assert response.status_code == 404


class TestUnauthenticated:
    @pytest.mark.parametrize("method,path", [
        ("get", "/api/orders"),
        ("post", "/api/orders"),
        ("get", "/api/orders/some-id"),
        ("post", "/api/orders/some-id/cancel"),
    ])
    def test_order_endpoints_require_identity(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_invalid_token(self, client):
        response = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestOrderHistory:
    @pytest.fixture
    def placed_order(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        _add_to_cart(client, headers, make_product(stock=20).id, 1)
        return client.post(
            "/api/orders", json={"shipping_address": shipping_address, "payment_method": "cod"}, headers=headers
        ).json()["data"]

    def test_list_own_orders(self, client, auth_headers, placed_order):
        response = client.get("/api/orders", headers=auth_headers())

        assert response.status_code == 200
        data = response.json()["data"]
        assert [o["id"] for o in data["orders"]] == [placed_order["id"]]
        assert data["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}

    def test_other_user_sees_nothing(self, client, auth_headers, placed_order):
        assert client.get("/api/orders", headers=auth_headers("user_bob")).json()["data"]["orders"] == []
        response = client.get(f"/api/orders/{placed_order['id']}", headers=auth_headers("user_bob"))
        assert response.status_code == 404

    def test_get_order_detail(self, client, auth_headers, placed_order):
        response = client.get(f"/api/orders/{placed_order['id']}", headers=auth_headers())
        assert response.status_code == 200
        assert response.json()["data"]["order_number"] == placed_order["order_number"]

    def test_cancel_pending_order(self, client, auth_headers, placed_order):
        response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=auth_headers())

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "cancelled"
        assert data["cancelled_at"] is not None

    def test_cannot_cancel_shipped_order(self, client, auth_headers, placed_order):
        admin = auth_headers("user_admin", role="admin")
        for status in ("confirmed", "processing", "shipped"):
            response = client.patch(f"/api/orders/{placed_order['id']}/status", json={"status": status}, headers=admin)
            assert response.status_code == 200

        response = client.post(f"/api/orders/{placed_order['id']}/cancel", headers=auth_headers())
        assert response.status_code == 400

    def test_status_change_requires_admin(self, client, auth_headers, placed_order):
        response = client.patch(
            f"/api/orders/{placed_order['id']}/status", json={"status": "confirmed"}, headers=auth_headers()
        )
        assert response.status_code == 403

    def test_status_transition_stamps_timestamp(self, client, auth_headers, placed_order):
        response = client.patch(
            f"/api/orders/{placed_order['id']}/status",
            json={"status": "confirmed"},
            headers=auth_headers("user_admin", role="admin"),
        )
        assert response.status_code == 200
        assert response.json()["data"]["confirmed_at"] is not None

    def test_invalid_transition(self, client, auth_headers, placed_order):
        response = client.patch(
            f"/api/orders/{placed_order['id']}/status",
            json={"status": "delivered"},
            headers=auth_headers("user_admin", role="admin"),
        )
        assert response.status_code == 400
        assert response.json()["data"]["field"] == "status"

    def test_lookup_by_order_number(self, client, auth_headers, placed_order):
        number = placed_order["order_number"]

        response = client.get(f"/api/orders/number/{number.lower()}", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["data"]["id"] == placed_order["id"]
        assert client.get(f"/api/orders/number/{number}", headers=auth_headers("user_bob")).status_code == 404


class TestOrderSummary:
    def _place(self, client, headers, make_product, shipping_address, price):
        _add_to_cart(client, headers, make_product(price=price, stock=5).id, 1)
        return client.post(
            "/api/orders", json={"shipping_address": shipping_address, "payment_method": "cod"}, headers=headers
        ).json()["data"]

    def test_empty(self, client, auth_headers):
        response = client.get("/api/orders/summary", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_orders": 0, "pending_orders": 0, "completed_orders": 0, "total_spent": 0,
        }

    def test_counts_by_stage_and_skips_cancelled_spend(self, client, auth_headers, make_product, shipping_address):
        headers = auth_headers()
        admin = auth_headers("user_admin", role="admin")
        self._place(client, headers, make_product, shipping_address, 1000)
        delivered = self._place(client, headers, make_product, shipping_address, 2500)
        cancelled = self._place(client, headers, make_product, shipping_address, 400)

        for status in ("confirmed", "processing", "shipped", "delivered"):
            client.patch(f"/api/orders/{delivered['id']}/status", json={"status": status}, headers=admin)
        client.post(f"/api/orders/{cancelled['id']}/cancel", headers=headers)

        summary = client.get("/api/orders/summary", headers=headers).json()["data"]

        assert summary == {"total_orders": 3, "pending_orders": 1, "completed_orders": 1, "total_spent": 3500}

    def test_only_own_orders(self, client, auth_headers, make_product, shipping_address):
        self._place(client, auth_headers(), make_product, shipping_address, 1000)

        summary = client.get("/api/orders/summary", headers=auth_headers("user_bob")).json()["data"]

        assert summary["total_orders"] == 0

    def test_requires_identity(self, client):
        assert client.get("/api/orders/summary").status_code == 401
