"""Cart session and checkout endpoint tests."""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from havens.models.menu import MenuItem
from havens.models.order import Order
from havens.services.inventory import InventoryService

API = "/api/v1"


# ============== Cart ==============

class TestCartEndpoints:
    def test_new_cart_is_empty(self, client):
        resp = client.post(f"{API}/cart/")
        assert resp.status_code == 201
        body = resp.json()
        assert body["lines"] == []
        assert Decimal(body["subtotal"]) == 0

    def test_add_and_increment(self, client, menu_item, open_cart):
        cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"), (menu_item.id, "half"))
        body = client.get(f"{API}/cart/{cart_id}").json()
        assert body["outlet_id"] == menu_item.outlet_id
        quantities = {line["variant"]: line["quantity"] for line in body["lines"]}
        assert quantities == {"full": 2, "half": 1}
        assert Decimal(body["subtotal"]) == Decimal("897.00")

    def test_discounted_price_snapshot(self, client, discounted_item, open_cart):
        cart_id = open_cart((discounted_item.id, "full"))
        line = client.get(f"{API}/cart/{cart_id}").json()["lines"][0]
        assert Decimal(line["unit_price"]) == Decimal("84.00")

    def test_decrement_to_zero_removes_line(self, client, menu_item, open_cart):
        cart_id = open_cart((menu_item.id, "full"))
        resp = client.patch(
            f"{API}/cart/{cart_id}/items",
            json={"menu_item_id": menu_item.id, "variant": "full", "delta": -3},
        )
        assert resp.status_code == 200
        assert resp.json()["lines"] == []
        assert resp.json()["outlet_id"] is None

    def test_unknown_menu_item(self, client):
        cart_id = client.post(f"{API}/cart/").json()["id"]
        resp = client.post(f"{API}/cart/{cart_id}/items", json={"menu_item_id": 999})
        assert resp.status_code == 404

    def test_single_outlet_per_cart(self, client, db_session, menu_item, other_outlet, open_cart):
        foreign = MenuItem(
            outlet_id=other_outlet.id, name="Dal Makhani", category="Mains", price_full=Decimal("289"),
        )
        db_session.add(foreign)
        db_session.commit()

        cart_id = open_cart((menu_item.id, "full"))
        resp = client.post(f"{API}/cart/{cart_id}/items", json={"menu_item_id": foreign.id})
        assert resp.status_code == 400

    def test_unknown_cart(self, client):
        assert client.get(f"{API}/cart/does-not-exist").status_code == 404

    def test_clear(self, client, menu_item, open_cart):
        cart_id = open_cart((menu_item.id, "full"))
        assert client.delete(f"{API}/cart/{cart_id}").status_code == 204
        assert client.get(f"{API}/cart/{cart_id}").json()["lines"] == []


class TestQuote:
    def test_without_address_delivery_is_pending(self, client, pricing_settings, menu_item, open_cart):
        cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"))
        body = client.get(f"{API}/cart/{cart_id}/quote").json()
        assert Decimal(body["subtotal"]) == Decimal("698.00")
        assert Decimal(body["tax"]) == Decimal("34.90")
        assert Decimal(body["delivery_charge"]) == 0
        assert body["delivery_pending"] is True

    def test_far_address_beyond_tiers(self, client, pricing_settings, menu_item, open_cart):
        cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"))
        body = client.get(f"{API}/cart/{cart_id}/quote", params={"address": "Sector 18, Noida"}).json()
        # 8.4 km: past the 5 km tier, so 40 + 8.4 x 10
        assert body["distance_km"] == 8.4
        assert Decimal(body["delivery_charge"]) == Decimal("124.00")
        assert Decimal(body["total"]) == Decimal("856.90")

    def test_empty_cart_quotes_zero(self, client, pricing_settings):
        cart_id = client.post(f"{API}/cart/").json()["id"]
        body = client.get(f"{API}/cart/{cart_id}/quote", params={"address": "Sector 18, Noida"}).json()
        assert Decimal(body["total"]) == 0


# ============== Checkout ==============

class TestCheckout:
    def test_guest_checkout(self, client, pricing_settings, menu_item, open_cart, checkout_payload):
        cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"))
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id, payment_method="COD"))
        assert resp.status_code == 201, resp.text
        order = resp.json()

        assert order["status"] == "PENDING"
        assert order["customer_ref"].startswith("guest-")
        assert order["tracking_token"]
        assert len(order["history"]) == 1
        assert order["history"][0]["updated_by"] == "System"
        assert Decimal(order["subtotal"]) == Decimal("698.00")
        assert Decimal(order["tax"]) == Decimal("34.90")
        assert Decimal(order["delivery_charge"]) == Decimal("30.00")
        assert Decimal(order["total"]) == Decimal("762.90")

        # Cart is consumed once the order exists
        assert client.get(f"{API}/cart/{cart_id}").status_code == 404

    def test_customer_checkout_is_linked(
        self, client, pricing_settings, menu_item, customer, customer_headers, open_cart, checkout_payload,
    ):
        cart_id = open_cart((menu_item.id, "half"))
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id), headers=customer_headers)
        assert resp.status_code == 201
        assert resp.json()["customer_ref"] == f"cust-{customer.id}"

        mine = client.get(f"{API}/orders/mine", headers=customer_headers).json()
        assert [o["id"] for o in mine] == [resp.json()["id"]]

    def test_invalid_details_keep_cart(self, client, pricing_settings, menu_item, open_cart, checkout_payload):
        cart_id = open_cart((menu_item.id, "full"))
        resp = client.post(
            f"{API}/orders/checkout",
            json=checkout_payload(cart_id, phone="5123456789", address="Delhi"),
        )
        assert resp.status_code == 422
        assert set(resp.json()["errors"]) == {"phone", "address"}
        assert client.get(f"{API}/cart/{cart_id}").status_code == 200

    def test_empty_cart_refused(self, client, pricing_settings, checkout_payload):
        cart_id = client.post(f"{API}/cart/").json()["id"]
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cart is empty"

    def test_cash_is_counter_only(self, client, pricing_settings, menu_item, open_cart, checkout_payload):
        cart_id = open_cart((menu_item.id, "full"))
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id, payment_method="CASH"))
        assert resp.status_code == 422
        assert "payment_method" in resp.json()["errors"]

    def test_inactive_outlet(self, client, db_session, pricing_settings, outlet, menu_item, open_cart, checkout_payload):
        cart_id = open_cart((menu_item.id, "full"))
        outlet.is_active = False
        db_session.commit()
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id))
        assert resp.status_code == 404

    def test_menu_item_removed_after_adding(
        self, client, db_session, pricing_settings, menu_item, open_cart, checkout_payload,
    ):
        cart_id = open_cart((menu_item.id, "full"))
        db_session.delete(menu_item)
        db_session.commit()
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id))
        assert resp.status_code == 404
        assert client.get(f"{API}/cart/{cart_id}").status_code == 200

    def test_coordinates_used_when_outlet_has_them(
        self, client, db_session, pricing_settings, other_outlet, open_cart, checkout_payload,
    ):
        item = MenuItem(outlet_id=other_outlet.id, name="Dal Makhani", category="Mains", price_full=Decimal("289"))
        db_session.add(item)
        db_session.commit()

        cart_id = open_cart((item.id, "full"))
        resp = client.post(
            f"{API}/orders/checkout",
            json=checkout_payload(cart_id, latitude=other_outlet.latitude, longitude=other_outlet.longitude),
        )
        assert resp.status_code == 201
        assert resp.json()["distance_km"] == 0
        assert Decimal(resp.json()["delivery_charge"]) == Decimal("30.00")


class TestInventoryDeduction:
    def test_stock_deducted_per_variant(
        self, client, db_session, pricing_settings, menu_item, paneer_stock, open_cart, checkout_payload,
    ):
        cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"), (menu_item.id, "half"))
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id))
        assert resp.status_code == 201

        db_session.refresh(paneer_stock)
        # 10 - 0.2 x 2 - 0.2 x 0.5
        assert paneer_stock.stock == Decimal("9.5")

    def test_failed_deduction_leaves_nothing_behind(
        self, client, db_session, monkeypatch, pricing_settings, menu_item, paneer_stock, open_cart, checkout_payload,
    ):
        def failing_deduction(self, consumed):
            raise OperationalError("UPDATE inventory_items", {}, Exception("database is locked"))

        monkeypatch.setattr(InventoryService, "deduct_for_order", failing_deduction)
        cart_id = open_cart((menu_item.id, "full"))
        resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id))

        assert resp.status_code == 503
        assert resp.json()["detail"] == "Storage temporarily unavailable"
        assert db_session.scalar(select(func.count(Order.id))) == 0
        db_session.refresh(paneer_stock)
        assert paneer_stock.stock == Decimal("10")
        # The customer can retry with the same cart
        assert client.get(f"{API}/cart/{cart_id}").status_code == 200
