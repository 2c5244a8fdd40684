"""Outlet, menu, inventory and global settings endpoint tests."""

from decimal import Decimal

from havens.core.rbac import UserRole

API = "/api/v1"

NEW_OUTLET = {
    "name": "Havens Dwarka",
    "address": "Sector 10, Dwarka, New Delhi",
    "latitude": 28.5823,
    "longitude": 77.0500,
}


# ============== Outlets ==============

class TestOutlets:
    def test_public_listing(self, client, outlet):
        resp = client.get(f"{API}/outlets/")
        assert resp.status_code == 200
        assert [o["name"] for o in resp.json()] == [outlet.name]

    def test_create_requires_manage_outlets(self, client, manager_headers, owner_headers):
        assert client.post(f"{API}/outlets/", json=NEW_OUTLET, headers=manager_headers).status_code == 403
        assert client.post(f"{API}/outlets/", json=NEW_OUTLET, headers=owner_headers).status_code == 403

    def test_create_refreshes_cached_listing(self, client, outlet, admin_headers):
        assert len(client.get(f"{API}/outlets/").json()) == 1
        resp = client.post(f"{API}/outlets/", json=NEW_OUTLET, headers=admin_headers)
        assert resp.status_code == 201
        assert Decimal(resp.json()["rating"]) == 0
        assert len(client.get(f"{API}/outlets/").json()) == 2

    def test_update(self, client, outlet, admin_headers):
        resp = client.put(f"{API}/outlets/{outlet.id}", json={"contact": "9822222222"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["contact"] == "9822222222"
        assert resp.json()["name"] == outlet.name

    def test_scoped_staff_manage_only_their_outlet(
        self, client, db_session, outlet, other_outlet, owner, owner_headers,
    ):
        owner.manage_outlets = True
        db_session.commit()

        resp = client.put(f"{API}/outlets/{other_outlet.id}", json={"name": "Renamed"}, headers=owner_headers)
        assert resp.status_code == 403
        assert client.delete(f"{API}/outlets/{other_outlet.id}", headers=owner_headers).status_code == 403
        assert client.post(f"{API}/outlets/", json=NEW_OUTLET, headers=owner_headers).status_code == 403
        assert client.get(f"{API}/outlets/{other_outlet.id}").json()["name"] == "Havens Saket"

        resp = client.put(f"{API}/outlets/{outlet.id}", json={"contact": "9833333333"}, headers=owner_headers)
        assert resp.status_code == 200

    def test_soft_delete_keeps_orders(self, client, placed_order, outlet, admin_headers, customer_headers):
        assert client.delete(f"{API}/outlets/{outlet.id}", headers=admin_headers).status_code == 204
        assert client.get(f"{API}/outlets/{outlet.id}").status_code == 404
        assert client.get(f"{API}/outlets/").json() == []
        assert client.get(f"{API}/outlets/all", headers=admin_headers).json() == []

        # Historical orders still resolve, invoice included
        resp = client.get(f"{API}/orders/{placed_order['id']}/invoice", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json()["outlet_name"] == outlet.name

    def test_inactive_outlets_only_for_admins(self, client, db_session, outlet, admin_headers):
        outlet.is_active = False
        db_session.commit()
        assert client.get(f"{API}/outlets/").json() == []
        names = [o["name"] for o in client.get(f"{API}/outlets/all", headers=admin_headers).json()]
        assert names == [outlet.name]

    def test_nearest(self, client, outlet, other_outlet):
        resp = client.get(f"{API}/outlets/nearest", params={"lat": 28.53, "lng": 77.22})
        assert resp.status_code == 200
        assert resp.json()["outlet"]["id"] == other_outlet.id
        assert resp.json()["distance_km"] < 1

    def test_nearest_without_coordinates(self, client, outlet):
        resp = client.get(f"{API}/outlets/nearest", params={"lat": 28.53, "lng": 77.22})
        assert resp.status_code == 404

    def test_invalid_coordinates(self, client):
        assert client.get(f"{API}/outlets/nearest", params={"lat": 123, "lng": 77}).status_code == 422


# ============== Menu ==============

class TestMenu:
    def test_display_price(self, client, menu_item, discounted_item, outlet):
        resp = client.get(f"{API}/menu/", params={"outlet_id": outlet.id})
        assert resp.status_code == 200
        prices = {item["name"]: Decimal(item["display_price"]) for item in resp.json()}
        assert prices == {"Paneer Tikka": Decimal("349.00"), "Butter Naan": Decimal("84.00")}

    def test_half_variant_is_optional(self, client, menu_item, discounted_item):
        items = {item["name"]: item for item in client.get(f"{API}/menu/").json()}
        assert Decimal(items["Paneer Tikka"]["price_half"]) == Decimal("199.00")
        assert items["Butter Naan"]["price_half"] is None

    def test_unavailable_hidden_by_default(self, client, db_session, menu_item):
        menu_item.is_available = False
        db_session.commit()
        assert client.get(f"{API}/menu/").json() == []
        listed = client.get(f"{API}/menu/", params={"include_unavailable": True}).json()
        assert [i["id"] for i in listed] == [menu_item.id]

    def test_deleted_outlet_menu_is_hidden(self, client, menu_item, outlet, admin_headers):
        assert len(client.get(f"{API}/menu/").json()) == 1
        assert client.delete(f"{API}/outlets/{outlet.id}", headers=admin_headers).status_code == 204

        assert client.get(f"{API}/menu/").json() == []
        assert client.get(f"{API}/menu/", params={"outlet_id": outlet.id}).json() == []
        assert client.get(f"{API}/menu/{menu_item.id}").status_code == 404

    def test_inactive_outlet_items_cannot_be_added(self, client, menu_item, outlet, admin_headers):
        client.put(f"{API}/outlets/{outlet.id}", json={"is_active": False}, headers=admin_headers)
        assert client.get(f"{API}/menu/").json() == []

        cart_id = client.post(f"{API}/cart/").json()["id"]
        resp = client.post(f"{API}/cart/{cart_id}/items", json={"menu_item_id": menu_item.id})
        assert resp.status_code == 404
        assert client.get(f"{API}/cart/{cart_id}").json()["lines"] == []

    def test_create_with_inventory_link(self, client, outlet, paneer_stock, manager_headers):
        body = {
            "outlet_id": outlet.id,
            "name": "Paneer Butter Masala",
            "category": "Mains",
            "price_full": "329",
            "price_half": "189",
            "food_type": "Veg",
            "spice_level": "Medium",
            "inventory_links": [{"inventory_item_id": paneer_stock.id, "qty": "0.25"}],
        }
        resp = client.post(f"{API}/menu/", json=body, headers=manager_headers)
        assert resp.status_code == 201, resp.text
        assert resp.json()["inventory_links"][0]["inventory_item_id"] == paneer_stock.id

        names = [i["name"] for i in client.get(f"{API}/menu/", params={"outlet_id": outlet.id}).json()]
        assert "Paneer Butter Masala" in names

    def test_link_to_other_outlets_stock(self, client, db_session, outlet, other_outlet, admin_headers):
        from havens.models.inventory import InventoryItem

        foreign = InventoryItem(outlet_id=other_outlet.id, name="Cream", stock=Decimal("5"), unit="l")
        db_session.add(foreign)
        db_session.commit()
        body = {
            "outlet_id": outlet.id,
            "name": "Malai Kofta",
            "category": "Mains",
            "price_full": "299",
            "inventory_links": [{"inventory_item_id": foreign.id, "qty": "0.1"}],
        }
        assert client.post(f"{API}/menu/", json=body, headers=admin_headers).status_code == 404

    def test_manager_scoped_to_own_outlet(self, client, other_outlet, manager_headers):
        body = {"outlet_id": other_outlet.id, "name": "Dal", "category": "Mains", "price_full": "199"}
        assert client.post(f"{API}/menu/", json=body, headers=manager_headers).status_code == 403

    def test_rider_cannot_edit_menu(self, client, menu_item, rider, auth_headers_for):
        resp = client.put(f"{API}/menu/{menu_item.id}", json={"price_full": "10"}, headers=auth_headers_for(rider))
        assert resp.status_code == 403

    def test_update_and_delete(self, client, menu_item, manager_headers):
        resp = client.put(
            f"{API}/menu/{menu_item.id}", json={"discount_percentage": "10"}, headers=manager_headers,
        )
        assert resp.status_code == 200
        assert Decimal(resp.json()["display_price"]) == Decimal("314.00")

        assert client.delete(f"{API}/menu/{menu_item.id}", headers=manager_headers).status_code == 204
        assert client.get(f"{API}/menu/{menu_item.id}").status_code == 404


# ============== Inventory ==============

class TestInventory:
    def test_listing_requires_permission(self, client, paneer_stock, customer_headers):
        assert client.get(f"{API}/inventory/", headers=customer_headers).status_code == 403

    def test_adjust_by_delta(self, client, paneer_stock, manager_headers):
        resp = client.post(
            f"{API}/inventory/{paneer_stock.id}/adjust", json={"delta": "-8.5"}, headers=manager_headers,
        )
        assert resp.status_code == 200
        assert Decimal(resp.json()["stock"]) == Decimal("1.5")
        assert resp.json()["is_low"] is True

        low = client.get(f"{API}/inventory/low-stock", headers=manager_headers).json()
        assert [i["id"] for i in low] == [paneer_stock.id]

    def test_stock_never_negative(self, client, paneer_stock, manager_headers):
        resp = client.post(
            f"{API}/inventory/{paneer_stock.id}/adjust", json={"delta": "-50"}, headers=manager_headers,
        )
        assert Decimal(resp.json()["stock"]) == 0

    def test_set_outright(self, client, paneer_stock, manager_headers):
        resp = client.post(
            f"{API}/inventory/{paneer_stock.id}/adjust", json={"stock": "25"}, headers=manager_headers,
        )
        assert Decimal(resp.json()["stock"]) == Decimal("25")

    def test_adjust_needs_exactly_one_field(self, client, paneer_stock, manager_headers):
        url = f"{API}/inventory/{paneer_stock.id}/adjust"
        assert client.post(url, json={}, headers=manager_headers).status_code == 422
        assert client.post(url, json={"delta": "1", "stock": "2"}, headers=manager_headers).status_code == 422

    def test_create_update_delete(self, client, outlet, manager_headers):
        resp = client.post(
            f"{API}/inventory/",
            json={"outlet_id": outlet.id, "name": "Basmati Rice", "stock": "40", "min_stock": "5", "unit": "kg"},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        item_id = resp.json()["id"]

        resp = client.put(f"{API}/inventory/{item_id}", json={"min_stock": "50"}, headers=manager_headers)
        assert resp.json()["is_low"] is True

        assert client.delete(f"{API}/inventory/{item_id}", headers=manager_headers).status_code == 204
        assert client.get(f"{API}/inventory/{item_id}", headers=manager_headers).status_code == 404

    def test_other_outlet_inventory(self, client, db_session, other_outlet, make_user, auth_headers_for, paneer_stock):
        stranger = make_user("saket@havens.test", UserRole.MANAGER, outlet_id=other_outlet.id)
        headers = auth_headers_for(stranger)
        assert client.get(f"{API}/inventory/{paneer_stock.id}", headers=headers).status_code == 403
        assert client.get(f"{API}/inventory/", headers=headers).json() == []


# ============== Global settings ==============

class TestGlobalSettings:
    def test_defaults_seeded_on_first_read(self, client):
        resp = client.get(f"{API}/settings/")
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["gst_percentage"]) == Decimal("5")
        assert [Decimal(t["up_to_km"]) for t in body["delivery_tiers"]] == [3, 5, 10]
        assert body["brand_name"] == "HAVENS KITCHEN"

    def test_only_super_admin_updates(self, client, pricing_settings, owner_headers):
        resp = client.put(f"{API}/settings/", json={"gst_percentage": "12"}, headers=owner_headers)
        assert resp.status_code == 403

    def test_update_replaces_tiers_sorted(self, client, pricing_settings, admin_headers):
        client.get(f"{API}/settings/")
        resp = client.put(
            f"{API}/settings/",
            json={
                "gst_percentage": "12",
                "delivery_tiers": [{"up_to_km": "8", "charge": "70"}, {"up_to_km": "2", "charge": "20"}],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200

        body = client.get(f"{API}/settings/").json()
        assert Decimal(body["gst_percentage"]) == Decimal("12")
        assert [(Decimal(t["up_to_km"]), Decimal(t["charge"])) for t in body["delivery_tiers"]] == [
            (Decimal("2"), Decimal("20")),
            (Decimal("8"), Decimal("70")),
        ]
        # Untouched fields survive a partial update
        assert Decimal(body["delivery_base_charge"]) == Decimal("40")

    def test_new_rates_apply_to_quotes(self, client, pricing_settings, menu_item, admin_headers, open_cart):
        client.put(f"{API}/settings/", json={"gst_percentage": "18"}, headers=admin_headers)
        cart_id = open_cart((menu_item.id, "full"))
        body = client.get(f"{API}/cart/{cart_id}/quote").json()
        # 349 x 18% = 62.82
        assert Decimal(body["tax"]) == Decimal("62.82")

    def test_duplicate_tier_distance(self, client, pricing_settings, admin_headers):
        resp = client.put(
            f"{API}/settings/",
            json={"delivery_tiers": [{"up_to_km": "3", "charge": "30"}, {"up_to_km": "3", "charge": "40"}]},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_bad_colour(self, client, pricing_settings, admin_headers):
        resp = client.put(f"{API}/settings/", json={"primary_color": "red"}, headers=admin_headers)
        assert resp.status_code == 422
