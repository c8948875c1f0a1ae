# Overview: Pytest coverage for category and customer management.

import pytest

from ironpress.errors import ConflictError, DuplicateResourceError, ValidationError
from ironpress.models import Category
from ironpress.services import billing_service, category_service, customer_service


class TestCategories:
    def test_create_category(self, client, admin_a_headers, store_a):
        resp = client.post(
            "/api/categories",
            json={"name": "Curtain", "price": "40", "icon": "🪟"},
            headers=admin_a_headers,
        )

        assert resp.status_code == 201
        category = resp.get_json()["category"]
        assert category["price"] == "40.00"
        assert category["store_id"] == store_a.id
        assert category["is_active"] is True

    def test_duplicate_name_is_case_insensitive(self, client, admin_a_headers, shirt_a):
        resp = client.post("/api/categories", json={"name": "SHIRT", "price": "12"}, headers=admin_a_headers)
        assert resp.status_code == 409

    def test_same_name_allowed_in_other_store(self, db_session, store_b, shirt_a):
        category = category_service.create_category(store_b.id, {"name": "Shirt", "price": "11"})
        assert category.store_id == store_b.id

    @pytest.mark.parametrize("price", ["-1", "free", None, True])
    def test_invalid_price(self, db_session, store_a, price):
        with pytest.raises(ValidationError):
            category_service.create_category(store_a.id, {"name": "Curtain", "price": price})

    def test_list_active_only(self, client, db_session, employee_a_headers, shirt_a, pants_a):
        pants_a.is_active = False
        db_session.commit()

        all_names = [c["name"] for c in client.get("/api/categories", headers=employee_a_headers).get_json()["categories"]]
        active = client.get("/api/categories?active_only=true", headers=employee_a_headers).get_json()["categories"]

        assert all_names == ["Pants", "Shirt"]
        assert [c["name"] for c in active] == ["Shirt"]

    def test_price_change_keeps_bill_snapshot(self, client, admin_a_headers, store_a, shirt_a, bill_payload):
        bill = billing_service.create_bill(bill_payload((shirt_a, 2)), store_a.id)

        resp = client.put(f"/api/categories/{shirt_a.id}", json={"price": "25"}, headers=admin_a_headers)

        assert resp.get_json()["category"]["price"] == "25.00"
        reloaded = billing_service.get_bill(bill.id)
        assert reloaded.total_amount == 30
        assert reloaded.items[0].price == 15

    def test_rename_to_taken_name(self, db_session, shirt_a, pants_a):
        with pytest.raises(DuplicateResourceError):
            category_service.update_category(pants_a.id, {"name": "shirt"})

    def test_delete_unused_category(self, client, db_session, admin_a_headers, pants_a):
        resp = client.delete(f"/api/categories/{pants_a.id}", headers=admin_a_headers)

        assert resp.status_code == 200
        assert db_session.get(Category, pants_a.id) is None

    def test_delete_category_in_use_conflicts(self, client, admin_a_headers, store_a, shirt_a, bill_payload):
        billing_service.create_bill(bill_payload((shirt_a, 1)), store_a.id)

        resp = client.delete(f"/api/categories/{shirt_a.id}", headers=admin_a_headers)

        assert resp.status_code == 409
        assert "Deactivate it instead" in resp.get_json()["error"]

    def test_deactivated_category_cannot_be_billed(self, client, admin_a_headers, shirt_a, bill_payload):
        client.put(f"/api/categories/{shirt_a.id}", json={"is_active": False}, headers=admin_a_headers)

        resp = client.post("/api/bills", json=bill_payload((shirt_a, 1)), headers=admin_a_headers)

        assert resp.status_code == 400

    def test_seed_default_categories_only_once(self, db_session, store_a):
        assert category_service.seed_default_categories(store_a.id) == len(category_service.DEFAULT_CATEGORIES)
        assert category_service.seed_default_categories(store_a.id) == 0

        prices = {c.name: str(c.price) for c in category_service.list_categories(store_a.id)}
        assert prices["Shirt"] == "15.00"
        assert prices["Suit"] == "80.00"


class TestCustomers:
    def test_create_and_search(self, client, employee_a_headers, store_a):
        resp = client.post(
            "/api/customers",
            json={"name": "Anita Desai", "phone": "9811122233", "email": "anita@example.test"},
            headers=employee_a_headers,
        )
        assert resp.status_code == 201

        found = client.get("/api/customers?search=anita", headers=employee_a_headers).get_json()["customers"]
        by_phone = client.get("/api/customers?search=112223", headers=employee_a_headers).get_json()["customers"]
        missing = client.get("/api/customers?search=zzz", headers=employee_a_headers).get_json()["customers"]

        assert [c["name"] for c in found] == ["Anita Desai"]
        assert len(by_phone) == 1
        assert missing == []

    def test_duplicate_phone_in_store(self, db_session, store_a):
        customer_service.create_customer(store_a.id, {"name": "One", "phone": "9000000001"})

        with pytest.raises(DuplicateResourceError):
            customer_service.create_customer(store_a.id, {"name": "Two", "phone": "9000000001"})

    def test_name_and_phone_required(self, client, employee_a_headers, store_a):
        resp = client.post("/api/customers", json={"name": "No Phone"}, headers=employee_a_headers)
        assert resp.status_code == 400

    def test_detail_lists_recent_bills(self, client, employee_a_headers, store_a, shirt_a, bill_payload):
        first = billing_service.create_bill(bill_payload((shirt_a, 1)), store_a.id)
        billing_service.create_bill(bill_payload((shirt_a, 2)), store_a.id)

        resp = client.get(f"/api/customers/{first.customer_id}", headers=employee_a_headers)

        assert resp.status_code == 200
        customer = resp.get_json()["customer"]
        assert customer["phone"] == "9876543210"
        assert len(customer["bills"]) == 2
        assert "items" not in customer["bills"][0]

    def test_update_customer(self, client, employee_a_headers, store_a):
        customer = customer_service.create_customer(store_a.id, {"name": "Old", "phone": "9000000001"})

        resp = client.put(
            f"/api/customers/{customer.id}",
            json={"name": "New Name", "address": "12 MG Road"},
            headers=employee_a_headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()["customer"]
        assert body["name"] == "New Name"
        assert body["address"] == "12 MG Road"
        assert body["phone"] == "9000000001"

    def test_update_to_taken_phone(self, db_session, store_a):
        customer_service.create_customer(store_a.id, {"name": "One", "phone": "9000000001"})
        second = customer_service.create_customer(store_a.id, {"name": "Two", "phone": "9000000002"})

        with pytest.raises(DuplicateResourceError):
            customer_service.update_customer(second.id, {"phone": "9000000001"})

    def test_delete_customer_without_bills(self, client, admin_a_headers, store_a):
        customer = customer_service.create_customer(store_a.id, {"name": "Gone", "phone": "9000000001"})

        assert client.delete(f"/api/customers/{customer.id}", headers=admin_a_headers).status_code == 200
        assert customer_service.find_customer_by_phone(store_a.id, "9000000001") is None

    def test_delete_customer_with_bills_conflicts(self, db_session, store_a, shirt_a, bill_payload):
        bill = billing_service.create_bill(bill_payload((shirt_a, 1)), store_a.id)

        with pytest.raises(ConflictError) as exc:
            customer_service.delete_customer(bill.customer_id, store_a.id)
        assert exc.value.details == {"bill_count": 1}

    def test_employee_cannot_delete_customer(self, client, employee_a_headers, store_a):
        customer = customer_service.create_customer(store_a.id, {"name": "Kept", "phone": "9000000001"})

        assert client.delete(f"/api/customers/{customer.id}", headers=employee_a_headers).status_code == 403
