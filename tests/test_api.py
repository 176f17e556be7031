"""Tests for the FastAPI API."""

from uuid import uuid4

import pytest


def order_payload(*items, user_id="api-user"):
    return {
        "user_id": user_id,
        "name": "Jane Doe",
        "address": "1 Main St",
        "contact": "555-0100",
        "location": "Downtown",
        "payment_method": "cash",
        "items": list(items),
    }


@pytest.fixture
def user_id():
    return f"user-{uuid4().hex[:8]}"


class TestHealthCheck:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["health"] == "/health"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["database"] == "healthy"
        assert data["transaction_mode"] == "compensating"
        assert data["sweeper"] == "stopped"
        assert "redis" in data


class TestFoods:
    def test_add_with_default_stock(self, create_food):
        item = create_food(name="Veg Wrap", category="Vegetarian", quantity=None)
        assert item["quantity"] == 10
        assert item["category"] == "Vegetarian"

    def test_add_rejects_non_positive_price(self, client):
        response = client.post(
            "/api/foods",
            json={"name": "Free Lunch", "category": "Fast Food", "price": 0, "image": "x.png"},
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Validation Error")

    def test_add_rejects_unknown_category(self, client):
        response = client.post(
            "/api/foods",
            json={"name": "Soup", "category": "Soups", "price": 3, "image": "soup.png"},
        )
        assert response.status_code == 400

    def test_get_update_delete(self, client, create_food):
        item = create_food(name="Brownie", category="Dessert", price=4.0, quantity=6)

        response = client.get(f"/api/foods/{item['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Brownie"

        response = client.put(f"/api/foods/{item['id']}", json={"price": 4.5})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Food item updated successfully"
        assert body["food_item"]["price"] == 4.5
        assert body["food_item"]["quantity"] == 6

        response = client.delete(f"/api/foods/{item['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Food item deleted successfully"

        assert client.get(f"/api/foods/{item['id']}").status_code == 404
        assert client.delete(f"/api/foods/{item['id']}").status_code == 404

    def test_update_unknown_item(self, client):
        response = client.put(f"/api/foods/{uuid4()}", json={"price": 2.0})
        assert response.status_code == 404

    def test_list_includes_new_item(self, client, create_food):
        item = create_food(name="Iced Tea", category="Beverages", price=2.0)
        ids = [food["id"] for food in client.get("/api/foods").json()]
        assert item["id"] in ids


class TestPlaceOrder:
    def test_create_order_reserves_stock(self, client, create_food, user_id):
        item = create_food(price=10.0, quantity=5)

        response = client.post(
            "/api/orders",
            json=order_payload({"food_id": item["id"], "quantity": 3}, user_id=user_id),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Order created successfully"
        assert body["order"]["status"] == "pending"
        assert body["order"]["total_amount"] == 30.0
        assert body["order"]["items"][0]["name"] == item["name"]
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 2

        response = client.post(
            "/api/orders",
            json=order_payload({"food_id": item["id"], "quantity": 3}, user_id=user_id),
        )
        assert response.status_code == 400
        assert response.json()["message"] == f"Insufficient quantity for {item['name']}. Available: 2"
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 2
        assert len(client.get("/api/orders", params={"user_id": user_id}).json()) == 1

    def test_embedded_food_reference(self, client, create_food, user_id):
        item = create_food(quantity=2)

        response = client.post(
            "/api/orders",
            json=order_payload({"food_id": {"_id": item["id"], "name": item["name"]}, "quantity": 1}),
        )

        assert response.status_code == 201
        assert response.json()["order"]["items"][0]["food_id"] == item["id"]

    def test_no_items(self, client):
        response = client.post("/api/orders", json=order_payload())
        assert response.status_code == 400
        assert response.json()["message"] == "No items in order"

    def test_malformed_reference(self, client):
        response = client.post("/api/orders", json=order_payload({"food_id": "abc", "quantity": 1}))
        assert response.status_code == 400

    def test_unknown_item(self, client):
        response = client.post(
            "/api/orders", json=order_payload({"food_id": str(uuid4()), "quantity": 1})
        )
        assert response.status_code == 404

    def test_invalid_quantity(self, client, create_food):
        item = create_food(quantity=5)
        response = client.post(
            "/api/orders", json=order_payload({"food_id": item["id"], "quantity": 0})
        )
        assert response.status_code == 400
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 5

    def test_missing_delivery_field(self, client):
        payload = order_payload()
        del payload["address"]
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "address"


class TestReadOrders:
    def test_list_requires_user(self, client):
        response = client.get("/api/orders")
        assert response.status_code == 400
        assert response.json()["message"] == "user_id is required"

    def test_list_newest_first(self, client, create_food, user_id):
        item = create_food(quantity=5)
        first = client.post(
            "/api/orders", json=order_payload({"food_id": item["id"], "quantity": 1}, user_id=user_id)
        ).json()["order"]
        second = client.post(
            "/api/orders", json=order_payload({"food_id": item["id"], "quantity": 1}, user_id=user_id)
        ).json()["order"]

        orders = client.get("/api/orders", params={"user_id": user_id}).json()

        assert [o["id"] for o in orders] == [second["id"], first["id"]]

    def test_get_unknown_order(self, client):
        assert client.get(f"/api/orders/{uuid4()}").status_code == 404


class TestOrderLifecycle:
    @pytest.fixture
    def placed(self, client, create_food, user_id):
        item = create_food(quantity=5)
        order = client.post(
            "/api/orders", json=order_payload({"food_id": item["id"], "quantity": 3}, user_id=user_id)
        ).json()["order"]
        return item, order

    def test_cancel_restores_stock(self, client, placed, user_id):
        item, order = placed

        response = client.put(f"/api/orders/{order['id']}/cancel", json={"user_id": user_id})

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "cancelled"
        assert body["warnings"] == []
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 5

        again = client.put(f"/api/orders/{order['id']}/cancel", json={"user_id": user_id})
        assert again.status_code == 400
        assert again.json()["message"] == "Order not found or cannot be cancelled"
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 5

    def test_cancel_requires_user(self, client, placed):
        _, order = placed
        response = client.put(f"/api/orders/{order['id']}/cancel", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "User ID is required"

    def test_cancel_by_other_user(self, client, placed):
        item, order = placed
        response = client.put(f"/api/orders/{order['id']}/cancel", json={"user_id": "someone-else"})
        assert response.status_code == 400
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 2

    def test_processing_then_delivered(self, client, placed, user_id):
        item, order = placed

        response = client.put(f"/api/orders/{order['id']}/processing")
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "processing"

        response = client.put(f"/api/orders/{order['id']}/delivered")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Order marked as delivered"
        assert body["order"]["status"] == "completed"
        assert body["order"]["delivered_at"] is not None

        assert client.put(f"/api/orders/{order['id']}/delivered").status_code == 400
        cancel = client.put(f"/api/orders/{order['id']}/cancel", json={"user_id": user_id})
        assert cancel.status_code == 400
        assert client.get(f"/api/foods/{item['id']}").json()["quantity"] == 2

    def test_deliver_unknown_order(self, client):
        assert client.put(f"/api/orders/{uuid4()}/delivered").status_code == 404
