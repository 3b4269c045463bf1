"""
Testy komponentowe API koszyka: router -> serwis -> repo (SQLite),
katalog produktow i redis podmienione na fake.
"""
from decimal import Decimal


def test_health(test_client):
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestCartApi:
    def test_empty_cart(self, test_client):
        response = test_client.get("/cart", params={"user_id": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["cart_id"] is None
        assert data["items"] == []
        assert data["total_items"] == 0
        assert Decimal(data["total_price"]) == 0

    def test_add_update_remove_clear_flow(self, test_client, products):
        products.put(1, price="199.99", stock=10, name="Keyboard")
        products.put(2, price="49.50", stock=10, name="Mouse")
        params = {"user_id": 5}

        # Act + Assert: add
        response = test_client.post("/cart/items", params=params, json={"product_id": 1, "quantity": 1})
        assert response.status_code == 200
        response = test_client.post("/cart/items", params=params, json={"product_id": 2, "quantity": 2})
        data = response.json()
        assert [i["product_id"] for i in data["items"]] == [1, 2]
        assert data["total_items"] == 3
        assert Decimal(data["total_price"]) == Decimal("298.99")

        # update
        response = test_client.put("/cart/items/2", params=params, json={"quantity": 4})
        assert response.status_code == 200
        assert response.json()["total_items"] == 5

        # remove
        response = test_client.delete("/cart/items/1", params=params)
        assert response.status_code == 200
        data = response.json()
        assert [i["product_id"] for i in data["items"]] == [2]
        assert Decimal(data["total_price"]) == Decimal("198.00")

        # clear
        response = test_client.delete("/cart", params=params)
        assert response.status_code == 200
        assert response.json()["items"] == []

        data = test_client.get("/cart", params=params).json()
        assert data["cart_id"] is not None
        assert data["total_items"] == 0

    def test_unavailable_product_is_404(self, test_client, products):
        products.put(1, is_active=False)

        response = test_client.post("/cart/items", params={"user_id": 5}, json={"product_id": 1, "quantity": 1})

        assert response.status_code == 404
        assert response.json()["detail"] == "Product not found or inactive"

    def test_insufficient_stock_is_400(self, test_client, products):
        products.put(1, stock=2)

        response = test_client.post("/cart/items", params={"user_id": 5}, json={"product_id": 1, "quantity": 3})

        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient stock. Available: 2"

    def test_update_without_cart_is_404(self, test_client, products):
        products.put(1)

        response = test_client.put("/cart/items/1", params={"user_id": 5}, json={"quantity": 1})

        assert response.status_code == 404
        assert response.json()["detail"] == "Cart not found"

    def test_remove_missing_item_is_404(self, test_client, products):
        products.put(1)
        test_client.post("/cart/items", params={"user_id": 5}, json={"product_id": 1, "quantity": 1})

        response = test_client.delete("/cart/items/2", params={"user_id": 5})

        assert response.status_code == 404
        assert response.json()["detail"] == "Item not found in cart"

    def test_clear_without_cart_is_404(self, test_client):
        response = test_client.delete("/cart", params={"user_id": 5})

        assert response.status_code == 404

    def test_locked_cart_is_409(self, test_client, products, lock_service):
        products.put(1)
        lock_service.acquire_cart_lock(5, "other-request", ttl=10)
        lock_service.wait = 0.1

        response = test_client.post("/cart/items", params={"user_id": 5}, json={"product_id": 1, "quantity": 1})

        assert response.status_code == 409

    def test_request_validation(self, test_client):
        response = test_client.post("/cart/items", params={"user_id": 5}, json={"product_id": 1, "quantity": 0})
        assert response.status_code == 422

        response = test_client.put("/cart/items/1", params={"user_id": 5}, json={"quantity": -1})
        assert response.status_code == 422

        response = test_client.get("/cart")
        assert response.status_code == 422

    def test_product_id_in_path_must_be_positive(self, test_client):
        response = test_client.put("/cart/items/0", params={"user_id": 5}, json={"quantity": 1})
        assert response.status_code == 422

        response = test_client.delete("/cart/items/-1", params={"user_id": 5})
        assert response.status_code == 422
