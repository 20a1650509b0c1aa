"""Order history endpoints."""

from decimal import Decimal


def _place_order(client, headers, product_id, quantity=1, address="12 Main St"):
    client.post("/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    response = client.post("/cart/checkout", json={"address": address}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestListOrders:
    def test_newest_first(self, client, auth_headers, laptop, dell):
        first = _place_order(client, auth_headers, laptop.id)
        second = _place_order(client, auth_headers, dell.id)

        response = client.get("/orders", headers=auth_headers)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [second["id"], first["id"]]

    def test_requires_token(self, client):
        assert client.get("/orders").status_code == 403


class TestGetOrder:
    def test_get_own_order(self, client, auth_headers, laptop):
        order = _place_order(client, auth_headers, laptop.id, 2)

        response = client.get(f"/orders/{order['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == order

    def test_other_users_order(self, client, auth_headers, other_auth_headers, laptop):
        order = _place_order(client, auth_headers, laptop.id)

        response = client.get(f"/orders/{order['id']}", headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "order_access_denied"

    def test_unknown_order(self, client, auth_headers):
        response = client.get("/orders/424242", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "order_not_found"


class TestStats:
    def test_summary(self, client, auth_headers, laptop, dell):
        _place_order(client, auth_headers, laptop.id, 2)
        _place_order(client, auth_headers, dell.id, 1)

        response = client.get("/orders/stats/summary", headers=auth_headers)

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_orders"] == 2
        assert Decimal(stats["total_spent"]) == Decimal("60000")
        assert stats["total_items"] == 2
        assert stats["status_breakdown"] == {"En Cours": 2, "Livrée": 0}

    def test_summary_without_orders(self, client, auth_headers):
        stats = client.get("/orders/stats/summary", headers=auth_headers).json()

        assert stats["total_orders"] == 0
        assert Decimal(stats["total_spent"]) == 0
