"""
Tests para el módulo de Clientes
"""

from uuid import uuid4


class TestCustomerAPI:

    def test_register_and_list(self, client, waiter_headers):
        response = client.post("/customers/", json={
            "first_name": "Luis", "last_name": "Torres", "phone": "5598765432", "address": "Calle 5 #12"
        }, headers=waiter_headers)
        assert response.status_code == 201
        assert response.json()["full_name"] == "Luis Torres"

        listing = client.get("/customers/", headers=waiter_headers).json()
        assert listing["total"] == 1

    def test_invalid_email_is_422(self, client, waiter_headers):
        response = client.post("/customers/", json={
            "first_name": "Luis", "last_name": "Torres", "email": "no-es-correo"
        }, headers=waiter_headers)
        assert response.status_code == 422

    def test_unknown_customer_is_404(self, client, waiter_headers):
        assert client.get(f"/customers/{uuid4()}", headers=waiter_headers).status_code == 404
