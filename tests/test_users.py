import pytest


@pytest.fixture
def profile(client, auth_headers):
    response = client.post(
        "/api/users/profile",
        json={"id": "user_alice", "email": "Alice@Example.COM", "first_name": "Alice"},
        headers=auth_headers(),
    )
    assert response.status_code == 201, response.json()
    return response.json()["data"]


class TestProfile:
    def test_missing_profile(self, client, auth_headers):
        response = client.get("/api/users/profile", headers=auth_headers())

        assert response.status_code == 404
        assert response.json()["error"] == "Profile not found"

    def test_create_uses_defaults(self, profile):
        assert profile["email"] == "alice@example.com"
        assert profile["preferred_language"] == "en"
        assert profile["timezone"] == "Asia/Kolkata"
        assert profile["email_notifications"] is True
        assert profile["marketing_notifications"] is False

    def test_create_for_someone_else_is_forbidden(self, client, auth_headers):
        response = client.post(
            "/api/users/profile",
            json={"id": "user_bob", "email": "bob@example.com"},
            headers=auth_headers(),
        )
        assert response.status_code == 403

    def test_create_is_idempotent(self, client, auth_headers, profile):
        response = client.post(
            "/api/users/profile",
            json={"id": "user_alice", "email": "alice@new.example.com"},
            headers=auth_headers(),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "alice@new.example.com"
        assert data["first_name"] == "Alice"

    def test_update(self, client, auth_headers, profile):
        response = client.put(
            "/api/users/profile",
            json={"phone": "+91 9000000000", "sms_notifications": True},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["phone"] == "+91 9000000000"
        assert data["sms_notifications"] is True
        assert data["first_name"] == "Alice"

    def test_update_rejects_bad_email(self, client, auth_headers, profile):
        response = client.put("/api/users/profile", json={"email": "nope"}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["data"]["fields"] == ["email"]

    def test_requires_identity(self, client):
        assert client.get("/api/users/profile").status_code == 401


class TestAddresses:
    def _create(self, client, headers, address, **extra):
        response = client.post("/api/addresses", json={**address, **extra}, headers=headers)
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    def test_first_address_becomes_default(self, client, auth_headers, shipping_address):
        address = self._create(client, auth_headers(), shipping_address)

        assert address["is_default"] is True
        assert address["address_type"] == "both"
        assert address["user_id"] == "user_alice"

    def test_second_address_is_not_default(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        self._create(client, headers, shipping_address)
        second = self._create(client, headers, shipping_address, city="Mysuru")

        assert second["is_default"] is False

    def test_new_default_replaces_old(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        first = self._create(client, headers, shipping_address)
        second = self._create(client, headers, shipping_address, city="Mysuru", is_default=True)

        listed = client.get("/api/addresses", headers=headers).json()["data"]

        defaults = [a["id"] for a in listed if a["is_default"]]
        assert defaults == [second["id"]]
        assert listed[0]["id"] == second["id"]
        assert first["id"] in [a["id"] for a in listed]

    def test_set_default(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        first = self._create(client, headers, shipping_address)
        second = self._create(client, headers, shipping_address, city="Mysuru")

        response = client.post(f"/api/addresses/{second['id']}/default", headers=headers)

        assert response.status_code == 200
        listed = client.get("/api/addresses", headers=headers).json()["data"]
        assert {a["id"]: a["is_default"] for a in listed} == {first["id"]: False, second["id"]: True}

    def test_cannot_delete_default(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        address = self._create(client, headers, shipping_address)

        response = client.delete(f"/api/addresses/{address['id']}", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete default address"

    def test_delete_non_default(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        self._create(client, headers, shipping_address)
        second = self._create(client, headers, shipping_address, city="Mysuru")

        response = client.delete(f"/api/addresses/{second['id']}", headers=headers)

        assert response.status_code == 200
        assert len(client.get("/api/addresses", headers=headers).json()["data"]) == 1

    def test_update(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        address = self._create(client, headers, shipping_address)

        response = client.put(f"/api/addresses/{address['id']}", json={"city": "Chennai"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["city"] == "Chennai"
        assert response.json()["data"]["postal_code"] == "560001"

    def test_update_cannot_blank_required_field(self, client, auth_headers, shipping_address):
        headers = auth_headers()
        address = self._create(client, headers, shipping_address)

        response = client.put(f"/api/addresses/{address['id']}", json={"city": None}, headers=headers)

        assert response.status_code == 400
        assert response.json()["data"] == {"field": "city"}

    def test_addresses_are_private(self, client, auth_headers, shipping_address):
        address = self._create(client, auth_headers(), shipping_address)
        bob = auth_headers("user_bob")

        assert client.get("/api/addresses", headers=bob).json()["data"] == []
        assert client.put(f"/api/addresses/{address['id']}", json={"city": "X"}, headers=bob).status_code == 404
        assert client.post(f"/api/addresses/{address['id']}/default", headers=bob).status_code == 404

    def test_missing_required_fields(self, client, auth_headers):
        response = client.post("/api/addresses", json={"first_name": "Asha"}, headers=auth_headers())

        assert response.status_code == 400
        assert "city" in response.json()["data"]["fields"]
