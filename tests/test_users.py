"""
Profile and address book API tests.
"""
import pytest

from tests.conftest import SHIPPING_ADDRESS, bearer


class TestProfile:

    async def test_profile_includes_addresses(self, client, customer):
        await client.post("/api/users/addresses", json=SHIPPING_ADDRESS, headers=customer["headers"])

        resp = await client.get("/api/users/profile", headers=customer["headers"])

        body = resp.json()
        assert body["user"]["email"] == "customer@example.com"
        assert body["addresses"][0]["city"] == "Bengaluru"

    async def test_update_profile(self, client, customer):
        resp = await client.put(
            "/api/users/profile", json={"firstName": "Ananya", "phone": "9123456780"}, headers=customer["headers"]
        )

        assert resp.status_code == 200
        assert resp.json()["user"]["firstName"] == "Ananya"
        assert resp.json()["user"]["phone"] == "9123456780"

    async def test_update_profile_without_fields(self, client, customer):
        resp = await client.put("/api/users/profile", json={}, headers=customer["headers"])

        assert resp.status_code == 400
        assert resp.json() == {"error": "No fields to update."}

    async def test_phone_taken_by_another_user(self, client, customer, signup):
        await signup("other@example.com", phone="9123456780")

        resp = await client.put("/api/users/profile", json={"phone": "9123456780"}, headers=customer["headers"])

        assert resp.status_code == 409

    async def test_change_password(self, client, customer):
        resp = await client.put(
            "/api/users/change-password",
            json={"currentPassword": "secret123", "newPassword": "newsecret456"},
            headers=customer["headers"],
        )
        old = await client.post("/api/auth/login", json={"email": "customer@example.com", "password": "secret123"})
        new = await client.post("/api/auth/login", json={"email": "customer@example.com", "password": "newsecret456"})

        assert resp.status_code == 200
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_change_password_requires_current_password(self, client, customer):
        resp = await client.put(
            "/api/users/change-password",
            json={"currentPassword": "wrong", "newPassword": "newsecret456"},
            headers=customer["headers"],
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Current password is incorrect."}


class TestAddresses:

    async def _add(self, client, headers, **fields):
        resp = await client.post("/api/users/addresses", json={**SHIPPING_ADDRESS, **fields}, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["address"]

    async def test_new_default_unsets_previous_default_of_same_type(self, client, customer):
        first = await self._add(client, customer["headers"], isDefault=True)
        billing = await self._add(client, customer["headers"], addressType="billing", isDefault=True)
        second = await self._add(client, customer["headers"], city="Mysuru", isDefault=True)

        resp = await client.get("/api/users/addresses", headers=customer["headers"])

        defaults = {a["id"]: a["isDefault"] for a in resp.json()["addresses"]}
        assert defaults == {first["id"]: False, billing["id"]: True, second["id"]: True}

    async def test_set_default(self, client, customer):
        first = await self._add(client, customer["headers"], isDefault=True)
        second = await self._add(client, customer["headers"], city="Mysuru")

        resp = await client.put(f"/api/users/addresses/{second['id']}/default", headers=customer["headers"])
        listing = await client.get("/api/users/addresses", headers=customer["headers"])

        assert resp.status_code == 200
        addresses = listing.json()["addresses"]
        assert addresses[0]["id"] == second["id"]
        assert {a["id"]: a["isDefault"] for a in addresses} == {first["id"]: False, second["id"]: True}

    async def test_update_and_delete(self, client, customer):
        address = await self._add(client, customer["headers"])

        updated = await client.put(
            f"/api/users/addresses/{address['id']}", json={"city": "Chennai"}, headers=customer["headers"]
        )
        deleted = await client.delete(f"/api/users/addresses/{address['id']}", headers=customer["headers"])
        listing = await client.get("/api/users/addresses", headers=customer["headers"])

        assert updated.json()["address"]["city"] == "Chennai"
        assert deleted.status_code == 200
        assert listing.json()["addresses"] == []

    async def test_other_users_address_is_not_found(self, client, customer, signup):
        address = await self._add(client, customer["headers"])
        stranger = bearer((await signup("stranger@example.com"))["token"])

        resp = await client.put(f"/api/users/addresses/{address['id']}", json={"city": "Pune"}, headers=stranger)
        delete = await client.delete(f"/api/users/addresses/{address['id']}", headers=stranger)

        assert resp.status_code == 404
        assert delete.status_code == 404
        assert resp.json() == {"error": "Address not found."}

    @pytest.mark.parametrize("field", ["fullName", "city", "country"])
    async def test_required_fields_cannot_be_cleared(self, client, customer, field):
        address = await self._add(client, customer["headers"])

        resp = await client.put(
            f"/api/users/addresses/{address['id']}", json={field: None}, headers=customer["headers"]
        )

        assert resp.status_code == 400
        listing = await client.get("/api/users/addresses", headers=customer["headers"])
        assert listing.json()["addresses"][0][field] == address[field]
