"""Contract tests for room and tenant endpoints."""

from decimal import Decimal

from pgmanager.models import Tenant


class TestRoomEndpoints:
    """Room management endpoints."""

    def test_create_and_list_rooms(self, client, owner_headers):
        created = client.post(
            "/api/rooms",
            headers=owner_headers,
            json={"room_number": "G1", "rent_amount": 5500, "capacity": 2, "floor": 0},
        )
        assert created.status_code == 201
        body = created.json()
        assert body["status"] == "available"
        assert body["is_available"] is True
        assert Decimal(body["rent_amount"]) == Decimal("5500")

        listed = client.get("/api/rooms", headers=owner_headers).json()
        assert [room["room_number"] for room in listed] == ["G1"]

    def test_update_room_status(self, client, owner_headers):
        room_id = client.post(
            "/api/rooms", headers=owner_headers, json={"room_number": "G2", "rent_amount": 5000}
        ).json()["id"]

        response = client.patch(
            f"/api/rooms/{room_id}", headers=owner_headers, json={"status": "maintenance"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "maintenance"
        assert response.json()["is_available"] is False


class TestTenantEndpoints:
    """Tenant assignment and removal."""

    def test_add_tenant_occupies_room(self, client, owner_headers):
        response = client.post(
            "/api/tenants",
            headers=owner_headers,
            json={
                "room_number": "305",
                "fullname": "Kiran Das",
                "email": "kiran@example.com",
                "rent_amount": 7000,
                "security_deposit": 14000,
                "join_date": "2024-03-10",
            },
        )

        assert response.status_code == 201
        tenant = response.json()
        assert tenant["status"] == "active"
        assert tenant["join_date"] == "2024-03-10"
        assert Decimal(tenant["security_deposit"]) == Decimal("14000")

        room = client.get("/api/rooms", headers=owner_headers).json()[0]
        assert room["tenant_id"] == tenant["id"]
        assert room["status"] == "occupied"
        assert room["current_occupancy"] == 1

    def test_remove_tenant(self, client, owner_headers, db_session, tenant):
        tenant_id = tenant.id

        response = client.delete(f"/api/tenants/{tenant_id}", headers=owner_headers)

        assert response.status_code == 204
        assert db_session.get(Tenant, tenant_id) is None
        room = client.get("/api/rooms", headers=owner_headers).json()[0]
        assert room["tenant_id"] is None
        assert room["status"] == "available"
