"""Contract tests for authentication and the error envelope."""

from datetime import datetime, timedelta, timezone

from pgmanager.services.auth_service import Principal, Role, issue_token


class TestAuthentication:
    """Bearer token handling on protected routes."""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_missing_token(self, client):
        response = client.get("/api/rooms")

        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "not_authenticated", "message": "Missing bearer token"}
        }

    def test_token_signed_with_other_secret(self, client, owner, auth_headers):
        headers = auth_headers(owner.id, Role.OWNER, secret="someone-elses-secret-0123456789abcdef")

        response = client.get("/api/rooms", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "not_authenticated"

    def test_expired_token(self, client, owner, app_config):
        token = issue_token(
            Principal(user_id=owner.id, role=Role.OWNER),
            app_config.token_secret,
            expires_in=timedelta(minutes=5),
            now=datetime.now(timezone.utc) - timedelta(days=1),
        )

        response = client.get("/api/rooms", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "not_authenticated", "message": "Token has expired"}
        }

    def test_tenant_cannot_use_owner_routes(self, client, tenant, auth_headers):
        response = client.get("/api/payments", headers=auth_headers(tenant.id, Role.TENANT))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"

    def test_owner_cannot_use_tenant_routes(self, client, owner_headers):
        response = client.get("/api/payments/my-payments", headers=owner_headers)
        assert response.status_code == 403


class TestErrorEnvelope:
    """Business-rule failures map to HTTP statuses."""

    def test_not_found(self, client, owner_headers):
        response = client.get("/api/settlements/999", headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_forbidden_for_other_owner(self, client, tenant, other_owner, auth_headers):
        response = client.post(
            f"/api/payments/generate/{tenant.id}",
            headers=auth_headers(other_owner.id, Role.OWNER),
        )
        assert response.status_code == 403

    def test_conflict(self, client, owner_headers, tenant):
        response = client.post(
            "/api/tenants",
            headers=owner_headers,
            json={
                "room_number": "101",
                "fullname": "Late Comer",
                "email": "late@example.com",
                "rent_amount": 5000,
            },
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict"

    def test_validation(self, client, owner_headers):
        response = client.post(
            "/api/rooms",
            headers=owner_headers,
            json={"room_number": "9", "rent_amount": -1},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"
