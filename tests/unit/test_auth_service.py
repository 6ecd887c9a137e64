"""Unit tests for principal tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from pgmanager.services.auth_service import (
    AuthenticationError,
    Principal,
    Role,
    extract_bearer,
    issue_token,
    require_role,
    verify_token,
)
from pgmanager.services.errors import ForbiddenError

SECRET = "unit-test-secret-0123456789abcdef"


class TestTokens:
    """Tests for issue_token / verify_token."""

    def test_round_trip(self):
        principal = Principal(user_id=42, role=Role.OWNER)
        assert verify_token(issue_token(principal, SECRET), SECRET) == principal

    def test_claims(self):
        issued_at = datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)
        token = issue_token(
            Principal(user_id=7, role=Role.TENANT), SECRET, expires_in=timedelta(hours=1), now=issued_at
        )

        claims = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})

        assert claims["sub"] == "7"
        assert claims["role"] == "tenant"
        assert claims["iat"] == int(issued_at.timestamp())
        assert claims["exp"] - claims["iat"] == 3600

    def test_expired_token_rejected(self):
        token = issue_token(
            Principal(user_id=1, role=Role.OWNER),
            SECRET,
            expires_in=timedelta(minutes=5),
            now=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        with pytest.raises(AuthenticationError, match="expired") as exc_info:
            verify_token(token, SECRET)
        assert exc_info.value.http_status == 401

    def test_wrong_secret_rejected(self):
        token = issue_token(Principal(user_id=1, role=Role.OWNER), SECRET)
        with pytest.raises(AuthenticationError, match="Invalid token"):
            verify_token(token, "other-secret-0123456789abcdef-xyz")

    def test_role_escalation_rejected(self):
        token = issue_token(Principal(user_id=1, role=Role.TENANT), SECRET)
        header, _, signature = token.split(".")
        forged_claims = jwt.encode(
            {"sub": "1", "role": "owner", "exp": 4102444800}, "attacker-key-0123456789abcdef-xyz"
        ).split(".")[1]
        with pytest.raises(AuthenticationError):
            verify_token(f"{header}.{forged_claims}.{signature}", SECRET)

    def test_unknown_role_rejected(self):
        token = jwt.encode({"sub": "1", "role": "admin", "exp": 4102444800}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Malformed"):
            verify_token(token, SECRET)

    def test_missing_expiry_rejected(self):
        token = jwt.encode({"sub": "1", "role": "owner"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            verify_token(token, SECRET)

    @pytest.mark.parametrize("token", ["", "owner:1", "a.b.c", None])
    def test_malformed_rejected(self, token):
        with pytest.raises(AuthenticationError) as exc_info:
            verify_token(token, SECRET)
        assert exc_info.value.http_status == 401


class TestHeaders:
    """Tests for bearer extraction and role checks."""

    def test_extract_bearer(self):
        assert extract_bearer("Bearer abc.def.ghi") == "abc.def.ghi"
        assert extract_bearer("bearer  xyz ") == "xyz"

    @pytest.mark.parametrize("header", [None, "", "Basic Zm9v", "Bearer "])
    def test_extract_bearer_missing(self, header):
        assert extract_bearer(header) is None

    def test_require_role(self):
        principal = Principal(user_id=3, role=Role.TENANT)
        assert require_role(principal, Role.TENANT) is principal
        with pytest.raises(ForbiddenError, match="Only owners"):
            require_role(principal, Role.OWNER)
