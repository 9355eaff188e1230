"""
Tests for bearer token issuing and validation.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from hookrelay.core.exceptions import AuthenticationError
from hookrelay.services.token_service import TokenService

SECRET = "unit-test-secret"


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


@pytest.fixture
def service() -> TokenService:
    return TokenService(secret_key=SECRET)


@pytest.mark.unit
class TestTokenService:
    def test_round_trip_returns_subject(self, service):
        token = service.create_access_token("user-1", email="a@example.com")

        assert service.validate(token) == "user-1"
        claims = service.decode_token(token)
        assert claims["email"] == "a@example.com"
        assert claims["exp"] > claims["iat"]

    @pytest.mark.parametrize("algorithm", ["HS256", "HS384", "HS512"])
    def test_hmac_family_accepted(self, service, algorithm):
        token = jwt.encode({"sub": "user-1"}, SECRET, algorithm=algorithm)
        assert service.validate(token) == "user-1"

    def test_expired_token_rejected(self, service):
        token = service.create_access_token("user-1", expires_delta=timedelta(seconds=-10))

        with pytest.raises(AuthenticationError) as exc_info:
            service.validate(token)
        assert exc_info.value.reason == "token expired"
        assert exc_info.value.status_code == 401

    def test_wrong_secret_rejected(self, service):
        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            service.validate(token)

    def test_none_algorithm_rejected(self, service):
        token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64({'sub': 'user-1'})}."

        with pytest.raises(AuthenticationError) as exc_info:
            service.validate(token)
        assert "unexpected signing method" in exc_info.value.reason

    def test_asymmetric_algorithm_header_rejected(self, service):
        # Signed with HMAC but claiming RS256
        signing_input = f"{_b64({'alg': 'RS256', 'typ': 'JWT'})}.{_b64({'sub': 'user-1'})}"
        token = f"{signing_input}.c2lnbmF0dXJl"

        with pytest.raises(AuthenticationError) as exc_info:
            service.validate(token)
        assert "RS256" in exc_info.value.reason

    @pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c"])
    def test_malformed_token_rejected(self, service, token):
        with pytest.raises(AuthenticationError):
            service.validate(token)

    def test_missing_subject_rejected(self, service):
        token = jwt.encode({"email": "a@example.com"}, SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError) as exc_info:
            service.validate(token)
        assert exc_info.value.reason == "user id not found in token"

    @pytest.mark.parametrize("subject", ["", 42])
    def test_non_string_or_empty_subject_rejected(self, service, subject):
        token = jwt.encode({"sub": subject}, SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError):
            service.validate(token)

    def test_id_claim_fallback(self, service):
        expire = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"id": "user-7", "exp": expire}, SECRET, algorithm="HS256")

        assert service.validate(token) == "user-7"

    def test_generic_message_hides_reason(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            service.validate("garbage")
        assert exc_info.value.message == "Invalid or expired token"
