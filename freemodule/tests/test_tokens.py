"""
Unit tests for token issue/verify
"""
from datetime import timedelta

import pytest
from jose import jwt

from freemodule.errors import ErrorCode, UnauthorizedError
from freemodule.security.tokens import TokenService, TokenUser

SECRET = "unit-test-secret"


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(SECRET, expire_minutes=60)


def assert_rejected(tokens: TokenService, token: str, code: str):
    with pytest.raises(UnauthorizedError) as exc_info:
        tokens.verify(token)
    assert exc_info.value.code == code
    assert exc_info.value.status_code == 401


def test_issued_token_verifies(tokens):
    token = tokens.issue(7, "ana@ustp.edu.ph")
    assert tokens.verify(token) == TokenUser(id=7, email="ana@ustp.edu.ph")


def test_claims_include_expiry_and_issued_at(tokens):
    claims = jwt.decode(tokens.issue(7, "ana@ustp.edu.ph"), SECRET, algorithms=["HS256"])
    assert claims["id"] == 7
    assert claims["exp"] - claims["iat"] == 3600


def test_expired_token(tokens):
    token = tokens.issue(7, "ana@ustp.edu.ph", expires_delta=timedelta(seconds=-30))
    assert_rejected(tokens, token, ErrorCode.TOKEN_EXPIRED)


def test_wrong_secret(tokens):
    other = TokenService("some-other-secret")
    assert_rejected(tokens, other.issue(7, "ana@ustp.edu.ph"), ErrorCode.INVALID_TOKEN)


def test_tampered_token(tokens):
    token = tokens.issue(7, "ana@ustp.edu.ph")
    head, body, signature = token.split(".")
    tampered = ".".join([head, body, signature[::-1]])
    assert_rejected(tokens, tampered, ErrorCode.INVALID_TOKEN)


def test_garbage_token(tokens):
    assert_rejected(tokens, "not-a-jwt", ErrorCode.INVALID_TOKEN)


@pytest.mark.parametrize("claims", [
    {"email": "ana@ustp.edu.ph"},
    {"id": 7},
    {"id": "7", "email": "ana@ustp.edu.ph"},
    {"id": True, "email": "ana@ustp.edu.ph"},
    {"id": 7, "email": ""},
])
def test_signed_token_with_bad_payload(tokens, claims):
    token = jwt.encode(claims, SECRET, algorithm="HS256")
    assert_rejected(tokens, token, ErrorCode.INVALID_PAYLOAD)


def test_secret_is_required():
    with pytest.raises(ValueError):
        TokenService("")
