import pytest
from jose import JWTError, jwt

from homefax.core.config import get_settings
from homefax.core.security import create_access_token, decode_token, hash_password, verify_password


def test_token_round_trip_skips_empty_claims():
    token = create_access_token("abc-123", email=None, wallet_address="0xWallet")

    payload = decode_token(token)

    assert payload["sub"] == "abc-123"
    assert payload["wallet_address"] == "0xWallet"
    assert "email" not in payload


def test_foreign_issuer_is_rejected():
    settings = get_settings()
    token = jwt.encode({"sub": "x", "iss": "someone-else"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    with pytest.raises(JWTError):
        decode_token(token)


def test_password_verification():
    hashed = hash_password("password123")

    assert verify_password("password123", hashed)[0] is True
    assert verify_password("wrong", hashed)[0] is False
