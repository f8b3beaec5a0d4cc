from datetime import timedelta

import pytest

from config import Settings
from security import (
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_token_round_trip_carries_user_id(settings):
    token = create_access_token("65f0c0ffee0000000000abcd", settings)
    assert decode_access_token(token, settings) == "65f0c0ffee0000000000abcd"


def test_expired_token_is_rejected(settings):
    token = create_access_token("abc", settings, expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenExpiredError):
        decode_access_token(token, settings)


def test_token_signed_with_other_secret_is_invalid(settings):
    other = Settings(jwt_secret="another-secret", bcrypt_rounds=4)
    token = create_access_token("abc", other)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, settings)


def test_malformed_token_is_invalid(settings):
    with pytest.raises(InvalidTokenError):
        decode_access_token("not-a-jwt", settings)


def test_password_hash_verifies_only_the_same_password(settings):
    hashed = hash_password("s3cret", settings)
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed, settings)
    assert not verify_password("wrong", hashed, settings)


def test_verify_against_garbage_hash_is_false(settings):
    assert not verify_password("s3cret", "not-a-bcrypt-hash", settings)
    assert not verify_password("s3cret", "", settings)
