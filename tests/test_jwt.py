"""Token signing/verification tests."""

import uuid

import jwt as pyjwt
import pytest

from bookhub.auth.jwt import TokenError, create_access_token, verify_token


def test_round_trip_recovers_username_and_id():
    user_id = uuid.uuid4()
    token = create_access_token("alice", user_id)

    claims = verify_token(token)
    assert claims["username"] == "alice"
    assert claims["id"] == str(user_id)


def test_token_signed_with_other_secret_is_rejected():
    token = create_access_token("alice", uuid.uuid4(), secret="someone-elses-secret")
    with pytest.raises(TokenError, match="Invalid token"):
        verify_token(token)


def test_tampered_token_is_rejected():
    token = create_access_token("alice", uuid.uuid4())
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    with pytest.raises(TokenError):
        verify_token(tampered)


def test_expired_token_is_rejected():
    token = create_access_token("alice", uuid.uuid4(), expires_minutes=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_zero_expiry_means_no_exp_claim():
    token = create_access_token("alice", uuid.uuid4(), expires_minutes=0)
    assert "exp" not in verify_token(token)


def test_token_without_identity_claims_is_rejected():
    from bookhub.config import settings

    token = pyjwt.encode({"sub": "alice"}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(TokenError):
        verify_token(token)
