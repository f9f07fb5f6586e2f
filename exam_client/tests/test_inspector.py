"""Tests for unverified token decoding and the 30-second expiry boundary."""
import json
import time

import jwt
import pytest
from jwt.utils import base64url_encode

from exam_client.credential_store import CredentialStore, StorageKey
from exam_client.inspector import decode, is_authenticated, is_expired, token_claims

SECRET = "exam-client-test-secret-0123456789abcdef"


def _token(**claims) -> str:
    return jwt.encode(claims, SECRET, algorithm="HS256")


def test_decode_returns_payload_without_verifying_signature():
    token = _token(sub="42", exp=2_000_000_000, email="a@example.com")
    assert decode(token) == {"sub": "42", "exp": 2_000_000_000, "email": "a@example.com"}


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b", "a.b.c", "x.!!!.y", 12345])
def test_decode_malformed_returns_none(token):
    assert decode(token) is None


def test_decode_reads_payload_even_with_unusual_header():
    payload = base64url_encode(json.dumps({"sub": "5", "exp": 2_000_000_000}).encode()).decode()
    token = f"not-a-jose-header.{payload}.sig"
    assert decode(token) == {"sub": "5", "exp": 2_000_000_000}
    assert is_expired(token, now=1_700_000_000) is False


def test_exp_at_skew_boundary_is_expired():
    now = 1_700_000_000
    assert is_expired(_token(exp=now + 30), skew_seconds=30, now=now) is True
    assert is_expired(_token(exp=now + 29), skew_seconds=30, now=now) is True


def test_exp_beyond_skew_is_not_expired():
    now = 1_700_000_000
    assert is_expired(_token(exp=now + 31), skew_seconds=30, now=now) is False
    assert is_expired(_token(exp=now + 3600), now=now) is False


def test_past_exp_is_expired():
    assert is_expired(_token(exp=int(time.time()) - 10)) is True


@pytest.mark.parametrize("claims", [{"sub": "1"}, {"exp": "soon"}, {"exp": None}, {"exp": True}])
def test_missing_or_non_numeric_exp_is_expired(claims):
    assert is_expired(_token(**claims)) is True


def test_undecodable_token_is_expired():
    assert is_expired("garbage") is True


def test_is_authenticated():
    store = CredentialStore()
    assert is_authenticated(store) is False
    store.set(StorageKey.ACCESS_TOKEN, _token(exp=int(time.time()) + 600))
    assert is_authenticated(store) is True
    store.set(StorageKey.ACCESS_TOKEN, _token(exp=int(time.time()) + 10))
    assert is_authenticated(store) is False


def test_token_claims_builds_user_view():
    token = _token(sub="9", email="e@x.org", organizationId=3, exp=2_000_000_000)
    assert token_claims(token) == {"id": "9", "email": "e@x.org", "organizationId": 3, "roles": []}
    assert token_claims("bad") is None
