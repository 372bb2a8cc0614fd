from __future__ import annotations

import base64
import json
from datetime import timedelta

import pytest

from conftest import FixedClock
from hr_auth.auth.jwt import TokenIssuer, TokenVerifier, ensure_signing_keys
from hr_auth.auth.models import Principal, Rejection, Role
from hr_auth.errors import SigningKeyError


@pytest.fixture
def principal() -> Principal:
    return Principal(user_id="u-1", email="a@x.com", role=Role.HR_MANAGER, company_id=7)


def _tamper(token: str, **changes) -> str:
    header, payload, sig = token.split(".")
    padded = payload + "=" * (-len(payload) % 4)
    claims = json.loads(base64.urlsafe_b64decode(padded))
    claims.update(changes)
    forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    return f"{header}.{forged}.{sig}"


@pytest.mark.parametrize("role", list(Role))
def test_issue_then_verify_round_trips_every_claim(settings, clock, role) -> None:
    p = Principal(user_id="u-42", email="hr@acme.com", role=role, company_id=3)
    pair = TokenIssuer(settings, clock).issue(p)

    assert TokenVerifier(settings, clock).verify_access(pair.access_token) == p


def test_expiry_boundary(settings, clock, principal) -> None:
    issued_at = clock.now
    pair = TokenIssuer(settings, clock).issue(principal)
    expires_at = issued_at + timedelta(minutes=settings.access_token_minutes)

    probe = FixedClock(expires_at - timedelta(microseconds=1))
    verifier = TokenVerifier(settings, probe)
    assert verifier.verify_access(pair.access_token) == principal

    probe.now = expires_at
    assert verifier.verify_access(pair.access_token) is Rejection.TOKEN_EXPIRED


def test_tampered_claims_are_invalid(settings, clock, principal) -> None:
    pair = TokenIssuer(settings, clock).issue(principal)
    verifier = TokenVerifier(settings, clock)

    assert verifier.verify_access(_tamper(pair.access_token, role="admin")) is Rejection.INVALID_TOKEN
    assert verifier.verify_access(_tamper(pair.access_token, companyId=8)) is Rejection.INVALID_TOKEN


def test_expired_and_forged_is_invalid_not_expired(settings, clock, principal) -> None:
    pair = TokenIssuer(settings, clock).issue(principal)
    clock.advance(days=1)

    forged = _tamper(pair.access_token, companyId=99)
    assert TokenVerifier(settings, clock).verify_access(forged) is Rejection.INVALID_TOKEN


def test_token_signed_with_other_secret_is_invalid(settings, clock, principal) -> None:
    other = settings.model_copy(update={"jwt_secret": "another-access-secret-fedcba9876543210"})
    pair = TokenIssuer(other, clock).issue(principal)

    assert TokenVerifier(settings, clock).verify_access(pair.access_token) is Rejection.INVALID_TOKEN


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
def test_garbage_is_invalid(settings, clock, garbage) -> None:
    assert TokenVerifier(settings, clock).verify_access(garbage) is Rejection.INVALID_TOKEN


def test_refresh_token_is_not_an_access_token(settings, clock, principal) -> None:
    pair = TokenIssuer(settings, clock).issue(principal)
    verifier = TokenVerifier(settings, clock)

    assert verifier.verify_access(pair.refresh_token) is Rejection.INVALID_TOKEN
    assert verifier.verify_refresh(pair.access_token) is Rejection.INVALID_TOKEN
    assert verifier.verify_refresh(pair.refresh_token) == principal.user_id


def test_type_tag_checked_even_with_shared_secret(settings, clock, principal) -> None:
    shared = settings.model_copy(update={"jwt_refresh_secret": settings.jwt_secret})
    pair = TokenIssuer(shared, clock).issue(principal)
    verifier = TokenVerifier(shared, clock)

    assert verifier.verify_access(pair.refresh_token) is Rejection.INVALID_TOKEN
    assert verifier.verify_refresh(pair.access_token) is Rejection.INVALID_TOKEN


def test_refresh_token_carries_only_user_reference(settings, clock, principal) -> None:
    pair = TokenIssuer(settings, clock).issue(principal)
    payload = pair.refresh_token.split(".")[1]
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))

    assert claims["userId"] == principal.user_id
    assert "role" not in claims and "companyId" not in claims and "email" not in claims


def test_refresh_token_outlives_access_token(settings, clock, principal) -> None:
    pair = TokenIssuer(settings, clock).issue(principal)
    clock.advance(days=1)
    verifier = TokenVerifier(settings, clock)

    assert verifier.verify_access(pair.access_token) is Rejection.TOKEN_EXPIRED
    assert verifier.verify_refresh(pair.refresh_token) == principal.user_id

    clock.advance(days=settings.refresh_token_days)
    assert verifier.verify_refresh(pair.refresh_token) is Rejection.TOKEN_EXPIRED


def test_each_issue_produces_distinct_tokens(settings, clock, principal) -> None:
    issuer = TokenIssuer(settings, clock)
    first, second = issuer.issue(principal), issuer.issue(principal)

    assert first.access_token != second.access_token
    assert first.refresh_token != second.refresh_token


def test_issuer_and_audience_are_enforced(settings, clock, principal) -> None:
    scoped = settings.model_copy(update={"jwt_issuer": "hr-auth", "jwt_audience": "hr-web"})
    pair = TokenIssuer(scoped, clock).issue(principal)

    assert TokenVerifier(scoped, clock).verify_access(pair.access_token) == principal
    other_aud = scoped.model_copy(update={"jwt_audience": "payroll-batch"})
    assert TokenVerifier(other_aud, clock).verify_access(pair.access_token) is Rejection.INVALID_TOKEN


@pytest.mark.parametrize(
    "changes",
    [
        {"jwt_secret": ""},
        {"jwt_refresh_secret": ""},
        {"jwt_alg": "none"},
        {"jwt_alg": "RS256"},
        {"ENVIRONMENT": "production", "jwt_secret": "change-me"},
        {"ENVIRONMENT": "production", "jwt_refresh_secret": "test-access-secret-0123456789abcdef"},
    ],
)
def test_bad_signing_configuration_is_fatal(settings, clock, changes) -> None:
    bad = settings.model_copy(update=changes)
    with pytest.raises(SigningKeyError):
        ensure_signing_keys(bad)
    with pytest.raises(SigningKeyError):
        TokenIssuer(bad, clock)


def test_production_accepts_distinct_real_secrets(settings) -> None:
    ensure_signing_keys(settings.model_copy(update={"ENVIRONMENT": "production"}))
