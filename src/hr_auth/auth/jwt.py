from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError

from hr_auth.auth.models import Principal, Rejection, Role, TokenPair
from hr_auth.configs.logging_config import get_logger
from hr_auth.configs.settings import Settings
from hr_auth.errors import SigningKeyError
from hr_auth.utils.time_utils import Clock, utc_now

log = get_logger(__name__)

ACCESS_TYPE = "access"
REFRESH_TYPE = "refresh"

SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
_PLACEHOLDER_SECRETS = frozenset({"change-me", "change-me-refresh", "secret", "changeme"})


def ensure_signing_keys(settings: Settings) -> None:
    """
    Fail fast on signing configuration the process cannot safely serve with.

    Raises SigningKeyError; callers let it escape so startup aborts.
    """
    if settings.jwt_alg not in SUPPORTED_ALGORITHMS:
        raise SigningKeyError(f"unsupported jwt algorithm: {settings.jwt_alg}")
    if not settings.jwt_secret or not settings.jwt_refresh_secret:
        raise SigningKeyError("jwt_secret and jwt_refresh_secret must be set")
    if settings.is_production:
        if {settings.jwt_secret, settings.jwt_refresh_secret} & _PLACEHOLDER_SECRETS:
            raise SigningKeyError("placeholder jwt secret in production")
        if settings.jwt_secret == settings.jwt_refresh_secret:
            raise SigningKeyError("access and refresh tokens must use distinct secrets in production")
    try:
        jwt.encode({"probe": True}, settings.jwt_secret, algorithm=settings.jwt_alg)
        jwt.encode({"probe": True}, settings.jwt_refresh_secret, algorithm=settings.jwt_alg)
    except JOSEError as e:
        raise SigningKeyError("jwt secret cannot be used for signing") from e


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TokenIssuer:
    """Mints access/refresh pairs. Holds only immutable signing configuration."""

    def __init__(self, settings: Settings, clock: Clock = utc_now):
        ensure_signing_keys(settings)
        self._settings = settings
        self._clock = clock

    def _registered_claims(self, token_type: str, subject: str, issued_at: int, lifetime: timedelta) -> dict[str, Any]:
        claims: dict[str, Any] = {
            "typ": token_type,
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + int(lifetime.total_seconds()),
            "jti": uuid.uuid4().hex,
        }
        if self._settings.jwt_issuer:
            claims["iss"] = self._settings.jwt_issuer
        if self._settings.jwt_audience:
            claims["aud"] = self._settings.jwt_audience
        return claims

    def issue(self, principal: Principal) -> TokenPair:
        s = self._settings
        issued_at = int(_as_utc(self._clock()).timestamp())

        access_claims = self._registered_claims(
            ACCESS_TYPE, principal.user_id, issued_at, timedelta(minutes=s.access_token_minutes)
        )
        access_claims.update(
            {
                "userId": principal.user_id,
                "email": principal.email,
                "role": principal.role.value,
                "companyId": principal.company_id,
            }
        )
        refresh_claims = self._registered_claims(
            REFRESH_TYPE, principal.user_id, issued_at, timedelta(days=s.refresh_token_days)
        )
        refresh_claims["userId"] = principal.user_id

        log.info(
            "jwt.issue user_id=%s company_id=%s role=%s",
            principal.user_id,
            principal.company_id,
            principal.role.value,
        )
        return TokenPair(
            access_token=jwt.encode(access_claims, s.jwt_secret, algorithm=s.jwt_alg),
            refresh_token=jwt.encode(refresh_claims, s.jwt_refresh_secret, algorithm=s.jwt_alg),
        )


class TokenVerifier:
    """
    Validates presented credentials without touching storage.

    Expected failures come back as a Rejection value, never as an exception.
    """

    def __init__(self, settings: Settings, clock: Clock = utc_now):
        ensure_signing_keys(settings)
        self._settings = settings
        self._clock = clock

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any] | Rejection:
        s = self._settings
        try:
            # Expiry is checked below against the injected clock.
            claims = jwt.decode(
                token,
                secret,
                algorithms=[s.jwt_alg],
                audience=s.jwt_audience,
                issuer=s.jwt_issuer,
                options={"verify_exp": False, "verify_aud": s.jwt_audience is not None},
            )
        except JOSEError as e:
            log.info("jwt.decode failed type=%s error=%s", expected_type, str(e))
            return Rejection.INVALID_TOKEN

        if claims.get("typ") != expected_type:
            log.info("jwt.decode wrong_type expected=%s got=%s", expected_type, claims.get("typ"))
            return Rejection.INVALID_TOKEN

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return Rejection.INVALID_TOKEN
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if _as_utc(self._clock()) >= expires_at:
            log.info("jwt.decode expired type=%s sub=%s", expected_type, claims.get("sub"))
            return Rejection.TOKEN_EXPIRED
        return claims

    def verify_access(self, token: str) -> Principal | Rejection:
        claims = self._decode(token, self._settings.jwt_secret, ACCESS_TYPE)
        if isinstance(claims, Rejection):
            return claims

        user_id = claims.get("userId")
        email = claims.get("email")
        company_id = claims.get("companyId")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            return Rejection.INVALID_TOKEN
        if isinstance(company_id, bool) or not isinstance(company_id, int):
            return Rejection.INVALID_TOKEN
        try:
            role = Role(claims.get("role"))
        except ValueError:
            return Rejection.INVALID_TOKEN

        return Principal(user_id=user_id, email=email, role=role, company_id=company_id)

    def verify_refresh(self, token: str) -> str | Rejection:
        """Returns the referenced user id."""
        claims = self._decode(token, self._settings.jwt_refresh_secret, REFRESH_TYPE)
        if isinstance(claims, Rejection):
            return claims
        user_id = claims.get("userId")
        if not isinstance(user_id, str) or not user_id:
            return Rejection.INVALID_TOKEN
        return user_id
