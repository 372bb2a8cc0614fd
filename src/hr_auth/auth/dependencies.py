from __future__ import annotations

from fastapi import Depends, Header, Request

from hr_auth.auth.guard import Decision, authorize
from hr_auth.auth.jwt import TokenVerifier
from hr_auth.auth.models import Principal, Rejection, Role
from hr_auth.errors import AuthError
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError()
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError()
    return token


def _token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def get_principal(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Principal:
    """
    Resolve the authenticated principal from the bearer access token.

    Claims are trusted as signed; the user store is not consulted.
    """
    try:
        token = _bearer_token(authorization)
    except AuthError:
        log.info("auth.missing_bearer_token path=%s", request.url.path)
        raise

    result = _token_verifier(request).verify_access(token)
    if isinstance(result, Rejection):
        log.info("auth.token_rejected reason=%s path=%s", result.value, request.url.path)
        raise AuthError()

    revocations = getattr(request.app.state, "revocations", None)
    if revocations is not None and await revocations.is_revoked(result.user_id):
        log.info("auth.token_revoked user_id=%s", result.user_id)
        raise AuthError()

    log.info(
        "auth.principal company_id=%s user_id=%s role=%s",
        result.company_id,
        result.user_id,
        result.role.value,
    )
    return result


def _path_company_id(request: Request) -> int | None:
    raw = request.path_params.get("company_id")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        # -1 never matches a real tenant
        return -1


def require_role(*roles: Role):
    """
    Dependency factory applying the authorization guard.

    Routes with a `company_id` path parameter are also tenant-checked.
    """
    allowed = frozenset(roles)

    async def dep(request: Request, principal: Principal = Depends(get_principal)) -> Principal:
        company_id = _path_company_id(request)
        if authorize(principal, allowed, company_id) is Decision.DENY:
            log.info(
                "auth.denied user_id=%s role=%s company_id=%s resource_company_id=%s",
                principal.user_id,
                principal.role.value,
                principal.company_id,
                company_id,
            )
            raise AuthError()
        return principal

    return dep
