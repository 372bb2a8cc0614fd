from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hr_auth.auth.credentials import CredentialVerifier
from hr_auth.auth.jwt import TokenIssuer, TokenVerifier
from hr_auth.auth.refresh import RefreshFlow
from hr_auth.auth.revocation import RevocationList
from hr_auth.configs.logging_config import get_logger, setup_logging
from hr_auth.configs.settings import Settings, get_settings
from hr_auth.errors import AppError
from hr_auth.repositories.mongo import get_mongo_client, get_mongo_db
from hr_auth.repositories.redis_client import redis_client
from hr_auth.repositories.user_repository import UserRepository
from hr_auth.routers.account_router import router as account_router
from hr_auth.routers.auth_router import router as auth_router
from hr_auth.routers.health_router import router as health_router
from hr_auth.services.account_service import AccountService
from hr_auth.services.auth_service import AuthService, UserStore
from hr_auth.utils.response import failure
from hr_auth.utils.time_utils import Clock, utc_now

log = get_logger(__name__)


def _cors_origins(raw_origins) -> list[str]:
    # .env can provide a comma-separated string
    if isinstance(raw_origins, str):
        return [o.strip() for o in raw_origins.split(",") if o.strip()]
    if isinstance(raw_origins, (list, tuple, set)):
        return list(raw_origins)
    return []


def wire_auth(
    app: FastAPI,
    settings: Settings,
    users: UserStore,
    revocations: RevocationList | None = None,
    clock: Clock = utc_now,
) -> None:
    """Build the auth components and hang them on app.state.

    TokenIssuer/TokenVerifier raise SigningKeyError on bad signing config,
    which aborts startup.
    """
    timeout = settings.store_timeout_seconds
    issuer = TokenIssuer(settings, clock=clock)
    verifier = TokenVerifier(settings, clock=clock)
    credentials = CredentialVerifier(users, timeout=timeout, bcrypt_rounds=settings.bcrypt_rounds)
    refresh_flow = RefreshFlow(verifier, issuer, users, timeout=timeout)

    app.state.settings = settings
    app.state.user_store = users
    app.state.revocations = revocations
    app.state.token_verifier = verifier
    app.state.auth_service = AuthService(
        users,
        credentials,
        issuer,
        refresh_flow,
        timeout=timeout,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    app.state.account_service = AccountService(
        users,
        revocations=revocations,
        timeout=timeout,
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def create_app(
    settings: Settings | None = None,
    *,
    user_store: UserStore | None = None,
    revocations: RevocationList | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Application factory.

    Passing user_store/revocations skips Mongo/Redis wiring (used by tests and
    embedders that bring their own store).
    """
    app = FastAPI(title="hr_auth", version="0.1.0")
    settings = settings or get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

        log.info("request.start method=%s path=%s request_id=%s", method, path, request_id)
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            status_code = getattr(locals().get("response", None), "status_code", "unknown")
            log.info(
                "request.end method=%s path=%s status=%s request_id=%s elapsed_ms=%s",
                method,
                path,
                status_code,
                request_id,
                elapsed_ms,
            )
        return response

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(account_router)

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        log.info("request.error type=app_error status=%s message=%s", exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=failure(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({".".join(str(p) for p in e.get("loc", ())[1:]) for e in exc.errors()})
        log.info("request.error type=validation fields=%s", fields)
        return JSONResponse(status_code=400, content=failure("missing or invalid fields"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error: %s", str(exc))
        return JSONResponse(status_code=500, content=failure("internal server error"))

    @app.on_event("startup")
    async def startup() -> None:
        setup_logging(settings.log_level)

        users = user_store
        if users is None:
            mongo_client = get_mongo_client(settings)
            app.state.mongo_client = mongo_client
            repo = UserRepository(mongo_client, get_mongo_db(mongo_client, settings))
            await repo.ensure_indexes()
            users = repo

        denylist = revocations
        if denylist is None and settings.redis_url:
            await redis_client.connect(settings.redis_url, timeout=settings.store_timeout_seconds)
            denylist = RevocationList(
                redis_client.client,
                ttl_seconds=settings.access_token_minutes * 60,
                prefix=settings.revocation_key_prefix,
            )

        wire_auth(app, settings, users, denylist, clock)
        log.info(
            "startup.done access_minutes=%s refresh_days=%s revocation=%s",
            settings.access_token_minutes,
            settings.refresh_token_days,
            denylist is not None,
        )

    @app.on_event("shutdown")
    async def shutdown() -> None:
        log.info("shutdown.begin")
        await redis_client.close()
        mongo_client = getattr(app.state, "mongo_client", None)
        if mongo_client is not None:
            mongo_client.close()
        log.info("shutdown.done")

    return app


app = create_app()
