from __future__ import annotations

from fastapi import APIRouter, Request

from hr_auth.domain.entities.auth import LoginRequest, RefreshRequest, RegisterRequest
from hr_auth.services.auth_service import AuthService, session_payload
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


@router.post("/login")
async def login(request: Request, body: LoginRequest) -> dict:
    log.info("auth.login.start")
    session = await _service(request).login(body.email, body.password)
    return session_payload(session)


@router.post("/register")
async def register(request: Request, body: RegisterRequest) -> dict:
    log.info("auth.register.start")
    session = await _service(request).register(
        body.email, body.password, body.companyName, body.industry
    )
    return session_payload(session)


@router.post("/refresh")
async def refresh(request: Request, body: RefreshRequest) -> dict:
    log.info("auth.refresh.start")
    session = await _service(request).refresh(body.refreshToken)
    return session_payload(session)
