from __future__ import annotations

from fastapi import APIRouter, Request

from hr_auth.utils.response import success

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    state = request.app.state
    settings = getattr(state, "settings", None)
    return success(
        {
            "ok": True,
            "service": settings.SERVICE_NAME if settings else None,
            "revocation": getattr(state, "revocations", None) is not None,
        },
        message="healthy",
    )
