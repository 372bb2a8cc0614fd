from fastapi import APIRouter, Depends, Request

from hr_auth.auth.dependencies import get_principal, require_role
from hr_auth.auth.models import Principal, Role
from hr_auth.domain.entities.auth import ProvisionUserRequest
from hr_auth.services.account_service import AccountService
from hr_auth.utils.response import success
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["account"])


def _service(request: Request) -> AccountService:
    return request.app.state.account_service


@router.get("/me")
async def me(principal: Principal = Depends(get_principal)) -> dict:
    return success({"user": principal.to_public()})


@router.post("/companies/{company_id}/users")
async def provision_user(
    request: Request,
    company_id: int,
    body: ProvisionUserRequest,
    principal: Principal = Depends(require_role(Role.ADMIN, Role.HR_MANAGER)),
) -> dict:
    log.info(
        "account.provision.start company_id=%s user_id=%s role=%s",
        company_id,
        principal.user_id,
        body.role.value,
    )
    data = await _service(request).provision_user(principal, body)
    return success(data, message="User created")


@router.delete("/companies/{company_id}/users/{user_id}")
async def remove_user(
    request: Request,
    company_id: int,
    user_id: str,
    principal: Principal = Depends(require_role(Role.ADMIN)),
) -> dict:
    log.info("account.remove.start company_id=%s user_id=%s by=%s", company_id, user_id, principal.user_id)
    await _service(request).remove_user(principal, user_id)
    return success({"deleted": True}, message="User deleted")
