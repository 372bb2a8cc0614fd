from __future__ import annotations

import asyncio
import secrets
from typing import Any

from hr_auth.auth.credentials import normalize_email
from hr_auth.auth.models import Principal, Role
from hr_auth.auth.passwords import DEFAULT_ROUNDS, hash_password
from hr_auth.auth.revocation import RevocationList
from hr_auth.configs.logging_config import get_logger
from hr_auth.domain.entities.auth import ProvisionUserRequest
from hr_auth.errors import AuthError, BadRequestError, NotFoundError
from hr_auth.services.auth_service import UserStore

log = get_logger(__name__)


def generate_temporary_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


class AccountService:
    """User provisioning and removal inside the caller's own company."""

    def __init__(
        self,
        users: UserStore,
        *,
        revocations: RevocationList | None = None,
        timeout: float | None = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self._users = users
        self._revocations = revocations
        self._timeout = timeout
        self._rounds = bcrypt_rounds

    async def provision_user(self, actor: Principal, req: ProvisionUserRequest) -> dict[str, Any]:
        # Only admins hand out elevated roles.
        if req.role is not Role.EMPLOYEE and actor.role is not Role.ADMIN:
            log.info("account.provision.denied actor=%s requested_role=%s", actor.user_id, req.role.value)
            raise AuthError()

        temporary_password = None
        password = req.password
        if not password:
            password = temporary_password = generate_temporary_password()

        password_hash = await asyncio.to_thread(hash_password, password, self._rounds)
        user, employee = await asyncio.wait_for(
            self._users.create_user(
                company_id=actor.company_id,
                email=normalize_email(req.email),
                password_hash=password_hash,
                role=req.role,
                profile={
                    "first_name": req.firstName,
                    "last_name": req.lastName,
                    "department": req.department,
                    "position": req.position,
                },
            ),
            self._timeout,
        )
        log.info(
            "account.provision.ok company_id=%s user_id=%s role=%s by=%s",
            user.company_id,
            user.id,
            user.role.value,
            actor.user_id,
        )
        out: dict[str, Any] = {
            "user": user.to_principal().to_public(),
            "employeeId": employee["employee_id"],
        }
        if temporary_password is not None:
            out["temporaryPassword"] = temporary_password
        return out

    async def remove_user(self, actor: Principal, user_id: str) -> None:
        if user_id == actor.user_id:
            raise BadRequestError("cannot delete your own account")

        deleted = await asyncio.wait_for(
            self._users.delete_user(company_id=actor.company_id, user_id=user_id),
            self._timeout,
        )
        if not deleted:
            raise NotFoundError("user not found")

        if self._revocations is not None:
            await self._revocations.revoke(user_id)
        log.info("account.remove.ok company_id=%s user_id=%s by=%s", actor.company_id, user_id, actor.user_id)
