from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    EMPLOYEE = "employee"


class Rejection(str, Enum):
    """Expected failure outcomes returned (not raised) by the verifiers."""

    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    PRINCIPAL_NOT_FOUND = "principal_not_found"


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str
    role: Role
    company_id: int

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "companyId": self.company_id,
        }


@dataclass(frozen=True)
class UserRecord:
    """Row shape handed back by the user store."""

    id: str
    email: str
    password_hash: str
    role: Role
    company_id: int

    def to_principal(self) -> Principal:
        return Principal(
            user_id=self.id,
            email=self.email,
            role=self.role,
            company_id=self.company_id,
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
