from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from hr_auth.auth.models import Role


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


NonBlankStr = Annotated[str, Field(min_length=1), AfterValidator(_not_blank)]


class LoginRequest(BaseModel):
    email: NonBlankStr
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    email: NonBlankStr
    password: str = Field(min_length=1)
    companyName: NonBlankStr
    industry: str | None = None


class RefreshRequest(BaseModel):
    refreshToken: NonBlankStr


class ProvisionUserRequest(BaseModel):
    email: NonBlankStr
    # Omitted: a temporary password is generated and returned once.
    password: str | None = None
    role: Role = Role.EMPLOYEE
    firstName: str | None = None
    lastName: str | None = None
    department: str | None = None
    position: str | None = None
