from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from hr_auth.auth.models import Role, UserRecord
from hr_auth.auth.passwords import hash_password
from hr_auth.configs.settings import Settings
from hr_auth.errors import DuplicateAccountError
from hr_auth.main import create_app
from hr_auth.repositories.user_repository import employee_code

TEST_ROUNDS = 4


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryUserStore:
    def __init__(self):
        self.users: dict[str, UserRecord] = {}
        self.companies: dict[int, dict[str, Any]] = {}
        self.employees: list[dict[str, Any]] = []
        self.lookups = 0

    def add_user(self, email: str, password: str, role: Role, company_id: int) -> UserRecord:
        user = UserRecord(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password, TEST_ROUNDS),
            role=role,
            company_id=company_id,
        )
        self.users[user.id] = user
        return user

    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        self.lookups += 1
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        self.lookups += 1
        return self.users.get(user_id)

    def _employee(self, user: UserRecord, profile: dict[str, Any]) -> dict[str, Any]:
        n = sum(1 for e in self.employees if e["company_id"] == user.company_id) + 1
        doc = {
            "user_id": user.id,
            "employee_id": employee_code(n),
            "email": user.email,
            "company_id": user.company_id,
            "status": "active",
            **profile,
        }
        self.employees.append(doc)
        return doc

    async def register_company(self, *, email, password_hash, company_name, industry) -> UserRecord:
        if any(u.email == email for u in self.users.values()):
            raise DuplicateAccountError()
        company_id = len(self.companies) + 1
        self.companies[company_id] = {"name": company_name, "industry": industry or "Technology"}
        user = UserRecord(str(uuid.uuid4()), email, password_hash, Role.ADMIN, company_id)
        self.users[user.id] = user
        self._employee(
            user,
            {
                "first_name": "Admin",
                "last_name": "User",
                "department": "Administration",
                "position": "Administrator",
            },
        )
        return user

    async def create_user(self, *, company_id, email, password_hash, role, profile):
        if any(u.email == email for u in self.users.values()):
            raise DuplicateAccountError()
        user = UserRecord(str(uuid.uuid4()), email, password_hash, role, company_id)
        self.users[user.id] = user
        return user, self._employee(user, profile)

    async def delete_user(self, *, company_id: int, user_id: str) -> bool:
        user = self.users.get(user_id)
        if user is None or user.company_id != company_id:
            return False
        del self.users[user_id]
        self.employees = [e for e in self.employees if e["user_id"] != user_id]
        return True


class FailingUserStore(InMemoryUserStore):
    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        raise ConnectionError("mongo down at 10.0.0.7:27017")


class InMemoryRevocationList:
    def __init__(self):
        self.revoked: set[str] = set()

    async def revoke(self, user_id: str) -> None:
        self.revoked.add(user_id)

    async def is_revoked(self, user_id: str) -> bool:
        return user_id in self.revoked


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret="test-access-secret-0123456789abcdef",
        jwt_refresh_secret="test-refresh-secret-0123456789abcdef",
        access_token_minutes=15,
        refresh_token_days=7,
        bcrypt_rounds=TEST_ROUNDS,
        store_timeout_seconds=2.0,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def revocations() -> InMemoryRevocationList:
    return InMemoryRevocationList()


@pytest.fixture
def client(settings, store, revocations, clock):
    app = create_app(settings, user_store=store, revocations=revocations, clock=clock)
    with TestClient(app) as c:
        yield c


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
