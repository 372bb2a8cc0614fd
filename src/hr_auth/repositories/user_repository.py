from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from hr_auth.auth.models import Role, UserRecord
from hr_auth.configs.logging_config import get_logger
from hr_auth.errors import DuplicateAccountError

log = get_logger(__name__)

DEFAULT_INDUSTRY = "Technology"


def employee_code(n: int) -> str:
    return f"EMP{n:03d}"


def _to_record(doc: dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        email=doc["email"],
        password_hash=doc["password_hash"],
        role=Role(doc["role"]),
        company_id=int(doc["company_id"]),
    )


class UserRepository:
    """
    Mongo-backed user store.

    Every query that reads or writes tenant data filters by company_id.
    Multi-document writes run in a transaction, which needs a replica set.
    """

    def __init__(self, client: AsyncIOMotorClient, db: AsyncIOMotorDatabase):
        self._client = client
        self._db = db
        self._users = db["users"]
        self._companies = db["companies"]
        self._employees = db["employees"]
        self._counters = db["counters"]

    async def ensure_indexes(self) -> None:
        log.info("repo.user.ensure_indexes start")
        await self._users.create_index([("email", 1)], unique=True)
        await self._users.create_index([("company_id", 1), ("role", 1)])
        await self._employees.create_index([("company_id", 1), ("employee_id", 1)], unique=True)
        await self._employees.create_index([("company_id", 1), ("user_id", 1)])
        log.info("repo.user.ensure_indexes done")

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        doc = await self._users.find_one({"email": email})
        return _to_record(doc) if doc else None

    async def find_user_by_id(self, user_id: str) -> UserRecord | None:
        doc = await self._users.find_one({"_id": user_id})
        return _to_record(doc) if doc else None

    async def _next_sequence(self, name: str, session: AsyncIOMotorClientSession) -> int:
        doc = await self._counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return int(doc["value"])

    async def _insert_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        company_id: int,
        now: datetime,
        session: AsyncIOMotorClientSession,
    ) -> UserRecord:
        if await self._users.find_one({"email": email}, projection={"_id": 1}, session=session):
            raise DuplicateAccountError()
        doc = {
            "_id": str(uuid.uuid4()),
            "email": email,
            "password_hash": password_hash,
            "role": role.value,
            "company_id": company_id,
            "created_at": now,
        }
        await self._users.insert_one(doc, session=session)
        return _to_record(doc)

    async def _insert_employee(
        self,
        *,
        user: UserRecord,
        profile: dict[str, Any],
        now: datetime,
        session: AsyncIOMotorClientSession,
    ) -> dict[str, Any]:
        seq = await self._next_sequence(f"employee:{user.company_id}", session)
        doc = {
            "user_id": user.id,
            "employee_id": employee_code(seq),
            "email": user.email,
            "company_id": user.company_id,
            "status": "active",
            "created_at": now,
            **profile,
        }
        await self._employees.insert_one(doc, session=session)
        doc.pop("_id", None)
        return doc

    async def register_company(
        self,
        *,
        email: str,
        password_hash: str,
        company_name: str,
        industry: str | None,
    ) -> UserRecord:
        """Create a company, its admin user and the admin's employee record in one transaction."""
        now = datetime.now(timezone.utc)
        try:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    company_id = await self._next_sequence("company", session)
                    await self._companies.insert_one(
                        {
                            "_id": company_id,
                            "name": company_name,
                            "industry": industry or DEFAULT_INDUSTRY,
                            "created_at": now,
                        },
                        session=session,
                    )
                    user = await self._insert_user(
                        email=email,
                        password_hash=password_hash,
                        role=Role.ADMIN,
                        company_id=company_id,
                        now=now,
                        session=session,
                    )
                    await self._insert_employee(
                        user=user,
                        profile={
                            "first_name": "Admin",
                            "last_name": "User",
                            "department": "Administration",
                            "position": "Administrator",
                        },
                        now=now,
                        session=session,
                    )
        except DuplicateKeyError as e:
            raise DuplicateAccountError() from e

        log.info("repo.user.register_company company_id=%s user_id=%s", user.company_id, user.id)
        return user

    async def create_user(
        self,
        *,
        company_id: int,
        email: str,
        password_hash: str,
        role: Role,
        profile: dict[str, Any],
    ) -> tuple[UserRecord, dict[str, Any]]:
        now = datetime.now(timezone.utc)
        try:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    user = await self._insert_user(
                        email=email,
                        password_hash=password_hash,
                        role=role,
                        company_id=company_id,
                        now=now,
                        session=session,
                    )
                    employee = await self._insert_employee(
                        user=user, profile=profile, now=now, session=session
                    )
        except DuplicateKeyError as e:
            raise DuplicateAccountError() from e

        log.info(
            "repo.user.create company_id=%s user_id=%s role=%s employee_id=%s",
            company_id,
            user.id,
            role.value,
            employee["employee_id"],
        )
        return user, employee

    async def delete_user(self, *, company_id: int, user_id: str) -> bool:
        async with await self._client.start_session() as session:
            async with session.start_transaction():
                res = await self._users.delete_one(
                    {"_id": user_id, "company_id": company_id}, session=session
                )
                if res.deleted_count:
                    await self._employees.delete_many(
                        {"user_id": user_id, "company_id": company_id}, session=session
                    )
        log.info(
            "repo.user.delete company_id=%s user_id=%s deleted=%s",
            company_id,
            user_id,
            bool(res.deleted_count),
        )
        return bool(res.deleted_count)
