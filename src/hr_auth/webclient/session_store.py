from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError

from hr_auth.auth.models import Principal, Role
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


class SessionUser(BaseModel):
    id: str
    email: str
    role: Role
    companyId: int

    def to_principal(self) -> Principal:
        return Principal(user_id=self.id, email=self.email, role=self.role, company_id=self.companyId)


class SessionState(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None
    user: SessionUser | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user)


class SessionStore(Protocol):
    def load(self) -> SessionState: ...

    def save(self, state: SessionState) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    def __init__(self, state: SessionState | None = None):
        self._state = state or SessionState()

    def load(self) -> SessionState:
        return self._state.model_copy()

    def save(self, state: SessionState) -> None:
        self._state = state.model_copy()

    def clear(self) -> None:
        self._state = SessionState()


class FileSessionStore:
    """
    JSON file persistence for a client session.

    Writes go through a temp file and os.replace, so concurrent processes see
    either the old or the new session (last write wins), never a torn file.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> SessionState:
        try:
            return SessionState.model_validate_json(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            # never saved, or another process logged out
            return SessionState()
        except (ValidationError, UnicodeDecodeError):
            log.warning("session.load corrupt path=%s; clearing", self._path)
            self.clear()
            return SessionState()

    def save(self, state: SessionState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".session-", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(state.model_dump_json())
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
