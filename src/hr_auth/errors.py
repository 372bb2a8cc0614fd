from __future__ import annotations


class AppError(Exception):
    """Base error for expected failures."""

    def __init__(self, message: str, *, http_status: int = 400):
        super().__init__(message)
        self.message = message
        self.http_status = http_status


class BadRequestError(AppError):
    def __init__(self, message: str = "bad request"):
        super().__init__(message, http_status=400)


class AuthError(AppError):
    # Role and tenant denials share this status; there is no 403.
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, http_status=401)


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class DuplicateAccountError(AppError):
    def __init__(self, message: str = "User already exists"):
        super().__init__(message, http_status=409)


class NotFoundError(AppError):
    def __init__(self, message: str = "not found"):
        super().__init__(message, http_status=404)


class SigningKeyError(RuntimeError):
    """Signing configuration is unusable; the process must not serve."""
