# memberhub/core/exceptions.py
from __future__ import annotations

"""
MemberHub — Application Exceptions
==================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and render the JSON error shape used by
`memberhub.core.exception_handlers`.

Taxonomy
--------
- `ConfigurationError`  missing secret/base URL/API credentials. Fatal for the
  request, surfaced to the caller, never retried.
- `BunnyAPIError`       the video CDN answered with a non-2xx status or could
  not be reached.
- `PermissionDeniedException` / `InvalidTokenException` / `NotFoundException`.

Unknown membership tiers are deliberately *not* an error: they resolve to
rank 0 (see `memberhub.services.tiers`).

Usage
-----
    raise ConfigurationError("BUNNY_SECURITY_KEY is not configured")
    raise AppException(status_code=409, message="Email already registered")
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "ConfigurationError",
    "BunnyAPIError",
    "PermissionDeniedException",
    "InvalidTokenException",
    "NotFoundException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    details : Any
        Machine-readable details.
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.details: Optional[Any] = details

    def __str__(self) -> str:
        return self.message


# ──────────────────────────────────────────────────────────────
# ⚙️ Configuration / upstream
# ──────────────────────────────────────────────────────────────
class ConfigurationError(AppException):
    """Raised when a required secret, base URL or credential is absent."""

    def __init__(self, message: str = "Server configuration error", *, setting: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            details={"setting": setting} if setting else None,
        )
        self.setting = setting


class BunnyAPIError(AppException):
    """Raised when a Bunny.net Stream API call fails."""

    def __init__(self, message: str, *, upstream_status: Optional[int] = None) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            message=message,
            details={"upstream_status": upstream_status} if upstream_status is not None else None,
        )
        self.upstream_status = upstream_status


# ──────────────────────────────────────────────────────────────
# 🔐 Authorization / lookup
# ──────────────────────────────────────────────────────────────
class PermissionDeniedException(AppException):
    """Raised when a user lacks a required permission."""

    def __init__(self, *, permission: str, role: str, details: Optional[Any] = None) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=f"Permission '{permission}' denied for role '{role}'",
            details=details or {"permission": permission, "role": role},
        )


class InvalidTokenException(AppException):
    """Raised for invalid or expired tokens (401 by default)."""

    def __init__(
        self,
        *,
        detail: str = "Invalid or expired token",
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(
            status_code=status_code,
            message=detail,
            headers=headers or {"WWW-Authenticate": "Bearer"},
        )


class NotFoundException(AppException):
    def __init__(self, what: str = "Resource") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, message=f"{what} not found")
