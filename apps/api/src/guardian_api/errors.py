from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    status_code: int

    @classmethod
    def not_found(cls, message: str) -> ApiError:
        return cls("NOT_FOUND", message, 404)

    @classmethod
    def validation(cls, message: str) -> ApiError:
        return cls("VALIDATION_ERROR", message, 422)

    @classmethod
    def unauthenticated(cls) -> ApiError:
        return cls("UNAUTHENTICATED", "x-user-id header is required", 401)
