import logging
import re
from enum import Enum
from typing import List, Optional

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"\d+")
# largest value a 64-bit INTEGER column can hold
MAX_IDENTIFIER = 2**63 - 1


class ErrorKind(Enum):
    INVALID_IDENTIFIER = ("invalid_identifier", 400)
    VALIDATION_FAILED = ("validation_failed", 400)
    NOT_FOUND = ("not_found", 404)
    SCHEDULE_CONFLICT = ("schedule_conflict", 409)
    RESOURCE_IN_USE = ("resource_in_use", 409)
    STORE_FAILURE = ("store_failure", 500)

    def __init__(self, code: str, status: int):
        self.code = code
        self.status = status


class ApiError(Exception):
    """An operation outcome that maps onto one HTTP error response."""

    def __init__(self, kind: ErrorKind, message: str, errors: Optional[List[str]] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors = errors or []
        self.detail = detail

    @classmethod
    def validation(cls, errors: List[str]) -> "ApiError":
        return cls(ErrorKind.VALIDATION_FAILED, "Validation failed", errors=errors)

    @classmethod
    def not_found(cls, resource: str, resource_id: int) -> "ApiError":
        return cls(ErrorKind.NOT_FOUND, f"{resource} {resource_id} not found")

    @classmethod
    def store_failure(cls, message: str, exc: Exception) -> "ApiError":
        return cls(ErrorKind.STORE_FAILURE, message, detail=str(exc))

    def to_dict(self):
        body = {"message": self.message, "error": self.kind.code}
        if self.kind is ErrorKind.VALIDATION_FAILED:
            body["errors"] = self.errors
        if self.detail is not None:
            body["detail"] = self.detail
        return body


def parse_identifier(raw: str, resource: str) -> int:
    if not _IDENTIFIER_RE.fullmatch(raw or ""):
        raise ApiError(ErrorKind.INVALID_IDENTIFIER, f"{resource} id must be a number")
    # length check first, int() refuses very long digit strings
    if len(raw) > len(str(MAX_IDENTIFIER)) or int(raw) > MAX_IDENTIFIER:
        raise ApiError(ErrorKind.INVALID_IDENTIFIER, f"{resource} id is out of range")
    return int(raw)


def register_error_handlers(app, db):
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.kind.status

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(exc: SQLAlchemyError):
        db.session.rollback()
        logger.exception("Unhandled store error")
        error = ApiError.store_failure("Database error", exc)
        return jsonify(error.to_dict()), error.kind.status
