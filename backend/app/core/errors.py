"""Application error catalogue.

Each member carries the public error code returned to clients together
with the domain it belongs to, a stable label, the HTTP status used when
the error escapes a request handler and a default human readable message.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    def __new__(cls, code: str, domain: str, label: str, http_status: int, message: str) -> "ErrorCode":
        obj = str.__new__(cls, code)
        obj._value_ = code
        obj.domain = domain
        obj.label = label
        obj.http_status = http_status
        obj.message = message
        return obj

    # Common
    COMMON_UNAUTHENTICATED = ("E00001", "COMMON", "UNAUTHENTICATED", 401, "Authentication is required")
    COMMON_PERMISSION_DENIED = ("E00002", "COMMON", "PERMISSION_DENIED", 403, "Permission denied")
    COMMON_RESOURCE_NOT_FOUND = ("E00003", "COMMON", "RESOURCE_NOT_FOUND", 404, "Resource not found")
    COMMON_VALIDATION_ERROR = ("E00004", "COMMON", "VALIDATION_ERROR", 422, "Request validation failed")
    COMMON_UNEXPECTED_ERROR = ("E00999", "COMMON", "UNEXPECTED_ERROR", 500, "Unexpected error")

    # Learner authentication
    AUTH_INVALID_TOKEN = ("E01001", "AUTH", "INVALID_TOKEN", 401, "Access token is invalid or expired")
    AUTH_USER_NOT_FOUND = ("E01002", "AUTH", "USER_NOT_FOUND", 404, "User not found")

    # Admin authentication
    ADMIN_AUTH_ADMIN_TOKEN_INVALID = ("E02001", "ADMIN_AUTH", "ADMIN_TOKEN_INVALID", 401, "Admin token is invalid or expired")
    ADMIN_AUTH_ADMIN_TOKEN_SCOPE_INVALID = ("E02002", "ADMIN_AUTH", "ADMIN_TOKEN_SCOPE_INVALID", 403, "Admin role is required")
    ADMIN_AUTH_ADMIN_NOT_FOUND_OR_INACTIVE = (
        "E02003",
        "ADMIN_AUTH",
        "ADMIN_NOT_FOUND_OR_INACTIVE",
        403,
        "Admin user not found or inactive",
    )

    # Question bank
    QUESTIONS_IMPORT_EMPTY_FILE = ("E03001", "QUESTIONS", "IMPORT_EMPTY_FILE", 400, "Uploaded file is empty")
    QUESTIONS_IMPORT_TOO_LARGE = ("E03002", "QUESTIONS", "IMPORT_TOO_LARGE", 413, "Uploaded file is too large")
    QUESTIONS_IMPORT_VALIDATION = ("E03003", "QUESTIONS", "IMPORT_VALIDATION", 422, "Question import contains invalid rows")
    QUESTIONS_IMPORT_MALFORMED = ("E03004", "QUESTIONS", "IMPORT_MALFORMED", 400, "Uploaded file could not be read")
    QUESTIONS_TEMPLATE_FORMAT_INVALID = ("E03005", "QUESTIONS", "TEMPLATE_FORMAT_INVALID", 400, "Unsupported template format")

    # Programs
    PROGRAMS_PROGRAM_NOT_FOUND = ("E04001", "PROGRAMS", "PROGRAM_NOT_FOUND", 404, "Program not found")
    PROGRAMS_PROGRAM_INACTIVE = ("E04002", "PROGRAMS", "PROGRAM_INACTIVE", 409, "Program is not active")

    # Learning progress
    LEARNING_HISTORY_NOT_FOUND = ("E05001", "LEARNING", "HISTORY_NOT_FOUND", 404, "Learning history not found")
    LEARNING_HISTORY_OWNED_BY_OTHER = ("E05002", "LEARNING", "HISTORY_OWNED_BY_OTHER", 403, "Learning history belongs to another user")
    LEARNING_INVALID_ANSWERS = ("E05003", "LEARNING", "INVALID_ANSWERS", 422, "Submitted answers are invalid")
    LEARNING_LECTURE_QUIZ_FAILED = ("E05004", "LEARNING", "LECTURE_QUIZ_FAILED", 422, "All lecture quiz questions must be answered correctly")


__all__ = ["ErrorCode"]
