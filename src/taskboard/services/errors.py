# taskboard – error taxonomy (Rev 0.1.0)
"""Errors surfaced by the task store boundary.

Each error carries a stable ``code`` (used by the board client when it
reports a settled mutation) and the HTTP-style ``status`` the UI layer shows.
Forbidden and InvalidArgument are terminal and never retried.
"""
from __future__ import annotations


class TaskboardError(Exception):
    code = "error"
    status = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = context


class Unauthenticated(TaskboardError):
    code = "unauthenticated"
    status = 401


class Forbidden(TaskboardError):
    code = "forbidden"
    status = 403


class NotFound(TaskboardError):
    code = "not_found"
    status = 404


class InvalidArgument(TaskboardError):
    code = "invalid_argument"
    status = 400


class StoreFailure(TaskboardError):
    code = "store_failure"
    status = 500


def status_for(exc: BaseException) -> int:
    if isinstance(exc, TaskboardError):
        return exc.status
    return StoreFailure.status


def code_for(exc: BaseException) -> str:
    if isinstance(exc, TaskboardError):
        return exc.code
    return "transport_error"
