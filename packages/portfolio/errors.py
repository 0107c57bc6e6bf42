"""Error taxonomy for the portfolio query engine.

Every failure is classified once, where it is detected, and carried unchanged
to the transport layer which renders ``{"msg": error.message}`` with
``error.status_code``.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "PortfolioError",
    "BadRequest",
    "UnknownAttribute",
    "EmptyProjectList",
    "NotFound",
    "MissingRequired",
    "MethodNotAllowed",
    "RouteNotFound",
    "BAD_REQUEST_MESSAGE",
]

BAD_REQUEST_MESSAGE = "bad request to db!!!"


class PortfolioError(Exception):
    """Base class for classified failures."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        # Internal-only explanation, logged but never returned to callers.
        self.detail = detail
        super().__init__(self.message)


class BadRequest(PortfolioError):
    status_code = 400
    default_message = BAD_REQUEST_MESSAGE


class UnknownAttribute(BadRequest):
    """Unknown filter/patch key, or a value that fails type coercion.

    The caller always gets the same generic message; ``detail`` records
    which of the two it actually was.
    """

    def __init__(self, attribute: str, *, detail: Optional[str] = None) -> None:
        self.attribute = attribute
        super().__init__(BAD_REQUEST_MESSAGE, detail=detail or f"unknown attribute {attribute!r}")


class EmptyProjectList(BadRequest):
    default_message = "No projects provided!!!"


class NotFound(PortfolioError):
    status_code = 404
    default_message = "Not found"


class MissingRequired(PortfolioError):
    """A required companion parameter or payload field is absent.

    Reported as 404: there is nothing to act on, as opposed to malformed input.
    """

    status_code = 404
    default_message = "Missing attributes!!!"


class MethodNotAllowed(PortfolioError):
    status_code = 405
    default_message = "method not allowed!!!"


class RouteNotFound(PortfolioError):
    status_code = 404
    default_message = "Path not found! :-("
