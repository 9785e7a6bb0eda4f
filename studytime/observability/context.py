"""
Log context: request id and user id carried through contextvars.
"""

import contextvars
import uuid
from typing import Optional

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_user_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "user_id", default=None
)


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(request_id: str) -> contextvars.Token:
    """Set the request ID in context. Returns token for reset."""
    return _request_id_var.set(request_id)


def get_user_id() -> Optional[str]:
    return _user_id_var.get()


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Context manager binding a request id (and optionally a user id) to logs.

    Usage:
        with RequestContext(user_id="u-123") as ctx:
            logger.info("Reserving slots")  # carries request_id and user_id
    """

    def __init__(self, request_id: Optional[str] = None, user_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self.user_id = user_id
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens.append((_request_id_var, _request_id_var.set(self.request_id)))
        if self.user_id is not None:
            self._tokens.append((_user_id_var, _user_id_var.set(self.user_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
