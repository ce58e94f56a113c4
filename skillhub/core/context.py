"""Per-request context stored in contextvars.

Values set here are read by the logging processors so every event emitted
while serving a request carries the request and user identifiers.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
user_role_var: ContextVar[str | None] = ContextVar("user_role", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID, generating one when none is given."""
    rid = request_id or str(uuid4())
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the authenticated user ID, if any."""
    return user_id_var.get()


def set_user(user_id: str | UUID | None, role: str | None = None) -> None:
    """Bind the authenticated user to the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)
    user_role_var.set(role)


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Return the non-empty context values as a dict."""
    values = {
        "request_id": request_id_var.get() or None,
        "user_id": user_id_var.get(),
        "user_role": user_role_var.get(),
        "trace_id": trace_id_var.get(),
    }
    return {key: value for key, value in values.items() if value}


def clear_context() -> None:
    """Reset every context variable at the end of a request."""
    request_id_var.set("")
    user_id_var.set(None)
    user_role_var.set(None)
    trace_id_var.set(None)
