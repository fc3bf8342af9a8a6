"""Per-request context (request id) for log tracing."""

import uuid
from contextvars import ContextVar, Token

# Accessible from sync handlers running in the threadpool as well as async code
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get()


def bind_request_id(request_id: str) -> Token[str]:
    """Bind request id to the current context; returns reset token."""
    return request_id_var.set(request_id)


def unbind_request_id(token: Token[str]) -> None:
    request_id_var.reset(token)
