"""Utilities for working with request- and flow-scoped context metadata.

The API assigns a unique request identifier to every inbound HTTP call, and the
client engine mints a flow identifier for every favorite transaction. Both are
kept in ``ContextVar`` instances so middleware, exception handlers, the httpx
gateway and the tests read them the same way.
"""

from __future__ import annotations

from contextvars import ContextVar, Token

__all__ = [
    "FLOW_ID_CONTEXT",
    "REQUEST_ID_CONTEXT",
    "clear_request_id",
    "get_flow_id",
    "get_request_id",
    "reset_flow_id",
    "set_flow_id",
    "set_request_id",
]

REQUEST_ID_CONTEXT: ContextVar[str] = ContextVar("request_id", default="")
FLOW_ID_CONTEXT: ContextVar[str] = ContextVar("flow_id", default="")


def set_request_id(request_id: str) -> Token[str]:
    """Persist the provided request identifier in the context variable.

    Returning the token allows callers (primarily tests) to ``reset`` the
    context back to its prior value once their assertions finish.
    """

    return REQUEST_ID_CONTEXT.set(request_id)


def get_request_id() -> str:
    """Retrieve the current request identifier, or an empty string."""

    return REQUEST_ID_CONTEXT.get()


def clear_request_id(token: Token[str] | None = None) -> None:
    """Reset the request identifier to an empty string."""

    if token is not None:
        REQUEST_ID_CONTEXT.reset(token)
    else:
        REQUEST_ID_CONTEXT.set("")


def set_flow_id(flow_id: str) -> Token[str]:
    """Bind ``flow_id`` to the running task for the duration of a transaction."""

    return FLOW_ID_CONTEXT.set(flow_id)


def get_flow_id() -> str:
    return FLOW_ID_CONTEXT.get()


def reset_flow_id(token: Token[str]) -> None:
    FLOW_ID_CONTEXT.reset(token)
