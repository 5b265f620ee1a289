from __future__ import annotations

from contextvars import ContextVar

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": ContextVar("request_id", default=None),
    "tenant_id": ContextVar("tenant_id", default=None),
    "user_id": ContextVar("user_id", default=None),
}


def bind_request_context(**values: object) -> None:
    """Attach request-scoped identifiers picked up by every log line.

    ``None`` values are skipped so later stages never erase what an earlier
    stage already bound.
    """
    for key, value in values.items():
        if value is None:
            continue
        try:
            var = _CONTEXT_VARS[key]
        except KeyError:
            raise TypeError(f"unknown request context key: {key}") from None
        var.set(str(value))


def current_request_context() -> dict[str, str | None]:
    return {key: var.get() for key, var in _CONTEXT_VARS.items()}


def get_request_id() -> str | None:
    return _CONTEXT_VARS["request_id"].get()


def clear_request_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set(None)
