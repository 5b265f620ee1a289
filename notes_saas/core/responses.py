from typing import Any, Optional


def ok(message: str, data: Any = None) -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str, code: Optional[str] = None, **extra: Any) -> dict:
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    body.update(extra)
    return body
