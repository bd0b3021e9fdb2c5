from __future__ import annotations
from typing import Any, Optional


def success_response(data: Any = None, message: Optional[str] = None, count: Optional[int] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = data
    return body


def error_response(message: str, code: Optional[str] = None, **extra: Any) -> dict[str, Any]:
    error: dict[str, Any] = {"message": message}
    if code is not None:
        error["code"] = code
    error.update(extra)
    return {"success": False, "error": error}
