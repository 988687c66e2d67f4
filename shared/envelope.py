from typing import Any

GENERIC_ERROR = "Internal Server Error"


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {"success": True}
    if message:
        out["message"] = message
    if data is not None:
        out["data"] = data
    return out


def fail(error: str) -> dict[str, Any]:
    return {"success": False, "error": error}
