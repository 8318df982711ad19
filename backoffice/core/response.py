"""Standard response envelope: ``{data, message, status, pagination?, error?}``."""

from typing import Any, Optional


def create_response(
    data: Any = None,
    message: str = "OK",
    status: int = 200,
    pagination: Optional[dict] = None,
    error: Any = None,
) -> dict:
    body = {"data": data, "message": message, "status": status}
    if pagination is not None:
        body["pagination"] = {
            "total": pagination.get("total"),
            "limit": pagination.get("limit"),
            "offset": pagination.get("offset"),
        }
    if error is not None:
        body["error"] = error
    return body
