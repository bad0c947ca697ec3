"""Response envelopes shared by all routes"""
from typing import Any, Optional


def success_response(data: Any = None, count: Optional[int] = None) -> dict:
    """Wrap a payload as {"success": true, "data": ...}"""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    elif isinstance(data, list):
        data = [item.model_dump() if hasattr(item, "model_dump") else item for item in data]

    body = {"success": True, "data": data if data is not None else {}}
    if count is not None:
        body["count"] = count
    return body
