"""
Response Envelope
=================

Every HTTP response body is ``{success, message?, data?}``; absent
fields are omitted.
"""

from typing import Any, Optional

from pydantic import BaseModel


def _serialize(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, (list, tuple)):
        return [_serialize(item) for item in data]
    if isinstance(data, dict):
        return {key: _serialize(value) for key, value in data.items()}
    return data


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """Successful envelope. DTOs are dumped with their camelCase aliases."""
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = _serialize(data)
    return body


def error_body(message: str, details: Optional[dict] = None) -> dict:
    body: dict = {"success": False, "message": message}
    if details:
        body["details"] = details
    return body
