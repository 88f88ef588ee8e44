"""
Response Envelope
Version: 1.0

Every JSON body has the shape {success, message?, data?, errors?}.
Keys with no value are omitted.
"""

from typing import Any, Dict, List, Optional, Type

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def envelope(
    success: bool,
    message: Optional[str] = None,
    data: Any = None,
    errors: Optional[Dict[str, List[str]]] = None
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if errors:
        body["errors"] = errors
    return body


def respond(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    """Successful envelope."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(True, message=message, data=data)),
    )


def fail(message: str, status_code: int, errors: Optional[Dict[str, List[str]]] = None) -> JSONResponse:
    """Error envelope."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(False, message=message, errors=errors)),
    )


def dump(obj: Any, schema: Type[BaseModel]) -> Optional[Dict[str, Any]]:
    """Serialize one ORM row through its response schema."""
    if obj is None:
        return None
    return schema.model_validate(obj).model_dump(mode="json")


def dump_many(rows, schema: Type[BaseModel]) -> List[Dict[str, Any]]:
    return [dump(row, schema) for row in rows]


def dump_page(page: Dict[str, Any], schema: Type[BaseModel]) -> Dict[str, Any]:
    """Paginated result with its items serialized."""
    return {**page, "items": dump_many(page["items"], schema)}
