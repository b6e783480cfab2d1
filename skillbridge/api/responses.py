"""Response envelopes: ``{success, data}``, ``{success, meta, data}`` and ``{success: false, error}``"""
from typing import Any, Iterable, Optional, Type

from pydantic import BaseModel

from skillbridge.core.pagination import Page


def dump(value: Any, schema: Optional[Type[BaseModel]] = None) -> Any:
    """Serialize an ORM row (through ``schema``) or a pydantic model to JSON-ready data"""
    if value is None:
        return None
    if schema is not None and not isinstance(value, schema):
        value = schema.model_validate(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


def dump_many(values: Iterable[Any], schema: Type[BaseModel]) -> list:
    return [dump(value, schema) for value in values]


def success(data: Any = None, schema: Optional[Type[BaseModel]] = None) -> dict:
    return {"success": True, "data": dump(data, schema)}


def paged(page: Page, schema: Type[BaseModel]) -> dict:
    return {"success": True, "meta": page.meta.to_dict(), "data": dump_many(page.data, schema)}


def error_body(code: str, message: str, details: Any = None) -> dict:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
