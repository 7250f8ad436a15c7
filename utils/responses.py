"""Turns service results into HTTP responses carrying the envelope."""

from http import HTTPStatus
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.result import Err, ErrorKind, Ok, Result
from schemas.api_resource import ApiResource


def _serialize(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, (list, tuple)):
        return [_serialize(item) for item in data]
    return data


def envelope(resource: ApiResource, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=resource.render())


def error_response(kind: ErrorKind, message: str,
                   errors: dict[str, list[str]] | None = None) -> JSONResponse:
    status_code = kind.http_status
    return envelope(ApiResource.fail(kind.value, message, status_code, errors), status_code)


def to_response(result: Result, success_status: int = HTTPStatus.OK) -> JSONResponse:
    match result:
        case Ok(data=data, message=message):
            return envelope(ApiResource.ok(_serialize(data), message, success_status), success_status)
        case Err(kind=kind, message=message, errors=errors):
            return error_response(kind, message, errors)
    raise TypeError(f"Unsupported result: {result!r}")
