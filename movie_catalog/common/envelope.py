"""Canonical response envelope for all catalog responses.

Standardized structure:
{
  "success": true,
  "message": "string",
  "statusCode": 200,
  "data": {},
  "error": {
    "errorCode": "string | null",
    "errorMessage": "string",
    "stackTrace": "string | null",
    "validationErrors": {"field": ["message"]} | null
  } | null,
  "timestamp": "2024-01-01T00:00:00Z"
}
"""
from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from movie_catalog.common.errors import ValidationError
from movie_catalog.config import runtime_config

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorDetails(CamelModel):
    """Canonical error detail structure."""
    error_code: Optional[str] = None
    error_message: str
    stack_trace: Optional[str] = None
    validation_errors: Optional[Dict[str, List[str]]] = None


class ApiResponse(CamelModel):
    """Top-level envelope returned by every catalog endpoint."""
    success: bool
    message: str
    status_code: int
    data: Optional[Any] = None
    error: Optional[ErrorDetails] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def render(envelope: ApiResponse, headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        content=envelope.model_dump(mode="json", by_alias=True),
        status_code=envelope.status_code,
        headers=dict(headers) if headers else None,
    )


def success_response(
    data: Any = None,
    message: str = "Operation successful",
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    envelope = ApiResponse(success=True, message=message, status_code=status_code, data=data)
    return render(envelope, headers)


def build_error_envelope(
    message: str,
    status_code: int = 400,
    error_code: Optional[str] = None,
    validation_errors: Optional[Dict[str, List[str]]] = None,
    stack_trace: Optional[str] = None,
    error_message: Optional[str] = None,
) -> ApiResponse:
    """Construct an error ApiResponse (without rendering it)."""
    return ApiResponse(
        success=False,
        message=message,
        status_code=status_code,
        error=ErrorDetails(
            error_code=error_code,
            error_message=error_message or message,
            stack_trace=stack_trace,
            validation_errors=validation_errors,
        ),
    )


def error_response(message: str, status_code: int = 400, error_code: Optional[str] = None) -> JSONResponse:
    return render(build_error_envelope(message, status_code=status_code, error_code=error_code))


def validation_error_response(
    validation_errors: Dict[str, List[str]], message: str = "Validation failed"
) -> JSONResponse:
    envelope = build_error_envelope(
        message,
        status_code=400,
        error_code=VALIDATION_ERROR,
        validation_errors=validation_errors,
    )
    return render(envelope)


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(p) for p in loc if not isinstance(p, int) and p not in ("body", "query", "path", "form")]
    if not parts:
        return "request"
    name = parts[-1]
    return to_camel(name) if "_" in name else name


def _error_message(err: Mapping[str, Any]) -> str:
    ctx = err.get("ctx") or {}
    cause = ctx.get("error")
    if err.get("type") == "value_error" and cause is not None:
        return str(cause)
    return str(err.get("msg", "Invalid value"))


def collect_validation_errors(errors: Iterable[Mapping[str, Any]]) -> Dict[str, List[str]]:
    """Group pydantic/FastAPI error dicts into a field -> [messages] mapping."""
    grouped: Dict[str, List[str]] = {}
    for err in errors:
        grouped.setdefault(_field_name(err.get("loc", ())), []).append(_error_message(err))
    return grouped


# --- Error Handling ---

async def _http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict) and "success" in detail:
        return JSONResponse(content=detail, status_code=exc.status_code)
    return error_response(str(detail) if detail else "HTTP exception", status_code=exc.status_code)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    return validation_error_response(collect_validation_errors(exc.errors()))


async def _catalog_validation_handler(request: Request, exc: ValidationError):
    return validation_error_response(exc.errors, message=exc.message)


async def _generic_exception_handler(request: Request, exc: Exception):
    logger.error("An unhandled exception occurred", exc_info=exc)
    envelope = build_error_envelope(
        "An unexpected error occurred",
        status_code=500,
        error_code=INTERNAL_SERVER_ERROR,
    )
    if runtime_config.is_dev_env():
        envelope.error.stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        envelope.error.error_message = str(exc)
    return render(envelope)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _request_validation_handler)
    target_app.add_exception_handler(ValidationError, _catalog_validation_handler)
    target_app.add_exception_handler(Exception, _generic_exception_handler)
