from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.responses import JSONResponse

from content_engine.core.correlation import get_correlation_id
from content_engine.core.errors import (
    ConfigurationError,
    ExternalServiceError,
    PipelineError,
    ValidationFailure,
)

PIPELINE_ERROR_STATUS: dict[type[PipelineError], int] = {
    ValidationFailure: 422,
    ExternalServiceError: 502,
    ConfigurationError: 503,
}


def response_meta(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "correlation_id": get_correlation_id() or None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if extra:
        meta.update(extra)
    return meta


def success_envelope(
    data: Any,
    *,
    status_code: int = 200,
    meta: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "ok": True,
            "data": data,
            "error": None,
            "meta": response_meta(meta),
        },
    )


def error_envelope(
    *,
    code: str,
    message: str,
    status_code: int = 400,
    details: Any = None,
    meta: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "ok": False,
            "data": None,
            "error": {
                "code": code,
                "message": message,
                "details": details,
            },
            "meta": response_meta(meta),
        },
    )


def pipeline_error_envelope(exc: PipelineError, *, meta: dict[str, Any] | None = None) -> JSONResponse:
    status_code = next(
        (code for kind, code in PIPELINE_ERROR_STATUS.items() if isinstance(exc, kind)),
        500,
    )
    details: Any = None
    if isinstance(exc, ValidationFailure):
        details = exc.details or None
    elif isinstance(exc, ExternalServiceError):
        details = {"service": exc.service, "upstream_status": exc.status_code}
    elif isinstance(exc, ConfigurationError):
        details = {"key": exc.key}
    return error_envelope(
        code=exc.code,
        message=str(exc),
        status_code=status_code,
        details=details,
        meta=meta,
    )
