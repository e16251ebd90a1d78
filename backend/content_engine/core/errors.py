"""
Content Engine - Error Taxonomy
===============================
ExternalServiceError  LLM / CMS endpoint unavailable or malformed response.
ValidationFailure     record rejected or flagged with a reason string.
ConfigurationError    missing credentials where no safe default exists.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for errors caught at the orchestrator/scheduler boundary."""

    code = "pipeline_error"


class ExternalServiceError(PipelineError):
    code = "external_service_error"

    def __init__(self, service: str, message: str, *, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status_code = status_code


class ValidationFailure(PipelineError):
    code = "validation_failure"

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or {}


class ConfigurationError(PipelineError):
    code = "configuration_error"

    def __init__(self, key: str, message: str = ""):
        super().__init__(message or f"missing configuration: {key}")
        self.key = key
