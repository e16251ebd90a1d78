"""Correlation id helpers shared by the HTTP middleware and the automation loop."""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4


correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def new_correlation_id(prefix: str = "corr") -> str:
    return f"{prefix}-{uuid4().hex[:20]}"


def set_correlation_id(value: str) -> None:
    correlation_id_ctx.set(value or "")


def get_correlation_id() -> str:
    return correlation_id_ctx.get("")
