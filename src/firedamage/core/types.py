"""Core type definitions shared across fire damage assessment modules."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Health check response for any service."""

    service: str
    healthy: bool
    latency_ms: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ToolDefinition(BaseModel):
    """Entry in the caller-facing tool listing."""

    name: str
    description: str
    version: str
    input_schema: dict[str, Any]
    idempotent: bool = True
    supports_progress: bool = True
    timeout_ms: int = 30_000
