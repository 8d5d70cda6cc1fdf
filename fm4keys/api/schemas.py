"""Pydantic response schemas for the fm4keys read API.

Every endpoint wraps its payload in an envelope carrying ``success``;
errors use :class:`ErrorResponse`.  Record fields keep the database's
snake_case names while the stats block uses camelCase
(``totalKeys``, ``recentKeys``, ``lastUpdate``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fm4keys.models.program_key import CatalogStats, ProgramKeyRecord


class ProgramKeyListResponse(BaseModel):
    """All catalogued program keys, ordered by key."""

    success: bool = True
    count: int = Field(ge=0, description="Number of program keys returned")
    data: list[ProgramKeyRecord]


class ProgramKeyResponse(BaseModel):
    """A single catalogued program key."""

    success: bool = True
    data: ProgramKeyRecord


class StatsResponse(BaseModel):
    """Catalog statistics."""

    success: bool = True
    data: CatalogStats


class ErrorResponse(BaseModel):
    """Error envelope.  ``error`` never carries internal details."""

    success: bool = False
    error: str


class EndpointNotFoundResponse(ErrorResponse):
    """Returned for unknown paths, listing what is available."""

    model_config = ConfigDict(populate_by_name=True)

    available_endpoints: dict[str, str] = Field(alias="availableEndpoints")


class HealthResponse(BaseModel):
    """Liveness check.  Does not touch the key store."""

    status: str
    timestamp: str
    uptime: float = Field(description="Server uptime in seconds")
    collector: dict[str, Any] = Field(default_factory=dict)
