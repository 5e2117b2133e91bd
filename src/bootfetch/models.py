"""
Data models for fetch-verify cycles.

These Pydantic models validate a fetch target once, up front, so the fetcher
and the integrity gate can trust host, path and expected digest values.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from .digest import DEFAULT_ALGORITHM, digest_size, is_canonical_hex

__all__ = ["FetchTarget", "FetchResult", "PromoteResult", "TEMP_SUFFIX"]

TEMP_SUFFIX = ".tmp"


class FetchTarget(BaseModel):
    """
    One payload to fetch, verify and promote.

    The expected digest is immutable for the lifetime of the cycle. When no
    path is given the payload is addressed by its own digest ("/<hex>").
    """
    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1, description="Host name sent in the Host header")
    port: int = Field(default=80, ge=1, le=65535, description="TCP port")
    path: Optional[str] = Field(default=None, description="Request path (defaults to /<expected_digest>)")
    expected_digest: str = Field(..., description="Lowercase hex digest of the only acceptable payload")
    algorithm: str = Field(default=DEFAULT_ALGORITHM, description="hashlib algorithm name")
    final_path: str = Field(..., min_length=1, description="Stable name the verified payload is promoted to")

    @field_validator("host")
    @classmethod
    def _validate_host(cls, v: str) -> str:
        if any(c.isspace() for c in v) or "/" in v:
            raise ValueError(f"invalid host: {v!r}")
        return v

    @field_validator("path")
    @classmethod
    def _validate_path(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.startswith("/") or any(c.isspace() for c in v):
            raise ValueError(f"path must start with '/' and contain no whitespace: {v!r}")
        return v

    @field_validator("algorithm")
    @classmethod
    def _validate_algorithm(cls, v: str) -> str:
        digest_size(v)
        return v

    @model_validator(mode="before")
    @classmethod
    def _default_path(cls, data):
        if isinstance(data, dict) and data.get("path") is None and isinstance(data.get("expected_digest"), str):
            data = {**data, "path": f"/{data['expected_digest']}"}
        return data

    @model_validator(mode="after")
    def _check_digest(self) -> FetchTarget:
        if not is_canonical_hex(self.expected_digest, self.algorithm):
            raise ValueError(
                f"expected_digest must be {2 * digest_size(self.algorithm)} lowercase hex "
                f"characters for {self.algorithm}"
            )
        return self

    @computed_field
    @property
    def temp_path(self) -> str:
        return self.final_path + TEMP_SUFFIX


class FetchResult(BaseModel):
    """Outcome of a completed transfer, before verification."""
    temp_path: Path
    status_line: str
    status_code: Optional[int] = None
    declared_length: int = Field(ge=0)
    bytes_received_total: int = Field(ge=0)


class PromoteResult(BaseModel):
    """Outcome of a successful verify-and-promote."""
    final_path: Path
    digest: str
    size: int = Field(ge=0)
