"""Region models: named groups of candidate relay endpoints."""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegionEntry(BaseModel):
    """A region as it appears in configuration (`{"name": ..., "workers": [...]}`)."""

    name: str = Field(..., description="Display name")
    workers: List[str] = Field(default_factory=list, description="Ordered endpoint base URLs")

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: List[str]) -> List[str]:
        """Ensure every endpoint is an http(s) URL without a trailing slash."""
        cleaned = []
        for worker in v:
            if not worker.startswith(("http://", "https://")):
                raise ValueError(f"endpoint {worker!r} must start with http:// or https://")
            cleaned.append(worker.rstrip("/"))
        return cleaned


class Region(BaseModel):
    """A loaded region. Read-only to everything that consumes it."""

    code: str = Field(..., description="Short region code, e.g. US")
    name: str = Field(..., description="Display name")
    endpoints: Tuple[str, ...] = Field(default=(), description="Candidate endpoints in configured order")

    model_config = ConfigDict(frozen=True)
