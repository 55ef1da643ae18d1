"""Health probe result model."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import ProbeStatus


class EndpointProbeResult(BaseModel):
    """Result of one timed `/health` check against one endpoint."""

    url: str = Field(..., description="Endpoint base URL")
    status: ProbeStatus = Field(..., description="Probe outcome")
    latency_ms: float = Field(..., ge=0, description="Round-trip time, or the timeout on timeout")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Parsed health payload")

    model_config = ConfigDict(frozen=True)

    @property
    def healthy(self) -> bool:
        return self.status == ProbeStatus.HEALTHY
