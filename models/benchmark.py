"""Benchmark and region test result models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class BenchmarkIteration(BaseModel):
    """One connect/request/disconnect cycle."""

    iteration: int = Field(..., ge=1)
    success: bool
    connection_time_ms: Optional[float] = Field(default=None, ge=0)
    request_time_ms: Optional[float] = Field(default=None, ge=0)
    error: Optional[str] = None


class BenchmarkReport(BaseModel):
    """Aggregated benchmark results for one region."""

    region: str
    iterations: int = Field(..., ge=0)
    results: List[BenchmarkIteration] = Field(default_factory=list)

    @property
    def successful(self) -> List[BenchmarkIteration]:
        return [r for r in self.results if r.success]

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def success_rate(self) -> float:
        if self.iterations == 0:
            return 0.0
        return self.success_count / self.iterations

    @property
    def avg_connection_time_ms(self) -> Optional[float]:
        successful = self.successful
        if not successful:
            return None
        return sum(r.connection_time_ms or 0.0 for r in successful) / len(successful)

    @property
    def avg_request_time_ms(self) -> Optional[float]:
        successful = self.successful
        if not successful:
            return None
        return sum(r.request_time_ms or 0.0 for r in successful) / len(successful)


class RegionTestResult(BaseModel):
    """Outcome of a single connect/disconnect smoke test against a region."""

    region: str
    name: str
    success: bool
    ip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    error: Optional[str] = None
