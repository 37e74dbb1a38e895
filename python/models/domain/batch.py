"""
Batch run domain models.
Per-gemstone failure values and the batch summary returned to drivers.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class AnalysisFailure(BaseModel):
    """A gemstone run that did not produce a consolidated analysis."""

    gemstone_id: str
    kind: str = Field(..., description="Failure code, e.g. TIMEOUT or MALFORMED_SELECTION")
    message: str = ""
    step: Optional[str] = None

    @classmethod
    def from_exception(cls, gemstone_id: str, exc: Exception) -> "AnalysisFailure":
        """Classify any exception raised by a pipeline run."""
        code = getattr(exc, "code", None) or "UNEXPECTED_ERROR"
        message = getattr(exc, "message", None) or str(exc)
        return cls(
            gemstone_id=gemstone_id,
            kind=code,
            message=message,
            step=getattr(exc, "step", None),
        )


class BatchSummary(BaseModel):
    """Outcome of a batch run."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    flagged_for_review: int = 0
    total_cost_usd: float = 0.0
    total_time_sec: float = 0.0
    avg_confidence: Optional[float] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)
    failures: List[AnalysisFailure] = Field(default_factory=list)

    @property
    def failures_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for failure in self.failures:
            counts[failure.kind] = counts.get(failure.kind, 0) + 1
        return counts
