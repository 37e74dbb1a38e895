"""
Analysis response models.
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from models.domain.batch import AnalysisFailure, BatchSummary


class BatchAnalysisResponse(BaseModel):
    """Batch summary with failures grouped by kind."""

    total: int
    successful: int
    failed: int
    flagged_for_review: int
    total_cost_usd: float
    total_time_sec: float
    avg_confidence: Optional[float] = None
    failures_by_kind: Dict[str, int] = Field(default_factory=dict)
    results: List[dict] = Field(default_factory=list)
    failures: List[AnalysisFailure] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "BatchAnalysisResponse":
        return cls(
            total=summary.total,
            successful=summary.successful,
            failed=summary.failed,
            flagged_for_review=summary.flagged_for_review,
            total_cost_usd=round(summary.total_cost_usd, 6),
            total_time_sec=round(summary.total_time_sec, 2),
            avg_confidence=summary.avg_confidence,
            failures_by_kind=summary.failures_by_kind,
            results=summary.results,
            failures=summary.failures,
        )


class PendingGemstone(BaseModel):
    """Gemstone awaiting analysis."""

    id: str
    serial_number: Optional[str] = None
    name: Optional[str] = None
