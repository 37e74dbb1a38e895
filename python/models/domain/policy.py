"""
Policy domain models.
Named, overridable thresholds that encode business risk tolerance.
"""

from pydantic import BaseModel, Field


class SamplingPolicy(BaseModel):
    """How many photographs a single run may send to the model."""

    full_coverage_limit: int = Field(15, ge=1, description="Analyze everything at or below this count")
    sample_size: int = Field(10, ge=1, description="Random sample size above the limit")


class SelectionPolicy(BaseModel):
    """Primary image scoring constants."""

    single_image_score: float = Field(0.8, ge=0, le=1, description="Scores for the no-call shortcut")
    tool_score_cap: float = Field(0.4, ge=0, le=1, description="Max overall score with a tool in frame")


class ReviewPolicy(BaseModel):
    """Thresholds deciding whether an analysis needs human review."""

    min_aggregate_confidence: float = Field(0.7, ge=0, le=1)
    min_detection_confidence: float = Field(0.6, ge=0, le=1)
    max_duration_ms: int = Field(30000, ge=0, description="Runs slower than this are reviewed")
    min_highlights: int = Field(3, ge=0, description="Required marketing highlights per language")


def policies_from_settings(settings) -> tuple:
    """Build (sampling, selection, review) policies from application settings."""
    sampling = SamplingPolicy(
        full_coverage_limit=settings.full_coverage_limit,
        sample_size=settings.sample_size,
    )
    selection = SelectionPolicy(
        single_image_score=settings.single_image_score,
        tool_score_cap=settings.tool_score_cap,
    )
    review = ReviewPolicy(
        min_aggregate_confidence=settings.review_min_aggregate_confidence,
        min_detection_confidence=settings.review_min_detection_confidence,
        max_duration_ms=settings.review_max_duration_ms,
        min_highlights=settings.review_min_highlights,
    )
    return sampling, selection, review
