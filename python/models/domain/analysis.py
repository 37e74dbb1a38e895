"""
Analysis domain models.
Outputs of the image analysis pipeline: detections, image score cards,
primary image selection and the consolidated record that gets persisted.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field


class AttributeKind(str, Enum):
    """Physical attribute derived from photographs."""
    CUT = "cut"
    COLOR = "color"


class AttributeDetection(BaseModel):
    """One detector's output for one gemstone and one attribute kind."""

    kind: AttributeKind = Field(..., description="Detected attribute")
    detected_value: str = Field(..., min_length=1, description="Value named by the model")
    description: Optional[str] = Field(None, description="Free-text nuance (color only)")
    confidence: float = Field(..., ge=0, le=1, description="Model confidence")
    matches_declared: bool = Field(..., description="Detection agrees with declared metadata")
    declared_value: Optional[str] = Field(None, description="Declared value compared against")
    reasoning: str = Field("", description="Short justification")
    images_analyzed: int = Field(0, ge=0, description="Images sent to the model")

    @property
    def is_mismatch(self) -> bool:
        return not self.matches_declared


class ImageScoreCard(BaseModel):
    """Rubric scores for one sampled image."""

    index: int = Field(..., ge=0, description="Sampled position")
    quality_score: float = Field(..., ge=0, le=1, description="Visual quality")
    composition_score: float = Field(..., ge=0, le=1, description="Composition and framing")
    clarity_score: float = Field(..., ge=0, le=1, description="Clarity and focus")
    professional_score: float = Field(..., ge=0, le=1, description="Professional presentation")
    overall_score: float = Field(..., ge=0, le=1, description="Overall score")
    issues: List[str] = Field(default_factory=list, description="Flagged issues")
    tool_visible: bool = Field(False, description="Measurement instrument or handling tool in frame")
    unusable: bool = Field(False, description="Blank, corrupted or no gemstone visible")

    @classmethod
    def uniform(cls, index: int, score: float) -> "ImageScoreCard":
        """Score card with every sub-score set to the same value."""
        return cls(
            index=index,
            quality_score=score,
            composition_score=score,
            clarity_score=score,
            professional_score=score,
            overall_score=score,
            issues=[],
        )


class SelectionResult(BaseModel):
    """Primary image verdict, resolved to a stable photo identifier."""

    selected_image_id: Optional[str] = Field(None, description="Winning photo id")
    selected_index: Optional[int] = Field(None, ge=0, description="Winning photo display index")
    selected_position: Optional[int] = Field(None, ge=0, description="Winning sampled position")
    image_scores: List[ImageScoreCard] = Field(default_factory=list)
    reasoning: str = Field("", description="Why the winner was chosen")
    images_analyzed: int = Field(0, ge=0)
    model_called: bool = Field(True, description="False for the single-image shortcut")

    class Config:
        protected_namespaces = ()

    @property
    def has_winner(self) -> bool:
        return self.selected_position is not None

    @property
    def winning_card(self) -> Optional[ImageScoreCard]:
        if self.selected_position is None:
            return None
        for card in self.image_scores:
            if card.index == self.selected_position:
                return card
        return None

    @property
    def confidence(self) -> float:
        """Overall score of the winning image, 0 when nothing was selected."""
        card = self.winning_card
        return card.overall_score if card else 0.0


class LocalizedText(BaseModel):
    """Text in English and Russian."""

    en: str = ""
    ru: str = ""


class LocalizedList(BaseModel):
    """List of short strings in English and Russian."""

    en: List[str] = Field(default_factory=list)
    ru: List[str] = Field(default_factory=list)


class GeneratedContent(BaseModel):
    """Marketing copy produced alongside the image analysis."""

    technical_description: LocalizedText
    emotional_description: LocalizedText
    narrative_story: LocalizedText
    historical_context: LocalizedText
    care_instructions: LocalizedText
    promotional_text: LocalizedText
    marketing_highlights: LocalizedList
    confidence: float = Field(..., ge=0, le=1)
    reasoning: str = ""

    def text_fields(self) -> List[str]:
        """All free-text values, both languages."""
        texts = []
        for block in (
            self.technical_description,
            self.emotional_description,
            self.narrative_story,
            self.historical_context,
            self.care_instructions,
            self.promotional_text,
        ):
            texts.extend([block.en, block.ru])
        texts.extend(self.marketing_highlights.en)
        texts.extend(self.marketing_highlights.ru)
        return texts


class Provenance(BaseModel):
    """Where an analysis came from and what it cost."""

    model_version: str = Field(..., description="Vision model identifier")
    images_analyzed: int = Field(0, ge=0)
    duration_ms: int = Field(0, ge=0, description="Wall-clock duration of the run")
    cost_usd: Optional[float] = Field(None, ge=0)
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)

    class Config:
        protected_namespaces = ()


class ConsolidatedAnalysis(BaseModel):
    """Unit persisted per gemstone. Re-running replaces it entirely."""

    gemstone_id: str
    cut: AttributeDetection
    color: AttributeDetection
    selection: SelectionResult
    content: Optional[GeneratedContent] = None
    aggregate_confidence: float = Field(..., ge=0, le=1)
    needs_review: bool
    review_reasons: List[str] = Field(default_factory=list)
    provenance: Provenance
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def detections(self) -> List[AttributeDetection]:
        return [self.cut, self.color]

    def summary(self) -> Dict[str, Any]:
        """Compact view for logs and batch reports."""
        return {
            "gemstone_id": self.gemstone_id,
            "cut": self.cut.detected_value,
            "color": self.color.detected_value,
            "primary_image_id": self.selection.selected_image_id,
            "aggregate_confidence": round(self.aggregate_confidence, 3),
            "needs_review": self.needs_review,
            "review_reasons": self.review_reasons,
        }

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat() if v else None
        }
