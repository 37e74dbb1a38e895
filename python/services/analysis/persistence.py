"""
Persistence Adapter

The only write path for analysis results. AI-derived values go to
dedicated columns; human-entered metadata is never part of a payload.
"""

from typing import Any, Dict

from core.exceptions import PersistenceError
from models.domain.analysis import ConsolidatedAnalysis
from repositories import AnalysisRepository, GemstoneImagesRepository, GemstonesRepository

import logging

logger = logging.getLogger(__name__)


def build_analysis_record(analysis: ConsolidatedAnalysis) -> Dict[str, Any]:
    """Flatten a ConsolidatedAnalysis into a gemstones_ai_analysis row."""
    cut, color = analysis.cut, analysis.color
    selection = analysis.selection
    provenance = analysis.provenance

    return {
        "gemstone_id": analysis.gemstone_id,
        "detected_cut": cut.detected_value,
        "cut_confidence": cut.confidence,
        "cut_matches_metadata": cut.matches_declared,
        "declared_cut": cut.declared_value,
        "cut_reasoning": cut.reasoning,
        "detected_color": color.detected_value,
        "color_description": color.description,
        "color_confidence": color.confidence,
        "color_matches_metadata": color.matches_declared,
        "declared_color": color.declared_value,
        "color_reasoning": color.reasoning,
        "primary_image_id": selection.selected_image_id,
        "primary_image_index": selection.selected_index,
        "primary_image_confidence": selection.confidence,
        "primary_image_reasoning": selection.reasoning,
        "image_scores": selection.image_scores,
        "content": analysis.content,
        "aggregate_confidence": analysis.aggregate_confidence,
        "needs_review": analysis.needs_review,
        "review_reasons": analysis.review_reasons,
        "model_version": provenance.model_version,
        "images_analyzed": provenance.images_analyzed,
        "duration_ms": provenance.duration_ms,
        "cost_usd": provenance.cost_usd,
        "prompt_tokens": provenance.prompt_tokens,
        "completion_tokens": provenance.completion_tokens,
        "analyzed_at": analysis.analyzed_at,
    }


def build_ai_fields(analysis: ConsolidatedAnalysis) -> Dict[str, Any]:
    """AI columns of the gemstones row."""
    return {
        "ai_color": analysis.color.detected_value,
        "ai_color_description": analysis.color.description,
        "ai_cut": analysis.cut.detected_value,
        "ai_analyzed": True,
        "ai_analysis_date": analysis.analyzed_at,
    }


class AnalysisPersistence:
    """Upserts consolidated analyses keyed by gemstone identity."""

    def __init__(
        self,
        gemstones_repo: GemstonesRepository,
        images_repo: GemstoneImagesRepository,
        analysis_repo: AnalysisRepository,
    ):
        self.gemstones_repo = gemstones_repo
        self.images_repo = images_repo
        self.analysis_repo = analysis_repo

    async def save(self, gemstone_id: str, analysis: ConsolidatedAnalysis) -> None:
        """
        Write the whole analysis. Safe to repeat with the same input.

        Raises:
            PersistenceError: any write failed; retry the whole save
        """
        if analysis.gemstone_id != gemstone_id:
            raise PersistenceError(
                f"Analysis belongs to {analysis.gemstone_id}",
                gemstone_id=gemstone_id,
                operation="save",
            )

        # `ai_analyzed` on the gemstones row is written last and marks the save
        # as complete; until then the gemstone stays in the pending query.
        operation = "gemstone_images.set_primary"
        try:
            image_id = analysis.selection.selected_image_id
            if image_id:
                await self.images_repo.set_primary(gemstone_id, image_id)
            elif analysis.selection.has_winner:
                logger.warning(f"Primary for {gemstone_id} has no stable id, image flags left unchanged")

            operation = "gemstones_ai_analysis.upsert"
            await self.analysis_repo.upsert_for_gemstone(build_analysis_record(analysis))

            operation = "gemstones.update_ai_fields"
            await self.gemstones_repo.update_ai_fields(gemstone_id, build_ai_fields(analysis))

        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Save failed for {gemstone_id} at {operation}: {e}")
            raise PersistenceError(
                getattr(e, "message", None) or str(e),
                gemstone_id=gemstone_id,
                operation=operation,
            ) from e

        logger.info(f"Saved analysis for {gemstone_id} (needs_review={analysis.needs_review})")
