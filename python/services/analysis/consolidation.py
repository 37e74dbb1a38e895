"""
Consolidation & review flagging.

Merges detections, selection and optional content into one
ConsolidatedAnalysis and decides whether a human has to look at it.
False positives are acceptable here; false negatives are not.
"""

import re
from typing import List, Optional, Sequence

from models.domain.analysis import (
    AttributeDetection,
    AttributeKind,
    ConsolidatedAnalysis,
    GeneratedContent,
    Provenance,
    SelectionResult,
)
from models.domain.policy import ReviewPolicy
from core.logging import get_logger, log_review_flag

logger = get_logger(__name__)

# Ellipses standing in for text, bracket/brace template remnants, explicit tokens
PLACEHOLDER_PATTERNS = [
    re.compile(r"\.\.\."),
    re.compile("…"),
    re.compile(r"\bN/A\b", re.IGNORECASE),
    re.compile(r"\[[^\]]*\]"),
    re.compile(r"\{[^}]*\}"),
    re.compile(r"\bTODO\b", re.IGNORECASE),
    re.compile(r"\bPLACEHOLDER\b", re.IGNORECASE),
]


def has_placeholder(text: str) -> bool:
    return any(pattern.search(text) for pattern in PLACEHOLDER_PATTERNS)


def aggregate_confidence(
    detections: Sequence[AttributeDetection],
    selection: SelectionResult,
    content: Optional[GeneratedContent] = None,
) -> float:
    """Weakest link: the minimum of every confidence produced by the run."""
    values = [d.confidence for d in detections]
    values.append(selection.confidence)
    if content is not None:
        values.append(content.confidence)
    return min(values)


def review_reasons(
    detections: Sequence[AttributeDetection],
    selection: SelectionResult,
    provenance: Provenance,
    aggregate: float,
    content: Optional[GeneratedContent] = None,
    policy: ReviewPolicy = None,
) -> List[str]:
    """Every review condition that holds, cheapest checks first."""
    policy = policy or ReviewPolicy()
    reasons = []

    if provenance.duration_ms > policy.max_duration_ms:
        reasons.append("slow_run")

    if aggregate < policy.min_aggregate_confidence:
        reasons.append("low_aggregate_confidence")

    for detection in detections:
        if not detection.matches_declared:
            reasons.append(f"metadata_mismatch:{detection.kind.value}")

    for detection in detections:
        if detection.confidence < policy.min_detection_confidence:
            reasons.append(f"weak_detection:{detection.kind.value}")

    if not selection.has_winner:
        reasons.append("no_primary_image")

    if content is not None:
        highlights = content.marketing_highlights
        if min(len(highlights.en), len(highlights.ru)) < policy.min_highlights:
            reasons.append("few_highlights")

        if any(has_placeholder(text) for text in content.text_fields()):
            reasons.append("placeholder_text")

    return reasons


def consolidate(
    gemstone_id: str,
    detections: Sequence[AttributeDetection],
    selection: SelectionResult,
    provenance: Provenance,
    content: Optional[GeneratedContent] = None,
    policy: ReviewPolicy = None,
) -> ConsolidatedAnalysis:
    """
    Build the persisted unit for one run.

    Args:
        gemstone_id: gemstone the run belongs to
        detections: one AttributeDetection per attribute kind (cut and color)
        selection: primary image verdict
        provenance: model, image count, duration and cost of the run
        content: generated copy, when the run produced any
        policy: review thresholds

    Raises:
        ValueError: a detection kind is missing or repeated
    """
    by_kind = {}
    for detection in detections:
        if detection.kind in by_kind:
            raise ValueError(f"Duplicate {detection.kind.value} detection")
        by_kind[detection.kind] = detection
    missing = [kind.value for kind in AttributeKind if kind not in by_kind]
    if missing:
        raise ValueError(f"Missing detections: {', '.join(missing)}")

    aggregate = aggregate_confidence(detections, selection, content)
    reasons = review_reasons(detections, selection, provenance, aggregate, content, policy)

    if reasons:
        log_review_flag(logger, gemstone_id, reasons)

    return ConsolidatedAnalysis(
        gemstone_id=gemstone_id,
        cut=by_kind[AttributeKind.CUT],
        color=by_kind[AttributeKind.COLOR],
        selection=selection,
        content=content,
        aggregate_confidence=aggregate,
        needs_review=bool(reasons),
        review_reasons=reasons,
        provenance=provenance,
    )
