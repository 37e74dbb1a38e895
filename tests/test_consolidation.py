import logging

import pytest

from models.domain.analysis import (
    AttributeDetection,
    AttributeKind,
    GeneratedContent,
    ImageScoreCard,
    Provenance,
    SelectionResult,
)
from models.domain.policy import ReviewPolicy
from services.analysis.consolidation import aggregate_confidence, consolidate, has_placeholder
from fakes import content_response


def detection(kind, value, confidence=0.9, matches=True, declared=None):
    return AttributeDetection(
        kind=kind,
        detected_value=value,
        confidence=confidence,
        matches_declared=matches,
        declared_value=declared or value,
        reasoning="visible in photos",
        images_analyzed=3,
    )


def selection(score=0.9, winner=True):
    return SelectionResult(
        selected_image_id="img-0" if winner else None,
        selected_index=0 if winner else None,
        selected_position=0 if winner else None,
        image_scores=[ImageScoreCard.uniform(0, score)],
        reasoning="best",
        images_analyzed=3,
    )


def provenance(duration_ms=4000):
    return Provenance(model_version="gpt-4o-mini", images_analyzed=3, duration_ms=duration_ms, cost_usd=0.002)


def clean_run(cut_conf=0.9, color_conf=0.9, **overrides):
    kwargs = dict(
        gemstone_id="gem-1",
        detections=[
            detection(AttributeKind.CUT, "round", cut_conf),
            detection(AttributeKind.COLOR, "blue", color_conf),
        ],
        selection=selection(),
        provenance=provenance(),
    )
    kwargs.update(overrides)
    return consolidate(**kwargs)


def test_confident_matching_run_is_auto_publishable():
    analysis = clean_run()

    assert analysis.needs_review is False
    assert analysis.review_reasons == []
    assert analysis.aggregate_confidence == 0.9
    assert analysis.cut.detected_value == "round"
    assert analysis.color.detected_value == "blue"


def test_mismatch_is_always_reviewed():
    analysis = clean_run(detections=[
        detection(AttributeKind.CUT, "oval", 0.95, matches=False, declared="round"),
        detection(AttributeKind.COLOR, "blue", 0.95),
    ])

    assert analysis.needs_review is True
    assert analysis.review_reasons == ["metadata_mismatch:cut"]


@pytest.mark.parametrize("confidence, flagged", [(0.69, True), (0.70, False), (0.71, False)])
def test_aggregate_confidence_boundary(confidence, flagged):
    analysis = clean_run(cut_conf=confidence)

    assert analysis.needs_review is flagged
    assert ("low_aggregate_confidence" in analysis.review_reasons) is flagged


def test_selection_confidence_joins_the_aggregate():
    analysis = clean_run(selection=selection(score=0.65))

    assert analysis.aggregate_confidence == 0.65
    assert analysis.review_reasons == ["low_aggregate_confidence"]


def test_single_weak_detection_is_flagged_separately():
    analysis = clean_run(color_conf=0.55)

    assert "weak_detection:color" in analysis.review_reasons
    assert "low_aggregate_confidence" in analysis.review_reasons


def test_slow_run_is_flagged_even_when_confident():
    analysis = clean_run(provenance=provenance(duration_ms=30001))

    assert analysis.review_reasons == ["slow_run"]


def test_duration_at_ceiling_is_not_slow():
    assert clean_run(provenance=provenance(duration_ms=30000)).needs_review is False


def test_missing_primary_is_flagged():
    analysis = clean_run(selection=selection(winner=False))

    assert "no_primary_image" in analysis.review_reasons


def test_every_condition_is_reported():
    analysis = clean_run(
        detections=[
            detection(AttributeKind.CUT, "oval", 0.5, matches=False, declared="emerald"),
            detection(AttributeKind.COLOR, "green", 0.4, matches=False, declared="blue"),
        ],
        provenance=provenance(duration_ms=45000),
    )

    assert analysis.review_reasons == [
        "slow_run",
        "low_aggregate_confidence",
        "metadata_mismatch:cut",
        "metadata_mismatch:color",
        "weak_detection:cut",
        "weak_detection:color",
    ]


def test_clean_content_does_not_flag():
    content = GeneratedContent(**content_response(confidence=0.85))

    analysis = clean_run(content=content)

    assert analysis.needs_review is False
    assert analysis.aggregate_confidence == 0.85


def test_few_highlights_are_flagged():
    content = GeneratedContent(**content_response(highlights=["Vivid", "Rare"]))

    assert clean_run(content=content).review_reasons == ["few_highlights"]


@pytest.mark.parametrize("text", [
    "A stone from ... with excellent clarity.",
    "Weight: N/A carats.",
    "Mined in [ORIGIN] by hand.",
    "Perfect for {occasion}.",
    "TODO write this",
    "todo: add origin story",
    "PLACEHOLDER",
    "A stone of rare beauty…",
])
def test_placeholder_text_is_flagged(text):
    content = GeneratedContent(**content_response(technical_en=text))

    assert "placeholder_text" in clean_run(content=content).review_reasons


def test_plain_prose_has_no_placeholder():
    assert not has_placeholder("A 1.52 carat sapphire from Sri Lanka, cut as an oval.")


def test_low_content_confidence_lowers_aggregate():
    content = GeneratedContent(**content_response(confidence=0.6))

    analysis = clean_run(content=content)

    assert analysis.aggregate_confidence == 0.6
    assert analysis.review_reasons == ["low_aggregate_confidence"]


def test_policy_thresholds_are_overridable():
    strict = ReviewPolicy(min_aggregate_confidence=0.95, min_detection_confidence=0.95)

    analysis = clean_run(policy=strict)

    assert analysis.review_reasons == [
        "low_aggregate_confidence",
        "weak_detection:cut",
        "weak_detection:color",
    ]


def test_aggregate_is_the_weakest_link():
    detections = [detection(AttributeKind.CUT, "round", 0.8), detection(AttributeKind.COLOR, "blue", 0.75)]

    assert aggregate_confidence(detections, selection(score=0.9)) == 0.75


def test_both_attribute_kinds_are_required():
    with pytest.raises(ValueError):
        consolidate("gem-1", [detection(AttributeKind.CUT, "round")], selection(), provenance())


def test_flagged_run_logs_its_reasons(caplog):
    with caplog.at_level(logging.INFO, logger="services.analysis.consolidation"):
        clean_run(cut_conf=0.5)

    assert "REVIEW gem-1" in caplog.text
    assert "weak_detection:cut" in caplog.text
