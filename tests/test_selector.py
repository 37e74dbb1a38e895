import pytest

from core.exceptions import MalformedSelectionError
from models.domain.analysis import ImageScoreCard
from models.domain.gemstone import DeclaredMetadata
from models.domain.policy import SelectionPolicy
from services.analysis.sampler import ImageRef, PositionMap
from services.analysis.selector import PrimaryImageSelector, apply_tool_cap, has_tool, is_unusable
from fakes import FakeVisionModel, score, selection_response

DECLARED = DeclaredMetadata(name="sapphire", cut="oval", color="blue", weight_carats=2.1)


def images(count):
    return [f"https://cdn.example.com/{i}.jpg" for i in range(count)]


def selector_for(response, **kwargs):
    model = FakeVisionModel({"PrimaryImageSelection": response})
    return PrimaryImageSelector(model, **kwargs), model


async def test_single_image_shortcut_skips_model():
    selector, model = selector_for(AssertionError("must not be called"))
    mapping = PositionMap([ImageRef("photo-a", 4)])

    result = await selector.select_primary(images(1), DECLARED, mapping)

    assert model.calls == []
    assert result.model_called is False
    assert result.selected_image_id == "photo-a"
    assert result.selected_index == 4
    card = result.image_scores[0]
    assert (card.quality_score, card.composition_score, card.clarity_score, card.professional_score,
            card.overall_score) == (0.8, 0.8, 0.8, 0.8, 0.8)
    assert result.confidence == 0.8


async def test_images_are_labeled_by_position_with_summary():
    response = selection_response(1, [score(0, 0.7), score(1, 0.9), score(2, 0.6)])
    selector, model = selector_for(response)

    await selector.select_primary(images(3), DECLARED)

    content = model.calls[0]["content"]
    texts = [part["text"] for part in content if part["type"] == "text"]
    assert "2.1ct blue sapphire" in texts[0]
    assert "Declared cut: oval" in texts[0]
    assert [t.strip() for t in texts[1:]] == ["--- Image 0 ---", "--- Image 1 ---", "--- Image 2 ---"]


async def test_winner_is_resolved_to_stable_identifier():
    response = selection_response(1, [score(0, 0.7), score(1, 0.9), score(2, 0.6)])
    selector, _ = selector_for(response)
    mapping = PositionMap([ImageRef("photo-x", 12), ImageRef("photo-y", 3), ImageRef("photo-z", 7)])

    result = await selector.select_primary(images(3), DECLARED, mapping)

    assert result.selected_image_id == "photo-y"
    assert result.selected_index == 3
    assert result.selected_position == 1
    assert result.confidence == 0.9


async def test_without_mapping_falls_back_to_positions():
    response = selection_response(2, [score(0, 0.5), score(1, 0.6), score(2, 0.95)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(3), DECLARED)

    assert result.selected_image_id is None
    assert result.selected_index == 2


@pytest.mark.parametrize("issue", [
    "measurement tool visible",
    "Caliper in frame",
    "gauge partially covering the stone",
    "ruler at the bottom edge",
    "stone held by tweezers",
    "on a jewelry scale",
])
async def test_tool_issues_cap_overall_score(issue):
    response = selection_response(0, [score(0, 0.95, issues=[issue], sub=1.0), score(1, 0.55)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    capped = result.image_scores[0]
    assert capped.overall_score <= 0.4
    assert capped.quality_score == 1.0
    assert result.selected_position == 1


async def test_clean_mediocre_image_beats_perfect_image_with_tool():
    response = selection_response(0, [
        score(0, 0.98, issues=["measurement tool visible"]),
        score(1, 0.61, issues=["slightly off-center"]),
    ])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.selected_position == 1


async def test_every_image_with_tool_still_selects_least_intrusive():
    response = selection_response(-1, [
        score(0, 0.3, issues=["caliper covering half the stone"]),
        score(1, 0.4, issues=["small ruler in corner"]),
        score(2, 0.35, issues=["measurement tool visible"]),
    ])
    selector, _ = selector_for(response)
    mapping = PositionMap([ImageRef("a", 0), ImageRef("b", 1), ImageRef("c", 2)])

    result = await selector.select_primary(images(3), DECLARED, mapping)

    assert result.has_winner
    assert result.selected_image_id == "b"


async def test_out_of_range_pick_is_replaced_by_best_usable():
    response = selection_response(9, [score(0, 0.6), score(1, 0.8)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.selected_position == 1


async def test_model_choice_wins_ties():
    response = selection_response(1, [score(0, 0.8), score(1, 0.8)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.selected_position == 1


async def test_all_unusable_images_yield_no_winner():
    response = selection_response(-1, [
        score(0, 0.0, issues=["blank"]),
        score(1, 0.0, issues=["corrupted file"]),
        score(2, 0.1, issues=["no gemstone visible"]),
    ])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(3), DECLARED)

    assert not result.has_winner
    assert result.selected_image_id is None
    assert result.confidence == 0.0
    assert len(result.image_scores) == 3


@pytest.mark.parametrize("raw", [
    "{broken",
    {"reasoning": "x", "image_scores": []},
    selection_response(0, []),
    selection_response(0, [score(0, 1.3)]),
    selection_response(0, [score(0, 0.8), score(5, 0.7)]),
    selection_response(0, [score(0, 0.8), score(0, 0.7)]),
    selection_response(1, [score(0, 0.8)]),
    selection_response(-2, [score(0, 0.8), score(1, 0.7)]),
])
async def test_malformed_selection_raises(raw):
    selector, _ = selector_for(raw)

    with pytest.raises(MalformedSelectionError) as exc_info:
        await selector.select_primary(images(2), DECLARED)

    assert exc_info.value.code == "MALFORMED_SELECTION"


async def test_custom_policy_is_applied():
    response = selection_response(0, [score(0, 0.9, issues=["tool visible"], tool=True), score(1, 0.1)])
    selector, _ = selector_for(response, policy=SelectionPolicy(tool_score_cap=0.2, single_image_score=0.5))

    result = await selector.select_primary(images(2), DECLARED)

    assert result.image_scores[0].overall_score == 0.2
    assert result.selected_position == 0


def test_tool_cap_leaves_clean_cards_alone():
    card = ImageScoreCard.uniform(0, 0.9)

    assert not has_tool(card)
    assert apply_tool_cap(card, 0.4).overall_score == 0.9


async def test_tool_flag_caps_even_without_issue_text():
    response = selection_response(0, [score(0, 0.95, tool=True), score(1, 0.6)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.image_scores[0].tool_visible
    assert result.image_scores[0].overall_score == 0.4
    assert result.selected_position == 1


async def test_unusable_flag_excludes_image():
    response = selection_response(0, [score(0, 0.9, unusable=True), score(1, 0.5)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.selected_position == 1


@pytest.mark.parametrize("issue", [
    "hard to judge the stone's scale",
    "no measurement tool visible",
    "shot without a ruler for reference",
    "tool marks on the setting",
])
async def test_issue_wording_without_an_instrument_does_not_cap(issue):
    response = selection_response(0, [score(0, 0.95, issues=[issue]), score(1, 0.62)])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.image_scores[0].overall_score == 0.95
    assert result.selected_position == 0


@pytest.mark.parametrize("issue", [
    "plain blank background, no context",
    "not corrupted but slightly dark",
])
async def test_issue_wording_that_is_not_unusable_keeps_image_eligible(issue):
    response = selection_response(0, [
        score(0, 0.85, issues=[issue]),
        score(1, 0.4, issues=["caliper in frame"], tool=True),
    ])
    selector, _ = selector_for(response)

    result = await selector.select_primary(images(2), DECLARED)

    assert result.selected_position == 0


def test_issue_text_fallback_for_unflagged_cards():
    blank = ImageScoreCard.uniform(0, 0.0).model_copy(update={"issues": ["blank"]})
    caliper = ImageScoreCard.uniform(1, 0.9).model_copy(update={"issues": ["caliper partly in frame"]})

    assert is_unusable(blank)
    assert has_tool(caliper)
    assert not has_tool(blank)


async def test_partial_scores_are_malformed_not_winnerless():
    response = selection_response(2, [score(0, 0.0, issues=["blank"], unusable=True)])
    selector, _ = selector_for(response)

    with pytest.raises(MalformedSelectionError) as exc_info:
        await selector.select_primary(images(3), DECLARED)

    assert "1, 2" in exc_info.value.message
