"""
Primary Image Selector

Scores every sampled image against the presentation rubric and picks the
storefront primary. The model's verdict is re-checked after parsing:
tool-bearing images are capped, and a winner is always chosen while at
least one image is usable.
"""

import json
import re
from typing import List, Optional, Sequence
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import MalformedSelectionError
from infrastructure.vision import VisionModel, image_part, text_part
from models.domain.analysis import ImageScoreCard, SelectionResult
from models.domain.gemstone import DeclaredMetadata
from models.domain.policy import SelectionPolicy
from services.analysis import prompts
from services.analysis.pricing import UsageMeter
from services.analysis.sampler import PositionMap
from services.analysis.schemas import PRIMARY_IMAGE_SELECTION_SCHEMA, SelectionPayload, describe_error

import logging

logger = logging.getLogger(__name__)

# Fallback for replies that name a problem in `issues` without setting the flag.
# Instrument nouns only; "scale" and "tool" need a qualifier.
TOOL_ISSUE = re.compile(
    r"\b(calipers?|callipers?|gauges?|rulers?|tweezers|loupes?"
    r"|(measuring|measurement|weighing|jewel(le)?ry|jewel(l)?er'?s?|digital|carat)\s+(tools?|instruments?|devices?|scales?))\b",
    re.IGNORECASE,
)
UNUSABLE_ISSUE = re.compile(
    r"^\s*blank\s*$"
    r"|\bblank\s+(image|photo|picture|frame|file)\b"
    r"|\b(image|photo|picture|frame) is blank\b"
    r"|\bcorrupt(ed)?\b"
    r"|\bno gemstone\b"
    r"|\bgemstone not visible\b",
    re.IGNORECASE,
)
# A negation earlier in the same clause ("no caliper", "without a ruler")
NEGATED = re.compile(r"\b(no|not|without|free of)\b[\w\s'-]*$", re.IGNORECASE)


def mentions(pattern: re.Pattern, issue: str) -> bool:
    """True when `pattern` occurs in `issue` outside a negated clause."""
    for match in pattern.finditer(issue):
        if not NEGATED.search(issue[:match.start()]):
            return True
    return False


def has_tool(card: ImageScoreCard) -> bool:
    return card.tool_visible or any(mentions(TOOL_ISSUE, issue) for issue in card.issues)


def is_unusable(card: ImageScoreCard) -> bool:
    return card.unusable or any(mentions(UNUSABLE_ISSUE, issue) for issue in card.issues)


def apply_tool_cap(card: ImageScoreCard, cap: float) -> ImageScoreCard:
    """Clamp overall_score when a measurement instrument is in frame."""
    if has_tool(card) and card.overall_score > cap:
        return card.model_copy(update={"overall_score": cap})
    return card


def pick_winner(cards: Sequence[ImageScoreCard], model_choice: int) -> Optional[int]:
    """
    Position of the best usable card, or None when every card is unusable.

    Highest overall score wins; the model's own choice wins ties.
    """
    usable = [card for card in cards if not is_unusable(card)]
    if not usable:
        return None

    best_score = max(card.overall_score for card in usable)
    for card in usable:
        if card.index == model_choice and card.overall_score == best_score:
            return card.index
    for card in usable:
        if card.overall_score == best_score:
            return card.index
    return None


class PrimaryImageSelector:
    """
    Chooses the primary photo of a gemstone.

    Args:
        model: VisionModel used for the multi-image call
        policy: single-image score and tool cap
        image_detail: image fidelity hint (low | high | auto)
        max_tokens: completion budget for the selection call
    """

    def __init__(
        self,
        model: VisionModel,
        policy: SelectionPolicy = None,
        image_detail: str = "low",
        max_tokens: int = 2000,
    ):
        self.model = model
        self.policy = policy or SelectionPolicy()
        self.image_detail = image_detail
        self.max_tokens = max_tokens

    async def select_primary(
        self,
        images: Sequence[str],
        declared: DeclaredMetadata,
        mapping: Optional[PositionMap] = None,
        meter: Optional[UsageMeter] = None,
    ) -> SelectionResult:
        """
        Select the primary image of the sampled working set.

        Args:
            images: sampled image payloads, in working-set order
            declared: declared metadata used as context
            mapping: position -> photo identity; positional when omitted
            meter: optional usage meter for cost accounting

        Raises:
            MalformedSelectionError: response fails structural validation
        """
        if not images:
            raise MalformedSelectionError("no images supplied")

        if mapping is None:
            mapping = PositionMap.positional(len(images))
        elif len(mapping) != len(images):
            raise ValueError(f"Mapping covers {len(mapping)} positions but {len(images)} images were given")

        if len(images) == 1:
            return self._single_image(mapping)

        content = [text_part(prompts.selection_user_prompt(len(images), declared))]
        for i, image in enumerate(images):
            content.append(text_part(f"\n--- Image {i} ---"))
            content.append(image_part(image, self.image_detail))

        response = await self.model.complete(
            system_prompt=prompts.SELECTION_SYSTEM_PROMPT,
            content=content,
            schema_name="PrimaryImageSelection",
            schema=PRIMARY_IMAGE_SELECTION_SCHEMA,
            max_tokens=self.max_tokens,
        )
        if meter is not None:
            meter.record(response)

        payload = self._parse(response.content, len(images))
        cards = [
            apply_tool_cap(ImageScoreCard(**score.model_dump()), self.policy.tool_score_cap)
            for score in payload.image_scores
        ]
        cards.sort(key=lambda card: card.index)

        winner = pick_winner(cards, payload.selected_index)
        if winner is None:
            logger.warning(f"Every sampled image is unusable ({len(cards)} scored), no primary selected")
            return SelectionResult(
                image_scores=cards,
                reasoning=payload.reasoning,
                images_analyzed=len(images),
            )

        if winner != payload.selected_index:
            logger.info(f"Selection overridden: model picked {payload.selected_index}, best usable is {winner}")

        ref = mapping.resolve(winner)
        return SelectionResult(
            selected_image_id=ref.photo_id,
            selected_index=ref.original_index,
            selected_position=winner,
            image_scores=cards,
            reasoning=payload.reasoning,
            images_analyzed=len(images),
        )

    def _single_image(self, mapping: PositionMap) -> SelectionResult:
        ref = mapping.resolve(0)
        return SelectionResult(
            selected_image_id=ref.photo_id,
            selected_index=ref.original_index,
            selected_position=0,
            image_scores=[ImageScoreCard.uniform(0, self.policy.single_image_score)],
            reasoning="Only one image available",
            images_analyzed=1,
            model_called=False,
        )

    @staticmethod
    def _parse(raw: str, count: int) -> SelectionPayload:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedSelectionError(f"response is not JSON ({e})")
        if not isinstance(data, dict):
            raise MalformedSelectionError("response is not a JSON object")

        try:
            payload = SelectionPayload(**data)
        except PydanticValidationError as e:
            raise MalformedSelectionError(describe_error(e))

        if not payload.image_scores:
            raise MalformedSelectionError("no image scores returned")

        seen: List[int] = []
        for score in payload.image_scores:
            if score.index >= count:
                raise MalformedSelectionError(f"score for image {score.index} outside range 0..{count - 1}")
            if score.index in seen:
                raise MalformedSelectionError(f"duplicate score for image {score.index}")
            seen.append(score.index)

        missing = sorted(set(range(count)) - set(seen))
        if missing:
            raise MalformedSelectionError(f"no score for image(s) {', '.join(map(str, missing))}")

        return payload
