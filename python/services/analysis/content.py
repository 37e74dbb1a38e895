"""
Bilingual catalog content generated from metadata, detections and images.
"""

import json
from typing import Optional, Sequence
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import MalformedContentError
from infrastructure.vision import VisionModel, image_part, text_part
from models.domain.analysis import GeneratedContent
from models.domain.gemstone import DeclaredMetadata
from services.analysis import prompts
from services.analysis.pricing import UsageMeter
from services.analysis.schemas import TEXT_GENERATION_SCHEMA, describe_error

import logging

logger = logging.getLogger(__name__)


class ContentGenerator:
    """Writes GeneratedContent with one text model call."""

    def __init__(self, model: VisionModel, image_detail: str = "low", max_tokens: int = 4000):
        self.model = model
        self.image_detail = image_detail
        self.max_tokens = max_tokens

    async def generate(
        self,
        declared: DeclaredMetadata,
        detected_cut: Optional[str] = None,
        detected_color: Optional[str] = None,
        images: Sequence[str] = (),
        meter: Optional[UsageMeter] = None,
    ) -> GeneratedContent:
        """
        Raises:
            MalformedContentError: response fails structural validation
        """
        content = [
            text_part(prompts.content_user_prompt(declared, detected_cut, detected_color, with_images=bool(images)))
        ]
        for image in images:
            content.append(image_part(image, self.image_detail))

        response = await self.model.complete(
            system_prompt=prompts.CONTENT_SYSTEM_PROMPT,
            content=content,
            schema_name="GemstoneContent",
            schema=TEXT_GENERATION_SCHEMA,
            max_tokens=self.max_tokens,
        )
        if meter is not None:
            meter.record(response)

        try:
            data = json.loads(response.content)
        except (TypeError, ValueError) as e:
            raise MalformedContentError(f"response is not JSON ({e})")
        if not isinstance(data, dict):
            raise MalformedContentError("response is not a JSON object")

        try:
            generated = GeneratedContent(**data)
        except PydanticValidationError as e:
            raise MalformedContentError(describe_error(e))

        logger.info(
            f"Generated content (confidence {generated.confidence:.2f}, "
            f"{len(generated.marketing_highlights.en)} highlights)"
        )
        return generated
