"""
Attribute Detector

One vision model call per attribute (cut, color) over the sampled images.
The model names its own value, scores its confidence and states whether it
agrees with the declared metadata. No retries here; that is the caller's call.
"""

import json
from typing import Optional, Sequence
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import InsufficientInputError, MalformedDetectionError
from infrastructure.vision import VisionModel, image_part, text_part
from models.domain.analysis import AttributeDetection, AttributeKind
from services.analysis import prompts
from services.analysis.pricing import UsageMeter
from services.analysis.schemas import (
    COLOR_DETECTION_SCHEMA,
    CUT_DETECTION_SCHEMA,
    ColorDetectionPayload,
    CutDetectionPayload,
    describe_error,
)

import logging

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class AttributeDetector:
    """
    Detects a physical attribute from the sampled working set.

    Args:
        model: VisionModel used for the call
        image_detail: image fidelity hint (low | high | auto)
        max_tokens: completion budget per call
    """

    def __init__(self, model: VisionModel, image_detail: str = "low", max_tokens: int = 1000):
        self.model = model
        self.image_detail = image_detail
        self.max_tokens = max_tokens

    async def detect(
        self,
        kind: AttributeKind,
        images: Sequence[str],
        declared_value: Optional[str],
        meter: Optional[UsageMeter] = None,
    ) -> AttributeDetection:
        """
        Detect `kind` from `images`.

        Args:
            kind: cut or color
            images: already-sampled image payloads (URLs or data URLs)
            declared_value: human-entered value to cross-validate against
            meter: optional usage meter for cost accounting

        Raises:
            InsufficientInputError: no images
            MalformedDetectionError: response fails structural validation
        """
        step = f"detect_{kind.value}"
        if not images:
            raise InsufficientInputError(f"At least one image is required for {kind.value} detection", step=step)

        declared = (declared_value or "").strip() or UNKNOWN

        content = [text_part(prompts.detection_user_prompt(kind, declared))]
        for image in images:
            content.append(image_part(image, self.image_detail))

        if kind == AttributeKind.CUT:
            schema_name, schema = "GemCutDetection", CUT_DETECTION_SCHEMA
        else:
            schema_name, schema = "GemColorDetection", COLOR_DETECTION_SCHEMA

        response = await self.model.complete(
            system_prompt=prompts.detection_system_prompt(kind),
            content=content,
            schema_name=schema_name,
            schema=schema,
            max_tokens=self.max_tokens,
        )
        if meter is not None:
            meter.record(response)

        detection = self._parse(kind, response.content, declared, len(images), step)
        logger.info(
            f"Detected {kind.value}: {detection.detected_value} "
            f"(confidence {detection.confidence:.2f}, declared '{declared}', "
            f"{'match' if detection.matches_declared else 'MISMATCH'})"
        )
        return detection

    def _parse(self, kind: AttributeKind, raw: str, declared: str, count: int, step: str) -> AttributeDetection:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedDetectionError(f"response is not JSON ({e})", step=step)
        if not isinstance(data, dict):
            raise MalformedDetectionError("response is not a JSON object", step=step)

        try:
            if kind == AttributeKind.CUT:
                payload = CutDetectionPayload(**data)
                detected, description = payload.detected_cut, None
            else:
                payload = ColorDetectionPayload(**data)
                detected, description = payload.detected_color, payload.color_description
        except PydanticValidationError as e:
            raise MalformedDetectionError(describe_error(e), step=step)

        return AttributeDetection(
            kind=kind,
            detected_value=detected.strip().lower(),
            description=description,
            confidence=payload.confidence,
            matches_declared=payload.matches_metadata,
            declared_value=None if declared == UNKNOWN else declared,
            reasoning=payload.reasoning,
            images_analyzed=count,
        )

