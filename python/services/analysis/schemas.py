"""
Structured output schemas for model calls, plus the pydantic payload
models used to validate what comes back.

Strict JSON schema mode requires every property to be listed in `required`
and `additionalProperties: false` on every object.
"""

from typing import List
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

CUT_DETECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "detected_cut": {
            "type": "string",
            "description": "Cut/shape seen in the images (round, princess, emerald, cushion, oval, pear, marquise, asscher, radiant, heart, trillion, baguette)",
        },
        "confidence": {"type": "number", "description": "Confidence from 0 to 1"},
        "reasoning": {"type": "string", "description": "Why this cut was detected"},
        "matches_metadata": {"type": "boolean", "description": "Detected cut agrees with the declared cut"},
        "metadata_cut": {"type": "string", "description": "Declared cut, echoed back"},
    },
    "required": ["detected_cut", "confidence", "reasoning", "matches_metadata", "metadata_cut"],
    "additionalProperties": False,
}

COLOR_DETECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "detected_color": {
            "type": "string",
            "description": "Primary color (red, pink, orange, yellow, green, blue, purple, brown, black, white, gray, colorless, smoky, amber, violet, teal, coral, peach, mint, multi-color)",
        },
        "confidence": {"type": "number", "description": "Confidence from 0 to 1"},
        "color_description": {
            "type": "string",
            "description": "Nuanced description, e.g. smoky brown with amber undertones",
        },
        "matches_metadata": {"type": "boolean", "description": "Detected color agrees with the declared color"},
        "metadata_color": {"type": "string", "description": "Declared color, echoed back"},
        "reasoning": {"type": "string", "description": "Why this color was detected"},
    },
    "required": [
        "detected_color",
        "confidence",
        "color_description",
        "matches_metadata",
        "metadata_color",
        "reasoning",
    ],
    "additionalProperties": False,
}

IMAGE_SCORE_SCHEMA = {
    "type": "object",
    "properties": {
        "index": {"type": "number"},
        "quality_score": {"type": "number", "description": "Visual quality (0-1)"},
        "composition_score": {"type": "number", "description": "Composition and framing (0-1)"},
        "clarity_score": {"type": "number", "description": "Clarity and focus (0-1)"},
        "professional_score": {"type": "number", "description": "Professional presentation (0-1)"},
        "overall_score": {"type": "number", "description": "Overall score (0-1)"},
        "issues": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Problems with this image, e.g. measurement tool visible",
        },
        "tool_visible": {
            "type": "boolean",
            "description": "A measurement instrument, caliper, gauge, scale, ruler, tweezers or other tool is in frame",
        },
        "unusable": {
            "type": "boolean",
            "description": "Image is blank, corrupted or shows no gemstone",
        },
    },
    "required": [
        "index",
        "quality_score",
        "composition_score",
        "clarity_score",
        "professional_score",
        "overall_score",
        "issues",
        "tool_visible",
        "unusable",
    ],
    "additionalProperties": False,
}

PRIMARY_IMAGE_SELECTION_SCHEMA = {
    "type": "object",
    "properties": {
        "selected_index": {
            "type": "number",
            "description": "Position of the best image (0-based). Only -1 if every image is blank, corrupted or shows no gemstone.",
        },
        "reasoning": {"type": "string", "description": "Why this image was selected"},
        "image_scores": {"type": "array", "items": IMAGE_SCORE_SCHEMA},
    },
    "required": ["selected_index", "reasoning", "image_scores"],
    "additionalProperties": False,
}


def _localized_text(description: str) -> dict:
    return {
        "type": "object",
        "properties": {
            "en": {"type": "string", "description": f"{description} in English"},
            "ru": {"type": "string", "description": f"{description} in Russian"},
        },
        "required": ["en", "ru"],
        "additionalProperties": False,
    }


TEXT_GENERATION_SCHEMA = {
    "type": "object",
    "properties": {
        "technical_description": _localized_text("Technical description (200-300 words)"),
        "emotional_description": _localized_text("Evocative description (150-200 words)"),
        "narrative_story": _localized_text("Narrative story (300-400 words)"),
        "historical_context": _localized_text("Historical context of the gemstone type (150-200 words)"),
        "care_instructions": _localized_text("Care and maintenance instructions (100-150 words)"),
        "promotional_text": _localized_text("Promotional text for occasions and use cases (100-150 words)"),
        "marketing_highlights": {
            "type": "object",
            "properties": {
                "en": {"type": "array", "items": {"type": "string"}, "description": "3-5 highlights in English"},
                "ru": {"type": "array", "items": {"type": "string"}, "description": "3-5 highlights in Russian"},
            },
            "required": ["en", "ru"],
            "additionalProperties": False,
        },
        "confidence": {"type": "number", "description": "Confidence in the generated content (0-1)"},
        "reasoning": {"type": "string", "description": "Limitations behind the confidence score"},
    },
    "required": [
        "technical_description",
        "emotional_description",
        "narrative_story",
        "historical_context",
        "care_instructions",
        "promotional_text",
        "marketing_highlights",
        "confidence",
        "reasoning",
    ],
    "additionalProperties": False,
}


# ============================================================
# Response payloads
# ============================================================

class CutDetectionPayload(BaseModel):
    detected_cut: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1)
    reasoning: str
    matches_metadata: bool
    metadata_cut: str


class ColorDetectionPayload(BaseModel):
    detected_color: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1)
    color_description: str
    matches_metadata: bool
    metadata_color: str
    reasoning: str


class ImageScorePayload(BaseModel):
    index: int = Field(..., ge=0)
    quality_score: float = Field(..., ge=0, le=1)
    composition_score: float = Field(..., ge=0, le=1)
    clarity_score: float = Field(..., ge=0, le=1)
    professional_score: float = Field(..., ge=0, le=1)
    overall_score: float = Field(..., ge=0, le=1)
    issues: List[str] = Field(default_factory=list)
    tool_visible: bool = False
    unusable: bool = False


class SelectionPayload(BaseModel):
    selected_index: int = Field(..., ge=-1)
    reasoning: str
    image_scores: List[ImageScorePayload]


def describe_error(error: PydanticValidationError) -> str:
    """Short description of the first validation problem."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "response"
    return f"{location}: {first.get('msg', 'invalid')}"
