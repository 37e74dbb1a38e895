"""
Prompt texts for the vision and text model calls.
"""

from typing import Optional

from models.domain.analysis import AttributeKind
from models.domain.gemstone import DeclaredMetadata

CUT_SYSTEM_PROMPT = """You are an expert gemologist who identifies gemstone cuts and shapes from photographs.

Common cuts:
- Round (circular outline)
- Princess (square, pointed corners)
- Emerald (rectangular, step facets, cut corners)
- Cushion (square or rectangular, rounded corners)
- Oval
- Pear (teardrop)
- Marquise (navette, pointed ends)
- Asscher (square step cut, cropped corners)
- Radiant (rectangular, brilliant facets, cropped corners)
- Heart
- Trillion (triangular)
- Baguette (long narrow rectangle)

Judge outline, faceting pattern and proportions. Compare your answer with the
declared cut you are given and set matches_metadata accordingly."""

COLOR_SYSTEM_PROMPT = """You are an expert gemologist who identifies gemstone color from photographs.

Common colors: red, pink, orange, yellow, green, blue, purple, brown, black,
white, gray, colorless, smoky, amber, violet, teal, coral, peach, mint,
multi-color.

For near-colorless stones distinguish true colorless from faint yellow,
brown or gray tints. For colored stones name the dominant hue, then describe
secondary tones, saturation and any zoning in color_description.

Compare your answer with the declared color you are given and set
matches_metadata accordingly."""

SELECTION_SYSTEM_PROMPT = """You are a professional gemstone photographer choosing the primary product image for an online listing.

Score every image from 0 to 1 on:
1. quality_score - resolution, lighting, color accuracy
2. composition_score - framing, background, angle
3. clarity_score - focus, sharpness, visible detail
4. professional_score - product photography standard and appeal
and give an overall_score.

SCORING RULES (strict):
- An image with NO measurement instrument, caliper, gauge, scale, ruler or other tool in frame
  scores in the 0.6-1.0 range.
- An image with ANY such tool visible has overall_score at most 0.4, no matter how good
  its lighting or composition is. Set `tool_visible` and name the tool in `issues`
  (e.g. "measurement tool visible").
- A mediocre clean image beats a perfect image with a tool.
- A single gemstone as the sole subject beats multi-object framing.
- Sharper focus and a cleaner background break ties.

You MUST select an image. If every image shows a tool, pick the one where the tool is least
intrusive. Return -1 only when every image is blank, corrupted or shows no gemstone at all,
and then set `unusable` on those images and name the problem in `issues`."""

CONTENT_SYSTEM_PROMPT = """You are a gemstone copywriter and gemologist writing product content for a premium online catalog.

Write every text field in English (en) and Russian (ru). Be accurate to the metadata and
images provided, never invent certifications or treatments, and never mention the internal
serial number. Marketing highlights are 3-5 short, benefit-focused bullet points per language.
Use complete sentences; do not leave placeholders, ellipses or bracketed template text.

Report a confidence between 0 and 1. Lower it when images are unavailable or metadata is sparse."""


def detection_system_prompt(kind: AttributeKind) -> str:
    return CUT_SYSTEM_PROMPT if kind == AttributeKind.CUT else COLOR_SYSTEM_PROMPT


def detection_user_prompt(kind: AttributeKind, declared_value: str) -> str:
    if kind == AttributeKind.CUT:
        return f"""Analyze these gemstone image(s) and detect the cut/shape.

Declared cut: "{declared_value}"

Examine:
1. Overall outline of the stone
2. Faceting pattern and arrangement
3. Corner and edge treatment
4. Proportions and symmetry

Give your detection with a confidence score and reasoning. Flag a mismatch with the declared cut."""

    return f"""Analyze these gemstone image(s) and detect the primary color.

Declared color: "{declared_value}"

Examine:
1. Dominant hue
2. Secondary tones or undertones
3. Saturation and intensity
4. Whether the stone is colorless or distinctly colored
5. Color zoning or variation

Give your detection with a confidence score and a detailed color description. Flag a mismatch with the declared color."""


def selection_user_prompt(count: int, declared: DeclaredMetadata) -> str:
    return f"""Analyze these {count} gemstone images and select the best primary product image.

Gemstone: {declared.summary()}
Declared color: {declared.color or "N/A"}
Declared cut: {declared.cut or "N/A"}

Score each image on quality, composition, clarity and professional presentation.
Images are labeled by position; answer with the position of the best one and explain your choice."""


def content_user_prompt(
    declared: DeclaredMetadata,
    detected_cut: Optional[str],
    detected_color: Optional[str],
    with_images: bool,
) -> str:
    lines = [
        "Write catalog content for this gemstone.",
        "",
        f"- Type: {declared.name or 'gemstone'}",
        f"- Weight: {declared.weight_carats if declared.weight_carats is not None else 'unknown'} ct",
        f"- Cut: {detected_cut or declared.cut or 'unknown'}",
        f"- Color: {detected_color or declared.color or 'unknown'}",
    ]
    if declared.clarity:
        lines.append(f"- Clarity: {declared.clarity}")
    if declared.origin:
        lines.append(f"- Origin: {declared.origin}")
    lines.append("")
    if with_images:
        lines.append("Use the attached images to describe what is actually visible.")
    else:
        lines.append("No images are available; visual details cannot be confirmed.")
    return "\n".join(lines)
