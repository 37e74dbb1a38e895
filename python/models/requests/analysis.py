"""
Analysis request models.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class BatchAnalysisRequest(BaseModel):
    """
    Request to analyze several gemstones.

    With `gemstone_ids` omitted the pending discovery query picks them.
    """

    gemstone_ids: Optional[List[str]] = Field(None, min_length=1, description="Explicit gemstone IDs")
    limit: int = Field(10, ge=1, le=500, description="Pending gemstones to pick when no IDs are given")
    concurrency: Optional[int] = Field(None, ge=1, le=20, description="Override batch concurrency")

