"""
Gemstone domain model.
Represents a catalog gemstone as consumed from the import subsystem.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class GemstonePhoto(BaseModel):
    """Photograph belonging to one gemstone. Owned by the import subsystem."""

    id: Optional[str] = Field(None, description="Stable photo identifier")
    gemstone_id: Optional[str] = Field(None, description="Owning gemstone")
    image_url: str = Field(..., description="Storage location")
    image_order: int = Field(0, description="Display order")
    is_primary: bool = Field(False, description="Storefront primary flag")

    class Config:
        frozen = True


class DeclaredMetadata(BaseModel):
    """Human-entered attribute values stored before any AI analysis runs."""

    name: Optional[str] = Field(None, description="Gemstone type, e.g. citrine")
    cut: Optional[str] = Field(None, description="Declared cut/shape")
    color: Optional[str] = Field(None, description="Declared color")
    weight_carats: Optional[float] = Field(None, ge=0, description="Weight in carats")
    clarity: Optional[str] = Field(None, description="Declared clarity")
    origin: Optional[str] = Field(None, description="Origin name")

    def summary(self) -> str:
        """One-line description used as model context."""
        weight = f"{self.weight_carats}ct" if self.weight_carats is not None else "N/A"
        parts = [weight, self.color or "", self.name or "gemstone"]
        return " ".join(p for p in parts if p)


class Gemstone(BaseModel):
    """Gemstone with declared metadata and ordered photographs."""

    id: str = Field(..., description="Gemstone identifier")
    serial_number: Optional[str] = Field(None, description="Internal serial number")
    declared: DeclaredMetadata = Field(default_factory=DeclaredMetadata)
    photos: List[GemstonePhoto] = Field(default_factory=list)

    @property
    def has_photos(self) -> bool:
        return len(self.photos) > 0
