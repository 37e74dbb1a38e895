"""
Gemstones repository - handles gemstones table.
"""

from typing import Optional, List, Dict, Any

from repositories.base import BaseRepository
from models.domain.gemstone import DeclaredMetadata
from core.exceptions import GemstoneNotFoundError, ValidationError
from core.logging import get_logger

logger = get_logger(__name__)

# Columns this service may write. Human-entered `cut` / `color` are never among them.
AI_FIELDS = frozenset({
    "ai_color",
    "ai_color_description",
    "ai_cut",
    "ai_analyzed",
    "ai_analysis_date",
})

DECLARED_COLUMNS = "id, serial_number, name, cut, color, weight_carats, clarity, origins(name)"


class GemstonesRepository(BaseRepository):
    """
    Repository for gemstones table.
    Reads declared metadata and writes AI-derived columns only.
    """

    table_name = "gemstones"

    # ============================================================
    # Read Operations
    # ============================================================

    async def get_declared(self, gemstone_id: str) -> Dict[str, Any]:
        """
        Get gemstone row with declared metadata.

        Returns:
            {"id", "serial_number", "declared": DeclaredMetadata}

        Raises:
            GemstoneNotFoundError: if no such gemstone
        """
        try:
            response = self._execute(
                "get_declared",
                self.table.select(DECLARED_COLUMNS).eq("id", gemstone_id),
            )
        except Exception as e:
            self._handle_error("get_declared", e)

        if not response.data:
            raise GemstoneNotFoundError(gemstone_id)

        row = response.data[0]
        origin = row.get("origins") or {}
        declared = DeclaredMetadata(
            name=row.get("name"),
            cut=row.get("cut"),
            color=row.get("color"),
            weight_carats=row.get("weight_carats"),
            clarity=row.get("clarity"),
            origin=origin.get("name") if isinstance(origin, dict) else None,
        )
        return {
            "id": row["id"],
            "serial_number": row.get("serial_number"),
            "declared": declared,
        }

    async def get_pending(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get gemstones that have not been analyzed yet.
        """
        try:
            response = self._execute(
                "get_pending",
                self.table
                .select("id, serial_number, name")
                .or_("ai_analyzed.is.null,ai_analyzed.eq.false")
                .order("created_at", desc=False)
                .limit(limit),
            )
            return response.data or []

        except Exception as e:
            self._handle_error("get_pending", e)

    # ============================================================
    # AI Fields
    # ============================================================

    async def update_ai_fields(self, gemstone_id: str, fields: Dict[str, Any]) -> Optional[Dict]:
        """
        Write AI-derived columns for a gemstone.

        Raises:
            ValidationError: if `fields` contains anything outside AI_FIELDS
        """
        forbidden = set(fields) - AI_FIELDS
        if forbidden:
            raise ValidationError(
                f"Refusing to write non-AI columns: {', '.join(sorted(forbidden))}",
                field="gemstones",
            )

        return await self.update(gemstone_id, fields)
