"""
Analysis repository - handles gemstones_ai_analysis table.
One row per gemstone; re-running an analysis replaces the row.
"""

from typing import Optional, Dict, Any

from repositories.base import BaseRepository
from core.logging import get_logger

logger = get_logger(__name__)


class AnalysisRepository(BaseRepository):
    """
    Repository for gemstones_ai_analysis table.
    """

    table_name = "gemstones_ai_analysis"

    async def upsert_for_gemstone(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert or replace the analysis row keyed by gemstone_id.
        """
        row = await self.upsert(record, on_conflict="gemstone_id")
        logger.debug(f"Analysis upserted for gemstone {record.get('gemstone_id')}")
        return row

    async def get_by_gemstone(self, gemstone_id: str) -> Optional[Dict[str, Any]]:
        """
        Get stored analysis for a gemstone.
        """
        try:
            response = self._execute(
                "get_by_gemstone",
                self.table.select("*").eq("gemstone_id", gemstone_id),
            )
            return response.data[0] if response.data else None

        except Exception as e:
            self._handle_error("get_by_gemstone", e)
