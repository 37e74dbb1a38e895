"""
Gemstone images repository - handles gemstone_images table.
"""

from typing import List

from repositories.base import BaseRepository
from models.domain.gemstone import GemstonePhoto
from core.exceptions import NotFoundError
from core.logging import get_logger

logger = get_logger(__name__)


class GemstoneImagesRepository(BaseRepository):
    """
    Repository for gemstone_images table.
    Photos are owned by the import subsystem; only `is_primary` is written here.
    """

    table_name = "gemstone_images"
    model_class = GemstonePhoto

    async def get_by_gemstone(self, gemstone_id: str) -> List[GemstonePhoto]:
        """
        Get all photos of a gemstone ordered by display order.
        """
        try:
            response = self._execute(
                "get_by_gemstone",
                self.table
                .select("id, gemstone_id, image_url, image_order, is_primary")
                .eq("gemstone_id", gemstone_id)
                .order("image_order", desc=False),
            )
            return [self._to_model(row) for row in response.data or [] if row.get("image_url")]

        except Exception as e:
            self._handle_error("get_by_gemstone", e)

    async def set_primary(self, gemstone_id: str, image_id: str) -> None:
        """
        Flag one photo as primary, then clear the flag on every other photo
        of the same gemstone. A failure in between leaves two primaries,
        never none.

        Raises:
            NotFoundError: if the photo does not belong to the gemstone
        """
        try:
            response = self._execute(
                "set_primary.check",
                self.table.select("id").eq("id", image_id).eq("gemstone_id", gemstone_id),
            )
            if not response.data:
                raise NotFoundError("Gemstone image", image_id)

            self._execute(
                "set_primary.set",
                self.table.update({"is_primary": True}).eq("id", image_id).eq("gemstone_id", gemstone_id),
            )
            self._execute(
                "set_primary.clear",
                self.table.update({"is_primary": False}).eq("gemstone_id", gemstone_id).neq("id", image_id),
            )
            logger.info(f"Primary image for {gemstone_id} set to {image_id}")

        except NotFoundError:
            raise
        except Exception as e:
            self._handle_error("set_primary", e)

    def _to_model(self, data) -> GemstonePhoto:
        return GemstonePhoto(
            id=data.get("id"),
            gemstone_id=data.get("gemstone_id"),
            image_url=data["image_url"],
            image_order=data.get("image_order") or 0,
            is_primary=bool(data.get("is_primary")),
        )
