"""
Base repository with common functionality.
"""

import time
from typing import Optional, Dict, Any, TypeVar, Generic
from pydantic import BaseModel

from core.exceptions import DatabaseError, NotFoundError
from core.logging import get_logger, log_db_query

logger = get_logger(__name__)

T = TypeVar('T', bound=BaseModel)


class BaseRepository(Generic[T]):
    """
    Base repository providing common database operations.

    Subclasses should:
    - Set `table_name` class attribute
    - Set `model_class` class attribute
    - Implement domain-specific methods
    """

    table_name: str = None
    model_class: type = None

    def __init__(self, supabase_client):
        """
        Initialize repository.

        Args:
            supabase_client: SupabaseClient instance (from infrastructure/)
        """
        self.client = supabase_client
        self.logger = get_logger(f"repo.{self.__class__.__name__}")

    @property
    def table(self):
        """Get table reference for queries."""
        return self.client.client.table(self.table_name)

    # ============================================================
    # Generic CRUD Operations
    # ============================================================

    async def get_by_id(self, id: str) -> Optional[T]:
        """
        Get single record by ID.

        Returns:
            Model instance or None
        """
        try:
            response = self._execute("get_by_id", self.table.select("*").eq("id", id))

            if not response.data:
                return None

            return self._to_model(response.data[0])

        except Exception as e:
            self._handle_error("get_by_id", e)

    async def update(self, id: str, data: Dict[str, Any]) -> T:
        """
        Update existing record.
        """
        try:
            clean_data = self.client.clean_for_json(data)

            response = self._execute("update", self.table.update(clean_data).eq("id", id))

            if not response.data:
                raise NotFoundError(self.table_name.rstrip('s').title(), id)

            return self._to_model(response.data[0])

        except NotFoundError:
            raise
        except Exception as e:
            self._handle_error("update", e)

    async def upsert(self, data: Dict[str, Any], on_conflict: str) -> T:
        """
        Insert or replace a record keyed by `on_conflict`.
        """
        try:
            clean_data = self.client.clean_for_json(data)

            response = self._execute(
                "upsert",
                self.table.upsert(clean_data, on_conflict=on_conflict),
            )

            if not response.data:
                raise DatabaseError("Upsert returned no data", operation=f"{self.table_name}.upsert")

            return self._to_model(response.data[0])

        except DatabaseError:
            raise
        except Exception as e:
            self._handle_error("upsert", e)

    # ============================================================
    # Helper Methods
    # ============================================================

    def _execute(self, operation: str, query):
        """Execute a query builder and log its duration."""
        start = time.perf_counter()
        response = query.execute()
        log_db_query(self.logger, operation, self.table_name, (time.perf_counter() - start) * 1000)
        return response

    def _to_model(self, data: Dict) -> T:
        """
        Convert database row to model instance.
        Override in subclasses for custom transformation.
        """
        if self.model_class is None:
            return data
        return self.model_class(**data)

    def _handle_error(self, operation: str, error: Exception):
        """
        Handle database error with logging.
        """
        self.logger.error(f"{operation} failed: {error}")
        raise DatabaseError(str(error), operation=f"{self.table_name}.{operation}")
