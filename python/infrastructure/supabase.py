"""
Unified Supabase client.
Single connection shared by all repositories.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Any
from pydantic import BaseModel
from supabase import create_client, Client

from core.config import settings
from core.exceptions import DatabaseError
from core.logging import get_logger

logger = get_logger(__name__)


class SupabaseClient:
    """
    Unified Supabase client for all database operations.

    Provides:
    - Connection management
    - Type conversion utilities
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        """Initialize Supabase client."""
        self._url = url or settings.supabase_url
        self._key = key or settings.supabase_service_role_key
        self._client: Optional[Client] = None
        self._connect()

    def _connect(self):
        """Establish connection to Supabase."""
        try:
            self._client = create_client(self._url, self._key)
            logger.info("Supabase client initialized")
        except Exception as e:
            logger.error(f"Failed to connect to Supabase: {e}")
            raise DatabaseError(str(e), operation="connect")

    @property
    def client(self) -> Client:
        """Get raw Supabase client for direct queries."""
        if not self._client:
            self._connect()
        return self._client

    def table(self, name: str):
        """Get table reference for chaining."""
        return self.client.table(name)

    # ============================================================
    # Type Conversion Utilities
    # ============================================================

    @staticmethod
    def clean_for_json(data: Dict) -> Dict:
        """Clean dict values for JSON serialization."""
        result = {}
        for key, value in data.items():
            result[key] = SupabaseClient._clean_value(value)
        return result

    @staticmethod
    def _clean_value(value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {k: SupabaseClient._clean_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [SupabaseClient._clean_value(v) for v in value]
        return value
