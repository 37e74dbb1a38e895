"""
Repositories package - data access layer.

Repositories handle all database operations.
No business logic - only queries and data transformation.

Usage:
    from repositories import GemstonesRepository

    repo = GemstonesRepository(supabase_client)
    pending = await repo.get_pending(limit=10)
"""

from repositories.base import BaseRepository
from repositories.gemstones_repo import GemstonesRepository, AI_FIELDS
from repositories.images_repo import GemstoneImagesRepository
from repositories.analysis_repo import AnalysisRepository

__all__ = [
    'BaseRepository',
    'GemstonesRepository',
    'GemstoneImagesRepository',
    'AnalysisRepository',
    'AI_FIELDS',
]
