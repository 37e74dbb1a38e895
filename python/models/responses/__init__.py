"""
Response DTOs - API output models.
Used for structuring API responses.
"""

from models.responses.analysis import (
    BatchAnalysisResponse,
    PendingGemstone,
)

__all__ = [
    'BatchAnalysisResponse',
    'PendingGemstone',
]
