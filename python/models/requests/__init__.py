"""
Request DTOs - API input models.
Used for validating incoming API requests.
"""

from models.requests.analysis import (
    BatchAnalysisRequest,
)

__all__ = [
    'BatchAnalysisRequest',
]
