"""
Models package - data structures for the application.

Subpackages:
- domain/ - Domain models (core business entities)
- requests/ - Request DTOs (API input)
- responses/ - Response DTOs (API output)
"""

# Re-export commonly used models
from models.domain.gemstone import Gemstone, GemstonePhoto, DeclaredMetadata
from models.domain.analysis import (
    AttributeDetection,
    SelectionResult,
    ConsolidatedAnalysis,
)

__all__ = [
    # Gemstone
    'Gemstone',
    'GemstonePhoto',
    'DeclaredMetadata',
    # Analysis
    'AttributeDetection',
    'SelectionResult',
    'ConsolidatedAnalysis',
]
