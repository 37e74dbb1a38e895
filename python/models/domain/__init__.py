"""
Domain models - core business entities.

These are the source of truth for data structures.
All other layers (requests, responses, repositories) derive from these.
"""

from models.domain.gemstone import Gemstone, GemstonePhoto, DeclaredMetadata
from models.domain.analysis import (
    AttributeKind,
    AttributeDetection,
    ImageScoreCard,
    SelectionResult,
    GeneratedContent,
    Provenance,
    ConsolidatedAnalysis,
)
from models.domain.policy import SamplingPolicy, SelectionPolicy, ReviewPolicy
from models.domain.batch import AnalysisFailure, BatchSummary

__all__ = [
    'Gemstone',
    'GemstonePhoto',
    'DeclaredMetadata',
    'AttributeKind',
    'AttributeDetection',
    'ImageScoreCard',
    'SelectionResult',
    'GeneratedContent',
    'Provenance',
    'ConsolidatedAnalysis',
    'SamplingPolicy',
    'SelectionPolicy',
    'ReviewPolicy',
    'AnalysisFailure',
    'BatchSummary',
]
