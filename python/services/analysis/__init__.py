"""
Gemstone image analysis.

Modules:
- sampler.py - bounded photo sampling with position -> photo mapping
- detector.py - cut and color detection
- selector.py - primary image selection
- guard.py - time budgets around model calls
- content.py - bilingual catalog content
- consolidation.py - aggregate confidence and review flagging
- persistence.py - upsert of the consolidated record
- pipeline.py - per-gemstone run and batch driver
"""

from services.analysis.sampler import ImageSampler, ImageSample, PositionMap, ImageRef
from services.analysis.detector import AttributeDetector
from services.analysis.selector import PrimaryImageSelector
from services.analysis.guard import ExecutionGuard
from services.analysis.content import ContentGenerator
from services.analysis.consolidation import consolidate
from services.analysis.persistence import AnalysisPersistence
from services.analysis.pricing import UsageMeter, calculate_cost
from services.analysis.pipeline import AnalysisPipeline

__all__ = [
    'ImageSampler',
    'ImageSample',
    'PositionMap',
    'ImageRef',
    'AttributeDetector',
    'PrimaryImageSelector',
    'ExecutionGuard',
    'ContentGenerator',
    'consolidate',
    'AnalysisPersistence',
    'UsageMeter',
    'calculate_cost',
    'AnalysisPipeline',
]
