"""
Services package.

Main modules:
- analysis/ - gemstone image analysis pipeline (AnalysisPipeline)
"""

from services.analysis import AnalysisPipeline

__all__ = [
    'AnalysisPipeline',
]
