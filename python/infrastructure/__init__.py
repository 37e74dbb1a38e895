"""
Infrastructure package - external dependencies and integrations.

Modules:
- supabase.py - Unified Supabase client
- vision.py - Vision model capability and OpenAI implementation
- images.py - Photo download and inlining for model calls
"""

from infrastructure.supabase import SupabaseClient
from infrastructure.vision import (
    VisionModel,
    VisionResponse,
    OpenAIVisionModel,
    create_openai_client,
    create_vision_model,
)
from infrastructure.images import ImageLoader

__all__ = [
    'SupabaseClient',
    'VisionModel',
    'VisionResponse',
    'OpenAIVisionModel',
    'create_openai_client',
    'create_vision_model',
    'ImageLoader',
]
