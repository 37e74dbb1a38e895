import os

# Settings are built at import time and require the store credentials.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

import random

import pytest

from repositories import AnalysisRepository, GemstoneImagesRepository, GemstonesRepository
from services.analysis import AnalysisPipeline
from fakes import (
    FakeSupabase,
    FakeSupabaseClient,
    FakeVisionModel,
    color_response,
    cut_response,
    uniform_selection,
)


@pytest.fixture
def store():
    return FakeSupabase()


@pytest.fixture
def supabase_client(store):
    return FakeSupabaseClient(store)


@pytest.fixture
def gemstones_repo(supabase_client):
    return GemstonesRepository(supabase_client)


@pytest.fixture
def images_repo(supabase_client):
    return GemstoneImagesRepository(supabase_client)


@pytest.fixture
def analysis_repo(supabase_client):
    return AnalysisRepository(supabase_client)


@pytest.fixture
def vision_model():
    return FakeVisionModel({
        "GemCutDetection": cut_response(),
        "GemColorDetection": color_response(),
        "PrimaryImageSelection": uniform_selection,
    })


@pytest.fixture
def make_pipeline(gemstones_repo, images_repo, analysis_repo):
    """Factory: pipeline over the fake store with a given model and options."""

    def factory(model, **options):
        options.setdefault("retry_delay", 0)
        options.setdefault("rng", random.Random(7))
        return AnalysisPipeline(
            gemstones_repo=gemstones_repo,
            images_repo=images_repo,
            analysis_repo=analysis_repo,
            vision_model=model,
            **options,
        )

    return factory
