import pytest

from infrastructure.vision import VisionResponse
from services.analysis.pricing import UsageMeter, calculate_cost


def test_known_models_are_priced_per_thousand_tokens():
    assert calculate_cost("gpt-4o", 1000, 1000) == pytest.approx(0.0125)
    assert calculate_cost("gpt-4o-mini", 10_000, 2_000) == pytest.approx(0.0015 + 0.0012)


def test_dated_model_names_use_base_pricing():
    assert calculate_cost("gpt-4o-mini-2024-07-18", 1000, 0) == pytest.approx(0.00015)
    assert calculate_cost("gpt-4o-2024-08-06", 1000, 0) == pytest.approx(0.0025)


def test_unknown_model_has_no_price():
    assert calculate_cost("some-local-model", 1000, 1000) is None


def test_meter_sums_calls():
    meter = UsageMeter()
    meter.record(VisionResponse(content="{}", model="gpt-4o-mini", prompt_tokens=1000, completion_tokens=0))
    meter.record(VisionResponse(content="{}", model="gpt-4o", prompt_tokens=0, completion_tokens=1000))

    assert meter.calls == 2
    assert meter.prompt_tokens == 1000
    assert meter.completion_tokens == 1000
    assert meter.cost_usd == pytest.approx(0.00015 + 0.01)


def test_meter_cost_unknown_when_any_model_unpriced():
    meter = UsageMeter()
    meter.record(VisionResponse(content="{}", model="gpt-4o", prompt_tokens=10, completion_tokens=10))
    meter.record(VisionResponse(content="{}", model="mystery", prompt_tokens=10, completion_tokens=10))

    assert meter.cost_usd is None


def test_empty_meter_costs_nothing():
    assert UsageMeter().cost_usd == 0.0
