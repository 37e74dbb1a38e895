"""
Model pricing and per-run usage accounting.
"""

from typing import Dict, Optional

# USD per 1k tokens
MODEL_PRICING: Dict[str, Dict[str, float]] = {
    "gpt-4o": {"input_per_1k": 0.0025, "output_per_1k": 0.01},
    "gpt-4o-mini": {"input_per_1k": 0.00015, "output_per_1k": 0.0006},
    "gpt-5": {"input_per_1k": 0.01, "output_per_1k": 0.03},
    "gpt-5-mini": {"input_per_1k": 0.0015, "output_per_1k": 0.006},
    "gpt-5-nano": {"input_per_1k": 0.0005, "output_per_1k": 0.002},
}


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> Optional[float]:
    """
    Cost of one call in USD, or None if the model has no known pricing.

    Dated model names (gpt-4o-mini-2024-07-18) are priced as their base model.
    """
    rates = MODEL_PRICING.get(model)
    if rates is None:
        for name in sorted(MODEL_PRICING, key=len, reverse=True):
            if model.startswith(name + "-"):
                rates = MODEL_PRICING[name]
                break
    if rates is None:
        return None

    input_cost = (prompt_tokens or 0) / 1000 * rates["input_per_1k"]
    output_cost = (completion_tokens or 0) / 1000 * rates["output_per_1k"]
    return input_cost + output_cost


class UsageMeter:
    """Accumulates tokens and cost over the model calls of one run."""

    def __init__(self):
        self.calls = 0
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self._cost = 0.0
        self._cost_known = True

    def record(self, response) -> None:
        """Add a VisionResponse to the totals."""
        self.calls += 1
        self.prompt_tokens += response.prompt_tokens
        self.completion_tokens += response.completion_tokens

        cost = calculate_cost(response.model, response.prompt_tokens, response.completion_tokens)
        if cost is None:
            self._cost_known = False
        else:
            self._cost += cost

    @property
    def cost_usd(self) -> Optional[float]:
        """Total cost, None if any call used an unpriced model."""
        if self.calls == 0:
            return 0.0
        return self._cost if self._cost_known else None
