"""
Vision model capability.

Anything that accepts images plus a prompt contract and returns structured
JSON. The pipeline only talks to VisionModel, so tests can inject a
deterministic fake and production uses OpenAIVisionModel.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.logging import get_logger

logger = get_logger(__name__)


def text_part(text: str) -> Dict[str, Any]:
    """Text content block."""
    return {"type": "text", "text": text}


def image_part(url: str, detail: str = "low") -> Dict[str, Any]:
    """Image content block. `url` may be a remote URL or a data URL."""
    return {"type": "image_url", "image_url": {"url": url, "detail": detail}}


class VisionResponse(BaseModel):
    """Raw structured response from a model call."""

    content: str = Field("", description="JSON text returned by the model")
    model: str = Field(..., description="Model that served the call")
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)


class VisionModel(ABC):
    """Capability interface for structured vision/text completions."""

    model_id: str

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        content: List[Dict[str, Any]],
        schema_name: str,
        schema: Dict[str, Any],
        max_tokens: int = 1000,
    ) -> VisionResponse:
        """Run one completion constrained to `schema` and return its raw JSON."""


class OpenAIVisionModel(VisionModel):
    """VisionModel backed by OpenAI chat completions with structured outputs."""

    def __init__(self, client, model_id: str, temperature: Optional[float] = None):
        """
        Args:
            client: openai.AsyncOpenAI instance, constructed once at startup
            model_id: Model name, e.g. gpt-4o-mini
            temperature: Sampling temperature (None = model default)
        """
        self.client = client
        self.model_id = model_id
        self.temperature = temperature

    async def complete(
        self,
        system_prompt: str,
        content: List[Dict[str, Any]],
        schema_name: str,
        schema: Dict[str, Any],
        max_tokens: int = 1000,
    ) -> VisionResponse:
        params: Dict[str, Any] = {
            "model": self.model_id,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "schema": schema,
                    "strict": True,
                },
            },
        }
        if self.temperature is not None:
            params["temperature"] = self.temperature

        response = await self.client.chat.completions.create(**params)

        usage = response.usage
        return VisionResponse(
            content=response.choices[0].message.content or "",
            model=response.model or self.model_id,
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )


def create_openai_client(api_key: Optional[str]):
    """Create the async OpenAI client shared by every model wrapper."""
    from openai import AsyncOpenAI

    if not api_key:
        logger.warning("[CLIENTS] No OpenAI API key provided, relying on OPENAI_API_KEY in environment")
        client = AsyncOpenAI()
    else:
        client = AsyncOpenAI(api_key=api_key)
    logger.info("[CLIENTS] OpenAI client initialized")
    return client


def create_vision_model(client, model_id: str, temperature: Optional[float] = None) -> OpenAIVisionModel:
    """Wrap a shared OpenAI client for one model identifier."""
    logger.info(f"[CLIENTS] Vision model ready: {model_id}")
    return OpenAIVisionModel(client=client, model_id=model_id, temperature=temperature)
