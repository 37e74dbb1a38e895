from types import SimpleNamespace

from infrastructure.vision import OpenAIVisionModel, image_part, text_part


class FakeCompletions:
    def __init__(self):
        self.params = None

    async def create(self, **params):
        self.params = params
        return SimpleNamespace(
            model="gpt-4o-mini-2024-07-18",
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": true}'))],
            usage=SimpleNamespace(prompt_tokens=812, completion_tokens=64),
        )


def fake_client():
    completions = FakeCompletions()
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


async def test_complete_requests_strict_json_schema():
    client, completions = fake_client()
    model = OpenAIVisionModel(client, "gpt-4o-mini", temperature=0.3)
    schema = {"type": "object", "properties": {}, "required": [], "additionalProperties": False}

    response = await model.complete(
        system_prompt="system",
        content=[text_part("hello"), image_part("https://cdn.example.com/a.jpg", "high")],
        schema_name="GemCutDetection",
        schema=schema,
        max_tokens=500,
    )

    params = completions.params
    assert params["model"] == "gpt-4o-mini"
    assert params["temperature"] == 0.3
    assert params["max_tokens"] == 500
    assert params["response_format"]["json_schema"] == {"name": "GemCutDetection", "schema": schema, "strict": True}
    assert params["messages"][1]["content"][1]["image_url"] == {"url": "https://cdn.example.com/a.jpg", "detail": "high"}

    assert response.content == '{"ok": true}'
    assert response.model == "gpt-4o-mini-2024-07-18"
    assert response.prompt_tokens == 812
    assert response.completion_tokens == 64


async def test_temperature_omitted_when_unset():
    client, completions = fake_client()

    await OpenAIVisionModel(client, "gpt-4o").complete("s", [text_part("x")], "S", {})

    assert "temperature" not in completions.params
