"""OpenAI Responses API client for structured nutrition output."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_journal.services.analysis import NutritionModelClient


@dataclass
class OpenAINutritionClient(NutritionModelClient):
    """Nutrition model client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAINutritionClient":
        """Create an OpenAI nutrition client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        max_output_tokens: int,
        system_prompt: str,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            "max_output_tokens": max_output_tokens,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }

        response = await self.client.responses.create(**request_payload)
        if getattr(response, "status", None) == "incomplete":
            raise RuntimeError("OpenAI response incomplete (max output tokens?)")
        refusal = _find_refusal(response)
        if refusal:
            raise RuntimeError(f"OpenAI refused the request: {refusal}")
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)


def _find_refusal(response: object) -> str | None:
    for item in getattr(response, "output", None) or []:
        for part in getattr(item, "content", None) or []:
            if getattr(part, "type", None) == "refusal":
                return str(getattr(part, "refusal", "")) or "no reason given"
    return None
