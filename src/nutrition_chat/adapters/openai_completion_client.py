"""OpenAI chat completions client."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_chat.services.completion import CompletionClient


@dataclass
class OpenAICompletionClient(CompletionClient):
    """Completion client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAICompletionClient":
        """Create an OpenAI completion client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float | None,
    ) -> str:
        """Call chat completions and return the first choice's text."""
        request_payload: dict[str, object] = {
            "model": model,
            "messages": messages,
        }
        if temperature is not None:
            request_payload["temperature"] = temperature

        response = await self.client.chat.completions.create(**request_payload)
        if not response.choices:
            raise RuntimeError("OpenAI returned no choices")
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
