from typing import List, Optional

import httpx

from ticket_ai.logging_config import get_logger
from ticket_ai.services.errors import ExternalServiceError
from ticket_ai.services.llm.base import CompletionProvider, LLMResponse

logger = get_logger("llm.openai")


class OpenAIProvider(CompletionProvider):
    """OpenAI chat-completions provider."""

    def __init__(self, api_key: str, default_model: str = "gpt-4o", timeout_seconds: float = 30.0):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout_seconds = timeout_seconds
        self.base_url = "https://api.openai.com/v1/chat/completions"

    def generate(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> LLMResponse:
        model = model or self.default_model
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug(f"OpenAI request: model={model}, messages_count={len(messages)}")

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.base_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.TimeoutException as e:
            logger.error(f"OpenAI timeout after {self.timeout_seconds}s")
            raise ExternalServiceError(f"OpenAI request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"OpenAI transport error: {e}")
            raise ExternalServiceError(f"OpenAI transport error: {e}") from e

        logger.debug(f"OpenAI response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"OpenAI error: {response.text}")
            raise ExternalServiceError(f"OpenAI API error: {response.status_code} - {response.text}")

        data = response.json()
        content = ""
        if data.get("choices"):
            message = data["choices"][0].get("message", {})
            content = message.get("content") or ""
        logger.debug(f"OpenAI content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
