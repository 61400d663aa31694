from ticket_ai.services.llm.base import CompletionProvider, LLMResponse
from ticket_ai.services.llm.openai_provider import OpenAIProvider

__all__ = ["CompletionProvider", "LLMResponse", "OpenAIProvider"]
