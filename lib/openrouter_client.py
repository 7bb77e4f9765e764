import asyncio
import logging
from typing import List

from openai import OpenAI

from lib.config import Settings
from lib.error_handler import AppError, CompletionFailure

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """OpenRouter access through the OpenAI SDK (embeddings and chat)."""

    def __init__(self, settings: Settings, client: OpenAI = None):
        self.settings = settings
        self.client = client or OpenAI(
            api_key=settings.openrouter_key,
            base_url=settings.openrouter_base_url,
            timeout=settings.request_timeout_seconds,
            default_headers={
                "HTTP-Referer": settings.app_referer,
                "X-Title": settings.app_title,
            },
        )

    async def embed(self, text: str) -> List[float]:
        """Get embedding for text"""
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: self.client.embeddings.create(
                model=self.settings.embedding_model,
                input=text
            )
        )
        if not response.data:
            raise AppError("No embedding data returned from OpenRouter")
        return response.data[0].embedding

    async def complete(self, system_prompt: str, user_message: str) -> str:
        """
        Generate one chat completion for the given system prompt and user message
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message}
        ]

        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: self.client.chat.completions.create(
                model=self.settings.chat_model,
                messages=messages,
                temperature=self.settings.chat_temperature,
                max_tokens=self.settings.chat_max_tokens
            )
        )

        if not response.choices:
            raise CompletionFailure("No choices returned from OpenRouter")

        reply = (response.choices[0].message.content or "").strip()
        if not reply:
            raise CompletionFailure("Empty completion returned from OpenRouter")
        return reply
