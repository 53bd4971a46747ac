"""Completion provider adapter.

Wraps a single outbound chat-completion call against an OpenAI-compatible
endpoint (Cloudflare Workers AI by default). The whole call, including
connecting and reading the body, must finish within a fixed deadline and is
never retried; every failure is raised as CompletionError so the caller can
substitute a fallback string.
"""
import asyncio
import logging
from typing import Optional

import httpx
from openai import APIError, APITimeoutError, AsyncOpenAI

from chatapp.config import settings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when the completion provider cannot produce text."""


class CompletionProvider:
    """Client for the external text-generation service."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.CF_API_TOKEN
        self.base_url = base_url if base_url is not None else settings.ai_base_url
        self.model = model or settings.AI_MODEL
        self.timeout = timeout if timeout is not None else settings.AI_TIMEOUT
        self._transport = transport

    def _check_credentials(self) -> None:
        if not self.api_key or not self.base_url:
            logger.error(
                "Missing completion credentials: api_key=%s base_url=%s",
                bool(self.api_key),
                bool(self.base_url),
            )
            raise CompletionError("Completion API credentials are missing or invalid")

    def complete(self, prompt: str, max_tokens: int = 500) -> str:
        """
        Send one user-role prompt and return the generated text.

        Args:
            prompt: Prompt text
            max_tokens: Upper bound on generated tokens

        Returns:
            Content of the first choice

        Raises:
            CompletionError: On missing credentials, deadline exceeded,
                non-success status, malformed payload or blank content
        """
        self._check_credentials()

        try:
            response = asyncio.run(
                asyncio.wait_for(self._create(prompt, max_tokens), timeout=self.timeout)
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            logger.error("Completion API timed out after %ss", self.timeout)
            raise CompletionError("Completion API request timed out") from e
        except APIError as e:
            status_code = getattr(e, "status_code", None)
            logger.error("Completion API error (status=%s): %s", status_code, e)
            raise CompletionError(f"Completion API error ({status_code}): {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            logger.warning("Unexpected response format from completion API: %r", response)
            raise CompletionError("Unexpected response format from completion API") from e

        if not isinstance(content, str) or not content.strip():
            raise CompletionError("Completion API returned empty content")

        return content

    async def _create(self, prompt: str, max_tokens: int):
        http_client = None
        if self._transport is not None:
            http_client = httpx.AsyncClient(transport=self._transport)

        # Closing the client also closes its connection pool, even on cancel
        async with AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=http_client,
        ) as client:
            return await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
            )
