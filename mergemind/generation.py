import logging

import httpx

from .composer import compose
from .errors import GenerationError
from .fallback import FallbackMessage
from .models import PullRequestContext

logger = logging.getLogger(__name__)


class GenerationClient:
    """Single-shot chat completion against an OpenAI compatible API. Never retries."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        max_tokens: int = 300,
        temperature: float = 0.6,
        timeout_s: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, base_url=self.base_url, transport=self._transport
            ) as client:
                response = await client.post("/chat/completions", headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Completion request failed with status {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise GenerationError(f"Completion request timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Completion request failed: {e}") from e
        except ValueError as e:
            raise GenerationError("Completion response is not valid JSON") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Completion response has no message content") from e

        if not isinstance(content, str) or not content.strip():
            raise GenerationError(f"Empty completion from {self.model}")
        return content.strip()


class CommentGenerator:
    """Draft the welcome comment, substituting the fallback message on any generation failure"""

    def __init__(self, client: GenerationClient, fallback: FallbackMessage) -> None:
        self.client = client
        self.fallback = fallback

    async def get_comment(self, context: PullRequestContext) -> str:
        system_prompt, user_prompt = compose(context)
        try:
            text = await self.client.generate(system_prompt, user_prompt)
        except GenerationError as e:
            logger.error(f"Comment generation failed for {context.repo_full_name}#{context.number}: {e}")
            logger.info("Falling back to static message")
            return self.fallback.text
        except Exception as e:
            logger.error(
                f"Unexpected error generating comment for {context.repo_full_name}#{context.number}: {e}",
                exc_info=True,
            )
            logger.info("Falling back to static message")
            return self.fallback.text

        text = text.strip()
        if not text:
            logger.error(f"Comment generation returned empty text for {context.repo_full_name}#{context.number}")
            logger.info("Falling back to static message")
            return self.fallback.text
        return text
