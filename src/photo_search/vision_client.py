from loguru import logger
import time
import httpx
from typing import Any, Dict, List

from photo_search.errors import MalformedModelOutput, ModelRequestFailed


class VisionModelClient:
    """
    Thin client for an OpenAI-compatible multimodal chat-completions endpoint.
    One call per batch, no retries: a failed batch is the aggregator's problem.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.1,
        timeout: float = 60.0,
    ):
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def complete(self, messages: List[Dict[str, Any]]) -> str:
        """Sends the messages and returns the raw text of the first choice."""
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        start = time.time()
        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ModelRequestFailed(None, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise ModelRequestFailed(response.status_code, response.text)

        logger.debug(f"Vision call ({self.model}) answered in {round((time.time() - start) * 1000, 2)}ms")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedModelOutput(f"Unexpected completion envelope: {response.text[:200]}") from e

        if not isinstance(content, str):
            raise MalformedModelOutput(f"Completion content is not text: {content!r}")
        return content
