"""Gateway to an OpenAI-compatible chat-completions endpoint."""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import aiohttp

from aisignal.errors import GatewayError
from aisignal.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of one model call: raw text or the error that prevented it."""

    text: Optional[str] = None
    error: Optional[GatewayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class ModelGateway(Protocol):
    """Anything that turns a prompt into model text."""

    async def complete(self, prompt: str) -> GatewayResult: ...

    async def close(self) -> None: ...


class ChatCompletionGateway:
    """Single-attempt chat-completions client with a hard timeout.

    Features:
    - Bearer token auth, JSON response format
    - Total request timeout; the in-flight request is aborted on expiry
    - No internal retries (one attempt per request)
    """

    DEFAULT_ENDPOINT = "https://free.v36.cm/v1/chat/completions"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        endpoint: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 150,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the gateway.

        Args:
            api_key: Provider API key (empty = gateway disabled, calls fail)
            endpoint: Chat-completions URL
            model: Model name
            temperature: Sampling temperature
            max_tokens: Completion token cap
            timeout: Total wall-clock budget per call in seconds
        """
        self.api_key = api_key
        self.endpoint = endpoint or self.DEFAULT_ENDPOINT
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        if not self.api_key:
            logger.warning("No model API key configured - every call uses the fallback")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    async def _request(self, prompt: str) -> str:
        """Send the prompt and return the message content.

        Raises:
            GatewayError: On missing key, non-200 status, malformed envelope,
                network error or timeout
        """
        if not self.api_key:
            raise GatewayError("Model API key not configured")

        session = await self._ensure_session()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with session.post(
                self.endpoint,
                json=self.build_payload(prompt),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    error = await response.text()
                    raise GatewayError(f"HTTP {response.status}: {error[:200]}")

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise GatewayError(f"Malformed response body: {e}") from e

        except asyncio.TimeoutError as e:
            raise GatewayError(f"Model call timed out after {self.timeout:g}s") from e
        except aiohttp.ClientError as e:
            raise GatewayError(f"Network error: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GatewayError("Malformed response envelope") from e

        if not isinstance(content, str):
            raise GatewayError("Malformed response envelope")
        return content.strip()

    async def complete(self, prompt: str) -> GatewayResult:
        """Call the model once.

        Args:
            prompt: Rendered prompt

        Returns:
            GatewayResult holding the text, or the GatewayError on failure
        """
        try:
            text = await self._request(prompt)
        except GatewayError as e:
            logger.warning("Model call failed", error=e.message, model=self.model)
            return GatewayResult(error=e)

        logger.debug("Model call complete", model=self.model, length=len(text))
        return GatewayResult(text=text)

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
