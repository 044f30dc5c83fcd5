"""
Cohere Generation Client

Thin asynchronous client for the text-generation endpoint used to classify
message intent. Performs exactly one HTTP POST per call and maps the outcome
onto the pipeline's error taxonomy; retry policy lives in the classifier.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp

from inbox_triage.errors import RateLimitedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.cohere.ai/v1/generate"


class CohereClient:
    """
    Client for the bearer-authenticated text-generation endpoint.

    Attributes:
        api_key: Bearer token
        api_url: Generation endpoint
        session: Optional shared aiohttp session; a short-lived one is opened per
                 request when absent
    """

    def __init__(self,
                 api_key: str,
                 api_url: str = DEFAULT_API_URL,
                 session: Optional[aiohttp.ClientSession] = None):
        if not api_key:
            raise ValueError("COHERE_API_KEY must be provided")
        self.api_key = api_key
        self.api_url = api_url
        self.session = session

    async def close(self) -> None:
        """Close the shared session, if any."""
        if self.session is not None and not self.session.closed:
            await self.session.close()

    async def generate(self,
                       prompt: str,
                       model: str,
                       max_tokens: int = 10,
                       temperature: float = 0.5) -> str:
        """
        Request a completion and return the text of the first generation.

        Args:
            prompt: Full prompt text
            model: Model name
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Raw text of the first generation

        Raises:
            RateLimitedError: On HTTP 429
            TransportError: On any other failure
        """
        payload = {
            "model": model,
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        start_time = datetime.now()
        try:
            if self.session is not None:
                data = await self._post(self.session, payload, headers)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, payload, headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(f"Generation request failed: {e}") from e

        duration = (datetime.now() - start_time).total_seconds()
        logger.debug(f"Generation response received in {duration:.3f}s")

        try:
            text = data["generations"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransportError(f"Unexpected generation response shape: {e}") from e
        if not isinstance(text, str):
            raise TransportError(f"Generation text is {type(text).__name__}, expected str")
        return text

    async def _post(self,
                    session: aiohttp.ClientSession,
                    payload: Dict[str, Any],
                    headers: Dict[str, str]) -> Any:
        async with session.post(self.api_url, json=payload, headers=headers) as response:
            if response.status == 429:
                error_text = await response.text()
                logger.warning(f"Generation endpoint rate limited the request: {error_text}")
                raise RateLimitedError(f"Generation endpoint returned 429: {error_text}")
            if response.status < 200 or response.status >= 300:
                error_text = await response.text()
                raise TransportError(
                    f"Generation endpoint returned {response.status}: {error_text}",
                    status=response.status
                )
            return await response.json()
