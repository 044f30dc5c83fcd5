"""
Intent Classifier

Turns raw message text into one of the fixed intent categories using a
remote text-generation call. Owns the rate-limit backoff: a 429 suspends the
calling task for a fixed cooldown and the same input is retried, up to a
bounded number of attempts. Every other failure falls back to the default
category without retrying.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional

from inbox_triage.email_processing.models import Category, FALLBACK_CATEGORY
from inbox_triage.errors import RateLimitedError, RateLimitExhaustedError, TransportError
from inbox_triage.integrations.cohere.client import CohereClient

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = (
    "Classify the following email content into one of the following categories: "
    "Interested, Not Interested, or Requires More Information.\n"
    "Email content: {content} . Just give me only the category. Nothing above it!"
)

_CATEGORY_KEYS: Dict[str, Category] = {
    "".join(category.value.lower().split()): category for category in Category
}


def _lookup_category(raw: Optional[str]) -> Optional[Category]:
    return _CATEGORY_KEYS.get("".join((raw or "").lower().split()))


def normalize_classification(raw: Optional[str]) -> Category:
    """
    Map raw model output onto a category.

    Output is trimmed and lower-cased, then compared against the known
    category names ignoring case and whitespace. Anything unrecognized
    becomes the fallback category.
    """
    text = (raw or "").strip().lower()
    category = _lookup_category(text)
    if category is None:
        logger.warning(
            f"Unexpected classification: {text!r}. "
            f"Defaulting to '{FALLBACK_CATEGORY.value}'."
        )
        return FALLBACK_CATEGORY
    return category


class IntentClassifier:
    """
    Classifies message text via the generation endpoint.

    Attributes:
        client: Generation client
        model: Model name sent with every request
        max_tokens: Generation length limit
        temperature: Sampling temperature
        cooldown_seconds: Fixed wait after a rate-limit response
        max_attempts: Attempts allowed while rate limited
    """

    def __init__(self,
                 client: CohereClient,
                 model: str = "command-light",
                 max_tokens: int = 10,
                 temperature: float = 0.5,
                 cooldown_seconds: float = 60.0,
                 max_attempts: int = 5,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.cooldown_seconds = cooldown_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.metrics = {
            'requests': 0,
            'successes': 0,
            'fallbacks': 0,
            'rate_limit_waits': 0,
            'exhausted': 0,
            'avg_response_time': 0.0
        }

    async def classify(self, text: str) -> Category:
        """
        Classify message text.

        Transport and provider errors yield the fallback category. A rate-limit
        response waits ``cooldown_seconds`` and retries the same text.

        Args:
            text: Message body snippet

        Returns:
            Exactly one Category

        Raises:
            RateLimitExhaustedError: If every attempt was rate limited
        """
        prompt = CLASSIFICATION_PROMPT.format(content=text)

        for attempt in range(1, self.max_attempts + 1):
            self.metrics['requests'] += 1
            start_time = time.monotonic()
            try:
                raw = await self.client.generate(
                    prompt=prompt,
                    model=self.model,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature
                )
            except RateLimitedError:
                if attempt == self.max_attempts:
                    break
                self.metrics['rate_limit_waits'] += 1
                logger.info(
                    f"Rate limit exceeded (attempt {attempt}/{self.max_attempts}). "
                    f"Retrying in {self.cooldown_seconds:g} seconds..."
                )
                await self._sleep(self.cooldown_seconds)
                continue
            except TransportError as e:
                self.metrics['fallbacks'] += 1
                logger.error(f"Error classifying email: {e}")
                return FALLBACK_CATEGORY

            self._record_success(time.monotonic() - start_time)
            if _lookup_category(raw) is None:
                self.metrics['fallbacks'] += 1
            category = normalize_classification(raw)
            logger.debug(f"Classification output {raw!r} normalized to {category.value}")
            return category

        self.metrics['exhausted'] += 1
        logger.error(f"Classification rate limited on all {self.max_attempts} attempts, giving up")
        raise RateLimitExhaustedError(self.max_attempts)

    def _record_success(self, duration: float) -> None:
        successes = self.metrics['successes'] + 1
        self.metrics['avg_response_time'] = (
            (self.metrics['avg_response_time'] * (successes - 1) + duration) / successes
        )
        self.metrics['successes'] = successes

    def get_performance_metrics(self) -> Dict:
        """Get current classification metrics."""
        return dict(self.metrics)
