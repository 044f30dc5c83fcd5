"""
Error taxonomy for the triage pipeline.

Every external-call site in the pipeline is individually guarded. Gateway and
provider clients raise the exceptions defined here; the Label Resolver, the
Triage Orchestrator and the Job Processor catch them and convert them into a
safe default (fallback category, skipped label mutation, placeholder result).
"""

from typing import Optional


class TriageError(Exception):
    """Base exception for all triage pipeline failures."""
    pass


class TransportError(TriageError):
    """Network or HTTP failure while talking to the mailbox or classification provider."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RateLimitedError(TransportError):
    """Classification provider answered with HTTP 429."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, status=429)


class RateLimitExhaustedError(TriageError):
    """Raised when the bounded rate-limit retry loop runs out of attempts."""

    def __init__(self, attempts: int):
        super().__init__(f"Classification still rate limited after {attempts} attempts")
        self.attempts = attempts


class MissingFieldError(TriageError):
    """A required message header is absent."""

    def __init__(self, field: str, message_id: Optional[str] = None):
        super().__init__(f"Message {message_id or '<unknown>'} is missing required field '{field}'")
        self.field = field
        self.message_id = message_id


class InvalidJobError(TriageError):
    """A queued payload could not be decoded into a ProcessingJob."""
    pass
