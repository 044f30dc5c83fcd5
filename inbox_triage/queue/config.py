"""
Processing queue configuration.
"""

from dataclasses import dataclass


@dataclass
class QueueConfig:
    """Connection and naming settings for the Redis Streams processing queue."""
    redis_url: str = "redis://localhost:6379"
    queue_name: str = "emailQueue"
    key_prefix: str = "inbox_triage:"
    job_name: str = "processEmail"
    group_name: str = "processors"
    block_ms: int = 5000
    claim_idle_ms: int = 60000
    claim_batch_size: int = 10

    def __post_init__(self):
        if not self.queue_name:
            raise ValueError("queue_name must not be empty")
        if self.block_ms <= 0 or self.claim_idle_ms <= 0:
            raise ValueError("block_ms and claim_idle_ms must be positive")
        if self.claim_batch_size < 1:
            raise ValueError("claim_batch_size must be at least 1")

    @property
    def stream_key(self) -> str:
        return f"{self.key_prefix}{self.queue_name}:stream"

    @classmethod
    def from_settings(cls, settings) -> "QueueConfig":
        """Build a queue config from TriageSettings."""
        return cls(
            redis_url=settings.REDIS_URL,
            queue_name=settings.QUEUE_NAME,
            key_prefix=settings.QUEUE_KEY_PREFIX,
            job_name=settings.JOB_NAME,
            block_ms=settings.QUEUE_BLOCK_MS,
            claim_idle_ms=settings.QUEUE_CLAIM_IDLE_MS,
        )
