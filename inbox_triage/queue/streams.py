"""
Redis Streams Processing Queue

Durable work queue connecting the triage pass (producer) with the job
processor (consumer). Jobs are stream entries read through a consumer group;
an entry stays pending until acknowledged, and entries left pending longer
than the claim idle time are re-delivered. Delivery is therefore
at-least-once with no ordering guarantee across jobs and no deduplication.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, ResponseError

from inbox_triage.email_processing.models import ProcessingJob
from inbox_triage.errors import InvalidJobError, TransportError
from inbox_triage.queue.config import QueueConfig

logger = logging.getLogger(__name__)


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value


@dataclass
class QueuedJob:
    """A job read from the stream, not yet acknowledged."""
    stream_id: str
    job_name: str
    payload: str
    enqueued_at: float

    def to_processing_job(self) -> ProcessingJob:
        """
        Decode the payload into a ProcessingJob.

        Raises:
            InvalidJobError: If the payload is not a valid job mapping
        """
        try:
            data = json.loads(self.payload)
        except (TypeError, ValueError) as e:
            raise InvalidJobError(f"Job {self.stream_id} payload is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidJobError(f"Job {self.stream_id} payload is not a mapping")
        return ProcessingJob.from_dict(data)

    @classmethod
    def from_entry(cls, stream_id: Any, fields: Dict[Any, Any]) -> "QueuedJob":
        decoded = {_decode(k): _decode(v) for k, v in fields.items()}
        try:
            enqueued_at = float(decoded.get('enqueued_at', 0))
        except ValueError:
            enqueued_at = 0.0
        return cls(
            stream_id=_decode(stream_id),
            job_name=decoded.get('job_name', ''),
            payload=decoded.get('payload', ''),
            enqueued_at=enqueued_at
        )


class RedisStreamsQueue:
    """
    Named processing queue on a Redis stream with one consumer group.

    Attributes:
        redis: Asynchronous Redis client
        config: Queue naming and timing configuration
    """

    def __init__(self, redis_client: Any, config: Optional[QueueConfig] = None):
        self.redis = redis_client
        self.config = config or QueueConfig()

    async def ensure_group(self) -> None:
        """Create the stream and consumer group if they do not exist yet."""
        try:
            await self.redis.xgroup_create(
                self.config.stream_key,
                self.config.group_name,
                id="0",
                mkstream=True
            )
            logger.info(f"Created consumer group {self.config.group_name} on {self.config.stream_key}")
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise TransportError(f"Could not create consumer group: {e}") from e
        except RedisError as e:
            raise TransportError(f"Could not create consumer group: {e}") from e

    async def enqueue(self, job: ProcessingJob) -> str:
        """
        Append a job to the stream.

        Returns:
            Stream id of the new entry

        Raises:
            TransportError: If Redis is unreachable
        """
        fields = {
            'job_name': self.config.job_name,
            'payload': json.dumps(job.to_dict()),
            'enqueued_at': str(time.time())
        }
        try:
            stream_id = await self.redis.xadd(self.config.stream_key, fields)
        except RedisError as e:
            raise TransportError(f"Could not enqueue job for message {job.message_id}: {e}") from e

        stream_id = _decode(stream_id)
        logger.debug(f"Enqueued {self.config.job_name} job {stream_id} for message {job.message_id}")
        return stream_id

    async def dequeue(self, consumer: str, block_ms: Optional[int] = None) -> Optional[QueuedJob]:
        """
        Read the next undelivered job for ``consumer``.

        Returns:
            The job, or None when nothing arrived within ``block_ms``
        """
        try:
            response = await self.redis.xreadgroup(
                groupname=self.config.group_name,
                consumername=consumer,
                streams={self.config.stream_key: '>'},
                count=1,
                block=block_ms if block_ms is not None else self.config.block_ms
            )
        except RedisError as e:
            raise TransportError(f"Could not read from queue: {e}") from e

        for _stream, entries in response or []:
            for stream_id, fields in entries:
                if fields:
                    return QueuedJob.from_entry(stream_id, fields)
        return None

    async def reclaim_stale(self, consumer: str) -> List[QueuedJob]:
        """
        Take over jobs another consumer read but never acknowledged.

        Returns:
            Jobs idle longer than the claim idle time, now owned by ``consumer``
        """
        try:
            response = await self.redis.xautoclaim(
                self.config.stream_key,
                self.config.group_name,
                consumer,
                min_idle_time=self.config.claim_idle_ms,
                start_id="0-0",
                count=self.config.claim_batch_size
            )
        except RedisError as e:
            raise TransportError(f"Could not reclaim stale jobs: {e}") from e

        entries = response[1] if response and len(response) > 1 else []
        jobs = [QueuedJob.from_entry(stream_id, fields) for stream_id, fields in entries if fields]
        if jobs:
            logger.info(f"Reclaimed {len(jobs)} stale job(s) for consumer {consumer}")
        return jobs

    async def ack(self, stream_id: str) -> bool:
        """Acknowledge a job so it is never re-delivered."""
        try:
            acknowledged = await self.redis.xack(
                self.config.stream_key,
                self.config.group_name,
                stream_id
            )
        except RedisError as e:
            raise TransportError(f"Could not acknowledge job {stream_id}: {e}") from e
        return bool(acknowledged)

    async def get_queue_stats(self) -> Dict[str, int]:
        """Return stream length and pending (delivered, unacknowledged) count."""
        try:
            length = await self.redis.xlen(self.config.stream_key)
            pending = await self.redis.xpending(self.config.stream_key, self.config.group_name)
        except RedisError as e:
            raise TransportError(f"Could not read queue statistics: {e}") from e
        return {
            'stream_length': int(length or 0),
            'pending': int((pending or {}).get('pending', 0))
        }

    async def close(self) -> None:
        await self.redis.aclose()


def create_redis_queue(config: QueueConfig) -> RedisStreamsQueue:
    """Create a queue backed by a new Redis connection pool."""
    client = aioredis.from_url(config.redis_url)
    return RedisStreamsQueue(client, config)
