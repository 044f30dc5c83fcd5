"""
Processing queue consumer.

Drains the processing queue one job at a time and hands each job to the
job processor. A job is acknowledged once the processor finishes, whatever
individual steps failed; a consumer that dies before acknowledging leaves
the job pending and another consumer reclaims it later.
"""

import asyncio
import logging
import socket
import os
from typing import List, Optional

from inbox_triage.email_processing.job_processor import JobProcessor
from inbox_triage.errors import InvalidJobError, TransportError
from inbox_triage.queue.streams import QueuedJob, RedisStreamsQueue

logger = logging.getLogger(__name__)


def generate_consumer_name() -> str:
    """Generate a unique consumer name based on hostname and PID."""
    return f"{socket.gethostname()}-{os.getpid()}"


class ProcessingWorker:
    """
    Single active consumer of the processing queue.

    Attributes:
        queue: Processing queue
        processor: Job processor invoked for every job
        consumer_name: Name of this consumer within the group
        error_backoff_seconds: Pause after a failed queue read
    """

    def __init__(self,
                 queue: RedisStreamsQueue,
                 processor: JobProcessor,
                 consumer_name: Optional[str] = None,
                 error_backoff_seconds: float = 5.0):
        self.queue = queue
        self.processor = processor
        self.consumer_name = consumer_name or generate_consumer_name()
        self.error_backoff_seconds = error_backoff_seconds
        self._running = False

    async def run(self) -> None:
        """Consume jobs until stop() is called."""
        await self.queue.ensure_group()
        self._running = True
        logger.info(f"Worker {self.consumer_name} consuming {self.queue.config.stream_key}")

        while self._running:
            await self.run_once()

        logger.info(f"Worker {self.consumer_name} stopped")

    def stop(self) -> None:
        self._running = False

    async def run_once(self) -> int:
        """
        Process stale jobs, or else the next new job.

        Returns:
            Number of jobs handled
        """
        try:
            jobs: List[QueuedJob] = await self.queue.reclaim_stale(self.consumer_name)
            if not jobs:
                job = await self.queue.dequeue(self.consumer_name)
                jobs = [job] if job else []
        except TransportError as e:
            logger.error(f"Error reading from processing queue: {e}")
            await asyncio.sleep(self.error_backoff_seconds)
            return 0

        for job in jobs:
            await self._handle(job)
        return len(jobs)

    async def _handle(self, queued: QueuedJob) -> None:
        if queued.job_name != self.queue.config.job_name:
            logger.warning(f"Skipping job {queued.stream_id} of unknown type '{queued.job_name}'")
        else:
            try:
                job = queued.to_processing_job()
            except InvalidJobError as e:
                logger.error(f"Discarding undecodable job {queued.stream_id}: {e}")
            else:
                try:
                    await self.processor.process(job)
                except Exception as e:
                    logger.error(f"Unexpected error processing job {queued.stream_id}: {e}", exc_info=True)

        try:
            await self.queue.ack(queued.stream_id)
        except TransportError as e:
            logger.error(f"Error acknowledging job {queued.stream_id}, it will be re-delivered: {e}")
