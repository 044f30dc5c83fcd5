"""
Triage session wiring.

A TriageSession owns one authenticated mailbox gateway, one classification
client and one queue connection, and builds every pipeline component on top
of them. Nothing in the pipeline reaches for module-level clients, so tests
and concurrent sessions can supply their own collaborators.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from inbox_triage.config.settings import TriageSettings
from inbox_triage.email_processing.classification.classifier import IntentClassifier
from inbox_triage.email_processing.handlers.labels import LabelResolver
from inbox_triage.email_processing.handlers.reply_writer import ReplyComposer
from inbox_triage.email_processing.job_processor import JobProcessor
from inbox_triage.email_processing.processor import TriageOrchestrator
from inbox_triage.integrations.cohere.client import CohereClient
from inbox_triage.integrations.gmail.auth_manager import GmailAuthenticationManager
from inbox_triage.integrations.gmail.client import GmailClient
from inbox_triage.queue.config import QueueConfig
from inbox_triage.queue.streams import RedisStreamsQueue, create_redis_queue
from inbox_triage.queue.worker import ProcessingWorker

logger = logging.getLogger(__name__)


@dataclass
class TriageSession:
    """Explicit context threaded through every pipeline component."""
    settings: TriageSettings
    gmail: GmailClient
    cohere: CohereClient
    queue: RedisStreamsQueue
    classifier: IntentClassifier
    composer: ReplyComposer
    label_resolver: LabelResolver

    @classmethod
    def create(cls, settings: TriageSettings) -> "TriageSession":
        """Build a session and all of its clients from settings."""
        auth_manager = GmailAuthenticationManager(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET.get_secret_value(),
            refresh_token=settings.GOOGLE_REFRESH_TOKEN.get_secret_value(),
            token_uri=settings.GOOGLE_TOKEN_URI
        )
        credentials = auth_manager.get_credentials()
        gmail = GmailClient(auth_manager.create_gmail_service(credentials), credentials=credentials)

        cohere = CohereClient(
            api_key=settings.COHERE_API_KEY.get_secret_value(),
            api_url=settings.COHERE_API_URL
        )
        queue = create_redis_queue(QueueConfig.from_settings(settings))
        return cls.from_clients(settings, gmail, cohere, queue)

    @classmethod
    def from_clients(cls,
                     settings: TriageSettings,
                     gmail: GmailClient,
                     cohere: CohereClient,
                     queue: RedisStreamsQueue) -> "TriageSession":
        """Build a session around already constructed clients."""
        classifier = IntentClassifier(
            client=cohere,
            model=settings.COHERE_MODEL,
            max_tokens=settings.CLASSIFIER_MAX_TOKENS,
            temperature=settings.CLASSIFIER_TEMPERATURE,
            cooldown_seconds=settings.RATE_LIMIT_COOLDOWN_SECONDS,
            max_attempts=settings.RATE_LIMIT_MAX_ATTEMPTS
        )
        return cls(
            settings=settings,
            gmail=gmail,
            cohere=cohere,
            queue=queue,
            classifier=classifier,
            composer=ReplyComposer(),
            label_resolver=LabelResolver(gmail)
        )

    def orchestrator(self) -> TriageOrchestrator:
        return TriageOrchestrator(
            gmail=self.gmail,
            classifier=self.classifier,
            composer=self.composer,
            label_resolver=self.label_resolver,
            queue=self.queue,
            concurrency=self.settings.TRIAGE_CONCURRENCY,
            max_results=self.settings.UNREAD_MAX_RESULTS
        )

    def job_processor(self) -> JobProcessor:
        return JobProcessor(gmail=self.gmail, label_resolver=self.label_resolver)

    def worker(self, consumer_name: Optional[str] = None) -> ProcessingWorker:
        return ProcessingWorker(
            queue=self.queue,
            processor=self.job_processor(),
            consumer_name=consumer_name
        )

    async def close(self) -> None:
        """Release the HTTP session and the Redis connection."""
        await self.cohere.close()
        await self.queue.close()
        logger.debug("Triage session closed")
