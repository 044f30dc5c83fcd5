"""
Triage Orchestrator

Runs one triage pass over the unread inbox: for every unread message it
fetches the message, classifies its snippet, composes the canned reply,
enqueues a processing job and applies the category label. Messages are
triaged concurrently up to a fixed limit; one message's failure never
affects its siblings, and results come back in the order the ids were
listed.

The processing job is enqueued before the label is applied here, and the job
processor applies the same label on its own. Whichever runs first, both
writes converge on the same mailbox state.
"""

import asyncio
import logging
from typing import List

from inbox_triage.email_processing.classification.classifier import IntentClassifier
from inbox_triage.email_processing.handlers.labels import LabelResolver
from inbox_triage.email_processing.handlers.reply_writer import ReplyComposer
from inbox_triage.email_processing.models import ProcessingJob, ReplyStatus, TriageResult
from inbox_triage.errors import TriageError
from inbox_triage.integrations.gmail.client import UNREAD_LABEL, GmailClient
from inbox_triage.utils.masking import mask_email

logger = logging.getLogger(__name__)


class TriageOrchestrator:
    """
    Coordinates fetch, classification, reply composition, enqueue and labeling.

    Attributes:
        gmail: Mailbox gateway
        classifier: Intent classifier
        composer: Reply composer
        label_resolver: Category label resolver
        queue: Processing queue receiving one job per triaged message
               (anything with an async ``enqueue(job)``)
        concurrency: Maximum messages triaged at the same time
    """

    def __init__(self,
                 gmail: GmailClient,
                 classifier: IntentClassifier,
                 composer: ReplyComposer,
                 label_resolver: LabelResolver,
                 queue,
                 concurrency: int = 5,
                 max_results: int = 100):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.gmail = gmail
        self.classifier = classifier
        self.composer = composer
        self.label_resolver = label_resolver
        self.queue = queue
        self.concurrency = concurrency
        self.max_results = max_results

    async def triage_unread(self) -> List[TriageResult]:
        """
        Triage every currently unread message.

        Returns:
            One result per unread message, in listing order; an empty list if
            the unread listing itself fails
        """
        try:
            message_ids = await self.gmail.list_unread(max_results=self.max_results)
        except TriageError as e:
            logger.error(f"Error fetching unread emails: {e}")
            return []

        logger.info(f"Found {len(message_ids)} unread emails")
        return await self.triage_messages(message_ids)

    async def triage_messages(self, message_ids: List[str]) -> List[TriageResult]:
        """
        Triage the given messages concurrently, bounded by the concurrency limit.

        Returns:
            Results in the same order as ``message_ids``
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(message_id: str) -> TriageResult:
            async with semaphore:
                try:
                    return await self.triage_message(message_id)
                except Exception as e:
                    logger.error(f"Unexpected error triaging email {message_id}: {e}", exc_info=True)
                    return TriageResult.placeholder(message_id)

        results = await asyncio.gather(*(bounded(message_id) for message_id in message_ids))

        failed = sum(1 for result in results if result.is_placeholder)
        logger.info(f"Completed triage pass: {len(results) - failed} triaged, {failed} errors")
        return list(results)

    async def triage_message(self, message_id: str) -> TriageResult:
        """
        Triage a single message.

        Fetch and classification failures produce a placeholder result. Enqueue
        and label failures are logged and reflected in the result fields.
        """
        try:
            message = await self.gmail.fetch(message_id)
        except TriageError as e:
            logger.error(f"Error fetching email details for {message_id}: {e}")
            return TriageResult.placeholder(message_id)

        try:
            category = await self.classifier.classify(message.snippet)
        except TriageError as e:
            logger.error(f"Error classifying email {message_id}: {e}")
            return TriageResult.placeholder(message_id)

        reply_body = self.composer.compose(category)
        result = TriageResult(
            message_id=message_id,
            sender=message.sender,
            subject=message.subject,
            body=message.snippet,
            classification=category.value,
            reply_content=reply_body
        )

        job = ProcessingJob(
            message_id=message_id,
            sender=message.sender,
            subject=message.subject,
            category=category,
            reply_body=reply_body
        )
        try:
            await self.queue.enqueue(job)
        except TriageError as e:
            result.reply_status = ReplyStatus.ERROR
            logger.error(f"Error enqueueing processing job for email {message_id}: {e}")

        label_id = await self.label_resolver.resolve_label_id(category.label_name)
        if label_id:
            try:
                await self.gmail.set_labels(message_id, add=[label_id], remove=[UNREAD_LABEL])
                result.labeled = True
            except TriageError as e:
                logger.error(f"Error modifying labels for email {message_id}: {e}")
        else:
            logger.info(f"Skipping label update for email {message_id}; it stays unread until processed")

        logger.info(
            f"Triaged email {message_id} from {mask_email(message.sender)} as {category.value}"
        )
        return result
