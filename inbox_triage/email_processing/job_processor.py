"""
Job Processor

Executes the deferred side effects of a triaged message: label mutation,
reply send and mark-read. Each step is guarded on its own, so a failed step
is logged and the remaining steps still run. The job always ends in DONE.

Repeating a job is safe for the mailbox state: label mutation and mark-read
converge to the same result. A repeated job does send the reply again; that
is inherent to at-least-once delivery and is not mitigated here.
"""

import logging

from inbox_triage.email_processing.handlers.labels import LabelResolver
from inbox_triage.email_processing.models import JobOutcome, JobState, ProcessingJob
from inbox_triage.errors import TriageError
from inbox_triage.integrations.gmail.client import UNREAD_LABEL, GmailClient
from inbox_triage.utils.masking import mask_email

logger = logging.getLogger(__name__)


class JobProcessor:
    """
    Best-effort, non-transactional executor for ProcessingJobs.

    Attributes:
        gmail: Mailbox gateway
        label_resolver: Resolver queried afresh for every job
    """

    def __init__(self, gmail: GmailClient, label_resolver: LabelResolver):
        self.gmail = gmail
        self.label_resolver = label_resolver

    async def process(self, job: ProcessingJob) -> JobOutcome:
        """
        Run every step of a job and report the states it went through.

        Args:
            job: Job payload taken from the queue

        Returns:
            Outcome whose final state is DONE
        """
        outcome = JobOutcome(message_id=job.message_id)
        logger.info(f"Processing job for message {job.message_id} ({job.category.value})")

        # Resolve again rather than trusting the triage pass; the catalog may have changed.
        label_id = await self.label_resolver.resolve_label_id(job.category.label_name)
        if label_id:
            outcome.label_id = label_id
            outcome.advance(JobState.LABEL_RESOLVED)
            try:
                await self.gmail.set_labels(job.message_id, add=[label_id], remove=[UNREAD_LABEL])
            except TriageError as e:
                logger.error(f"Error modifying labels for email ID {job.message_id}: {e}")
        else:
            outcome.advance(JobState.LABEL_SKIPPED)
            logger.error(f"No label ID found for classification '{job.category.value}'.")

        try:
            await self.gmail.send(job.sender, job.subject, job.reply_body)
            outcome.advance(JobState.REPLY_SENT)
        except TriageError as e:
            outcome.advance(JobState.REPLY_FAILED)
            logger.error(f"Error sending reply to {mask_email(job.sender)} for email ID {job.message_id}: {e}")

        try:
            await self.gmail.mark_read(job.message_id)
            outcome.advance(JobState.MARKED_READ)
        except TriageError as e:
            outcome.advance(JobState.MARK_FAILED)
            logger.error(f"Error marking email ID {job.message_id} as read: {e}")

        outcome.advance(JobState.DONE)
        logger.info(f"Processing completed for: {job.message_id}")
        return outcome
