"""
Email processing package initialization.

Only the shared models are re-exported here. Import pipeline stages from
their modules, e.g.
``inbox_triage.email_processing.processor.TriageOrchestrator``.
"""

from .models import (
    Category,
    EmailMessage,
    FALLBACK_CATEGORY,
    JobOutcome,
    JobState,
    ProcessingJob,
    ReplyStatus,
    TriageResult,
)

__all__ = [
    'Category',
    'EmailMessage',
    'FALLBACK_CATEGORY',
    'JobOutcome',
    'JobState',
    'ProcessingJob',
    'ReplyStatus',
    'TriageResult',
]
