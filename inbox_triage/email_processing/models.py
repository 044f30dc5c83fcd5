"""
Shared data models for the triage pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from inbox_triage.errors import InvalidJobError

UNKNOWN = "Unknown"
NO_CLASSIFICATION = "No Classification"


class Category(Enum):
    """Closed set of intent categories. The value doubles as the mailbox label name."""
    INTERESTED = "Interested"
    NOT_INTERESTED = "Not Interested"
    REQUIRES_MORE_INFORMATION = "Requires More Information"

    @property
    def label_name(self) -> str:
        return self.value


FALLBACK_CATEGORY = Category.REQUIRES_MORE_INFORMATION


class ReplyStatus(Enum):
    """Caller-visible status of a triaged message."""
    QUEUED = "Queued"
    ERROR = "Error"


class JobState(Enum):
    """States a processing job passes through; DONE is terminal."""
    PENDING = "pending"
    LABEL_RESOLVED = "label_resolved"
    LABEL_SKIPPED = "label_skipped"
    REPLY_SENT = "reply_sent"
    REPLY_FAILED = "reply_failed"
    MARKED_READ = "marked_read"
    MARK_FAILED = "mark_failed"
    DONE = "done"


@dataclass(frozen=True)
class EmailMessage:
    """A fetched mailbox message; immutable and scoped to one triage pass."""
    message_id: str
    sender: str
    subject: str
    snippet: str


@dataclass(frozen=True)
class ProcessingJob:
    """Unit of work handed from triage to asynchronous completion."""
    message_id: str
    sender: str
    subject: str
    category: Category
    reply_body: str

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the plain mapping carried by the queue."""
        return {
            "message_id": self.message_id,
            "sender": self.sender,
            "subject": self.subject,
            "category": self.category.value,
            "reply_body": self.reply_body,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessingJob":
        """
        Rebuild a job from its queued mapping.

        Raises:
            InvalidJobError: If a key is missing or the category is unknown
        """
        try:
            return cls(
                message_id=data["message_id"],
                sender=data["sender"],
                subject=data["subject"],
                category=Category(data["category"]),
                reply_body=data["reply_body"],
            )
        except KeyError as e:
            raise InvalidJobError(f"Job payload is missing key {e}") from e
        except ValueError as e:
            raise InvalidJobError(f"Job payload has an invalid category: {e}") from e


@dataclass
class TriageResult:
    """Per-message record returned to the caller of a triage pass."""
    message_id: str
    sender: str
    subject: str
    body: str
    classification: str
    reply_content: str
    reply_status: ReplyStatus = ReplyStatus.QUEUED
    labeled: bool = False

    @classmethod
    def placeholder(cls, message_id: str) -> "TriageResult":
        """Visibly flagged entry for a message that could not be triaged."""
        return cls(
            message_id=message_id,
            sender=UNKNOWN,
            subject=UNKNOWN,
            body="Error fetching body",
            classification=NO_CLASSIFICATION,
            reply_content="Error generating reply",
            reply_status=ReplyStatus.ERROR,
        )

    @property
    def is_placeholder(self) -> bool:
        return self.classification == NO_CLASSIFICATION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_id": self.message_id,
            "from": self.sender,
            "subject": self.subject,
            "body": self.body,
            "classification": self.classification,
            "reply_content": self.reply_content,
            "reply_status": self.reply_status.value,
            "labeled": self.labeled,
        }


@dataclass
class JobOutcome:
    """Record of the states one processing job went through."""
    message_id: str
    states: List[JobState] = field(default_factory=lambda: [JobState.PENDING])
    label_id: Optional[str] = None

    def advance(self, state: JobState) -> None:
        self.states.append(state)

    @property
    def state(self) -> JobState:
        return self.states[-1]

    @property
    def reply_sent(self) -> bool:
        return JobState.REPLY_SENT in self.states

    @property
    def marked_read(self) -> bool:
        return JobState.MARKED_READ in self.states
