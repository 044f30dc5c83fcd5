"""
Shared fixtures for the triage test suite.

Provides an in-memory stand-in for the Gmail API resource chain
(``service.users().messages().get(...).execute()``) that keeps real label
state per message, so tests can assert on the resulting mailbox state and
not only on the calls that were made.
"""

from typing import Any, Callable, Dict, List, Optional, Set
from unittest.mock import AsyncMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from inbox_triage.config.settings import TriageSettings
from inbox_triage.integrations.cohere.client import CohereClient
from inbox_triage.integrations.gmail.client import GmailClient

SYSTEM_LABELS = {'UNREAD', 'INBOX', 'SENT'}

DEFAULT_LABELS = [
    {'id': 'Label_1', 'name': 'Interested'},
    {'id': 'Label_2', 'name': 'Not Interested'},
    {'id': 'Label_3', 'name': 'Requires More Information'},
]


def http_error(status: int, reason: str = "error") -> HttpError:
    """Build the exception the Gmail client library raises for HTTP failures."""
    return HttpError(httplib2.Response({'status': status}), reason.encode('utf-8'))


class FakeRequest:
    """Prepared request; the work happens on execute(), like the real client."""

    def __init__(self, action: Callable[[], Any]):
        self._action = action

    def execute(self, http=None):
        return self._action()


class FakeMailbox:
    """Mailbox state plus failure injection."""

    def __init__(self, labels: Optional[List[Dict[str, str]]] = None):
        self.messages: Dict[str, Dict[str, Any]] = {}
        self.labels: List[Dict[str, str]] = list(DEFAULT_LABELS if labels is None else labels)
        self.sent: List[Dict[str, str]] = []
        self.modify_calls: List[Dict[str, Any]] = []
        self.label_list_calls = 0
        # operation name -> message ids (or '*') that fail with HTTP 500
        self.failures: Dict[str, Set[str]] = {}

    def add_message(self,
                    message_id: str,
                    sender: Optional[str] = "a@b.com",
                    subject: Optional[str] = "Hi",
                    snippet: str = "Hello there",
                    unread: bool = True) -> None:
        headers = []
        if sender is not None:
            headers.append({'name': 'From', 'value': sender})
        if subject is not None:
            headers.append({'name': 'Subject', 'value': subject})
        self.messages[message_id] = {
            'id': message_id,
            'snippet': snippet,
            'headers': headers,
            'labelIds': {'INBOX', 'UNREAD'} if unread else {'INBOX'},
        }

    def fail(self, operation: str, target: str = '*') -> None:
        self.failures.setdefault(operation, set()).add(target)

    def _check_failure(self, operation: str, target: str = '*') -> None:
        targets = self.failures.get(operation, set())
        if '*' in targets or target in targets:
            raise http_error(500, f"{operation} failed")

    def label_ids(self, message_id: str) -> Set[str]:
        return set(self.messages[message_id]['labelIds'])

    def is_unread(self, message_id: str) -> bool:
        return 'UNREAD' in self.messages[message_id]['labelIds']

    # Resource behaviour

    def list_messages(self, label_ids: List[str], max_results: Optional[int]) -> Dict:
        self._check_failure('list')
        matching = [
            {'id': m['id'], 'threadId': m['id']}
            for m in self.messages.values()
            if set(label_ids or []) <= m['labelIds']
        ]
        if max_results is not None:
            matching = matching[:max_results]
        return {'messages': matching} if matching else {'resultSizeEstimate': 0}

    def get_message(self, message_id: str) -> Dict:
        self._check_failure('get', message_id)
        if message_id not in self.messages:
            raise http_error(404, "Requested entity was not found.")
        message = self.messages[message_id]
        return {
            'id': message_id,
            'snippet': message['snippet'],
            'labelIds': sorted(message['labelIds']),
            'payload': {'headers': list(message['headers'])},
        }

    def modify_message(self, message_id: str, body: Dict) -> Dict:
        self.modify_calls.append({'id': message_id, **body})
        self._check_failure('modify', message_id)
        if message_id not in self.messages:
            raise http_error(404, "Requested entity was not found.")
        known = SYSTEM_LABELS | {label['id'] for label in self.labels}
        unknown = [label_id for label_id in body.get('addLabelIds', []) if label_id not in known]
        if unknown:
            raise http_error(400, f"Invalid label: {unknown[0]}")
        label_ids = self.messages[message_id]['labelIds']
        label_ids.difference_update(body.get('removeLabelIds', []))
        label_ids.update(body.get('addLabelIds', []))
        return {'id': message_id, 'labelIds': sorted(label_ids)}

    def list_labels(self) -> Dict:
        self.label_list_calls += 1
        self._check_failure('labels')
        return {'labels': [dict(label) for label in self.labels]}

    def send_message(self, body: Dict) -> Dict:
        self._check_failure('send')
        sent_id = f"sent-{len(self.sent) + 1}"
        self.sent.append({'id': sent_id, 'raw': body['raw']})
        return {'id': sent_id, 'labelIds': ['SENT']}


class FakeMessagesResource:
    def __init__(self, mailbox: FakeMailbox):
        self.mailbox = mailbox

    def list(self, userId, labelIds=None, maxResults=None, **kwargs):
        return FakeRequest(lambda: self.mailbox.list_messages(labelIds, maxResults))

    def get(self, userId, id, **kwargs):
        return FakeRequest(lambda: self.mailbox.get_message(id))

    def modify(self, userId, id, body):
        return FakeRequest(lambda: self.mailbox.modify_message(id, body))

    def send(self, userId, body):
        return FakeRequest(lambda: self.mailbox.send_message(body))


class FakeLabelsResource:
    def __init__(self, mailbox: FakeMailbox):
        self.mailbox = mailbox

    def list(self, userId):
        return FakeRequest(self.mailbox.list_labels)


class FakeUsersResource:
    def __init__(self, mailbox: FakeMailbox):
        self.mailbox = mailbox

    def messages(self):
        return FakeMessagesResource(self.mailbox)

    def labels(self):
        return FakeLabelsResource(self.mailbox)


class FakeGmailService:
    def __init__(self, mailbox: FakeMailbox):
        self.mailbox = mailbox

    def users(self):
        return FakeUsersResource(self.mailbox)


@pytest.fixture
def mailbox():
    """Empty mailbox with one label per category."""
    return FakeMailbox()


@pytest.fixture
def gmail_client(mailbox):
    """Gateway over the in-memory mailbox."""
    return GmailClient(FakeGmailService(mailbox))


@pytest.fixture
def mock_queue():
    """Processing queue double recording enqueued jobs."""
    queue = AsyncMock()
    queue.enqueue = AsyncMock(return_value="1700000000000-0")
    return queue


@pytest.fixture
def mock_cohere():
    """Generation client double; set ``generate.side_effect`` or ``return_value`` per test."""
    client = AsyncMock(spec=CohereClient)
    client.generate.return_value = "Interested"
    return client


@pytest.fixture
def settings():
    """Settings with every required value supplied explicitly."""
    return TriageSettings(
        _env_file=None,
        COHERE_API_KEY="test-cohere-key",
        GOOGLE_CLIENT_ID="client-id.apps.googleusercontent.com",
        GOOGLE_CLIENT_SECRET="client-secret",
        GOOGLE_REFRESH_TOKEN="refresh-token",
        LOG_FILE=""
    )
