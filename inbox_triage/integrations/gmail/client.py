"""
Gmail Mailbox Gateway

Sole point of contact with the mailbox provider. Wraps the Gmail API
operations the pipeline needs (list unread, fetch, label catalog, label
mutation, send) behind coroutines that suspend the calling task while the
blocking API client runs in a worker thread.

Design Considerations:
- The gateway never retries; failures surface as TransportError and are
  handled at the call site
- Each request gets its own authorized HTTP transport, since httplib2
  connections must not be shared between threads
- Label mutation is idempotent on the provider side, so re-applying the
  same mutation is safe
"""

import asyncio
import base64
import http.client
import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError

from inbox_triage.email_processing.models import EmailMessage, UNKNOWN
from inbox_triage.errors import MissingFieldError, TransportError
from inbox_triage.utils.masking import mask_email

logger = logging.getLogger(__name__)

UNREAD_LABEL = 'UNREAD'
REPLY_PREFIX = 'Re: '


def _header_safe(value: str) -> str:
    """Collapse line breaks so a value cannot inject extra headers."""
    return " ".join(value.splitlines())


def build_raw_message(to: str, subject: str, body: str, subject_prefix: str = REPLY_PREFIX) -> str:
    """
    Build the base64url transport payload for an outbound plain-text message.

    The envelope is ``To``, ``Subject: <prefix><subject>``, a UTF-8 plain-text
    content type, a blank line, then the body. The encoding uses the URL-safe
    alphabet with trailing padding stripped.

    Args:
        to: Recipient (address or full From header of the original message)
        subject: Original subject
        body: Plain-text body
        subject_prefix: Prefix prepended to the subject

    Returns:
        Encoded raw message
    """
    raw_message = "\n".join([
        f"To: {_header_safe(to)}",
        f"Subject: {subject_prefix}{_header_safe(subject)}",
        'Content-Type: text/plain; charset="UTF-8"',
        "",
        body
    ])
    return base64.urlsafe_b64encode(raw_message.encode('utf-8')).decode('ascii').rstrip('=')


class GmailClient:
    """
    Asynchronous gateway over one authenticated Gmail session.

    Attributes:
        service: Gmail API service resource
        credentials: Credentials used to authorize per-request transports;
                     when None, requests execute on the service's own transport
        user_id: Mailbox owner ('me' for the authenticated user)
    """

    def __init__(self, service: Any, credentials: Optional[Any] = None, user_id: str = 'me'):
        self.service = service
        self.credentials = credentials
        self.user_id = user_id

    async def _execute(self, request: Any, action: str) -> Any:
        """
        Run a prepared API request in a worker thread.

        Raises:
            TransportError: On any HTTP, auth refresh or network failure
        """
        try:
            if self.credentials is not None:
                authed_http = AuthorizedHttp(self.credentials, http=httplib2.Http())
                return await asyncio.to_thread(request.execute, http=authed_http)
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status = getattr(e.resp, 'status', None)
            raise TransportError(f"Gmail {action} failed: {e}", status=status) from e
        except (GoogleAuthError, httplib2.HttpLib2Error, http.client.HTTPException, OSError) as e:
            raise TransportError(f"Gmail {action} failed: {e}") from e

    async def list_unread(self, max_results: int = 100) -> List[str]:
        """
        List ids of messages carrying the UNREAD label.

        Args:
            max_results: Maximum number of ids to return

        Returns:
            Message ids in provider order
        """
        request = self.service.users().messages().list(
            userId=self.user_id,
            labelIds=[UNREAD_LABEL],
            maxResults=max_results
        )
        results = await self._execute(request, "list unread")
        return [message['id'] for message in results.get('messages', [])]

    async def fetch(self, message_id: str) -> EmailMessage:
        """
        Fetch a message's sender, subject and body snippet.

        A missing From header yields 'Unknown'; a missing Subject header is a
        hard error for this message.

        Raises:
            MissingFieldError: If the Subject header is absent
            TransportError: If the request fails
        """
        request = self.service.users().messages().get(
            userId=self.user_id,
            id=message_id,
            format='metadata',
            metadataHeaders=['From', 'Subject']
        )
        msg = await self._execute(request, f"fetch of message {message_id}")

        headers = msg.get('payload', {}).get('headers', [])
        subject = self._get_header(headers, 'Subject')
        if subject is None:
            raise MissingFieldError('Subject', message_id)

        return EmailMessage(
            message_id=msg.get('id', message_id),
            sender=self._get_header(headers, 'From') or UNKNOWN,
            subject=subject,
            snippet=msg.get('snippet', '')
        )

    def _get_header(self, headers: List[Dict], name: str) -> Optional[str]:
        """Return the first header value matching ``name`` case-insensitively."""
        lowered = name.lower()
        return next((h.get('value', '') for h in headers if h.get('name', '').lower() == lowered), None)

    async def list_labels(self) -> List[Dict[str, Any]]:
        """Return the mailbox's current label catalog."""
        request = self.service.users().labels().list(userId=self.user_id)
        response = await self._execute(request, "label list")
        return response.get('labels', [])

    async def set_labels(self,
                         message_id: str,
                         add: Optional[List[str]] = None,
                         remove: Optional[List[str]] = None) -> None:
        """
        Add and remove label ids on a message.

        Args:
            message_id: Gmail message ID
            add: Label ids to add
            remove: Label ids to remove
        """
        request = self.service.users().messages().modify(
            userId=self.user_id,
            id=message_id,
            body={
                'removeLabelIds': remove or [],
                'addLabelIds': add or []
            }
        )
        await self._execute(request, f"label update of message {message_id}")
        logger.info(f"Labels updated for email ID {message_id}")

    async def mark_read(self, message_id: str) -> None:
        """Mark a message as read by removing the UNREAD label."""
        await self.set_labels(message_id, remove=[UNREAD_LABEL])
        logger.info(f"Email ID {message_id} marked as read.")

    async def send(self, to: str, subject: str, body: str) -> Optional[str]:
        """
        Send a reply as a new outbound message.

        The subject is prefixed with 'Re: '. No threading headers are set, so
        the provider treats it as a fresh message.

        Returns:
            Provider id of the sent message
        """
        request = self.service.users().messages().send(
            userId=self.user_id,
            body={'raw': build_raw_message(to, subject, body)}
        )
        result = await self._execute(request, f"send to {mask_email(to)}")
        sent_id = result.get('id') if result else None
        logger.info(f"Reply sent to {mask_email(to)}, message_id: {sent_id}")
        return sent_id
