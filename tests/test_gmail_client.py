"""
Tests for the Gmail mailbox gateway against the in-memory Gmail fake.
"""

import base64
import http.client
from unittest.mock import MagicMock

import pytest
from google.auth.exceptions import RefreshError
from google.auth.exceptions import TransportError as AuthTransportError

from inbox_triage.email_processing.models import EmailMessage
from inbox_triage.errors import MissingFieldError, TransportError
from inbox_triage.integrations.gmail.client import GmailClient, build_raw_message


def decode_raw(raw: str) -> str:
    padded = raw + "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8")


class TestBuildRawMessage:

    def test_envelope_layout(self):
        raw = build_raw_message("a@b.com", "Hi", "Thanks!")

        assert decode_raw(raw) == (
            "To: a@b.com\n"
            "Subject: Re: Hi\n"
            'Content-Type: text/plain; charset="UTF-8"\n'
            "\n"
            "Thanks!"
        )

    def test_uses_url_safe_alphabet_without_padding(self):
        raw = build_raw_message("x@y.z", "s", "\xfb\xff??>>~~")

        assert "+" not in raw
        assert "/" not in raw
        assert not raw.endswith("=")

    def test_header_values_cannot_inject_lines(self):
        raw = build_raw_message("a@b.com\nBcc: evil@x.com", "Hi\r\nX-Injected: 1", "body")

        headers = decode_raw(raw).split("\n\n", 1)[0].split("\n")
        assert len(headers) == 3
        assert headers[0] == "To: a@b.com Bcc: evil@x.com"


class TestGmailClient:

    @pytest.mark.asyncio
    async def test_list_unread_returns_only_unread_ids(self, mailbox, gmail_client):
        mailbox.add_message("m1")
        mailbox.add_message("m2", unread=False)
        mailbox.add_message("m3")

        assert await gmail_client.list_unread() == ["m1", "m3"]

    @pytest.mark.asyncio
    async def test_list_unread_empty_inbox(self, gmail_client):
        assert await gmail_client.list_unread() == []

    @pytest.mark.asyncio
    async def test_list_unread_failure_raises_transport_error(self, mailbox, gmail_client):
        mailbox.fail("list")

        with pytest.raises(TransportError) as excinfo:
            await gmail_client.list_unread()

        assert excinfo.value.status == 500

    @pytest.mark.asyncio
    async def test_fetch_reads_headers_and_snippet(self, mailbox, gmail_client):
        mailbox.add_message("m1", sender="Jane <jane@example.com>", subject="Pricing", snippet="How much?")

        message = await gmail_client.fetch("m1")

        assert message == EmailMessage(
            message_id="m1",
            sender="Jane <jane@example.com>",
            subject="Pricing",
            snippet="How much?"
        )

    @pytest.mark.asyncio
    async def test_fetch_missing_from_defaults_to_unknown(self, mailbox, gmail_client):
        mailbox.add_message("m1", sender=None)

        message = await gmail_client.fetch("m1")

        assert message.sender == "Unknown"

    @pytest.mark.asyncio
    async def test_fetch_missing_subject_is_hard_error(self, mailbox, gmail_client):
        mailbox.add_message("m1", subject=None)

        with pytest.raises(MissingFieldError) as excinfo:
            await gmail_client.fetch("m1")

        assert excinfo.value.field == "Subject"
        assert excinfo.value.message_id == "m1"

    @pytest.mark.asyncio
    async def test_fetch_empty_subject_is_kept(self, mailbox, gmail_client):
        mailbox.add_message("m1", subject="")

        assert (await gmail_client.fetch("m1")).subject == ""

    @pytest.mark.asyncio
    async def test_fetch_unknown_message_raises_transport_error(self, gmail_client):
        with pytest.raises(TransportError) as excinfo:
            await gmail_client.fetch("missing")

        assert excinfo.value.status == 404

    @pytest.mark.asyncio
    async def test_set_labels_is_idempotent(self, mailbox, gmail_client):
        mailbox.add_message("m1")

        await gmail_client.set_labels("m1", add=["Label_1"], remove=["UNREAD"])
        first = mailbox.label_ids("m1")
        await gmail_client.set_labels("m1", add=["Label_1"], remove=["UNREAD"])

        assert mailbox.label_ids("m1") == first == {"INBOX", "Label_1"}

    @pytest.mark.asyncio
    async def test_mark_read_removes_unread(self, mailbox, gmail_client):
        mailbox.add_message("m1")

        await gmail_client.mark_read("m1")
        await gmail_client.mark_read("m1")

        assert not mailbox.is_unread("m1")
        assert mailbox.modify_calls[-1] == {"id": "m1", "removeLabelIds": ["UNREAD"], "addLabelIds": []}

    @pytest.mark.asyncio
    async def test_list_labels(self, gmail_client):
        labels = await gmail_client.list_labels()

        assert {"id": "Label_1", "name": "Interested"} in labels

    @pytest.mark.asyncio
    async def test_send_submits_encoded_reply(self, mailbox, gmail_client):
        sent_id = await gmail_client.send("a@b.com", "Hi", "Thanks!")

        assert sent_id == "sent-1"
        assert "Subject: Re: Hi" in decode_raw(mailbox.sent[0]["raw"])

    @pytest.mark.asyncio
    async def test_send_failure_is_not_retried(self, mailbox, gmail_client):
        mailbox.fail("send")

        with pytest.raises(TransportError):
            await gmail_client.send("a@b.com", "Hi", "Thanks!")

        assert mailbox.sent == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        RefreshError("invalid_grant"),
        AuthTransportError("token refresh: connection reset"),
        http.client.IncompleteRead(b"partial"),
        http.client.BadStatusLine(""),
    ])
    async def test_auth_and_protocol_errors_become_transport_error(self, error):
        request = MagicMock()
        request.execute.side_effect = error
        service = MagicMock()
        service.users.return_value.labels.return_value.list.return_value = request

        with pytest.raises(TransportError):
            await GmailClient(service).list_labels()
