"""
Tests for message queueing, dispatch and email provider selection.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from advising.exceptions import MessageSendError
from advising.models import Message, MessageStatus
from advising.notifications import (
    MessageDispatcher,
    QueuedMessageSender,
    SendResult,
    SubjectAndBody,
    get_email_provider,
)
from advising.notifications.email_provider import ConsoleProvider, ResendProvider, SMTPProvider
from advising.notifications.sender import join_addresses, split_addresses

from fakes import make_person

CONTENT = SubjectAndBody("Subject", "<p>Body</p>", "Body")


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


class TestAddressHelpers:
    """Tests for address list parsing."""

    def test_split_on_semicolons_and_commas(self):
        assert split_addresses("a@x.edu; b@x.edu,c@x.edu ;") == ["a@x.edu", "b@x.edu", "c@x.edu"]

    def test_split_empty(self):
        assert split_addresses(None) == []

    def test_join_drops_case_insensitive_duplicates(self):
        assert join_addresses(["a@x.edu", "A@X.edu", " b@x.edu "]) == "a@x.edu;b@x.edu"

    def test_join_empty_is_none(self):
        assert join_addresses([]) is None


class TestQueuedMessageSender:
    """Tests for QueuedMessageSender.send."""

    @pytest.mark.asyncio
    async def test_queues_message_for_person(self, mock_db):
        person = make_person("coach", email="coach@example.edu")

        message = await QueuedMessageSender(mock_db).send(person, "dean@example.edu", CONTENT)

        mock_db.add.assert_called_once_with(message)
        assert message.id.startswith("msg_")
        assert message.recipient is person
        assert message.recipient_email_address == "coach@example.edu"
        assert message.carbon_copy == "dean@example.edu"
        assert message.status == MessageStatus.QUEUED

    @pytest.mark.asyncio
    async def test_queues_message_for_raw_address(self, mock_db):
        message = await QueuedMessageSender(mock_db).send("team@example.edu", None, CONTENT)

        assert message.recipient is None
        assert message.carbon_copy is None

    @pytest.mark.asyncio
    async def test_person_without_email_fails(self, mock_db):
        with pytest.raises(MessageSendError):
            await QueuedMessageSender(mock_db).send(make_person("nobody"), None, CONTENT)
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_cc_fails(self, mock_db):
        person = make_person("coach", email="coach@example.edu")
        with pytest.raises(MessageSendError):
            await QueuedMessageSender(mock_db).send(person, "not-an-address", CONTENT)


class TestMessageDispatcher:
    """Tests for MessageDispatcher.dispatch_queued."""

    @pytest.fixture
    def queued(self):
        return [
            Message(id="msg-1", recipient_email_address="a@example.edu", carbon_copy="c@example.edu",
                    subject="One", body="<p>1</p>", plain_text_body="1", status=MessageStatus.QUEUED),
            Message(id="msg-2", recipient_email_address="b@example.edu",
                    subject="Two", body="<p>2</p>", plain_text_body="2", status=MessageStatus.QUEUED),
        ]

    @pytest.mark.asyncio
    async def test_marks_sent_and_failed(self, mock_db, queued):
        result = MagicMock()
        result.scalars.return_value.all.return_value = queued
        mock_db.execute.return_value = result
        provider = AsyncMock()
        provider.send.side_effect = [
            SendResult(success=True, message_id="ext-1"),
            SendResult(success=False, error="mailbox full"),
        ]

        summary = await MessageDispatcher(mock_db, email_provider=provider).dispatch_queued(batch_size=10)

        assert summary == {"sent": 1, "failed": 1}
        assert queued[0].status == MessageStatus.SENT
        assert queued[0].external_id == "ext-1"
        assert queued[0].sent_date is not None
        assert queued[1].status == MessageStatus.FAILED
        assert queued[1].error_message == "mailbox full"
        first_email = provider.send.call_args_list[0].args[0]
        assert first_email.cc == ["c@example.edu"]
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_queue(self, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_db.execute.return_value = result
        provider = AsyncMock()

        summary = await MessageDispatcher(mock_db, email_provider=provider).dispatch_queued()

        assert summary == {"sent": 0, "failed": 0}
        provider.send.assert_not_called()


class TestEmailProviderSelection:
    """Tests for get_email_provider."""

    def test_console_mode_wins(self):
        assert isinstance(get_email_provider(resend_api_key="re_x", console_mode=True), ConsoleProvider)

    def test_resend_when_key_present(self):
        assert isinstance(get_email_provider(resend_api_key="re_x"), ResendProvider)

    def test_smtp_when_configured(self):
        provider = get_email_provider(smtp_config={
            "host": "smtp.example.edu", "port": 587, "username": None, "password": None,
        })
        assert isinstance(provider, SMTPProvider)

    def test_console_fallback(self):
        assert isinstance(get_email_provider(), ConsoleProvider)

    @pytest.mark.asyncio
    async def test_console_provider_always_succeeds(self):
        from advising.notifications import EmailMessage
        result = await ConsoleProvider().send(EmailMessage(
            to="a@example.edu", subject="s", html_body="<p>b</p>", plain_text_body="b",
        ))
        assert result.success


class TestProviderMessageBuilding:
    """Tests for provider-specific message shapes."""

    @pytest.fixture
    def email(self):
        from advising.notifications import EmailMessage
        return EmailMessage(
            to="coach@example.edu",
            subject="Early Alert: Pat Student",
            html_body="<p>Body</p>",
            plain_text_body="Body",
            cc=["watcher@example.edu"],
        )

    def test_resend_payload_includes_cc(self, email):
        payload = ResendProvider(api_key="re_x", from_email="noreply@example.edu").build_payload(email)

        assert payload["from"] == "noreply@example.edu"
        assert payload["to"] == ["coach@example.edu"]
        assert payload["cc"] == ["watcher@example.edu"]
        assert "reply_to" not in payload

    def test_mime_message_has_both_bodies(self, email):
        from advising.notifications.email_provider import build_mime_message

        mime = build_mime_message(email, "noreply@example.edu")

        assert mime["Cc"] == "watcher@example.edu"
        assert mime.get_body(preferencelist=("plain",)).get_content().strip() == "Body"
        assert "<p>Body</p>" in mime.get_body(preferencelist=("html",)).get_content()
        assert email.recipients == ["coach@example.edu", "watcher@example.edu"]

    @pytest.mark.asyncio
    async def test_unconfigured_resend_fails_without_request(self, email):
        result = await ResendProvider(api_key="", from_email="noreply@example.edu").send(email)

        assert not result.success
        assert "not configured" in result.error
