"""
Tests for the reminder escalation sweep.
"""

import pytest
from datetime import timedelta

from advising.early_alerts.reminders import ReminderEscalationSweeper
from advising.early_alerts.settings import (
    MAX_DAYS_BEFORE_RESPONSE,
    REMINDER_INCLUDE_COACH,
    REMINDER_INCLUDE_COORDINATOR,
    REMINDER_INCLUDE_COORDINATOR_IF_NO_COACH,
)

from fakes import NOW, make_alert, make_person


@pytest.fixture
def sweeper(populated, sender, clock):
    populated.config.values[MAX_DAYS_BEFORE_RESPONSE] = "5"
    return ReminderEscalationSweeper(populated, sender, clock=clock)


@pytest.fixture
def add_alert(populated, campus, faculty, reason):
    def _add(student, days_old, alert_id, **fields):
        alert = make_alert(student, campus, faculty, [reason], alert_id=alert_id,
                           created_date=NOW - timedelta(days=days_old), **fields)
        populated.alerts.alerts[alert.id] = alert
        return alert
    return _add


def _messages_to(sender, address):
    return [m for m in sender.pending if m.recipient_email_address == address]


class TestConfigGate:
    """The sweep only runs when a response window is configured."""

    @pytest.mark.asyncio
    async def test_missing_window_sends_and_fetches_nothing(self, populated, sender, clock, add_alert, student):
        add_alert(student, 30, "ea-old")
        sweeper = ReminderEscalationSweeper(populated, sender, clock=clock)

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []
        assert populated.alerts.response_due_calls == []
        assert summary.cutoff is None

    @pytest.mark.asyncio
    async def test_blank_window_is_the_same_as_missing(self, populated, sender, clock, add_alert, student):
        populated.config.values[MAX_DAYS_BEFORE_RESPONSE] = ""
        add_alert(student, 30, "ea-old")

        await ReminderEscalationSweeper(populated, sender, clock=clock).send_all_early_alert_reminder_notifications()

        assert sender.pending == []
        assert populated.alerts.response_due_calls == []


class TestGroupingAndArithmetic:
    """Grouping per recipient, ordering and days out of compliance."""

    @pytest.mark.asyncio
    async def test_one_message_per_coach_sorted_oldest_first(self, sweeper, populated, sender, add_alert, coach):
        alice = make_person("alice", email="alice@example.edu", coach=coach)
        bob = make_person("bob", email="bob@example.edu", coach=coach)
        add_alert(alice, 6, "ea-alice")
        add_alert(bob, 9, "ea-bob")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        messages = _messages_to(sender, "coach@example.edu")
        assert len(messages) == 1
        body = messages[0].plain_text_body
        assert body.index("Pat Bob") < body.index("Pat Alice")
        assert "4 day(s) out of compliance" in body
        assert "1 day(s) out of compliance" in body
        assert summary.messages_sent == 1
        assert summary.alerts_out_of_compliance == 2

    @pytest.mark.asyncio
    async def test_alert_inside_window_is_not_reminded(self, sweeper, sender, add_alert, student):
        add_alert(student, 4, "ea-recent")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []
        assert summary.alerts_out_of_compliance == 0

    @pytest.mark.asyncio
    async def test_cutoff_is_today_minus_window(self, sweeper, populated):
        await sweeper.send_all_early_alert_reminder_notifications()

        assert populated.alerts.response_due_calls == [NOW - timedelta(days=5)]

    @pytest.mark.asyncio
    async def test_last_response_resets_the_clock(self, sweeper, sender, add_alert, student):
        add_alert(student, 20, "ea-answered", last_response_date=NOW - timedelta(days=2))

        await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []

    @pytest.mark.asyncio
    async def test_closed_alerts_are_ignored(self, sweeper, sender, add_alert, student, coach):
        alert = add_alert(student, 20, "ea-closed")
        alert.close(coach, NOW - timedelta(days=1))

        await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []


class TestRecipients:
    """Coach, coordinator and watcher resolution."""

    @pytest.mark.asyncio
    async def test_watchers_get_their_own_reminder(self, sweeper, populated, sender, add_alert, student):
        populated.watchers.watch(student, make_person("watcher", email="watcher@example.edu"))
        add_alert(student, 8, "ea-1")

        await sweeper.send_all_early_alert_reminder_notifications()

        assert len(_messages_to(sender, "coach@example.edu")) == 1
        assert len(_messages_to(sender, "watcher@example.edu")) == 1

    @pytest.mark.asyncio
    async def test_coach_who_also_watches_gets_one_entry(self, sweeper, populated, sender, add_alert, student, coach):
        populated.watchers.watch(student, coach)
        add_alert(student, 8, "ea-1")

        await sweeper.send_all_early_alert_reminder_notifications()

        messages = _messages_to(sender, "coach@example.edu")
        assert len(messages) == 1
        assert messages[0].plain_text_body.count("Pat Student") == 1

    @pytest.mark.asyncio
    async def test_coordinator_included_when_configured(self, sweeper, populated, sender, add_alert, student):
        populated.config.values[REMINDER_INCLUDE_COORDINATOR] = "true"
        add_alert(student, 8, "ea-1")

        await sweeper.send_all_early_alert_reminder_notifications()

        assert sorted(sender.addresses()) == ["coach@example.edu", "eac@example.edu"]

    @pytest.mark.asyncio
    async def test_coach_can_be_excluded(self, sweeper, populated, sender, add_alert, student):
        populated.config.values[REMINDER_INCLUDE_COACH] = "false"
        add_alert(student, 8, "ea-1")

        await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []

    @pytest.mark.asyncio
    async def test_coordinator_covers_coachless_student(self, sweeper, sender, add_alert):
        orphan = make_person("orphan", email="orphan@example.edu")
        add_alert(orphan, 8, "ea-1")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.addresses() == ["eac@example.edu"]
        assert any(o.step == "coach:ea-1" for o in summary.skipped)

    @pytest.mark.asyncio
    async def test_coachless_student_without_fallback_reaches_nobody(self, sweeper, populated, sender, add_alert):
        populated.config.values[REMINDER_INCLUDE_COORDINATOR_IF_NO_COACH] = "false"
        add_alert(make_person("orphan", email="orphan@example.edu"), 8, "ea-1")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.pending == []
        assert summary.recipients == 0

    @pytest.mark.asyncio
    async def test_bad_coordinator_id_is_skipped(self, sweeper, populated, sender, add_alert, student, campus):
        populated.config.values[REMINDER_INCLUDE_COORDINATOR] = "true"
        campus.early_alert_coordinator_id = "ghost"
        add_alert(student, 8, "ea-1")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.addresses() == ["coach@example.edu"]
        assert any(o.step == "coordinator:ea-1" for o in summary.skipped)


class TestFailures:
    """Per-recipient failures do not stop the sweep."""

    @pytest.mark.asyncio
    async def test_failed_send_continues_with_other_recipients(self, sweeper, populated, sender, add_alert, student):
        populated.watchers.watch(student, make_person("watcher", email="watcher@example.edu"))
        sender.fail_for("coach@example.edu")
        add_alert(student, 8, "ea-1")

        summary = await sweeper.send_all_early_alert_reminder_notifications()

        assert sender.addresses() == ["watcher@example.edu"]
        assert summary.messages_sent == 1
        assert summary.errors[0]["recipient_id"] == "coach"

    @pytest.mark.asyncio
    async def test_summary_serializes(self, sweeper, add_alert, student):
        add_alert(student, 8, "ea-1")

        result = (await sweeper.send_all_early_alert_reminder_notifications()).to_dict()

        assert result["messages_sent"] == 1
        assert result["cutoff"] == (NOW - timedelta(days=5)).isoformat()
        assert result["errors"] == []


class TestResponsesDueCount:
    """Tests for get_responses_due_count."""

    @pytest.mark.asyncio
    async def test_counts_overdue_open_alerts(self, sweeper, add_alert, student):
        add_alert(student, 8, "ea-1")
        add_alert(student, 2, "ea-2")

        assert await sweeper.get_responses_due_count([student.id]) == {student.id: 1}

    @pytest.mark.asyncio
    async def test_empty_when_window_not_configured(self, populated, sender, clock, add_alert, student):
        add_alert(student, 8, "ea-1")
        sweeper = ReminderEscalationSweeper(populated, sender, clock=clock)

        assert await sweeper.get_responses_due_count([student.id]) == {}
