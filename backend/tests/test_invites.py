import pytest

from calshare.core.errors import MailFailure
from calshare.services import invites
from calshare.tasks import invites as invite_tasks


class RecordingMailer:
    sent = []
    error = None

    def send(self, recipient_name, recipient_email, content, subject):
        if self.error:
            raise self.error
        RecordingMailer.sent.append((recipient_name, recipient_email, content, subject))


@pytest.fixture
def recording_mailer(monkeypatch):
    RecordingMailer.sent = []
    RecordingMailer.error = None
    monkeypatch.setattr(
        invite_tasks.InviteMailer, "from_settings", classmethod(lambda cls, s: RecordingMailer())
    )
    return RecordingMailer


class TestSendInviteTask:
    def test_sends_once(self, recording_mailer):
        result = invite_tasks.send_invite_task("Alice", "alice@example.com", "BEGIN:VCALENDAR", "Meeting")

        assert result == {"success": True, "recipient_email": "alice@example.com"}
        assert recording_mailer.sent == [
            ("Alice", "alice@example.com", "BEGIN:VCALENDAR", "Meeting")
        ]

    def test_mail_failure_is_reported_not_raised(self, recording_mailer):
        recording_mailer.error = MailFailure("relay down")

        result = invite_tasks.send_invite_task("Alice", "alice@example.com", "BEGIN:VCALENDAR", "Meeting")

        assert result["success"] is False
        assert "relay down" in result["error"]

    def test_is_never_retried(self):
        assert invite_tasks.send_invite_task.max_retries == 0


class TestDispatchInvite:
    def test_returns_task_id(self, monkeypatch):
        queued = {}

        class FakeResult:
            id = "task-1"

        def fake_delay(task, *args, **kwargs):
            queued.update(kwargs, task=task)
            return FakeResult()

        monkeypatch.setattr(invites, "safe_celery_delay", fake_delay)

        task_id = invites.dispatch_invite("Alice", "alice@example.com", "BEGIN:VCALENDAR", "Meeting")

        assert task_id == "task-1"
        assert queued["task"] is invite_tasks.send_invite_task
        assert queued["recipient_email"] == "alice@example.com"
        assert queued["subject"] == "Meeting"

    def test_unavailable_broker_skips(self, monkeypatch):
        monkeypatch.setattr(invites, "safe_celery_delay", lambda task, *a, **kw: None)

        assert invites.dispatch_invite("Alice", "alice@example.com", "x", "Meeting") is None


def test_safe_celery_delay_swallows_broker_errors():
    from calshare.core.celery_utils import safe_celery_delay

    class BrokenTask:
        name = "broken"

        def delay(self, *args, **kwargs):
            raise ConnectionError("broker unreachable")

    assert safe_celery_delay(BrokenTask(), 1, 2) is None
