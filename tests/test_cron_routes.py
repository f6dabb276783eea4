import pytest

from app.config.settings import settings
from app.modules.notifications.processor import ProcessingSummary


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    return "s3cret"


def test_process_requires_configured_secret(app_client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", None)
    res = app_client.post("/api/v1/cron/process-reminders", headers={"Authorization": "Bearer anything"})
    assert res.status_code == 500


def test_process_rejects_wrong_secret(app_client, cron_secret):
    assert app_client.post("/api/v1/cron/process-reminders").status_code == 401
    res = app_client.post("/api/v1/cron/process-reminders", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


def test_process_runs_batch(app_client, cron_secret, monkeypatch):
    calls = []

    class StubProcessor:
        def __init__(self, supabase):
            calls.append(supabase)

        def process_reminders_for_today(self):
            return ProcessingSummary(
                success=True,
                message="Processed 1 reminders (1 sent, 0 failed)",
                stats={"total": 1, "processed": 1, "sent": 1, "failed": 0, "skipped": 0,
                       "email_only": 0, "sms_only": 1, "email_and_sms": 0},
            )

    monkeypatch.setattr("app.modules.cron.routes.ReminderProcessor", StubProcessor)

    res = app_client.post("/api/v1/cron/process-reminders", headers={"Authorization": "Bearer s3cret"})

    assert res.status_code == 200
    body = res.json()
    assert body["stats"]["sent"] == 1
    assert body["executionTime"].endswith("ms")
    assert len(calls) == 1


def test_process_with_no_due_reminders(app_client, cron_secret, notifyhub, resend, monkeypatch):
    from app.modules.notifications.processor import ReminderProcessor

    monkeypatch.setattr(
        "app.modules.cron.routes.ReminderProcessor",
        lambda supabase: ReminderProcessor(supabase, notifyhub=notifyhub, resend=resend),
    )
    res = app_client.post("/api/v1/cron/process-reminders", headers={"Authorization": "Bearer s3cret"})
    assert res.status_code == 200
    assert res.json()["message"] == "No reminders to process"


def test_health_probe_and_heartbeat(app_client, cron_secret):
    assert app_client.get("/api/v1/cron/process-reminders").json()["status"] == "healthy"
    assert app_client.post("/api/v1/cron/heartbeat").status_code == 401
    res = app_client.post("/api/v1/cron/heartbeat", headers={"Authorization": "Bearer s3cret"})
    assert res.json()["status"] == "ok"
