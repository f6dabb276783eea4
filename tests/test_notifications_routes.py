from datetime import timedelta

import pytest

from app.modules.notifications.routes import get_notification_service
from app.modules.notifications.scheduling import local_today
from app.modules.notifications.service import NotificationService


@pytest.fixture
def notif_client(app_client, db, notifyhub):
    from app.main import app

    app.dependency_overrides[get_notification_service] = lambda: NotificationService(db, notifyhub=notifyhub)
    db.seed(
        "user_profiles",
        {"id": "user-1", "role": "user", "full_name": "Ion Popescu"},
        {"id": "admin-1", "role": "admin"},
    )
    return app_client


@pytest.fixture
def reminders(db):
    expiry = (local_today() + timedelta(days=3)).isoformat()
    return db.seed(
        "reminders",
        {"id": "r-own", "user_id": "user-1", "plate_number": "B123ABC", "reminder_type": "itp",
         "expiry_date": expiry, "deleted_at": None},
        {"id": "r-guest", "guest_name": "Ana", "guest_phone": "+40712345678", "plate_number": "CJ45XYZ",
         "reminder_type": "rca", "expiry_date": expiry, "deleted_at": None},
    )


@pytest.fixture
def logs(db, reminders):
    return db.seed(
        "notification_log",
        {"id": "log-1", "reminder_id": "r-own", "channel": "email", "status": "sent",
         "sent_at": "2026-03-01T09:00:00+00:00"},
        {"id": "log-2", "reminder_id": "r-guest", "channel": "sms", "status": "failed",
         "sent_at": "2026-03-02T09:00:00+00:00", "error_message": "Gateway down"},
    )


def test_users_see_only_their_log(notif_client, logs, auth_user):
    res = notif_client.get("/api/v1/notifications")
    assert [log["id"] for log in res.json()["logs"]] == ["log-1"]

    auth_user["id"] = "admin-1"
    res = notif_client.get("/api/v1/notifications", params={"status": "failed"})
    assert [log["id"] for log in res.json()["logs"]] == ["log-2"]


def test_preview_renders_sms(notif_client, reminders):
    res = notif_client.post("/api/v1/notifications/preview", json={"reminder_id": "r-own"})

    assert res.status_code == 200
    body = res.json()
    assert body["template_id"] == "itp_3d"
    assert "B123ABC" in body["message"]
    assert body["parts"] == 1
    assert body["length"] == len(body["message"])


def test_preview_other_users_reminder_forbidden(notif_client, reminders):
    assert notif_client.post("/api/v1/notifications/preview", json={"reminder_id": "r-guest"}).status_code == 403


def test_test_sms_is_admin_only(notif_client, notifyhub, auth_user):
    body = {"phone": "0712345678", "message": "Test"}
    assert notif_client.post("/api/v1/notifications/test-sms", json=body).status_code == 403

    auth_user["id"] = "admin-1"
    res = notif_client.post("/api/v1/notifications/test-sms", json=body)
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert notifyhub.sent[0]["to"] == "+40712345678"
    assert notifyhub.sent[0]["on_event_loop"] is False


def test_resend_failed_notification(notif_client, db, notifyhub, logs, auth_user):
    auth_user["id"] = "admin-1"

    assert notif_client.post("/api/v1/notifications/resend", json={"log_id": "log-1"}).status_code == 400

    res = notif_client.post("/api/v1/notifications/resend", json={"log_id": "log-2"})
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert notifyhub.sent[0]["to"] == "+40712345678"
    assert notifyhub.sent[0]["on_event_loop"] is False
    assert len(db.rows("notification_log")) == 3

    assert notif_client.post("/api/v1/notifications/resend", json={"log_id": "missing"}).status_code == 404


def test_notification_settings(notif_client, db):
    res = notif_client.patch("/api/v1/notifications/settings", json={
        "quiet_hours_enabled": True, "quiet_hours_start": "22:00", "quiet_hours_end": "07:30",
    })
    assert res.status_code == 200
    assert res.json()["quiet_hours_enabled"] is True

    body = notif_client.get("/api/v1/notifications/settings").json()
    assert body["quiet_hours_start"] == "22:00"
    assert body["email_notifications"] is True

    res = notif_client.patch("/api/v1/notifications/settings", json={
        "quiet_hours_enabled": True, "quiet_hours_start": "07:30",
    })
    assert res.status_code == 400


def test_test_sms_rejects_more_than_ten_parts(notif_client, notifyhub, auth_user):
    auth_user["id"] = "admin-1"
    res = notif_client.post("/api/v1/notifications/test-sms", json={"phone": "0712345678", "message": "a" * 1531})
    assert res.status_code == 422
    assert notifyhub.sent == []
