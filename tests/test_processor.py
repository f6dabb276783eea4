from datetime import datetime, timezone

import pytest

from app.modules.notifications.processor import ReminderProcessor

# 09:00 in Bucharest (UTC+2 before the March DST switch)
NOW = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)
TODAY = "2026-03-10"


@pytest.fixture
def processor(db, notifyhub, resend):
    return ReminderProcessor(db, notifyhub=notifyhub, resend=resend)


def guest_reminder(db, **overrides):
    row = {
        "guest_name": "Ion Popescu",
        "guest_phone": "+40712345678",
        "plate_number": "B123ABC",
        "reminder_type": "itp",
        "expiry_date": "2026-03-17",
        "notification_intervals": [7, 3, 1],
        "notification_channels": {"sms": True, "email": False},
        "next_notification_date": TODAY,
        "status": "active",
        "source": "kiosk",
        "station_id": None,
        "deleted_at": None,
    }
    row.update(overrides)
    return db.seed("reminders", row)[0]


def user_reminder(db, profile=None, **overrides):
    db.seed("user_profiles", {
        "id": "user-1",
        "email": "ion@example.com",
        "phone": "+40722222222",
        "full_name": "Ion User",
        **(profile or {}),
    })
    return guest_reminder(
        db,
        user_id="user-1",
        guest_name=None,
        guest_phone=None,
        source="web",
        notification_channels={"email": True, "sms": True},
        **overrides,
    )


def stored(db, reminder_id):
    return next(r for r in db.rows("reminders") if r["id"] == reminder_id)


def test_guest_reminder_sends_sms_and_schedules_next_slot(db, processor, notifyhub, station):
    reminder = guest_reminder(db, station_id=station["id"])

    result = processor.process_reminder(reminder, now=NOW)

    assert result.success and result.channel == "sms"
    sms = notifyhub.sent[0]
    assert sms["to"] == "+40712345678"
    assert sms["days_until"] == 7
    assert sms["station"]["name"] == "Euro Auto ITP"
    assert sms["opt_out_link"].startswith("https://uitdeitp.ro/opt-out?t=")
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-14"
    assert stored(db, reminder["id"])["status"] == "active"

    log = db.rows("notification_log")[0]
    assert log["channel"] == "sms" and log["status"] == "sent"
    assert log["reminder_id"] == reminder["id"]
    assert log["metadata"] == {"days_until_expiry": 7}


def test_registered_user_gets_email_and_sms(db, processor, notifyhub, resend):
    reminder = user_reminder(db)

    result = processor.process_reminder(reminder, now=NOW)

    assert result.channel == "email+sms"
    assert resend.sent[0]["to"] == "ion@example.com"
    assert notifyhub.sent[0]["to"] == "+40722222222"
    assert notifyhub.sent[0]["opt_out_link"] is None
    assert sorted(log["channel"] for log in db.rows("notification_log")) == ["email", "sms"]


def test_profile_preference_disables_channel(db, processor, notifyhub, resend):
    reminder = user_reminder(db, profile={"email_notifications": False})

    result = processor.process_reminder(reminder, now=NOW)

    assert result.channel == "sms"
    assert resend.sent == []


def test_last_interval_completes_reminder(db, processor):
    reminder = guest_reminder(db, expiry_date="2026-03-11", next_notification_date=TODAY)

    result = processor.process_reminder(reminder, now=NOW)

    assert result.success
    row = stored(db, reminder["id"])
    assert row["next_notification_date"] is None
    assert row["status"] == "completed"


def test_non_notification_day_is_rescheduled(db, processor, notifyhub):
    reminder = guest_reminder(db, expiry_date="2026-03-15", next_notification_date="2026-03-11")

    result = processor.process_reminder(reminder, now=NOW)

    assert result.skipped and not result.success
    assert notifyhub.sent == []
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-12"


def test_missed_slot_is_caught_up_once(db, processor, notifyhub):
    reminder = guest_reminder(db, expiry_date="2026-03-15", next_notification_date="2026-03-08")

    result = processor.process_reminder(reminder, now=NOW)

    assert result.success
    assert notifyhub.sent[0]["days_until"] == 5
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-12"


def test_opted_out_guest_is_skipped_and_stopped(db, processor, notifyhub):
    db.seed("global_opt_outs", {"phone": "+40712345678", "opted_out_at": NOW.isoformat(), "deleted_at": None})
    reminder = guest_reminder(db)

    result = processor.process_reminder(reminder, now=NOW)

    assert result.skipped and result.error == "User opted out"
    assert notifyhub.sent == []
    assert stored(db, reminder["id"])["next_notification_date"] is None


def test_restored_opt_out_does_not_block(db, processor, notifyhub):
    db.seed("global_opt_outs", {"phone": "+40712345678", "deleted_at": NOW.isoformat()})
    result = processor.process_reminder(guest_reminder(db), now=NOW)
    assert result.success
    assert len(notifyhub.sent) == 1


def test_opted_out_registered_user_still_gets_email(db, processor, notifyhub, resend):
    db.seed("global_opt_outs", {"phone": "+40722222222", "deleted_at": None})
    reminder = user_reminder(db)

    result = processor.process_reminder(reminder, now=NOW)

    assert result.channel == "email"
    assert notifyhub.sent == []
    assert len(resend.sent) == 1


def test_quiet_hours_defer_registered_user(db, processor, notifyhub, resend):
    reminder = user_reminder(db, profile={
        "quiet_hours_enabled": True,
        "quiet_hours_start": "08:00",
        "quiet_hours_end": "10:00",
    })

    result = processor.process_reminder(reminder, now=NOW)

    assert result.skipped
    assert result.error.startswith("Quiet hours active - rescheduled to 2026-03-10T10:00")
    assert notifyhub.sent == [] and resend.sent == []
    assert stored(db, reminder["id"])["next_notification_date"] == TODAY


def test_overnight_quiet_hours_deferral_is_sent_next_morning(db, processor, notifyhub, resend):
    reminder = user_reminder(db, expiry_date="2026-03-13", profile={
        "quiet_hours_enabled": True,
        "quiet_hours_start": "22:00",
        "quiet_hours_end": "08:00",
    })

    # 23:30 in Bucharest, inside the window
    late = processor.process_reminder(reminder, now=datetime(2026, 3, 10, 21, 30, tzinfo=timezone.utc))

    assert late.skipped
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-11"
    assert notifyhub.sent == [] and resend.sent == []

    # 09:00 the next day, two days before expiry
    morning = processor.process_reminder(
        stored(db, reminder["id"]), now=datetime(2026, 3, 11, 7, 0, tzinfo=timezone.utc)
    )

    assert morning.success and morning.channel == "email+sms"
    assert notifyhub.sent[0]["days_until"] == 2
    assert resend.sent[0]["days_until"] == 2
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-12"


def test_deferred_row_is_picked_up_by_next_batch(db, processor, notifyhub):
    guest_reminder(db, expiry_date="2026-03-12", next_notification_date=TODAY)

    summary = processor.process_reminders_for_today(now=NOW)

    assert summary.stats["sent"] == 1
    assert notifyhub.sent[0]["days_until"] == 2


def test_sms_failure_is_logged_and_still_rescheduled(db, notifyhub, resend):
    notifyhub.success = False
    processor = ReminderProcessor(db, notifyhub=notifyhub, resend=resend)
    reminder = guest_reminder(db)

    result = processor.process_reminder(reminder, now=NOW)

    assert not result.success and not result.skipped
    assert result.error == "Failed to send notification"
    log = db.rows("notification_log")[0]
    assert log["status"] == "failed"
    assert log["error_message"] == "Gateway down"
    assert stored(db, reminder["id"])["next_notification_date"] == "2026-03-14"


def test_batch_selects_due_reminders_and_counts(db, processor):
    guest_reminder(db)
    db.seed("global_opt_outs", {"phone": "+40733333333", "deleted_at": None})
    guest_reminder(db, guest_phone="+40733333333")  # opted out
    guest_reminder(db, next_notification_date="2026-03-20")  # future
    guest_reminder(db, next_notification_date=None)
    guest_reminder(db, deleted_at=NOW.isoformat())

    summary = processor.process_reminders_for_today(now=NOW)

    assert summary.success
    assert summary.stats["total"] == 2
    assert summary.stats["sent"] == 1
    assert summary.stats["skipped"] == 1
    assert summary.stats["failed"] == 0
    assert summary.stats["sms_only"] == 1
    assert summary.to_dict()["results"][0]["plate"] == "B123ABC"


def test_batch_isolates_broken_reminder(db, processor):
    guest_reminder(db, expiry_date="not-a-date")
    guest_reminder(db)

    summary = processor.process_reminders_for_today(now=NOW)

    assert summary.stats["processed"] == 2
    assert summary.stats["failed"] == 1
    assert summary.stats["sent"] == 1


def test_empty_batch(db, processor):
    summary = processor.process_reminders_for_today(now=NOW)
    assert summary.message == "No reminders to process"
    assert summary.stats["total"] == 0


def test_resend_notification_keeps_schedule(db, processor, notifyhub):
    reminder = guest_reminder(db)

    sent = processor.resend_notification(reminder, "sms")

    assert sent.success
    assert len(notifyhub.sent) == 1
    assert stored(db, reminder["id"])["next_notification_date"] == TODAY
