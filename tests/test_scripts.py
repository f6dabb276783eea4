import pytest

from app.scripts import process_reminders
from app.scripts.promote_user import main, promote


def test_promote_sets_role_and_station(db):
    db.seed("user_profiles", {"id": "u-1", "email": "sef@example.com", "role": "user"})

    assert promote(db, "sef@example.com", "station_manager", "station-1")

    row = db.rows("user_profiles")[0]
    assert row["role"] == "station_manager"
    assert row["station_id"] == "station-1"


def test_promote_admin_drops_station(db):
    db.seed("user_profiles", {"id": "u-1", "email": "a@example.com", "role": "station_manager", "station_id": "s"})
    assert promote(db, "a@example.com", "admin")
    assert db.rows("user_profiles")[0]["station_id"] is None


def test_promote_unknown_email(db):
    assert not promote(db, "nobody@example.com", "admin")


def test_manager_requires_station_argument():
    with pytest.raises(SystemExit):
        main(["sef@example.com", "station_manager"])


def test_process_reminders_exits_non_zero_on_failures(monkeypatch, db):
    class StubProcessor:
        def __init__(self, supabase):
            pass

        def process_reminders_for_today(self):
            from app.modules.notifications.processor import ProcessingSummary
            return ProcessingSummary(success=True, message="done", stats={"failed": 1})

    monkeypatch.setattr(process_reminders, "get_service_supabase", lambda: db)
    monkeypatch.setattr(process_reminders, "ReminderProcessor", StubProcessor)

    with pytest.raises(SystemExit) as exc:
        process_reminders.main()
    assert exc.value.code == 2
