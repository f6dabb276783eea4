from datetime import timedelta

from app.modules.notifications.scheduling import local_today


def submission(**overrides):
    body = {
        "station_slug": "euro-auto",
        "guest_name": "Ion Popescu",
        "guest_phone": "0712 345 678",
        "plate_number": "b-123-abc",
        "expiry_date": (local_today() + timedelta(days=60)).isoformat(),
        "consent_given": True,
    }
    body.update(overrides)
    return body


def test_station_branding_is_public(app_client, station):
    res = app_client.get("/api/v1/kiosk/stations/euro-auto")
    assert res.status_code == 200
    assert res.json()["name"] == "Euro Auto ITP"
    assert "sms_template_5d" not in res.json()


def test_branding_hidden_for_inactive_station(app_client, db, station):
    station_row = db.rows("kiosk_stations")[0]
    station_row["is_active"] = False
    assert app_client.get("/api/v1/kiosk/stations/euro-auto").status_code == 404
    assert app_client.get("/api/v1/kiosk/stations/missing").status_code == 404


def test_submit_creates_sms_only_guest_reminder(app_client, db, station):
    res = app_client.post("/api/v1/kiosk/submit", json=submission(), headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.7"})

    assert res.status_code == 201
    body = res.json()
    assert body["station_name"] == "Euro Auto ITP"
    expected_next = local_today() + timedelta(days=60 - 7)
    assert body["next_notification_date"] == expected_next.isoformat()

    row = db.rows("reminders")[0]
    assert row["guest_phone"] == "+40712345678"
    assert row["plate_number"] == "B123ABC"
    assert row["reminder_type"] == "itp"
    assert row["notification_intervals"] == [7, 3, 1]
    assert row["notification_channels"] == {"sms": True, "email": False}
    assert row["source"] == "kiosk"
    assert row["station_id"] == station["id"]
    assert row["consent_given"] is True
    assert row["consent_ip"] == "10.0.0.7"
    assert db.rows("kiosk_stations")[0]["total_reminders"] == 1


def test_recurring_client_replaces_previous_reminder(app_client, db, station):
    assert app_client.post("/api/v1/kiosk/submit", json=submission()).status_code == 201
    assert app_client.post("/api/v1/kiosk/submit", json=submission()).status_code == 201

    rows = db.rows("reminders")
    assert len(rows) == 2
    assert rows[0]["deleted_at"] is not None
    assert rows[0]["next_notification_date"] is None
    assert rows[1].get("deleted_at") is None
    assert db.rows("kiosk_stations")[0]["total_reminders"] == 2


def test_station_counter_is_recounted_not_incremented(app_client, db, station):
    db.rows("kiosk_stations")[0]["total_reminders"] = 41
    db.seed("reminders", {"station_id": "other-station", "plate_number": "CJ01XYZ"})

    assert app_client.post("/api/v1/kiosk/submit", json=submission()).status_code == 201

    assert db.rows("kiosk_stations")[0]["total_reminders"] == 1


def test_submit_requires_consent(app_client, station):
    res = app_client.post("/api/v1/kiosk/submit", json=submission(consent_given=False))
    assert res.status_code == 422


def test_submit_validates_fields(app_client, station):
    assert app_client.post("/api/v1/kiosk/submit", json=submission(guest_phone="123")).status_code == 422
    assert app_client.post("/api/v1/kiosk/submit", json=submission(plate_number="XYZ")).status_code == 422
    assert app_client.post("/api/v1/kiosk/submit", json=submission(guest_name="J")).status_code == 422


def test_submit_rejects_past_expiry(app_client, station):
    past = (local_today() - timedelta(days=1)).isoformat()
    res = app_client.post("/api/v1/kiosk/submit", json=submission(expiry_date=past))
    assert res.status_code == 400
    assert res.json()["detail"] == "Data expirării trebuie să fie în viitor"


def test_submit_unknown_or_inactive_station(app_client, db, station):
    assert app_client.post("/api/v1/kiosk/submit", json=submission(station_slug="nope")).status_code == 404
    db.rows("kiosk_stations")[0]["is_active"] = False
    res = app_client.post("/api/v1/kiosk/submit", json=submission())
    assert res.status_code == 403
    assert res.json()["detail"] == "Stația nu este activă"


def test_submit_can_require_verified_phone(app_client, db, station, monkeypatch):
    from app.config.settings import settings

    monkeypatch.setattr(settings, "kiosk_require_verified_phone", True)
    assert app_client.post("/api/v1/kiosk/submit", json=submission()).status_code == 400

    from datetime import datetime, timezone
    db.seed("phone_verifications", {
        "phone_number": "+40712345678",
        "verified": True,
        "verified_at": datetime.now(timezone.utc).isoformat(),
    })
    assert app_client.post("/api/v1/kiosk/submit", json=submission()).status_code == 201


def test_submit_is_rate_limited(app_client, station):
    statuses = [app_client.post("/api/v1/kiosk/submit", json=submission()).status_code for _ in range(11)]
    assert statuses[:10] == [201] * 10
    assert statuses[10] == 429


def test_rotating_spoofed_forwarded_hop_does_not_reset_limit(app_client, station):
    statuses = [
        app_client.post(
            "/api/v1/kiosk/submit",
            json=submission(),
            headers={"X-Forwarded-For": f"198.51.100.{i}, 10.0.0.7"},
        ).status_code
        for i in range(11)
    ]
    assert statuses[10] == 429
