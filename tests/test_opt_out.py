from app.modules.opt_out.service import (
    decode_opt_out_token,
    encode_opt_out_token,
    generate_opt_out_link,
)


def test_token_round_trip_has_no_padding():
    token = encode_opt_out_token("+40712345678")
    assert "=" not in token
    assert decode_opt_out_token(token) == "+40712345678"
    assert generate_opt_out_link("+40712345678") == f"https://uitdeitp.ro/opt-out?t={token}"


def test_decode_garbage_returns_none():
    assert not decode_opt_out_token("%%%")


def test_opt_out_flags_guest_reminders(app_client, db):
    db.seed(
        "reminders",
        {"guest_phone": "+40712345678", "plate_number": "B123ABC"},
        {"guest_phone": "+40799999999", "plate_number": "B999ABC"},
    )
    token = encode_opt_out_token("+40712345678")

    res = app_client.post("/api/v1/opt-out", json={"token": token})

    assert res.status_code == 200
    assert res.json()["success"] is True
    assert db.rows("global_opt_outs")[0]["phone"] == "+40712345678"
    flagged = {r["plate_number"]: r.get("opt_out") for r in db.rows("reminders")}
    assert flagged == {"B123ABC": True, "B999ABC": None}

    status = app_client.get("/api/v1/opt-out", params={"token": token}).json()
    assert status["opted_out"] is True
    assert status["phone"] == "+40712345678"


def test_opt_out_is_idempotent_and_restores_soft_deleted(app_client, db):
    db.seed("global_opt_outs", {"phone": "+40712345678", "opted_out_at": None, "deleted_at": "2026-01-01T00:00:00+00:00"})
    token = encode_opt_out_token("+40712345678")

    assert app_client.get("/api/v1/opt-out", params={"token": token}).json()["opted_out"] is False
    assert app_client.post("/api/v1/opt-out", json={"token": token}).status_code == 200
    assert app_client.post("/api/v1/opt-out", json={"token": token}).status_code == 200

    rows = db.rows("global_opt_outs")
    assert len(rows) == 1
    assert rows[0]["deleted_at"] is None


def test_invalid_tokens(app_client):
    assert app_client.post("/api/v1/opt-out", json={"token": "%%%"}).status_code == 400
    bad_phone = encode_opt_out_token("12345")
    res = app_client.post("/api/v1/opt-out", json={"token": bad_phone})
    assert res.status_code == 400
    assert res.json()["detail"] == "Număr de telefon invalid"
    assert app_client.get("/api/v1/opt-out").status_code == 400
