import asyncio
import copy
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_current_user_id
from app.core.rate_limit import limiter
from app.database.supabase_client import get_service_supabase, get_supabase
from app.integrations.notifyhub import SmsResult
from app.integrations.resend_client import EmailResult


class FakeResult:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


def _comparable(value):
    return value.isoformat() if hasattr(value, "isoformat") else value


class FakeQuery:
    """Subset of the postgrest query builder, evaluated against in-memory rows."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.count_mode: Optional[str] = None
        self.predicates: List[Callable[[Dict[str, Any]], bool]] = []
        self.ordering: List[tuple] = []
        self.limit_value: Optional[int] = None
        self.range_value: Optional[tuple] = None
        self.negate_next = False

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.operation = "select"
        self.count_mode = count
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    @property
    def not_(self):
        self.negate_next = True
        return self

    def _where(self, predicate):
        if self.negate_next:
            self.negate_next = False
            self.predicates.append(lambda row: not predicate(row))
        else:
            self.predicates.append(predicate)
        return self

    def eq(self, column, value):
        return self._where(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._where(lambda row: row.get(column) != value)

    def _compare(self, column, value, op):
        def predicate(row):
            current = row.get(column)
            if current is None:
                return False
            return op(_comparable(current), _comparable(value))
        return self._where(predicate)

    def lt(self, column, value):
        return self._compare(column, value, lambda a, b: a < b)

    def lte(self, column, value):
        return self._compare(column, value, lambda a, b: a <= b)

    def gt(self, column, value):
        return self._compare(column, value, lambda a, b: a > b)

    def gte(self, column, value):
        return self._compare(column, value, lambda a, b: a >= b)

    def in_(self, column, values):
        values = list(values)
        return self._where(lambda row: row.get(column) in values)

    def is_(self, column, value):
        if value in ("null", None):
            return self._where(lambda row: row.get(column) is None)
        return self._where(lambda row: row.get(column) is value)

    def order(self, column, desc: bool = False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count: int):
        self.limit_value = count
        return self

    def range(self, start: int, end: int):
        self.range_value = (start, end)
        return self

    def _matches(self, row):
        return all(predicate(row) for predicate in self.predicates)

    def execute(self) -> FakeResult:
        rows = self.db.tables.setdefault(self.table, [])

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResult(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.operation == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResult([copy.deepcopy(row) for row in matched])

        if self.operation == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResult([copy.deepcopy(row) for row in matched])

        for column, desc in reversed(self.ordering):
            matched.sort(
                key=lambda row: (row.get(column) is None, _comparable(row.get(column)) or ""),
                reverse=desc,
            )
        count = len(matched) if self.count_mode else None
        if self.range_value:
            start, end = self.range_value
            matched = matched[start:end + 1]
        if self.limit_value is not None:
            matched = matched[:self.limit_value]
        return FakeResult([copy.deepcopy(row) for row in matched], count)


class FakeAdminAuth:
    def __init__(self):
        self.deleted_users: List[str] = []

    def delete_user(self, user_id: str):
        self.deleted_users.append(user_id)


class FakeAuth:
    """Supabase Auth: accounts keyed by email, access tokens are "token-<user id>"."""

    def __init__(self):
        self.admin = FakeAdminAuth()
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.confirm_email = True
        self.lookups = 0
        self.sign_outs = 0
        self.reset_requests: List[str] = []

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.accounts:
            raise Exception("User already registered")
        user = SimpleNamespace(
            id=f"user-{len(self.accounts) + 1}", email=email,
            user_metadata=credentials["options"]["data"], app_metadata={},
            created_at=None, updated_at=None,
        )
        self.accounts[email] = {"user": user, "password": credentials["password"], "options": credentials["options"]}
        session = None if self.confirm_email else SimpleNamespace(access_token=f"token-{user.id}")
        return SimpleNamespace(user=user, session=session)

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if not account or account["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = account["user"]
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=f"token-{user.id}"))

    def get_user(self, jwt=None):
        self.lookups += 1
        for account in self.accounts.values():
            if jwt == f"token-{account['user'].id}":
                return SimpleNamespace(user=account["user"])
        raise Exception("invalid JWT: token is malformed")

    def sign_out(self):
        self.sign_outs += 1

    def reset_password_for_email(self, email, options=None):
        self.reset_requests.append(email)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])

    def seed(self, name: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        seeded = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", str(uuid.uuid4()))
            self.tables.setdefault(name, []).append(row)
            seeded.append(row)
        return seeded


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class FakeNotifyHub:
    def __init__(self, success: bool = True):
        self.success = success
        self.sent: List[Dict[str, Any]] = []

    def _result(self) -> SmsResult:
        self.sent[-1]["on_event_loop"] = _on_event_loop()
        if self.success:
            return SmsResult(success=True, message_id=f"msg_{len(self.sent)}", provider="notifyhub", cost=0.045)
        return SmsResult(success=False, error="Gateway down", code="UNKNOWN_ERROR")

    def send_sms(self, to, message, template_id=None, data=None):
        self.sent.append({"kind": "sms", "to": to, "message": message})
        return self._result()

    def send_verification_code(self, phone, code, station_name=None):
        self.sent.append({"kind": "verification", "to": phone, "code": code, "station_name": station_name})
        return self._result()

    def send_reminder(self, phone, name, plate, expiry_date, days_until, reminder_type="itp",
                      station=None, opt_out_link=None):
        self.sent.append({
            "kind": "reminder", "to": phone, "name": name, "plate": plate,
            "days_until": days_until, "station": station, "opt_out_link": opt_out_link,
        })
        return self._result()

    def check_health(self):
        if self.success:
            return {"ok": True, "status": {"status": "up"}}
        return {"ok": False, "error": "HTTP 502"}


class FakeResend:
    def __init__(self, success: bool = True):
        self.success = success
        self.sent: List[Dict[str, Any]] = []

    def send_reminder_email(self, to, plate, expiry_date, days_until, reminder_type="itp", reminder_id=None):
        self.sent.append({"to": to, "plate": plate, "days_until": days_until, "reminder_id": reminder_id})
        if self.success:
            return EmailResult(success=True, message_id=f"email_{len(self.sent)}")
        return EmailResult(success=False, error="Resend rejected the message")


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def notifyhub():
    return FakeNotifyHub()


@pytest.fixture
def resend():
    return FakeResend()


@pytest.fixture
def auth_user():
    """Mutable identity returned by the auth dependency; None means anonymous."""
    return {"id": "user-1", "email": "ion@example.com"}


@pytest.fixture
def app_client(db, auth_user):
    from app.main import app

    limiter.reset()
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_current_user_id] = lambda: dict(auth_user)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def station(db):
    return db.seed("kiosk_stations", {
        "id": "station-1",
        "slug": "euro-auto",
        "name": "Euro Auto ITP",
        "is_active": True,
        "primary_color": "#3B82F6",
        "station_phone": "+40212345678",
        "total_reminders": 0,
    })[0]
