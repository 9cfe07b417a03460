from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import psycopg2.errors
import pytest

from streamhub.app import db
from streamhub.app.catalog.models import WatchableItem
from streamhub.app.catalog.repository import PostgresCatalogRepository
from streamhub.app.entitlements import PostgresWatchLedger, WatchService
from streamhub.app.errors import StoreUnavailable
from streamhub.tests.fakes import FakeCatalogRepository, MemoryState, make_channel, make_subscription, make_user

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _subscription_row(credits: int) -> Dict[str, Any]:
    return {
        "id": "sub-user-1",
        "user_id": "user-1",
        "plan_id": "plan-basic",
        "organization_id": "org-1",
        "status": "active",
        "current_credits": credits,
        "monthly_credits_limit": 50,
        "monthly_credits_used": 50 - credits,
        "created_at": NOW,
        "updated_at": NOW,
    }


HISTORY_ROW = {
    "id": "wh-1",
    "user_id": "user-1",
    "channel_id": "ch-1",
    "content_id": None,
    "credits_spent": 20,
    "request_id": None,
    "watched_at": NOW,
}


class RecordingCursor:
    def __init__(self, connection: "RecordingConnection") -> None:
        self.connection = connection
        self._row: Optional[Dict[str, Any]] = None

    def execute(self, statement, params=None) -> None:
        verb = str(statement).split()[0]
        self.connection.record("execute", verb)
        error = self.connection.errors.get(verb)
        if error is not None:
            raise error
        self._row = self.connection.rows.get(verb)

    def fetchone(self) -> Optional[Dict[str, Any]]:
        return self._row

    def close(self) -> None:
        pass


class RecordingConnection:
    def __init__(self, number: int, log: List[Tuple[int, str, str]], **options: Any) -> None:
        self.number = number
        self.log = log
        self.rows: Dict[str, Dict[str, Any]] = options.get("rows", {})
        self.errors: Dict[str, Exception] = options.get("errors", {})

    def record(self, action: str, detail: str = "") -> None:
        self.log.append((self.number, action, detail))

    def cursor(self, cursor_factory=None) -> RecordingCursor:
        return RecordingCursor(self)

    def commit(self) -> None:
        self.record("commit")

    def rollback(self) -> None:
        self.record("rollback")

    def close(self) -> None:
        self.record("close")


@pytest.fixture
def log() -> List[Tuple[int, str, str]]:
    return []


def _connect_with(monkeypatch, log, **options: Any) -> None:
    opened: List[RecordingConnection] = []

    def connect() -> RecordingConnection:
        connection = RecordingConnection(len(opened), log, **options)
        opened.append(connection)
        return connection

    monkeypatch.setattr(db, "get_conn", connect)


def _service() -> WatchService:
    return WatchService(ledger=PostgresWatchLedger(), catalog=FakeCatalogRepository(MemoryState()))


def test_debit_and_history_commit_on_one_connection(monkeypatch, log):
    _connect_with(monkeypatch, log, rows={"UPDATE": _subscription_row(30), "INSERT": HISTORY_ROW})
    user = make_user()

    result = _service().attempt_watch(
        user,
        make_subscription(user.id, credits=50),
        WatchableItem.from_channel(make_channel("ch-1", cost=20)),
    )

    assert result.balance == 30
    assert result.history.id == "wh-1"
    assert log == [
        (0, "execute", "UPDATE"),
        (0, "execute", "INSERT"),
        (0, "commit", ""),
        (0, "close", ""),
    ]


def test_failed_history_insert_rolls_back_the_debit(monkeypatch, log):
    _connect_with(
        monkeypatch,
        log,
        rows={"UPDATE": _subscription_row(30)},
        errors={"INSERT": psycopg2.errors.CheckViolation("watch_history_one_target")},
    )
    user = make_user()

    with pytest.raises(StoreUnavailable):
        _service().attempt_watch(
            user,
            make_subscription(user.id, credits=50),
            WatchableItem.from_channel(make_channel("ch-1", cost=20)),
        )

    assert log == [
        (0, "execute", "UPDATE"),
        (0, "execute", "INSERT"),
        (0, "rollback", ""),
        (0, "close", ""),
    ]


def test_malformed_identifier_is_reported_as_not_found(monkeypatch, log):
    _connect_with(
        monkeypatch,
        log,
        errors={"SELECT": psycopg2.errors.InvalidTextRepresentation("invalid input syntax for type uuid")},
    )

    with pytest.raises(LookupError):
        PostgresCatalogRepository().get_channel("not-a-uuid")

    assert (0, "rollback", "") in log


def test_watch_with_malformed_channel_id_is_not_found(monkeypatch, log):
    _connect_with(
        monkeypatch,
        log,
        errors={"SELECT": psycopg2.errors.InvalidTextRepresentation("invalid input syntax for type uuid")},
    )
    service = WatchService(ledger=PostgresWatchLedger(), catalog=PostgresCatalogRepository())

    with pytest.raises(LookupError):
        service.watch_channel(make_user(), "not-a-uuid")
