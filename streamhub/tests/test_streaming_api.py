from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi import HTTPException, Response

from streamhub.app.catalog import CatalogService
from streamhub.app.catalog.models import WatchHistory
from streamhub.app.entitlements import WatchResult
from streamhub.app.errors import InsufficientCredits, NoActiveSubscription
from streamhub.app.routes import admin as admin_routes
from streamhub.app.routes import catalog as catalog_routes
from streamhub.app.routes import realtime as realtime_routes
from streamhub.app.routes import tasks as task_routes
from streamhub.app.routes import watch as watch_routes
from streamhub.app.schemas.catalog import ChannelCreateRequest
from streamhub.app.schemas.tasks import TaskCreateRequest, TaskUpdateRequest
from streamhub.app.schemas.watch import WatchResponse
from streamhub.app.tasks import TaskService
from streamhub.tests.fakes import (
    FakeCatalogRepository,
    FakeTaskRepository,
    MemoryState,
    make_channel,
    make_content,
    make_subscription,
    make_user,
)


class StubWatchService:
    def __init__(self) -> None:
        self.calls = []
        self.error = None

    def balance(self, user):
        return make_subscription(user.id, credits=30, limit=50) if user.id == "user-1" else None

    def watch_channel(self, user, channel_id, *, request_id=None):
        self.calls.append(("channel", user.id, channel_id, request_id))
        if self.error is not None:
            raise self.error
        return WatchResult(
            history=WatchHistory(id="wh-1", user_id=user.id, channel_id=channel_id, credits_spent=20),
            subscription=make_subscription(user.id, credits=30, limit=50),
        )

    def watch_content(self, user, content_id, *, request_id=None):
        self.calls.append(("content", user.id, content_id, request_id))
        raise LookupError("Content not found")


@pytest.fixture
def watch_service(monkeypatch) -> StubWatchService:
    stub = StubWatchService()
    monkeypatch.setattr(watch_routes, "get_watch_service", lambda: stub)
    return stub


def test_watch_channel_passes_idempotency_key(watch_service):
    user = SimpleNamespace(id="user-1")

    response = watch_routes.watch_channel("ch-1", idempotency_key="key-1", current_user=user)

    assert response.balance == 30
    assert response.credits_spent == 20
    assert response.channel_id == "ch-1"
    assert response.replayed is False
    assert watch_service.calls == [("channel", "user-1", "ch-1", "key-1")]


def test_watch_errors_surface_as_domain_errors(watch_service):
    user = SimpleNamespace(id="user-1")
    watch_service.error = InsufficientCredits(balance=5, required=20)

    with pytest.raises(InsufficientCredits) as excinfo:
        watch_routes.watch_channel("ch-1", idempotency_key=None, current_user=user)

    assert excinfo.value.status_code == 402
    assert excinfo.value.payload["balance"] == 5
    assert excinfo.value.to_http_exception().detail["required"] == 20


def test_watch_unknown_content_is_404(watch_service):
    with pytest.raises(HTTPException) as excinfo:
        watch_routes.watch_content("missing", idempotency_key=None, current_user=SimpleNamespace(id="user-1"))

    assert excinfo.value.status_code == 404


def test_read_subscription(watch_service):
    response = watch_routes.read_subscription(current_user=SimpleNamespace(id="user-1"))
    assert response.current_credits == 30
    assert response.model_dump(by_alias=True)["monthlyCreditsLimit"] == 50

    with pytest.raises(NoActiveSubscription):
        watch_routes.read_subscription(current_user=SimpleNamespace(id="user-2"))


@pytest.fixture
def catalog_state(monkeypatch) -> MemoryState:
    state = MemoryState()
    service = CatalogService(repository=FakeCatalogRepository(state))
    monkeypatch.setattr(catalog_routes, "get_catalog_service", lambda: service)
    monkeypatch.setattr(admin_routes, "get_catalog_service", lambda: service)
    return state


def test_browse_routes(catalog_state):
    catalog_state.channels["ch-1"] = make_channel("ch-1", name="World News")
    catalog_state.content["ct-1"] = make_content("ct-1", title="Space Odyssey")
    user = SimpleNamespace(id="user-1")

    channels = catalog_routes.list_channels(search="news", current_user=user)
    movies = catalog_routes.list_content(tab="movies", search=None, current_user=user)
    series = catalog_routes.list_content(tab="series", search=None, current_user=user)

    assert [item.id for item in channels.items] == ["ch-1"]
    assert [item.id for item in movies.items] == ["ct-1"]
    assert series.items == []

    with pytest.raises(HTTPException) as excinfo:
        catalog_routes.list_content(tab="podcasts", search=None, current_user=user)
    assert excinfo.value.status_code == 400


def test_admin_routes_translate_permission_and_lookup_errors(catalog_state):
    viewer = make_user("viewer-1")
    admin = make_user("admin-1", is_admin=True)
    payload = ChannelCreateRequest(name="Cinema One", creditsCost=4)

    with pytest.raises(HTTPException) as forbidden:
        admin_routes.create_channel(payload, current_user=viewer)
    assert forbidden.value.status_code == 403

    created = admin_routes.create_channel(payload, current_user=admin)
    assert created.credits_cost == 4
    assert created.organization_id == admin.organization_id

    with pytest.raises(HTTPException) as missing:
        admin_routes.delete_content("missing", current_user=admin)
    assert missing.value.status_code == 404

    response = admin_routes.delete_channel(created.id, current_user=admin)
    assert isinstance(response, Response)
    assert response.status_code == 204
    assert catalog_state.channels == {}


def test_task_routes_round_trip(monkeypatch):
    state = MemoryState()
    service = TaskService(repository=FakeTaskRepository(state))
    monkeypatch.setattr(task_routes, "get_task_service", lambda: service)
    owner = SimpleNamespace(id="user-1")
    stranger = SimpleNamespace(id="user-2")

    created = task_routes.create_task(TaskCreateRequest(title="Watch trailer"), current_user=owner)
    updated = task_routes.update_task(created.id, TaskUpdateRequest(completed=True), current_user=owner)
    listed = task_routes.list_tasks(current_user=owner)

    assert updated.completed is True
    assert [task.id for task in listed.items] == [created.id]

    with pytest.raises(HTTPException) as excinfo:
        task_routes.delete_task(created.id, current_user=stranger)
    assert excinfo.value.status_code == 403

    with pytest.raises(HTTPException) as excinfo:
        task_routes.update_task(created.id, TaskUpdateRequest(), current_user=owner)
    assert excinfo.value.status_code == 400


def test_realtime_filters_scope_private_tables_to_the_user():
    user = SimpleNamespace(id="user-1")

    assert realtime_routes.subscription_filters("tasks", user) == {"user_id": "user-1"}
    assert realtime_routes.subscription_filters("watch_history", user) == {"user_id": "user-1"}
    assert realtime_routes.subscription_filters("channels", user) == {}
    assert realtime_routes.subscription_filters("auth_identities", user) is None


def test_watch_response_timestamps_are_serialized():
    result = WatchResult(
        history=WatchHistory(
            id="wh-1",
            user_id="user-1",
            content_id="ct-1",
            credits_spent=35,
            watched_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ),
        subscription=make_subscription("user-1", credits=15, limit=50),
        replayed=True,
    )

    body = WatchResponse.from_result(result).model_dump(by_alias=True, mode="json")

    assert body["contentId"] == "ct-1"
    assert body["balance"] == 15
    assert body["replayed"] is True
