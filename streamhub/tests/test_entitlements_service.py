from __future__ import annotations

import threading
from typing import List

import pytest

from streamhub.app.catalog.models import SubscriptionStatus, WatchableItem, WatchHistory
from streamhub.app.entitlements import WatchService
from streamhub.app.errors import InsufficientCredits, NoActiveSubscription, StoreUnavailable
from streamhub.tests.fakes import (
    FakeCatalogRepository,
    FakeWatchLedger,
    MemoryState,
    make_channel,
    make_content,
    make_subscription,
    make_user,
)


@pytest.fixture
def state() -> MemoryState:
    return MemoryState()


@pytest.fixture
def ledger(state) -> FakeWatchLedger:
    return FakeWatchLedger(state)


@pytest.fixture
def watch_service(state, ledger) -> WatchService:
    return WatchService(ledger=ledger, catalog=FakeCatalogRepository(state))


@pytest.fixture
def user():
    return make_user()


def _seed(state: MemoryState, subscription) -> None:
    state.subscriptions[subscription.id] = subscription


def test_watch_channel_then_unaffordable_content(state, watch_service, user):
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)
    state.content["ct-1"] = make_content("ct-1", cost=35)

    result = watch_service.watch_channel(user, "ch-1")

    assert result.balance == 30
    assert result.replayed is False
    assert len(state.history) == 1
    assert state.history[0].channel_id == "ch-1"
    assert state.history[0].credits_spent == 20

    with pytest.raises(InsufficientCredits) as excinfo:
        watch_service.watch_content(user, "ct-1")

    assert excinfo.value.balance == 30
    assert excinfo.value.required == 35
    assert state.subscriptions["sub-user-1"].current_credits == 30
    assert len(state.history) == 1


@pytest.mark.parametrize(
    "balance,cost,allowed",
    [(0, 0, True), (10, 10, True), (9, 10, False), (0, 1, False), (200, 35, True)],
)
def test_watch_succeeds_only_when_balance_covers_cost(state, watch_service, user, balance, cost, allowed):
    subscription = make_subscription(user.id, credits=balance, limit=200)
    _seed(state, subscription)
    item = WatchableItem.from_content(make_content("ct-x", cost=cost))

    if allowed:
        result = watch_service.attempt_watch(user, subscription, item)
        assert result.balance == balance - cost
        assert len(state.history) == 1
    else:
        with pytest.raises(InsufficientCredits):
            watch_service.attempt_watch(user, subscription, item)
        assert state.subscriptions[subscription.id].current_credits == balance
        assert state.history == []


def test_missing_or_inactive_subscription_is_rejected_without_writes(state, ledger, watch_service, user):
    item = WatchableItem.from_channel(make_channel(cost=1))

    with pytest.raises(NoActiveSubscription):
        watch_service.attempt_watch(user, None, item)

    inactive = make_subscription(user.id, credits=50, status=SubscriptionStatus.INACTIVE)
    _seed(state, inactive)
    with pytest.raises(NoActiveSubscription) as excinfo:
        watch_service.attempt_watch(user, inactive, item)

    assert excinfo.value.status_code == 403
    assert ledger.debit_calls == 0
    assert state.history == []


def test_subscription_of_another_user_is_rejected(state, watch_service, user):
    other = make_subscription("user-2", credits=50)
    _seed(state, other)

    with pytest.raises(NoActiveSubscription):
        watch_service.attempt_watch(user, other, WatchableItem.from_channel(make_channel(cost=5)))

    assert state.subscriptions[other.id].current_credits == 50


def test_concurrent_watches_spend_the_last_credits_once(state, watch_service, user):
    subscription = make_subscription(user.id, credits=20)
    _seed(state, subscription)
    item = WatchableItem.from_channel(make_channel(cost=20))
    barrier = threading.Barrier(2)
    outcomes: List[object] = []
    lock = threading.Lock()

    def attempt() -> None:
        barrier.wait()
        try:
            outcome: object = watch_service.attempt_watch(user, subscription, item)
        except InsufficientCredits as exc:
            outcome = exc
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    successes = [o for o in outcomes if not isinstance(o, InsufficientCredits)]
    failures = [o for o in outcomes if isinstance(o, InsufficientCredits)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].balance == 0
    assert state.subscriptions[subscription.id].current_credits == 0
    assert len(state.history) == 1


def test_stale_snapshot_reports_current_balance(state, watch_service, user):
    snapshot = make_subscription(user.id, credits=50)
    _seed(state, snapshot.model_copy(update={"current_credits": 5}))

    with pytest.raises(InsufficientCredits) as excinfo:
        watch_service.attempt_watch(user, snapshot, WatchableItem.from_channel(make_channel(cost=20)))

    assert excinfo.value.balance == 5
    assert state.history == []


def test_only_channel_watches_count_toward_monthly_usage(state, watch_service, user):
    _seed(state, make_subscription(user.id, credits=100, limit=100))
    state.channels["ch-1"] = make_channel("ch-1", cost=10)
    state.content["ct-1"] = make_content("ct-1", cost=15)

    watch_service.watch_channel(user, "ch-1")
    result = watch_service.watch_content(user, "ct-1")

    assert result.subscription.current_credits == 75
    assert result.subscription.monthly_credits_used == 10


def test_repeated_request_id_is_replayed_without_charge(state, ledger, watch_service, user):
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)

    first = watch_service.watch_channel(user, "ch-1", request_id="req-1")
    second = watch_service.watch_channel(user, "ch-1", request_id="req-1")

    assert first.replayed is False
    assert second.replayed is True
    assert second.history.id == first.history.id
    assert second.balance == 30
    assert ledger.debit_calls == 1
    assert len(state.history) == 1


def test_replay_is_served_even_when_balance_is_now_too_low(state, watch_service, user):
    _seed(state, make_subscription(user.id, credits=20))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)

    watch_service.watch_channel(user, "ch-1", request_id="req-1")
    replay = watch_service.watch_channel(user, "ch-1", request_id="req-1")

    assert replay.replayed is True
    assert replay.balance == 0


def test_history_failure_refunds_the_debit(state, ledger, watch_service, user):
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)
    ledger.fail_history_append = RuntimeError("disk full")

    with pytest.raises(StoreUnavailable) as excinfo:
        watch_service.watch_channel(user, "ch-1")

    assert excinfo.value.status_code == 503
    subscription = state.subscriptions["sub-user-1"]
    assert subscription.current_credits == 50
    assert subscription.monthly_credits_used == 0
    assert ledger.refund_calls == 1
    assert state.history == []


def test_failed_refund_is_logged_for_reconciliation(state, ledger, watch_service, user, caplog):
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)
    ledger.fail_history_append = RuntimeError("history down")
    ledger.fail_refund = RuntimeError("ledger down")

    with caplog.at_level("ERROR", logger="entitlements"):
        with pytest.raises(StoreUnavailable):
            watch_service.watch_channel(user, "ch-1")

    assert any("manual reconciliation" in record.getMessage() for record in caplog.records)


def test_unknown_or_inactive_items_are_not_found(state, watch_service, user):
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-off"] = make_channel("ch-off", cost=1, is_active=False)

    with pytest.raises(LookupError):
        watch_service.watch_channel(user, "missing")
    with pytest.raises(LookupError):
        watch_service.watch_channel(user, "ch-off")
    with pytest.raises(LookupError):
        watch_service.watch_content(user, "missing")


def test_balance_returns_active_subscription(state, watch_service, user):
    assert watch_service.balance(user) is None
    _seed(state, make_subscription(user.id, credits=12, limit=50))

    subscription = watch_service.balance(user)

    assert subscription is not None
    assert subscription.current_credits == 12


@pytest.fixture
def transactional_ledger(state) -> FakeWatchLedger:
    return FakeWatchLedger(state, transactional=True)


def test_debit_and_history_share_one_transaction(state, transactional_ledger, user):
    service = WatchService(ledger=transactional_ledger, catalog=FakeCatalogRepository(state))
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)

    result = service.watch_channel(user, "ch-1")

    assert result.balance == 30
    assert transactional_ledger.events == ["begin", "debit", "append", "commit"]


def test_history_failure_rolls_back_without_refund(state, transactional_ledger, user):
    service = WatchService(ledger=transactional_ledger, catalog=FakeCatalogRepository(state))
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)
    transactional_ledger.fail_history_append = RuntimeError("history down")

    with pytest.raises(StoreUnavailable):
        service.watch_channel(user, "ch-1")

    assert transactional_ledger.events == ["begin", "debit", "append", "rollback"]
    assert transactional_ledger.refund_calls == 0
    assert state.subscriptions["sub-user-1"].current_credits == 50
    assert state.history == []


def test_concurrent_duplicate_request_rolls_back_and_replays(state, transactional_ledger, user):
    service = WatchService(ledger=transactional_ledger, catalog=FakeCatalogRepository(state))
    _seed(state, make_subscription(user.id, credits=50))
    state.channels["ch-1"] = make_channel("ch-1", cost=20)
    winner = WatchHistory(id="wh-winner", user_id=user.id, channel_id="ch-1", credits_spent=20, request_id="req-1")

    def record_winner(entry: WatchHistory) -> None:
        transactional_ledger.before_append = None
        state.history.append(winner)

    transactional_ledger.before_append = record_winner

    result = service.watch_channel(user, "ch-1", request_id="req-1")

    assert result.replayed is True
    assert result.history.id == "wh-winner"
    assert transactional_ledger.refund_calls == 0
    assert state.subscriptions["sub-user-1"].current_credits == 50
    assert state.history == [winner]
