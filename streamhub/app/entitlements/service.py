"""Credit-metered watch entitlement: check, debit and record as one unit."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NoReturn, Optional

from ..catalog.models import User, UserSubscription, WatchableItem, WatchHistory, WatchTargetKind
from ..catalog.repository import CatalogRepository
from ..errors import InsufficientCredits, NoActiveSubscription, StoreUnavailable, StreamHubError
from .models import WatchResult
from .repository import DuplicateWatchRequest, WatchLedger

logger = logging.getLogger("entitlements")


@dataclass
class WatchService:
    """Gates watch actions on the subscription balance.

    The balance check that matters is the ledger's conditional debit; the
    snapshot check only avoids a round-trip for requests that cannot succeed.
    The debit and the history append run in one ledger transaction. On a
    ledger without transactions a failed append refunds the debit instead.
    """

    ledger: WatchLedger
    catalog: CatalogRepository

    def balance(self, user: User) -> Optional[UserSubscription]:
        return self._store_call(self.ledger.get_active_subscription, user.id)

    def watch_channel(self, user: User, channel_id: str, *, request_id: Optional[str] = None) -> WatchResult:
        channel = self._store_call(self.catalog.get_channel, channel_id)
        if channel is None or not channel.is_active:
            raise LookupError("Channel not found")
        subscription = self.balance(user)
        return self.attempt_watch(user, subscription, WatchableItem.from_channel(channel), request_id=request_id)

    def watch_content(self, user: User, content_id: str, *, request_id: Optional[str] = None) -> WatchResult:
        content = self._store_call(self.catalog.get_content, content_id)
        if content is None or not content.is_active:
            raise LookupError("Content not found")
        subscription = self.balance(user)
        return self.attempt_watch(user, subscription, WatchableItem.from_content(content), request_id=request_id)

    def attempt_watch(
        self,
        user: User,
        subscription: Optional[UserSubscription],
        item: WatchableItem,
        *,
        request_id: Optional[str] = None,
    ) -> WatchResult:
        """Spend ``item.credits_cost`` from ``subscription`` and record the watch."""

        if subscription is None or not subscription.is_active or subscription.user_id != user.id:
            logger.info("Watch denied user=%s %s=%s: no active subscription", user.id, item.kind.value, item.id)
            raise NoActiveSubscription(user.id)

        if request_id:
            replay = self._replay(user, subscription, request_id)
            if replay is not None:
                return replay

        cost = item.credits_cost
        if not subscription.can_afford(cost):
            logger.info(
                "Watch denied user=%s %s=%s: balance=%s cost=%s",
                user.id,
                item.kind.value,
                item.id,
                subscription.current_credits,
                cost,
            )
            raise InsufficientCredits(balance=subscription.current_credits, required=cost)

        count_monthly_usage = item.kind == WatchTargetKind.CHANNEL
        entry = WatchHistory.for_item(user.id, item, request_id=request_id)
        debited: Optional[UserSubscription] = None
        try:
            with self.ledger.atomic():
                debited = self._store_call(
                    self.ledger.debit_credits,
                    subscription.id,
                    cost,
                    count_monthly_usage=count_monthly_usage,
                )
                if debited is None:
                    self._reject_stale(user, subscription, item)
                history = self.ledger.append_watch_history(entry)
        except DuplicateWatchRequest:
            # A concurrent submission with the same key won the insert.
            if not self._undo_debit(debited, cost, count_monthly_usage):
                raise StoreUnavailable()
            replay = self._replay(user, subscription, request_id or "")
            if replay is None:
                raise StoreUnavailable()
            return replay
        except StreamHubError:
            raise
        except Exception as exc:
            logger.warning("Watch history write failed for subscription=%s", subscription.id)
            self._undo_debit(debited, cost, count_monthly_usage)
            raise StoreUnavailable() from exc

        logger.info(
            "Watch recorded user=%s %s=%s spent=%s balance=%s",
            user.id,
            item.kind.value,
            item.id,
            cost,
            debited.current_credits,
        )
        return WatchResult(history=history, subscription=debited)

    def _reject_stale(
        self,
        user: User,
        snapshot: UserSubscription,
        item: WatchableItem,
    ) -> NoReturn:
        current = self._store_call(self.ledger.get_subscription, snapshot.id)
        if current is None or not current.is_active:
            raise NoActiveSubscription(user.id)
        logger.warning(
            "Conditional debit rejected subscription=%s snapshot_balance=%s current_balance=%s cost=%s",
            snapshot.id,
            snapshot.current_credits,
            current.current_credits,
            item.credits_cost,
        )
        raise InsufficientCredits(balance=current.current_credits, required=item.credits_cost)

    def _replay(self, user: User, subscription: UserSubscription, request_id: str) -> Optional[WatchResult]:
        existing = self._store_call(self.ledger.find_watch_by_request, user.id, request_id)
        if existing is None:
            return None
        current = self._store_call(self.ledger.get_subscription, subscription.id) or subscription
        logger.info("Replaying watch request %s for user=%s", request_id, user.id)
        return WatchResult(history=existing, subscription=current, replayed=True)

    def _undo_debit(
        self,
        debited: Optional[UserSubscription],
        amount: int,
        count_monthly_usage: bool,
    ) -> bool:
        if debited is None or self.ledger.transactional:
            return True
        logger.warning("Refunding %s credits to subscription %s", amount, debited.id)
        return self._refund(debited, amount, count_monthly_usage) is not None

    def _refund(
        self,
        debited: UserSubscription,
        amount: int,
        count_monthly_usage: bool,
    ) -> Optional[UserSubscription]:
        try:
            return self.ledger.refund_credits(debited.id, amount, count_monthly_usage=count_monthly_usage)
        except Exception:
            logger.exception(
                "Refund of %s credits to subscription %s failed; balance needs manual reconciliation",
                amount,
                debited.id,
            )
            return None

    @staticmethod
    def _store_call(func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StreamHubError:
            raise
        except LookupError:
            raise
        except Exception as exc:
            logger.exception("Store call %s failed", getattr(func, "__name__", func))
            raise StoreUnavailable() from exc


__all__ = ["WatchService"]
