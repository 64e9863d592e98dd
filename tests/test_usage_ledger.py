"""Tests for the free-tier usage ledger."""

import asyncio
from datetime import timedelta

import pytest

from app.modules.plant_analysis.domain.models.subscription import (
    PlanType,
    Subscription,
    SubscriptionStatus,
)
from app.modules.plant_analysis.domain.models.usage import UsageLedgerEntry
from app.modules.plant_analysis.domain.services.usage_ledger import UsageLedger
from app.modules.plant_analysis.infrastructure.database import (
    InMemoryUsageLedgerRepository,
    SubscriptionBillingGateway,
)
from app.shared.core.exceptions import UsageExhaustedError


class SpyRepository(InMemoryUsageLedgerRepository):
    def __init__(self):
        super().__init__()
        self.reads = 0

    async def get(self, user_id):
        self.reads += 1
        return await super().get(user_id)


@pytest.fixture
def repository():
    return SpyRepository()


@pytest.fixture
def ledger(repository, billing, clock):
    return UsageLedger(repository, billing, allowance=3, window_days=7, clock=clock)


async def test_new_user_has_full_allowance(ledger):
    status = await ledger.check_eligibility("user-1")

    assert status.eligible
    assert status.remaining_uses == 3
    assert status.days_left == 7
    assert not status.subscribed


async def test_allowance_is_exhausted_after_three_analyses(ledger, clock):
    for expected_remaining in (2, 1, 0):
        status = await ledger.increment("user-1")
        assert status.remaining_uses == expected_remaining
        clock.advance(hours=1)

    status = await ledger.check_eligibility("user-1")
    assert not status.eligible
    assert status.remaining_uses == 0
    assert status.days_left == 7


async def test_window_resets_exactly_at_boundary(ledger, clock):
    for _ in range(3):
        await ledger.increment("user-1")

    clock.advance(days=7, seconds=-1)
    almost = await ledger.check_eligibility("user-1")
    assert not almost.eligible
    assert almost.days_left == 1

    clock.advance(seconds=1)
    reset = await ledger.check_eligibility("user-1")
    assert reset.eligible
    assert reset.remaining_uses == 3


async def test_increment_after_elapsed_window_starts_new_window(ledger, repository, clock):
    await ledger.increment("user-1")
    clock.advance(days=8)

    status = await ledger.increment("user-1")
    entry = await repository.get("user-1")

    assert status.remaining_uses == 2
    assert entry.used_count == 1
    assert entry.window_started_at == clock()


async def test_window_is_anchored_to_first_use(ledger, clock):
    await ledger.increment("user-1")
    clock.advance(days=3)
    await ledger.increment("user-1")

    status = await ledger.check_eligibility("user-1")
    assert status.days_left == 4


async def test_subscriber_bypasses_ledger(ledger, repository, billing, clock):
    billing.upsert(Subscription(user_id="pro-user", plan_type=PlanType.PRO))

    status = await ledger.check_eligibility("pro-user")

    assert status.eligible
    assert status.subscribed
    assert repository.reads == 0


async def test_cancelled_subscription_keeps_access_until_end(ledger, billing, clock):
    billing.upsert(Subscription(
        user_id="leaving",
        plan_type=PlanType.PREMIUM,
        status=SubscriptionStatus.CANCELLED,
        end_date=clock() + timedelta(days=2),
    ))
    assert (await ledger.check_eligibility("leaving")).subscribed

    clock.advance(days=2)
    assert not (await ledger.check_eligibility("leaving")).subscribed


async def test_concurrent_increments_are_not_lost(ledger, repository):
    await asyncio.gather(*[ledger.increment("user-1") for _ in range(10)])

    entry = await repository.get("user-1")
    assert entry.used_count == 10


async def test_reset_forgets_usage(ledger, repository):
    await ledger.increment("user-1")
    await repository.reset("user-1")

    assert (await ledger.check_eligibility("user-1")).remaining_uses == 3


def test_ledger_rejects_invalid_policy(repository):
    with pytest.raises(ValueError):
        UsageLedger(repository, SubscriptionBillingGateway(), allowance=3, window_days=0)


def test_days_left_rounds_up(clock):
    entry = UsageLedgerEntry(user_id="u", used_count=1, window_started_at=clock())

    assert entry.days_left(clock() + timedelta(days=5, hours=1), 7) == 2
    assert entry.days_left(clock() + timedelta(days=7), 7) == 7


async def test_reservation_counts_immediately(ledger, repository):
    reservation = await ledger.reserve("user-1")

    assert reservation.holds_slot
    assert reservation.status.remaining_uses == 2
    assert (await repository.get("user-1")).used_count == 1


async def test_reserve_refuses_once_allowance_is_used(ledger, clock):
    for _ in range(3):
        await ledger.reserve("user-1")
    clock.advance(days=3)

    with pytest.raises(UsageExhaustedError) as exc_info:
        await ledger.reserve("user-1")

    assert exc_info.value.remaining_uses == 0
    assert exc_info.value.days_left == 4


async def test_concurrent_reservations_never_exceed_allowance(ledger, repository):
    await ledger.increment("user-1")
    await ledger.increment("user-1")

    outcomes = await asyncio.gather(
        *[ledger.reserve("user-1") for _ in range(5)],
        return_exceptions=True,
    )

    granted = [o for o in outcomes if not isinstance(o, Exception)]
    refused = [o for o in outcomes if isinstance(o, UsageExhaustedError)]
    assert len(granted) == 1
    assert len(refused) == 4
    assert (await repository.get("user-1")).used_count == 3


async def test_release_gives_the_slot_back(ledger, repository):
    await ledger.increment("user-1")
    reservation = await ledger.reserve("user-1")

    await ledger.release(reservation)

    assert (await repository.get("user-1")).used_count == 1
    assert (await ledger.check_eligibility("user-1")).remaining_uses == 2


async def test_releasing_the_only_use_forgets_the_window(ledger, repository):
    await ledger.release(await ledger.reserve("user-1"))

    assert await repository.get("user-1") is None


async def test_release_after_window_restart_is_ignored(ledger, repository, clock):
    stale = await ledger.reserve("user-1")
    clock.advance(days=7)
    await ledger.reserve("user-1")

    await ledger.release(stale)

    entry = await repository.get("user-1")
    assert entry.used_count == 1
    assert entry.window_started_at == clock()


async def test_subscriber_reservation_holds_no_slot(ledger, repository, billing):
    billing.upsert(Subscription(user_id="pro-user", plan_type=PlanType.PRO))

    reservation = await ledger.reserve("pro-user")
    await ledger.release(reservation)

    assert not reservation.holds_slot
    assert reservation.status.subscribed
    assert await repository.get("pro-user") is None
