from __future__ import annotations

from decimal import Decimal

import pytest

from streamhub.app.accounts import Identity
from streamhub.app.catalog import PlanKey
from streamhub.app.errors import ProvisioningFailed
from streamhub.app.provisioning import DEFAULT_ORGANIZATION_DESCRIPTION, ProvisioningService
from streamhub.tests.fakes import FakeProvisioningRepository, MemoryState


@pytest.fixture
def state() -> MemoryState:
    return MemoryState()


@pytest.fixture
def repository(state) -> FakeProvisioningRepository:
    return FakeProvisioningRepository(state)


@pytest.fixture
def service(repository) -> ProvisioningService:
    return ProvisioningService(repository=repository)


def _identity(identity_id: str = "id-1") -> Identity:
    return Identity(id=identity_id, email=f"{identity_id}@example.com", full_name="Ada Lovelace")


def test_provisioning_creates_default_organization_plans_and_free_subscription(state, service, repository):
    result = service.provision_new_user(_identity())

    assert result.organization.slug == "default"
    assert result.organization.name == "StreamHub Default"
    assert result.organization.description == DEFAULT_ORGANIZATION_DESCRIPTION
    assert {name: plan.max_credits for name, plan in result.plans.items()} == {
        "Free": 10,
        "Basic": 50,
        "Premium": 200,
    }
    assert result.plans["Basic"].price_monthly == Decimal("9.90")
    assert result.user.id == "id-1"
    assert result.user.organization_id == result.organization.id
    assert result.plan.name == "Free"
    assert result.subscription.current_credits == 10
    assert result.subscription.monthly_credits_limit == 10
    assert result.subscription.monthly_credits_used == 0
    assert repository.atomic_entries == 1


def test_basic_plan_grants_fifty_credits(service):
    result = service.provision_new_user(_identity(), plan_key=PlanKey.BASIC)

    assert result.plan.name == "Basic"
    assert result.subscription.current_credits == 50
    assert result.subscription.monthly_credits_limit == 50


def test_second_user_reuses_organization_and_plans(state, service):
    first = service.provision_new_user(_identity("id-1"))
    second = service.provision_new_user(_identity("id-2"), plan_key="premium")

    assert second.organization.id == first.organization.id
    assert len(state.organizations) == 1
    assert len(state.plans) == 3
    assert {plan.id for plan in second.plans.values()} == {plan.id for plan in first.plans.values()}
    assert second.subscription.current_credits == 200


def test_provisioning_twice_for_same_identity_is_idempotent(state, service):
    first = service.provision_new_user(_identity())
    again = service.provision_new_user(_identity())

    assert again.user == first.user
    assert again.subscription.id == first.subscription.id
    assert len(state.users) == 1
    assert len(state.subscriptions) == 1


def test_retry_after_subscription_failure_completes_without_duplicates(state, service, repository):
    repository.fail_on = "ensure_subscription"

    with pytest.raises(ProvisioningFailed) as excinfo:
        service.provision_new_user(_identity())

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(state.users) == 1
    assert state.subscriptions == {}

    result = service.provision_new_user(_identity())

    assert len(state.users) == 1
    assert len(state.organizations) == 1
    assert len(state.plans) == 3
    assert len(state.subscriptions) == 1
    assert result.subscription.current_credits == 10


def test_unknown_plan_is_rejected_before_any_write(state, service, repository):
    with pytest.raises(ValueError):
        service.provision_new_user(_identity(), plan_key="platinum")

    assert repository.atomic_entries == 0
    assert state.organizations == {}


def test_custom_organization_slug_is_normalized(service):
    result = service.provision_new_user(_identity(), organization_slug="  Acme ")

    assert result.organization.slug == "acme"
    assert result.organization.name == "Acme"
    assert result.organization.description == ""


def test_non_default_slug_gets_a_name_derived_from_it(service):
    result = service.provision_new_user(_identity(), organization_slug="north-wind_studios")

    assert result.organization.name == "North Wind Studios"


def test_configured_default_slug_is_used(repository):
    service = ProvisioningService(
        repository=repository,
        default_organization_slug="tenant-a",
        default_organization_name="Tenant A",
    )

    result = service.provision_new_user(_identity())

    assert result.organization.slug == "tenant-a"
    assert result.organization.name == "Tenant A"
