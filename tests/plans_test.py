import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from leadmagnet.plans import (
    FREE,
    PREMIUM,
    as_utc,
    build_plan_catalog,
    campaign_period,
    is_within_paid_period,
)


@pytest.fixture
def plan_catalog():
    return build_plan_catalog({})


def test_build_plan_catalog_defaults(plan_catalog):
    assert plan_catalog.unlock_price.amount == 900
    assert plan_catalog.unlock_price.currency == "INR"
    assert plan_catalog.renewal_window == timedelta(days=30)
    assert plan_catalog.campaign_limit(FREE) == 3
    assert plan_catalog.campaign_limit(PREMIUM) == 5


def test_build_plan_catalog_reads_config():
    plan_catalog = build_plan_catalog(
        {
            "UNLOCK_PRICE_AMOUNT": "4900",
            "UNLOCK_CURRENCY": "USD",
            "RENEWAL_WINDOW_DAYS": 7,
            "PREMIUM_CAMPAIGN_LIMIT": 10,
        }
    )
    assert plan_catalog.unlock_price.amount == 4900
    assert plan_catalog.unlock_price.currency == "USD"
    assert plan_catalog.renewal_window == timedelta(days=7)
    assert plan_catalog.campaign_limit(PREMIUM) == 10


def test_unknown_plan_resolves_to_free(plan_catalog):
    assert plan_catalog.get("enterprise").plan_id == FREE
    assert plan_catalog.get(None).plan_id == FREE


def test_premium_features(plan_catalog):
    assert plan_catalog.get(PREMIUM).has_feature("pdf_download")
    assert not plan_catalog.get(FREE).has_feature("pdf_download")


def test_catalog_is_immutable(plan_catalog):
    with pytest.raises(dataclasses.FrozenInstanceError):
        plan_catalog.unlock_price = None
    with pytest.raises(TypeError):
        plan_catalog.plans["gold"] = plan_catalog.get(PREMIUM)


def test_price_does_not_depend_on_resource(plan_catalog):
    assert plan_catalog.price_for("c1") == plan_catalog.price_for("c2")


def test_expiry_from(plan_catalog):
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert plan_catalog.expiry_from(now) == datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)


def test_campaign_period():
    assert campaign_period(datetime(2024, 6, 30, 23, 59)) == "2024-06"
    assert campaign_period(datetime(2024, 11, 1)) == "2024-11"


def test_as_utc_handles_naive_and_aware():
    naive = datetime(2024, 6, 1, 12, 0)
    assert as_utc(naive) == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    ist = timezone(timedelta(hours=5, minutes=30))
    assert as_utc(datetime(2024, 6, 1, 17, 30, tzinfo=ist)) == as_utc(naive)


def test_is_within_paid_period():
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert is_within_paid_period(datetime(2024, 6, 2), now)
    assert not is_within_paid_period(datetime(2024, 5, 31), now)
    assert not is_within_paid_period(None, now)
