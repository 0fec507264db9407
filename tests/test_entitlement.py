import pytest
from datetime import timedelta

from salonhub.core.exceptions import InvalidTransition, NotFound
from salonhub.schemas.salon import SubscriptionStatus
from salonhub.services import entitlement_service as ent

from conftest import NOW, salon_document

def salon(**overrides):
    doc = salon_document(**overrides)
    doc.setdefault("id", "salon-1")
    return doc

def test_trial_past_ten_days_is_not_entitled():
    expired_trial = salon(subscription_status="TRIAL", created_at=NOW - timedelta(days=11))

    assert not ent.is_entitled(expired_trial, NOW)
    assert ent.trial_expired(expired_trial, NOW)
    assert ent.derive_status(expired_trial, NOW) == SubscriptionStatus.EXPIRED
    assert ent.days_remaining(expired_trial, NOW) == 0

def test_trial_on_its_tenth_day_is_entitled():
    trial = salon(subscription_status="TRIAL", created_at=NOW - timedelta(days=10, hours=5))

    assert ent.is_entitled(trial, NOW)
    assert ent.derive_status(trial, NOW) == SubscriptionStatus.TRIAL
    assert ent.days_remaining(trial, NOW) == 0

def test_lifetime_flag_beats_blocked():
    lifetime = salon(subscription_status="BLOCKED", is_lifetime_free=True)

    assert ent.is_entitled(lifetime, NOW)
    assert ent.days_remaining(lifetime, NOW) is None
    assert ent.describe_entitlement(lifetime, NOW)["badge"].label == "Lifetime"

def test_active_until_end_date():
    active = salon(subscription_status="ACTIVE", subscription_end_date=NOW + timedelta(days=3, hours=2))
    lapsed = salon(subscription_status="ACTIVE", subscription_end_date=NOW - timedelta(minutes=1))
    open_ended = salon(subscription_status="ACTIVE", subscription_end_date=None)

    assert ent.is_entitled(active, NOW)
    assert ent.days_remaining(active, NOW) == 3
    assert not ent.is_entitled(lapsed, NOW)
    assert ent.derive_status(lapsed, NOW) == SubscriptionStatus.EXPIRED
    assert ent.is_entitled(open_ended, NOW)

@pytest.mark.parametrize("status", ["EXPIRED", "BLOCKED", "CANCELLED"])
def test_other_statuses_are_not_entitled(status):
    assert not ent.is_entitled(salon(subscription_status=status), NOW)

def test_stored_status_is_not_rewritten_by_derivation():
    expired_trial = salon(subscription_status="TRIAL", created_at=NOW - timedelta(days=30))

    description = ent.describe_entitlement(expired_trial, NOW)

    assert description["stored_status"] == SubscriptionStatus.TRIAL
    assert description["derived_status"] == SubscriptionStatus.EXPIRED
    assert expired_trial["subscription_status"] == "TRIAL"

def test_grant_access_activates_and_clears_lifetime():
    patch = ent.grant_access(salon(is_lifetime_free=True), NOW, days=30)

    assert patch == {
        "subscription_status": "ACTIVE",
        "subscription_end_date": NOW + timedelta(days=30),
        "is_lifetime_free": False,
    }

@pytest.mark.parametrize("status", ["ACTIVE", "TRIAL", "EXPIRED"])
def test_block_from_allowed_states(status):
    assert ent.block(salon(subscription_status=status), NOW) == {"subscription_status": "BLOCKED"}

@pytest.mark.parametrize("status", ["BLOCKED", "CANCELLED"])
def test_block_from_other_states_is_refused(status):
    with pytest.raises(InvalidTransition):
        ent.block(salon(subscription_status=status), NOW)

def test_unblock_only_from_blocked():
    assert ent.unblock(salon(subscription_status="BLOCKED"), NOW) == {"subscription_status": "ACTIVE"}
    with pytest.raises(InvalidTransition):
        ent.unblock(salon(subscription_status="TRIAL"), NOW)

def test_cancel_from_any_state():
    for status in SubscriptionStatus:
        assert ent.cancel(salon(subscription_status=status.value), NOW) == {"subscription_status": "CANCELLED"}

def test_expiration_buckets():
    soon = salon(subscription_status="ACTIVE", subscription_end_date=NOW + timedelta(days=5))
    later = salon(subscription_status="ACTIVE", subscription_end_date=NOW + timedelta(days=20))
    past = salon(subscription_status="ACTIVE", subscription_end_date=NOW - timedelta(days=2))
    lifetime = salon(is_lifetime_free=True, subscription_end_date=NOW - timedelta(days=2))

    assert ent.in_expiration_bucket(soon, "7days", NOW)
    assert ent.in_expiration_bucket(soon, "30days", NOW)
    assert not ent.in_expiration_bucket(later, "7days", NOW)
    assert ent.in_expiration_bucket(later, "30days", NOW)
    assert ent.in_expiration_bucket(past, "expired", NOW)
    assert not ent.in_expiration_bucket(lifetime, "expired", NOW)
    with pytest.raises(ValueError):
        ent.in_expiration_bucket(soon, "90days", NOW)

def test_activity_flag():
    assert ent.activity_flag(None, NOW) == "never"
    assert ent.activity_flag(NOW - timedelta(days=3), NOW) == "active"
    assert ent.activity_flag(NOW - timedelta(days=8), NOW) == "away"
    assert ent.activity_flag(NOW - timedelta(days=31), NOW) == "risk"

def test_reminder_message_follows_status():
    expired = salon(subscription_status="TRIAL", created_at=NOW - timedelta(days=20))
    ending = salon(subscription_status="ACTIVE", subscription_end_date=NOW + timedelta(days=3, hours=1))

    assert "expired" in ent.reminder_message(expired, NOW)
    assert "3 days" in ent.reminder_message(ending, NOW)
    assert ent.reminder_link(ending, NOW).startswith("https://wa.me/55")

@pytest.mark.asyncio
async def test_apply_transition_persists(gateway):
    stored = await gateway.insert_salon(salon_document(subscription_status="TRIAL"))

    blocked = await ent.apply_transition(gateway, stored["id"], "block", NOW)
    assert blocked["subscription_status"] == "BLOCKED"
    assert not ent.is_entitled(blocked, NOW)

    unblocked = await ent.apply_transition(gateway, stored["id"], "unblock", NOW)
    assert unblocked["subscription_status"] == "ACTIVE"

    lifetime = await ent.apply_transition(gateway, stored["id"], "lifetime", NOW, flag=True)
    assert lifetime["is_lifetime_free"] is True

    with pytest.raises(InvalidTransition):
        await ent.apply_transition(gateway, stored["id"], "unblock", NOW)
    with pytest.raises(NotFound):
        await ent.apply_transition(gateway, "missing", "cancel", NOW)

@pytest.mark.asyncio
async def test_reconcile_writes_expired(gateway):
    lapsed_trial = await gateway.insert_salon(salon_document(
        owner_email="a@a.com", created_at=NOW - timedelta(days=15),
    ))
    lapsed_active = await gateway.insert_salon(salon_document(
        owner_email="b@b.com", subscription_status="ACTIVE", subscription_end_date=NOW - timedelta(days=1),
    ))
    fine = await gateway.insert_salon(salon_document(owner_email="c@c.com"))
    lifetime = await gateway.insert_salon(salon_document(
        owner_email="d@d.com", created_at=NOW - timedelta(days=90), is_lifetime_free=True,
    ))

    updated = await ent.reconcile_statuses(gateway, NOW)

    assert sorted(updated) == sorted([lapsed_trial["id"], lapsed_active["id"]])
    assert (await gateway.get_salon(fine["id"]))["subscription_status"] == "TRIAL"
    assert (await gateway.get_salon(lifetime["id"]))["subscription_status"] == "TRIAL"
    assert (await gateway.get_salon(lapsed_trial["id"]))["subscription_status"] == "EXPIRED"

@pytest.mark.asyncio
async def test_list_salon_overviews_filters(gateway):
    await gateway.insert_salon(salon_document(name="Studio Bella", owner_email="bella@x.com"))
    await gateway.insert_salon(salon_document(
        name="Barber King", owner_email="king@x.com", subscription_status="BLOCKED",
    ))

    blocked = await ent.list_salon_overviews(gateway, NOW, status=SubscriptionStatus.BLOCKED)
    searched = await ent.list_salon_overviews(gateway, NOW, search="BELLA")

    assert [row["name"] for row in blocked] == ["Barber King"]
    assert [row["name"] for row in searched] == ["Studio Bella"]
    assert searched[0]["activity"] == "never"
