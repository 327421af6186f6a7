"""
Unit tests for subscription activation, plans and earnings.
"""
import pytest
from datetime import datetime

from alumnihive.core.errors import ConflictError, NotFoundError, ValidationError
from alumnihive.db.models.user import Role
from alumnihive.db.models.subscription import AlumniSubscription, QuarterlySubscription, SubscriptionType
from alumnihive.services.subscription_service import (
    activate_subscription,
    get_alumni_earnings,
    list_plans,
    list_student_subscriptions,
    subscription_window,
)


T0 = datetime(2026, 1, 31, 12, 0, 0)


def test_monthly_window_uses_calendar_months():
    start, end = subscription_window(T0, SubscriptionType.MONTHLY)
    assert start == T0
    assert end == datetime(2026, 2, 28, 12, 0, 0)


def test_quarterly_window_is_three_months():
    _, end = subscription_window(datetime(2026, 3, 15), SubscriptionType.QUARTERLY)
    assert end == datetime(2026, 6, 15)


def test_monthly_split(db, student, alumni):
    subscription, created = activate_subscription(db, student.id, alumni.id, "monthly", now=T0)

    assert created is True
    assert isinstance(subscription, AlumniSubscription)
    assert subscription.amount == 300
    assert subscription.platform_commission == 90
    assert subscription.alumni_earnings == 210


def test_quarterly_split(db, student):
    subscription, _ = activate_subscription(db, student.id, None, "quarterly", now=T0)

    assert isinstance(subscription, QuarterlySubscription)
    assert subscription.amount == 1000
    assert subscription.platform_commission == 200


def test_invalid_type_rejected(db, student, alumni):
    with pytest.raises(ValidationError) as exc_info:
        activate_subscription(db, student.id, alumni.id, "yearly", now=T0)
    assert exc_info.value.message == "Invalid subscription type"


def test_duplicate_active_subscription_rejected(db, student, alumni):
    activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_1", now=T0)

    with pytest.raises(ConflictError) as exc_info:
        activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_2", now=T0)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Active subscription already exists"


def test_payment_id_replay_returns_existing(db, student, alumni):
    first, created = activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_1", now=T0)
    again, created_again = activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_1", now=T0)

    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert db.query(AlumniSubscription).count() == 1


def test_payment_id_replay_must_match_scope(db, make_user, student, alumni):
    activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_1", now=T0)
    other_student = make_user(Role.STUDENT)
    other_alumni = make_user(Role.ALUMNI)

    for student_id, alumni_id, plan in (
        (other_student.id, alumni.id, "monthly"),
        (student.id, other_alumni.id, "monthly"),
        (student.id, None, "quarterly"),
    ):
        with pytest.raises(ValidationError) as exc_info:
            activate_subscription(db, student_id, alumni_id, plan, payment_id="pay_1", now=T0)
        assert exc_info.value.message == "Payment already used for another subscription"

    assert db.query(AlumniSubscription).count() == 1
    assert db.query(QuarterlySubscription).count() == 0


def test_roles_are_checked(db, make_user, student, alumni):
    other_student = make_user(Role.STUDENT, "s2")

    with pytest.raises(NotFoundError) as exc_info:
        activate_subscription(db, alumni.id, student.id, "monthly", now=T0)
    assert exc_info.value.message == "Student not found"

    with pytest.raises(NotFoundError) as exc_info:
        activate_subscription(db, student.id, other_student.id, "monthly", now=T0)
    assert exc_info.value.message == "Alumni not found"


def test_plans_for_alumni(db, alumni):
    result = list_plans(db, alumni.id)

    assert [plan["id"] for plan in result["plans"]] == ["monthly", "quarterly"]
    assert result["plans"][0]["price"] == 300
    assert result["alumni"] == {"id": alumni.id, "name": "A1 Test"}


def test_earnings_count_only_live_pair_subscriptions(db, make_user, alumni):
    s1 = make_user(Role.STUDENT, "s1")
    s2 = make_user(Role.STUDENT, "s2")
    activate_subscription(db, s1.id, alumni.id, "monthly", payment_id="pay_1", now=datetime(2025, 1, 1))
    activate_subscription(db, s2.id, alumni.id, "monthly", payment_id="pay_2", now=T0)
    activate_subscription(db, s1.id, None, "quarterly", payment_id="pay_3", now=T0)

    earnings = get_alumni_earnings(db, alumni.id, now=T0)

    assert earnings["activeSubscriptions"] == 1
    assert earnings["totalEarnings"] == 210
    assert earnings["totalPlatformCommission"] == 90
    assert len(earnings["subscriptions"]) == 2


def test_student_subscriptions_newest_first(db, student, alumni):
    activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_1", now=datetime(2025, 6, 1))
    activate_subscription(db, student.id, None, "quarterly", payment_id="pay_2", now=T0)

    subscriptions = list_student_subscriptions(db, student.id)

    assert [type(sub) for sub in subscriptions] == [QuarterlySubscription, AlumniSubscription]


def test_create_endpoint(client, db, make_user, student, alumni):
    other = make_user(Role.STUDENT)
    payload = {"studentId": student.id, "alumniId": alumni.id, "subscriptionType": "monthly", "paymentId": "pay_x"}

    response = client.post("/api/subscriptions/create", json=payload)
    assert response.status_code == 201
    assert response.json()["message"] == "Subscription created successfully"
    assert response.json()["subscription"]["alumniEarnings"] == 210

    replay = client.post("/api/subscriptions", json=payload)
    assert replay.status_code == 200
    assert replay.json()["subscription"]["id"] == response.json()["subscription"]["id"]

    hijack = client.post("/api/subscriptions", json={**payload, "studentId": other.id})
    assert hijack.status_code == 400
    assert hijack.json()["error"] == "Payment already used for another subscription"


def test_create_endpoint_errors(client, db, student, alumni):
    response = client.post(
        "/api/subscriptions/create",
        json={"studentId": student.id, "alumniId": alumni.id, "subscriptionType": "weekly"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid subscription type"

    response = client.post(
        "/api/subscriptions/create",
        json={"studentId": 9999, "alumniId": alumni.id, "subscriptionType": "monthly"},
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Student not found"


def test_status_endpoint(client, db, student, alumni):
    response = client.get(f"/api/subscriptions/status/{student.id}/{alumni.id}")

    assert response.status_code == 200
    assert response.json()["remainingMessages"] == 5
    assert response.json()["hasSubscription"] is False
