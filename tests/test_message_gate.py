"""
Tests for the per-alumni free message allowance and subscription bypass.
"""
import pytest
from datetime import datetime, timedelta
from fastapi import HTTPException

from alumnihive.db.models.user import Role
from alumnihive.db.models.message import Message
from alumnihive.db.models.message_limit import PerAlumniMessageLimit
from alumnihive.core.message_gate import GateDecision
from alumnihive.services.message_service import send_message
from alumnihive.services.subscription_service import activate_subscription, get_subscription_status


T0 = datetime(2026, 3, 1, 9, 0, 0)


def _limit(db, student, alumni):
    return db.query(PerAlumniMessageLimit).filter(
        PerAlumniMessageLimit.student_id == student.id,
        PerAlumniMessageLimit.alumni_id == alumni.id,
    ).first()


def _spend_allowance(db, student, alumni, now=T0):
    for i in range(5):
        send_message(db, student.id, alumni.id, f"hello {i}", now=now)


def test_free_messages_count_down_then_block(db, student, alumni):
    remaining = []
    for i in range(5):
        _, decision = send_message(db, student.id, alumni.id, f"question {i}", now=T0)
        remaining.append(decision.remaining_messages)

    assert remaining == [4, 3, 2, 1, 0]

    with pytest.raises(HTTPException) as exc_info:
        send_message(db, student.id, alumni.id, "one more", now=T0)

    assert exc_info.value.status_code == 429
    detail = exc_info.value.detail
    assert detail["requiresSubscription"] is True
    assert detail["remainingMessages"] == 0
    assert detail["alumniId"] == alumni.id
    assert detail["alumniName"] == "A1 Test"

    # Rejected send leaves no message and no extra count
    assert db.query(Message).count() == 5
    assert _limit(db, student, alumni).message_count == 5


def test_allowance_is_per_alumni(db, make_user, student, alumni):
    other_alumni = make_user(Role.ALUMNI, "a2")
    _spend_allowance(db, student, alumni)

    _, decision = send_message(db, student.id, other_alumni.id, "hi", now=T0)

    assert decision.remaining_messages == 4
    assert _limit(db, student, other_alumni).message_count == 1


def test_alumni_to_student_is_not_gated(db, student, alumni):
    _spend_allowance(db, student, alumni)

    message, decision = send_message(db, alumni.id, student.id, "happy to help", now=T0)

    assert message.id is not None
    assert decision == GateDecision(gated=False)
    assert decision.remaining_messages is None


def test_student_to_student_is_not_gated(db, make_user, student):
    classmate = make_user(Role.STUDENT, "s2")
    for i in range(7):
        send_message(db, student.id, classmate.id, f"notes {i}", now=T0)
    assert db.query(PerAlumniMessageLimit).count() == 0


def test_monthly_subscription_unlocks_pair(db, make_user, student, alumni):
    other_alumni = make_user(Role.ALUMNI, "a2")
    _spend_allowance(db, student, alumni)
    _spend_allowance(db, student, other_alumni)

    activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_m1", now=T0)

    _, decision = send_message(db, student.id, alumni.id, "thanks!", now=T0 + timedelta(days=1))
    assert decision.subscribed is True
    assert decision.remaining_messages == -1
    assert _limit(db, student, alumni).message_count == 5

    # Other alumni still blocked
    with pytest.raises(HTTPException) as exc_info:
        send_message(db, student.id, other_alumni.id, "hello?", now=T0 + timedelta(days=1))
    assert exc_info.value.status_code == 429


def test_quarterly_subscription_fans_out_to_existing_rows(db, make_user, student, alumni):
    other_alumni = make_user(Role.ALUMNI, "a2")
    new_alumni = make_user(Role.ALUMNI, "a3")
    _spend_allowance(db, student, alumni)
    send_message(db, student.id, other_alumni.id, "hi", now=T0)

    subscription, created = activate_subscription(db, student.id, None, "quarterly", payment_id="pay_q1", now=T0)

    assert created is True
    for a in (alumni, other_alumni):
        limit = _limit(db, student, a)
        db.refresh(limit)
        assert limit.is_subscribed is True
        assert limit.subscription_id == subscription.id

    # The alumni whose allowance ran out takes messages again without spending any
    _, decision = send_message(db, student.id, alumni.id, "back again", now=T0 + timedelta(days=1))
    assert decision.subscribed is True
    assert decision.remaining_messages == -1
    capped = _limit(db, student, alumni)
    db.refresh(capped)
    assert capped.message_count == 5
    assert db.query(Message).filter(Message.receiver_id == alumni.id).count() == 6

    # Alumni with no row yet is covered as well
    _, decision = send_message(db, student.id, new_alumni.id, "hello", now=T0 + timedelta(days=10))
    assert decision.subscribed is True


def test_expired_subscription_clears_flag(db, student, alumni):
    _spend_allowance(db, student, alumni)
    activate_subscription(db, student.id, alumni.id, "monthly", payment_id="pay_m2", now=T0)
    assert _limit(db, student, alumni).is_subscribed is True

    later = T0 + timedelta(days=40)
    with pytest.raises(HTTPException):
        send_message(db, student.id, alumni.id, "still there?", now=later)

    limit = _limit(db, student, alumni)
    db.refresh(limit)
    assert limit.is_subscribed is False
    assert limit.subscription_id is None


def test_status_reports_counts(db, student, alumni):
    status = get_subscription_status(db, student.id, alumni.id, now=T0)
    assert status["hasSubscription"] is False
    assert status["messageCount"] == 0
    assert status["remainingMessages"] == 5
    assert status["requiresSubscription"] is False

    _spend_allowance(db, student, alumni)
    status = get_subscription_status(db, student.id, alumni.id, now=T0)
    assert status["messageCount"] == 5
    assert status["remainingMessages"] == 0
    assert status["requiresSubscription"] is True


def test_send_endpoint_returns_429_payload(client, db, student, alumni):
    for i in range(5):
        response = client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": f"msg {i}"})
        assert response.status_code == 201
        assert response.json()["remainingMessages"] == 4 - i

    response = client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": "blocked"})

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Message limit reached for this alumni"
    assert body["requiresSubscription"] is True
    assert body["alumniId"] == alumni.id


def test_send_endpoint_unknown_user(client, db, student):
    response = client.post(f"/api/messages/{student.id}/9999", json={"content": "hi"})
    assert response.status_code == 404
    assert response.json()["error"] == "One or both users not found"


def test_conversation_marks_messages_read(client, db, student, alumni):
    client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": "ping"})

    conversations = client.get(f"/api/messages/conversations/{alumni.id}").json()["conversations"]
    assert conversations[0]["otherUserId"] == student.id
    assert conversations[0]["unreadCount"] == 1

    response = client.get(f"/api/messages/{alumni.id}/{student.id}")
    assert response.status_code == 200
    assert [m["content"] for m in response.json()["messages"]] == ["ping"]

    conversations = client.get(f"/api/messages/conversations/{alumni.id}").json()["conversations"]
    assert conversations[0]["unreadCount"] == 0


def test_subscribe_after_cap_scenario(client, db, student, alumni):
    for i in range(1, 6):
        response = client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": f"hi {i}"})
        assert response.status_code == 201

    blocked = client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": "hi 6"})
    assert blocked.status_code == 429
    assert blocked.json()["remainingMessages"] == 0

    subscribed = client.post("/api/subscriptions/create", json={
        "studentId": student.id,
        "alumniId": alumni.id,
        "subscriptionType": "monthly",
        "paymentId": "pay_x",
    })
    assert subscribed.status_code == 201

    response = client.post(f"/api/messages/{student.id}/{alumni.id}", json={"content": "hi 7"})
    assert response.status_code == 201
    assert response.json()["remainingMessages"] == -1
