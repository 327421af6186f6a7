"""
Tests for the informational per-user daily message counter.
"""
from datetime import datetime, timedelta

from alumnihive.services import message_limit_service
from alumnihive.services.subscription_service import activate_subscription


T0 = datetime(2026, 5, 4, 10, 0, 0)


def test_counter_rolls_over_each_day(db, student):
    for _ in range(3):
        message_limit_service.increment(db, student.id, now=T0)

    status = message_limit_service.get_limit_status(db, student.id, now=T0)
    assert status["dailyMessageCount"] == 3
    assert status["remainingMessages"] == 2
    assert status["isPremium"] is False

    status = message_limit_service.get_limit_status(db, student.id, now=T0 + timedelta(days=1))
    assert status["dailyMessageCount"] == 0
    assert status["totalMessagesSent"] == 3


def test_live_subscription_is_premium(db, student, alumni):
    activate_subscription(db, student.id, alumni.id, "monthly", now=T0)

    result = message_limit_service.can_send(db, student.id, now=T0)

    assert result == {"canSend": True, "isPremium": True, "remainingMessages": -1}


def test_endpoints(client, db, student):
    response = client.post("/api/message-limits/increment", json={"userId": student.id})
    assert response.status_code == 200
    assert response.json()["dailyMessageCount"] == 1

    assert client.post("/api/message-limits/can-send", json={"userId": student.id}).json()["canSend"] is True
    assert client.get("/api/message-limits/9999").status_code == 404
