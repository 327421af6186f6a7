"""
Tests for connection requests and stats.
"""
import pytest

from alumnihive.core.errors import ConflictError, NotFoundError, ValidationError
from alumnihive.services import connection_service


def test_send_request_rules(db, student, alumni):
    with pytest.raises(ValidationError, match="cannot connect with yourself"):
        connection_service.send_request(db, student.id, student.id)
    with pytest.raises(NotFoundError, match="One or both users not found"):
        connection_service.send_request(db, student.id, 9999)

    request = connection_service.send_request(db, student.id, alumni.id, "  Hello!  ")
    assert request.message == "Hello!"

    # Either direction counts as the same pair
    with pytest.raises(ConflictError) as duplicate:
        connection_service.send_request(db, alumni.id, student.id)
    assert duplicate.value.extra["status"] == "pending"


def test_status_and_stats(db, student, alumni, make_user):
    other = make_user(student.role)
    first = connection_service.send_request(db, student.id, alumni.id)
    connection_service.send_request(db, other.id, alumni.id)

    assert connection_service.connection_status(db, alumni.id, student.id) == "pending"
    assert connection_service.connection_status(db, student.id, other.id) == "none"

    connection_service.update_request(db, first.id, "accepted")
    with pytest.raises(ValidationError, match="Invalid status"):
        connection_service.update_request(db, first.id, "pending")

    assert connection_service.connection_stats(db, alumni.id) == {
        "totalConnections": 1,
        "pendingRequests": 1,
        "sentRequests": 0,
        "receivedRequests": 2,
    }
    assert [r.requester_id for r in connection_service.list_requests(db, student.id, "sent")] == [student.id]


def test_connection_endpoints(client, db, student, alumni):
    sent = client.post(f"/api/connections/{student.id}/{alumni.id}", json={"message": "Hi"})
    assert sent.status_code == 201
    request_id = sent.json()["data"]["id"]
    assert sent.json()["data"]["recipient"]["id"] == alumni.id

    again = client.post(f"/api/connections/{student.id}/{alumni.id}")
    assert again.status_code == 400
    assert again.json()["error"] == "Connection request already exists"

    received = client.get(f"/api/connections/{alumni.id}").json()["requests"]
    assert [r["id"] for r in received] == [request_id]
    assert client.get(f"/api/connections/{alumni.id}", params={"type": "both"}).status_code == 400

    accepted = client.put(f"/api/connections/{request_id}", json={"status": "accepted"})
    assert accepted.status_code == 200
    assert client.get(f"/api/connections/status/{alumni.id}/{student.id}").json() == {"status": "accepted"}
    assert client.get(f"/api/connections/stats/{student.id}").json()["stats"]["totalConnections"] == 1

    assert client.put("/api/connections/9999", json={"status": "accepted"}).status_code == 404
