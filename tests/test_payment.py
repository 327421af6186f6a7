"""
Tests for Razorpay signature checks, payment idempotence and the webhook.
"""
import hashlib
import hmac
import json

import pytest

from alumnihive.core import security
from alumnihive.core.errors import NotFoundError, SignatureError
from alumnihive.core.security import compute_payment_signature, verify_payment_signature
from alumnihive.db.models.payment import Payment, PaymentStatus
from alumnihive.db.models.subscription import AlumniSubscription
from alumnihive.db.models.user import Role
from alumnihive.services import mentorship_service
from alumnihive.services.payment_service import verify_mentorship_payment, verify_subscription_payment
from alumnihive.services.payment_webhook_handlers import dispatch_event


@pytest.fixture
def request_id(db, student, alumni):
    request = mentorship_service.create_request(
        db, student.id, alumni.id, "interview_prep", "Mock interview", "One practice round"
    )
    return str(request.id)


def _webhook_signature(body: bytes) -> str:
    return hmac.new(security.RAZORPAY_WEBHOOK_SECRET.encode("utf-8"), body, hashlib.sha256).hexdigest()


def test_signature_matches_order_and_payment():
    signature = compute_payment_signature("order_1", "pay_1", secret="s3cret")

    assert verify_payment_signature("order_1", "pay_1", signature, secret="s3cret")
    assert not verify_payment_signature("order_1", "pay_2", signature, secret="s3cret")
    assert not verify_payment_signature("order_1", "pay_1", signature, secret="other")
    assert not verify_payment_signature("order_1", "pay_1", None, secret="s3cret")


def test_mentorship_payment_is_stored_once(db, student, alumni, request_id):
    signature = compute_payment_signature("order_1", "pay_1")

    payment, created = verify_mentorship_payment(db, "order_1", "pay_1", signature, student.id, alumni.id, request_id)
    again, created_again = verify_mentorship_payment(db, "order_1", "pay_1", signature, student.id, alumni.id, request_id)

    assert created is True
    assert created_again is False
    assert again.id == payment.id
    assert payment.status == PaymentStatus.COMPLETED
    assert payment.amount == 300
    assert payment.receipt.startswith("ment_")
    assert db.query(Payment).count() == 1


def test_tampered_signature_creates_nothing(db, student, alumni):
    signature = compute_payment_signature("order_1", "pay_1")

    with pytest.raises(SignatureError):
        verify_subscription_payment(db, "order_1", "pay_other", signature, student.id, alumni.id, "monthly")

    assert db.query(AlumniSubscription).count() == 0


def test_verified_subscription_payment_activates(db, student, alumni):
    signature = compute_payment_signature("order_9", "pay_9")

    subscription, created = verify_subscription_payment(
        db, "order_9", "pay_9", signature, student.id, alumni.id, "monthly"
    )

    assert created is True
    assert subscription.payment_id == "pay_9"


def test_payment_verify_endpoint(client, db, student, alumni, request_id):
    payload = {
        "orderId": "order_1",
        "paymentId": "pay_1",
        "signature": compute_payment_signature("order_1", "pay_1"),
        "studentId": student.id,
        "alumniId": alumni.id,
        "requestId": request_id,
    }

    response = client.post("/api/payment/verify", json=payload)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["requestId"] == request_id

    status = client.get(f"/api/payment/status/{student.id}/{alumni.id}/{request_id}").json()
    assert status["hasPaid"] is True
    assert status["payment"]["paymentId"] == "pay_1"


def test_payment_verify_endpoint_bad_signature(client, db, student, alumni):
    response = client.post("/api/payment/verify", json={
        "orderId": "order_1",
        "paymentId": "pay_1",
        "signature": "deadbeef",
        "studentId": student.id,
        "alumniId": alumni.id,
        "requestId": "req_42",
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Payment verification failed"


def test_razorpay_subscription_verify_endpoint(client, db, student, alumni):
    response = client.post("/api/subscriptions/razorpay/verify", json={
        "orderId": "order_7",
        "paymentId": "pay_7",
        "signature": compute_payment_signature("order_7", "pay_7"),
        "studentId": student.id,
        "alumniId": alumni.id,
        "subscriptionType": "monthly",
    })

    assert response.status_code == 201
    assert response.json()["message"] == "Payment verified and subscription created successfully"


def test_webhook_rejects_bad_signature(client, db):
    body = json.dumps({"event": "payment.captured"}).encode("utf-8")

    response = client.post(
        "/api/subscriptions/razorpay/callback",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": "nope"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid signature"


def test_webhook_accepts_signed_event(client, db):
    body = json.dumps({"event": "order.paid", "payload": {"order": {"entity": {"id": "order_1"}}}}).encode("utf-8")

    response = client.post(
        "/api/subscriptions/razorpay/callback",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": _webhook_signature(body)},
    )

    assert response.status_code == 200
    assert response.json() == {"status": "success"}


def test_payment_failed_event_only_moves_pending(db, student, alumni):
    db.add(Payment(
        order_id="order_p", payment_id="pay_p", student_id=student.id, alumni_id=alumni.id,
        request_id="req_p", amount=300, currency="INR", status=PaymentStatus.PENDING,
        receipt="r", type="mentorship_call",
    ))
    db.add(Payment(
        order_id="order_c", payment_id="pay_c", student_id=student.id, alumni_id=alumni.id,
        request_id="req_c", amount=300, currency="INR", status=PaymentStatus.COMPLETED,
        receipt="r", type="mentorship_call",
    ))
    db.commit()

    for payment_id in ("pay_p", "pay_c"):
        event = {"event": "payment.failed", "payload": {"payment": {"entity": {"id": payment_id}}}}
        assert dispatch_event(event, db) is True

    statuses = {p.payment_id: p.status for p in db.query(Payment).all()}
    assert statuses == {"pay_p": PaymentStatus.FAILED, "pay_c": PaymentStatus.COMPLETED}


def test_unknown_event_is_ignored(db):
    assert dispatch_event({"event": "refund.created"}, db) is False


def _empty_key_hmac(payload: bytes) -> str:
    return hmac.new(b"", payload, hashlib.sha256).hexdigest()


def test_empty_secret_rejects_every_signature():
    forged = _empty_key_hmac(b"order_f|pay_f")

    assert not verify_payment_signature("order_f", "pay_f", forged, secret="")
    assert not security.verify_webhook_signature(b"{}", _empty_key_hmac(b"{}"), secret="")


def test_unconfigured_secrets_reject_empty_key_forgeries(client, db, student, alumni, monkeypatch):
    monkeypatch.setattr(security, "RAZORPAY_KEY_SECRET", "")
    monkeypatch.setattr(security, "RAZORPAY_WEBHOOK_SECRET", "")

    response = client.post("/api/payment/verify", json={
        "orderId": "order_f",
        "paymentId": "pay_f",
        "signature": _empty_key_hmac(b"order_f|pay_f"),
        "studentId": student.id,
        "alumniId": alumni.id,
        "requestId": "req_f",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "Payment verification failed"
    assert db.query(Payment).count() == 0

    body = json.dumps({"event": "order.paid", "payload": {"order": {"entity": {"id": "order_f"}}}}).encode("utf-8")
    response = client.post(
        "/api/subscriptions/razorpay/callback",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": _empty_key_hmac(body)},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid signature"


def test_payment_must_reference_the_pairs_mentorship_request(db, make_user, student, alumni, request_id):
    other_alumni = make_user(Role.ALUMNI)
    signature = compute_payment_signature("order_r", "pay_r")

    for alumni_id, ref in ((alumni.id, "req_42"), (alumni.id, "9999"), (other_alumni.id, request_id)):
        with pytest.raises(NotFoundError) as exc_info:
            verify_mentorship_payment(db, "order_r", "pay_r", signature, student.id, alumni_id, ref)
        assert exc_info.value.message == "Mentorship request not found"

    assert db.query(Payment).count() == 0
