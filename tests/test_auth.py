"""
Tests for signup, login and the current-user endpoint.
"""
from alumnihive.db.models.user import User

TEST_PASSWORD = "testpass123"

SIGNUP = {
    "email": "rahul@example.com",
    "password": "SecurePass123",
    "firstName": "Rahul",
    "lastName": "Verma",
    "role": "student",
}


def test_signup_returns_token(client, db):
    response = client.post("/api/auth/signup", json=SIGNUP)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["token"]
    assert body["user"]["role"] == "student"

    user = db.query(User).filter(User.email == "rahul@example.com").one()
    assert user.password_hash != "SecurePass123"


def test_duplicate_email_rejected(client, db):
    client.post("/api/auth/signup", json=SIGNUP)
    response = client.post("/api/auth/signup", json=SIGNUP)

    assert response.status_code == 409
    assert response.json()["error"] == "Email already registered"


def test_admin_signup_rejected(client, db):
    response = client.post("/api/auth/signup", json={**SIGNUP, "role": "admin"})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_login_and_me(client, db, student):
    response = client.post("/api/auth/login", data={"username": student.email, "password": TEST_PASSWORD})

    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == student.id
    assert me.json()["firstName"] == "S1"


def test_login_wrong_password(client, db, student):
    response = client.post("/api/auth/login", data={"username": student.email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_me_requires_token(client, db):
    assert client.get("/api/auth/me").status_code == 401
