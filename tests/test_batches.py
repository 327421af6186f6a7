"""
Tests for batch creation, membership and statistics.
"""
from alumnihive.db.models.batch import Batch
from alumnihive.db.models.user import Role
from alumnihive.services.batch_service import (
    add_user_to_batch,
    create_or_find_batch,
    get_batch_stats,
    remove_user_from_batch,
)


def test_create_or_find_is_idempotent(db):
    batch, created = create_or_find_batch(db, "IIT Bombay", 2020)
    db.commit()
    again, created_again = create_or_find_batch(db, "IIT Bombay", 2020)

    assert created is True
    assert created_again is False
    assert again.id == batch.id
    assert batch.name == "IIT Bombay - 2020"


def test_membership_updates_role_counts(db, student, alumni):
    batch, _ = create_or_find_batch(db, "IIT Bombay", 2020)

    assert add_user_to_batch(db, batch, alumni) is True
    assert add_user_to_batch(db, batch, student) is True
    assert add_user_to_batch(db, batch, student) is False
    db.commit()

    assert batch.alumni_count == 1
    assert batch.student_count == 1
    assert batch.total_members == 2
    assert alumni.batch_id == batch.id

    assert remove_user_from_batch(db, batch, student) is True
    db.commit()
    assert batch.student_count == 0
    assert student.batch_id is None


def test_stats(db, make_user):
    for college, year in (("IIT Bombay", 2020), ("IIT Bombay", 2021), ("NIT Trichy", 2020)):
        batch, _ = create_or_find_batch(db, college, year)
        add_user_to_batch(db, batch, make_user(Role.ALUMNI))
    db.commit()

    stats = get_batch_stats(db)

    assert stats["totalBatches"] == 3
    assert stats["totalAlumni"] == 3
    assert stats["totalStudents"] == 0
    assert stats["totalColleges"] == 2
    assert stats["topColleges"][0] == {"college": "IIT Bombay", "batches": 2}


def test_signup_joins_batch(client, db):
    response = client.post("/api/auth/signup", json={
        "email": "Priya@Example.com",
        "password": "SecurePass123",
        "firstName": "Priya",
        "lastName": "Sharma",
        "role": "alumni",
        "college": "IIT Bombay",
        "graduationYear": 2020,
    })

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "priya@example.com"
    assert user["batchId"] is not None

    batch = db.query(Batch).filter(Batch.id == user["batchId"]).one()
    assert batch.alumni_count == 1


def test_batch_endpoints(client, db, alumni):
    created = client.post("/api/batches", json={"college": "IIT Delhi", "graduationYear": 2019})
    assert created.status_code == 201
    batch_id = created.json()["batch"]["id"]

    response = client.post(f"/api/batches/{batch_id}/members", json={"userId": alumni.id})
    assert response.status_code == 200
    assert response.json()["batch"]["alumniCount"] == 1

    listing = client.get("/api/batches", params={"college": "Delhi"}).json()
    assert listing["pagination"]["total"] == 1

    detail = client.get(f"/api/batches/{batch_id}").json()["batch"]
    assert [m["id"] for m in detail["members"]] == [alumni.id]

    assert client.get("/api/batches/9999").status_code == 404
