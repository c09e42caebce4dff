"""
Pipeline API

Envelope, status codes and the full two-round flow over HTTP
"""
import pytest
from httpx import AsyncClient

from conftest import SAMPLE_QUESTIONS, DataFactory


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"success": True, "code": 200, "message": "OK", "data": {"status": "healthy"}}


async def test_full_flow(client: AsyncClient, factory: DataFactory):
    internship = await factory.create_internship()
    student = await factory.create_student()

    # 1. Test bank
    response = await client.post("/api/v1/tests", json={
        "title": "Python basics",
        "description": "Screening quiz",
        "questions": SAMPLE_QUESTIONS,
        "duration": 10,
    })
    assert response.status_code == 200, response.text
    test_id = response.json()["data"]["id"]

    # 2. Apply and pass round 1
    base = f"/api/v1/internships/{internship.id}/applications"
    response = await client.post(base, json={"student_id": student.id})
    assert response.status_code == 200, response.text
    application_id = response.json()["data"]["id"]

    response = await client.post(f"{base}/{application_id}/round1/approve", json={"feedback": "Good"})
    assert response.json()["data"]["status"] == "form_approved"

    # 3. Assign and take the quiz
    response = await client.post("/api/v1/assignments", json={
        "internship_id": internship.id,
        "application_id": application_id,
        "student_id": student.id,
        "test_id": test_id,
    })
    assert response.status_code == 200, response.text
    assignment_id = response.json()["data"]["id"]

    response = await client.post(f"/api/v1/assignments/{assignment_id}/start")
    assert response.json()["data"]["status"] == "in_progress"

    response = await client.post("/api/v1/submissions", json={
        "internship_id": internship.id,
        "application_id": application_id,
        "question_data": [{"id": 1, "selectedOption": 1}, {"id": 2, "userAnswer": "PyPI"}],
    })
    assert response.status_code == 200, response.text
    assert response.json()["data"]["percentage"] == 100.0

    response = await client.get("/api/v1/assignments/pending")
    assert [a["id"] for a in response.json()["data"]["items"]] == [assignment_id]

    response = await client.get(f"/api/v1/assignments/{assignment_id}")
    details = response.json()["data"]
    assert details["student"]["id"] == student.id
    assert details["test"]["id"] == test_id
    assert details["application"]["status"] == "quiz_completed"
    assert details["submission"]["score"] == 2.0

    # 4. Review
    response = await client.post(f"/api/v1/assignments/{assignment_id}/approve", json={
        "feedback": "Great work",
        "advance_to_next_round": False,
    })
    assert response.status_code == 200, response.text
    assert response.json()["data"]["application"]["status"] == "selected"

    response = await client.get(f"{base}/{application_id}")
    assert response.json()["data"]["status"] == "selected"
    response = await client.get("/api/v1/applications", params={"status": "selected"})
    assert response.json()["data"]["total"] == 1


@pytest.mark.parametrize("method, path", [
    ("post", "/api/v1/assignments/ta-x/approve"),
    ("delete", "/api/v1/assignments/ta-x"),
])
async def test_missing_actor_is_401(client: AsyncClient, method, path):
    kwargs = {"json": {}} if method == "post" else {}
    response = await getattr(client, method)(path, headers={"X-Actor-Id": ""}, **kwargs)
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "You must be logged in to perform this action"


async def test_domain_errors_map_to_status_codes(client: AsyncClient, factory: DataFactory):
    application = await factory.create_application()
    test = await factory.create_test()
    payload = {
        "internship_id": application.internship_id,
        "application_id": application.id,
        "student_id": application.student_id,
        "test_id": test.id,
    }

    response = await client.post("/api/v1/assignments", json=payload)
    assert response.status_code == 409
    assert response.json()["code"] == 409

    response = await client.get("/api/v1/assignments/ta-missing")
    assert response.status_code == 404
    assert response.json()["message"] == "Test assignment not found"

    response = await client.post("/api/v1/tests", json={"title": "Bad", "questions": "[{}]"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid questions format")

    response = await client.post("/api/v1/assignments", json={"internship_id": "x"})
    assert response.status_code == 422
    assert response.json()["success"] is False


async def test_bulk_assign_reports_partial_success(client: AsyncClient, factory: DataFactory):
    internship = await factory.create_internship()
    test = await factory.create_test()
    ready = await factory.create_application(status="form_approved", internship_id=internship.id)

    response = await client.post("/api/v1/assignments/bulk", json={
        "internship_id": internship.id,
        "test_id": test.id,
        "student_ids": [ready.student_id, "ghost"],
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] == 1
    assert data["failed"] == 1
    assert data["errors"][0].startswith("ghost: ")
