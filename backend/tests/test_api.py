import pytest
from fastapi.testclient import TestClient

from meditrack.main import create_app


@pytest.fixture
def client(backend_settings):
    with TestClient(create_app(backend_settings)) as test_client:
        yield test_client


@pytest.fixture
def fallback_client(fallback_settings):
    with TestClient(create_app(fallback_settings)) as test_client:
        yield test_client


def test_health_reports_mode(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] in ("engine", "fallback")


def test_health_in_fallback(fallback_client):
    assert fallback_client.get("/health").json()["database"] == "fallback"


def test_register_and_list(client, patient_data):
    response = client.post("/patients/", json=patient_data(date_of_birth="2000-01-01"))
    assert response.status_code == 201
    created = response.json()
    assert created["first_name"] == "Jane"
    assert created["age"] >= 24

    listing = client.get("/patients/", params={"limit": 5}).json()
    assert listing["total"] == 1
    assert listing["patients"][0]["id"] == created["id"]
    assert client.get("/patients/count").json() == {"total": 1}


def test_register_validation_errors(client):
    response = client.post("/patients/", json={"first_name": "Jane", "email": "nope"})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert sorted(detail["fields"]) == ["date_of_birth", "email", "gender", "last_name"]
    assert "Email is invalid" in detail["errors"]
    assert client.get("/patients/count").json() == {"total": 0}


def test_query_endpoint(client, patient_data):
    client.post("/patients/", json=patient_data(gender="male"))
    client.post("/patients/", json=patient_data(gender="female"))
    response = client.post(
        "/patients/query", json={"query": "SELECT COUNT(*) AS total FROM patients WHERE gender = 'male'"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["rows"] == [{"total": 1}]
    assert body["row_count"] == 1


@pytest.mark.parametrize("query,status_code", [
    ("   ", 400),
    ("DROP TABLE patients", 400),
    ("SELECT * FROM orders", 404),
    ("DELETE/**/FROM patients", 400),
    ("UPDATE patients SET first_name = 'x'", 400),
])
def test_query_errors(client, query, status_code):
    response = client.post("/patients/query", json={"query": query})
    assert response.status_code == status_code


def test_sample_queries_run_on_fallback(fallback_client, patient_data):
    fallback_client.post("/patients/", json=patient_data())
    for query in fallback_client.get("/patients/query/samples").json():
        response = fallback_client.post("/patients/query", json={"query": query})
        assert response.status_code == 200, query


def test_gender_options(client):
    options = client.get("/patients/gender-options").json()
    assert {"value": "prefer_not_to_say", "label": "Prefer not to say"} in options
    assert len(options) == 4


def test_changes_long_poll(client, patient_data):
    idle = client.get("/patients/changes", params={"since": 0, "timeout": 0}).json()
    assert idle == {"count": 0, "operation": None, "changed": False}

    client.post("/patients/", json=patient_data())
    changed = client.get("/patients/changes", params={"since": 0, "timeout": 1}).json()
    assert changed == {"count": 1, "operation": "register", "changed": True}
