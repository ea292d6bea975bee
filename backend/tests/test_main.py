"""Tests for the HTTP endpoints."""

import os
import pytest
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

import main


SAMPLE_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "sample-family.ged"
)


@pytest.fixture
def client():
    main.pending_import = None
    return TestClient(main.app)


@pytest.fixture
def sample_bytes():
    with open(SAMPLE_PATH, "rb") as f:
        return f.read()


def upload(client, content, filename="family.ged", **params):
    params.setdefault("owner_id", "user-1")
    return client.post(
        "/import-gedcom",
        params=params,
        files={"file": (filename, content, "text/plain")},
    )


class TestImportEndpoint:
    """Tests for POST /import-gedcom."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "import_staged": False}

    def test_upload_sample(self, client, sample_bytes):
        response = upload(client, sample_bytes)
        assert response.status_code == 200

        data = response.json()
        assert data["person_count"] == 11
        assert data["message"] == "Loaded 11 family members"
        assert data["tree"]["member_ids"] == [p["id"] for p in data["people"]]
        assert data["people"][0]["name"] == "John Smith"
        assert data["people"][0]["user_id"] == "user-1"
        assert main.pending_import is not None

    def test_upload_with_generation_cap(self, client, sample_bytes):
        response = upload(client, sample_bytes, max_generations=0)
        assert response.json()["person_count"] == 2

    def test_negative_generation_cap_rejected(self, client, sample_bytes):
        response = upload(client, sample_bytes, max_generations=-1)
        assert response.status_code == 422

    def test_wrong_extension(self, client):
        response = upload(client, b"0 HEAD", filename="family.txt")
        assert response.status_code == 400
        assert "GEDCOM" in response.json()["detail"]

    def test_latin1_fallback(self, client):
        content = "0 @I1@ INDI\n1 NAME José /García/\n".encode("latin-1")
        response = upload(client, content)
        assert response.status_code == 200
        assert response.json()["people"][0]["name"] == "José García"

    def test_empty_file(self, client):
        response = upload(client, b"")
        assert response.status_code == 200
        data = response.json()
        assert data["person_count"] == 0
        assert data["tree"]["home_person_id"] == ""


class TestChooseHomeEndpoint:
    """Tests for POST /import-gedcom/home."""

    def test_requires_staged_import(self, client):
        response = client.post("/import-gedcom/home", json={"person_id": "x"})
        assert response.status_code == 400

    def test_choose_home(self, client, sample_bytes):
        people = upload(client, sample_bytes).json()["people"]
        peter = next(p for p in people if p["name"] == "Peter Smith")

        response = client.post("/import-gedcom/home", json={"person_id": peter["id"]})
        assert response.status_code == 200
        tree = response.json()
        assert tree["home_person_id"] == peter["id"]
        assert tree["name"] == "The Peter Smith Archive"
        assert main.pending_import.tree_record.home_person_id == peter["id"]

    def test_unknown_person(self, client, sample_bytes):
        upload(client, sample_bytes)
        response = client.post("/import-gedcom/home", json={"person_id": "nobody"})
        assert response.status_code == 404


class TestDatesEndpoint:
    """Tests for GET /dates."""

    def test_describe_date(self, client):
        response = client.get("/dates", params={"value": "ABT 12 JUN 1925"})
        data = response.json()
        assert data["display"] == "June 12, 1925"
        assert data["sort_key"] == pytest.approx(1925 + 6 / 12 + 12 / 365)

    def test_undated(self, client):
        data = client.get("/dates").json()
        assert data["display"] == "Undated"
        assert data["sort_key"] == 9999
