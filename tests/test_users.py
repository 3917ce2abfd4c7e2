"""Integration tests for profile management and admin user administration."""
from __future__ import annotations

import os
from typing import Iterator
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_civic_api.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from civic_api.database import Base, SessionLocal, engine  # noqa: E402
from civic_api.main import app  # noqa: E402
from civic_api.models import Report, User, Vote  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Vote))
        session.execute(delete(Report))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _register(client: TestClient, email: str, *, admin: bool = False, name: str = "Member") -> tuple[UUID, dict[str, str]]:
    response = client.post("/api/auth/register", json={"email": email, "password": "password123", "name": name})
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    user_id = UUID(data["user"]["id"])
    if admin:
        with SessionLocal() as session:
            user = session.get(User, user_id)
            assert user is not None
            user.is_admin = True
            session.commit()
    return user_id, {"Authorization": f"Bearer {data['token']}"}


def test_update_own_profile(client: TestClient) -> None:
    _, headers = _register(client, "profile@example.com", name="Old Name")

    response = client.put(
        "/api/users/me",
        json={"name": "New Name", "city": "Utrecht", "country": "NL", "avatar": "https://example.com/me.png"},
        headers=headers,
    )
    me = client.get("/api/users/me", headers=headers)

    assert response.status_code == 200, response.text
    assert me.json()["data"]["name"] == "New Name"
    assert me.json()["data"]["city"] == "Utrecht"
    assert me.json()["data"]["country"] == "NL"
    assert me.json()["data"]["avatar"] == "https://example.com/me.png"


def test_replacing_avatar_deletes_previous_file(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    deleted: list[str | None] = []
    monkeypatch.setattr("civic_api.services.user_service.delete_stored_file", deleted.append)
    _, headers = _register(client, "avatar@example.com")

    client.put("/api/users/me", json={"avatar": "https://example.com/one.png"}, headers=headers)
    client.put("/api/users/me", json={"city": "Delft"}, headers=headers)
    client.put("/api/users/me", json={"avatar": "https://example.com/two.png"}, headers=headers)

    assert deleted == ["https://example.com/one.png"]


def test_public_profile_hides_private_fields(client: TestClient) -> None:
    user_id, headers = _register(client, "public@example.com", name="Visible")
    client.put("/api/users/me", json={"city": "Leiden"}, headers=headers)

    response = client.get(f"/api/users/{user_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Visible"
    assert data["city"] == "Leiden"
    assert "email" not in data
    assert "isAdmin" not in data
    assert client.get(f"/api/users/{uuid4()}").status_code == 404


def test_user_stats(client: TestClient) -> None:
    author_id, author_headers = _register(client, "statsauthor@example.com")
    _, voter_headers = _register(client, "statsvoter@example.com")
    _, admin_headers = _register(client, "statsadmin@example.com", admin=True)

    report_ids = []
    for title in ("One", "Two", "Three"):
        created = client.post(
            "/api/reports",
            json={
                "title": title,
                "description": "Details",
                "category": "roads",
                "location": {"latitude": 0, "longitude": 0},
                "address": "Road",
            },
            headers=author_headers,
        )
        report_ids.append(created.json()["data"]["id"])

    client.post(f"/api/reports/{report_ids[0]}/admin-action", json={"action": "approve"}, headers=admin_headers)
    client.put(f"/api/reports/{report_ids[1]}", json={"status": "in-progress"}, headers=admin_headers)
    client.post(f"/api/reports/{report_ids[0]}/vote", json={"type": "up"}, headers=voter_headers)
    client.post(f"/api/reports/{report_ids[0]}/vote", json={"type": "down"}, headers=admin_headers)

    stats = client.get(f"/api/users/{author_id}/stats").json()["data"]

    assert stats == {"submitted": 3, "approved": 1, "inProgress": 1, "resolved": 0, "votesReceived": 2}


def test_admin_routes_reject_non_admins(client: TestClient) -> None:
    target_id, headers = _register(client, "regular@example.com")

    assert client.get("/api/users", headers=headers).status_code == 403
    assert client.post(f"/api/users/{target_id}/make-admin", headers=headers).status_code == 403
    assert client.delete(f"/api/users/{target_id}", headers=headers).status_code == 403
    assert client.get("/api/users").status_code == 401


def test_admin_lists_and_updates_users(client: TestClient) -> None:
    _, admin_headers = _register(client, "root@example.com", admin=True)
    member_id, _ = _register(client, "member@example.com")

    listing = client.get("/api/users", params={"limit": 1}, headers=admin_headers).json()
    updated = client.put(f"/api/users/{member_id}", json={"name": "Renamed"}, headers=admin_headers)

    assert listing["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}
    assert len(listing["data"]) == 1
    assert updated.json()["data"]["name"] == "Renamed"


def test_promotion_and_demotion_take_effect_immediately(client: TestClient) -> None:
    _, root_headers = _register(client, "super@example.com", admin=True)
    deputy_id, deputy_headers = _register(client, "deputy@example.com")

    promoted = client.post(f"/api/users/{deputy_id}/make-admin", headers=root_headers)
    assert promoted.json()["data"]["isAdmin"] is True

    # The deputy's token predates the promotion but admin status is read from the directory.
    assert client.get("/api/users", headers=deputy_headers).status_code == 200

    token_while_admin = client.post("/api/auth/login", json={"email": "deputy@example.com", "password": "password123"})
    admin_headers = {"Authorization": f"Bearer {token_while_admin.json()['data']['token']}"}

    demoted = client.post(f"/api/users/{deputy_id}/remove-admin", headers=root_headers)
    assert demoted.json()["data"]["isAdmin"] is False

    assert client.get("/api/users", headers=admin_headers).status_code == 403


def test_delete_user_removes_their_reports_and_votes(client: TestClient) -> None:
    _, admin_headers = _register(client, "remover@example.com", admin=True)
    member_id, member_headers = _register(client, "leaving@example.com")
    created = client.post(
        "/api/reports",
        json={
            "title": "Leaving soon",
            "description": "Details",
            "category": "waste",
            "location": {"latitude": 0, "longitude": 0},
            "address": "Lane",
        },
        headers=member_headers,
    ).json()["data"]
    client.post(f"/api/reports/{created['id']}/vote", json={"type": "up"}, headers=member_headers)

    response = client.delete(f"/api/users/{member_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"
    with SessionLocal() as session:
        assert session.get(User, member_id) is None
        assert session.query(Report).count() == 0
        assert session.query(Vote).count() == 0
    assert client.get("/api/users/me", headers=member_headers).status_code == 401


def test_deleting_a_voter_recounts_reports_they_voted_on(client: TestClient) -> None:
    _, admin_headers = _register(client, "moderator@example.com", admin=True)
    _, author_headers = _register(client, "author@example.com")
    voter_id, voter_headers = _register(client, "voter@example.com")
    report_id = client.post(
        "/api/reports",
        json={
            "title": "Broken bench",
            "description": "Slats missing",
            "category": "other",
            "location": {"latitude": 1.5, "longitude": 2.5},
            "address": "Park",
        },
        headers=author_headers,
    ).json()["data"]["id"]
    client.post(f"/api/reports/{report_id}/admin-action", json={"action": "approve"}, headers=admin_headers)
    voted = client.post(f"/api/reports/{report_id}/vote", json={"type": "up"}, headers=voter_headers)
    assert voted.json()["data"]["upvotes"] == 1

    assert client.delete(f"/api/users/{voter_id}", headers=admin_headers).status_code == 200

    report = client.get(f"/api/reports/{report_id}").json()["data"]
    with SessionLocal() as session:
        ledger_rows = session.query(Vote).filter(Vote.report_id == UUID(report_id)).count()
    assert ledger_rows == 0
    assert report["upvotes"] + report["downvotes"] == ledger_rows
