"""Tests for the vote ledger and the cached vote counts on reports."""
from __future__ import annotations

import os
from typing import Iterator
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, func, select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_civic_api.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

from civic_api.constants import ApprovalStatus  # noqa: E402
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


def _auth_headers(client: TestClient, email: str) -> dict[str, str]:
    response = client.post("/api/auth/register", json={"email": email, "password": "password123", "name": "Voter"})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def _approved_report(client: TestClient) -> str:
    headers = _auth_headers(client, "reporter@example.com")
    response = client.post(
        "/api/reports",
        json={
            "title": "Street light out",
            "description": "The lamp at the corner has been dark for a week",
            "category": "lighting",
            "location": {"latitude": 40.7, "longitude": -74.0},
            "address": "5th Avenue",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    report_id = response.json()["data"]["id"]
    with SessionLocal() as session:
        report = session.get(Report, UUID(report_id))
        assert report is not None
        report.approval_status = ApprovalStatus.APPROVED.value
        session.commit()
    return report_id


def _vote(client: TestClient, report_id: str, vote_type: str, headers: dict[str, str]):
    return client.post(f"/api/reports/{report_id}/vote", json={"type": vote_type}, headers=headers)


def _ledger_counts(report_id: str) -> tuple[int, int]:
    with SessionLocal() as session:
        rows = session.execute(
            select(Vote.vote_type, func.count(Vote.id)).where(Vote.report_id == UUID(report_id)).group_by(Vote.vote_type)
        ).all()
    counts = dict(rows)
    return counts.get("up", 0), counts.get("down", 0)


def test_same_vote_twice_toggles_off(client: TestClient) -> None:
    report_id = _approved_report(client)
    headers = _auth_headers(client, "toggler@example.com")

    first = _vote(client, report_id, "up", headers)
    assert first.status_code == 200, first.text
    assert first.json()["data"]["upvotes"] == 1
    assert first.json()["data"]["userVote"] == "up"

    second = _vote(client, report_id, "up", headers)
    assert second.json()["data"]["upvotes"] == 0
    assert second.json()["data"]["downvotes"] == 0
    assert second.json()["data"]["userVote"] is None
    assert second.json()["message"] == "Vote removed"
    assert _ledger_counts(report_id) == (0, 0)


def test_opposite_vote_flips_bucket(client: TestClient) -> None:
    report_id = _approved_report(client)
    headers = _auth_headers(client, "flipper@example.com")

    _vote(client, report_id, "up", headers)
    flipped = _vote(client, report_id, "down", headers).json()["data"]

    assert flipped["upvotes"] == 0
    assert flipped["downvotes"] == 1
    assert flipped["userVote"] == "down"
    with SessionLocal() as session:
        assert session.scalar(select(func.count(Vote.id))) == 1


def test_counts_always_match_ledger(client: TestClient) -> None:
    report_id = _approved_report(client)
    voters = [_auth_headers(client, f"voter{index}@example.com") for index in range(4)]

    _vote(client, report_id, "up", voters[0])
    _vote(client, report_id, "up", voters[1])
    _vote(client, report_id, "down", voters[2])
    _vote(client, report_id, "down", voters[3])
    _vote(client, report_id, "up", voters[3])
    last = _vote(client, report_id, "up", voters[1]).json()["data"]

    assert (last["upvotes"], last["downvotes"]) == _ledger_counts(report_id) == (2, 1)


def test_recount_overwrites_stale_cached_counts(client: TestClient) -> None:
    report_id = _approved_report(client)
    headers = _auth_headers(client, "healer@example.com")
    with SessionLocal() as session:
        report = session.get(Report, UUID(report_id))
        assert report is not None
        report.upvotes = 42
        report.downvotes = 7
        session.commit()

    data = _vote(client, report_id, "down", headers).json()["data"]

    assert (data["upvotes"], data["downvotes"]) == (0, 1)


def test_listing_reports_carries_viewer_vote(client: TestClient) -> None:
    report_id = _approved_report(client)
    voter = _auth_headers(client, "viewer@example.com")
    bystander = _auth_headers(client, "bystander@example.com")
    _vote(client, report_id, "down", voter)

    voter_view = client.get("/api/reports", headers=voter).json()["data"][0]
    bystander_view = client.get(f"/api/reports/{report_id}", headers=bystander).json()["data"]

    assert voter_view["userVote"] == "down"
    assert bystander_view["userVote"] is None
    assert bystander_view["downvotes"] == 1


def test_voting_on_hidden_report_is_not_found(client: TestClient) -> None:
    owner = _auth_headers(client, "hidden-owner@example.com")
    created = client.post(
        "/api/reports",
        json={
            "title": "Not yet reviewed",
            "description": "Pending moderation",
            "category": "other",
            "location": {"latitude": 1, "longitude": 1},
            "address": "Nowhere",
        },
        headers=owner,
    ).json()["data"]
    stranger = _auth_headers(client, "stranger-voter@example.com")

    response = _vote(client, created["id"], "up", stranger)

    assert response.status_code == 404
    assert _ledger_counts(created["id"]) == (0, 0)


def test_vote_requires_authentication_and_valid_type(client: TestClient) -> None:
    report_id = _approved_report(client)
    headers = _auth_headers(client, "typo@example.com")

    anonymous = client.post(f"/api/reports/{report_id}/vote", json={"type": "up"})
    invalid = _vote(client, report_id, "sideways", headers)

    assert anonymous.status_code == 401
    assert invalid.status_code == 400
    assert invalid.json()["details"][0]["field"] == "type"
