"""Integration tests covering registration, login, Google sign-in and token refresh."""
from __future__ import annotations

import os
from datetime import timedelta
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

from civic_api.constants import GOOGLE_SIGN_IN_REQUIRED, INVALID_CREDENTIALS  # noqa: E402
from civic_api.database import Base, SessionLocal, engine  # noqa: E402
from civic_api.errors import InternalError, Unauthorized  # noqa: E402
from civic_api.main import app  # noqa: E402
from civic_api.models import Report, User, Vote  # noqa: E402
from civic_api.services import FederatedIdentity, auth_service, get_identity_verifier  # noqa: E402
from civic_api.services.auth_service import (  # noqa: E402
    create_access_token,
    hash_password,
    verify_password,
    verify_token,
)


class FakeGoogleVerifier:
    """Stands in for Google's token verification, keyed by the submitted token."""

    def __init__(self, identities: dict[str, FederatedIdentity]) -> None:
        self.identities = identities

    async def verify(self, provider_token: str) -> FederatedIdentity:
        identity = self.identities.get(provider_token)
        if identity is None:
            raise Unauthorized("Invalid Google token")
        return identity


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
    app.dependency_overrides.clear()


def _register(client: TestClient, email: str, password: str = "password123", name: str = "Test User"):
    return client.post("/api/auth/register", json={"email": email, "password": password, "name": name})


def _login(client: TestClient, email: str, password: str):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _use_verifier(identities: dict[str, FederatedIdentity]) -> None:
    verifier = FakeGoogleVerifier(identities)
    app.dependency_overrides[get_identity_verifier] = lambda: verifier


def _user_count() -> int:
    with SessionLocal() as session:
        return int(session.scalar(select(func.count(User.id))) or 0)


def test_register_returns_user_and_token() -> None:
    with TestClient(app) as client:
        response = _register(client, "alice@example.com", name="Alice")

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "alice@example.com"
    assert body["data"]["user"]["name"] == "Alice"
    assert body["data"]["user"]["isAdmin"] is False
    claims = verify_token(body["data"]["token"])
    assert str(claims.user_id) == body["data"]["user"]["id"]
    assert claims.is_admin is False


def test_duplicate_registration_conflicts() -> None:
    with TestClient(app) as client:
        assert _register(client, "dup@example.com").status_code == 201
        response = _register(client, "dup@example.com")

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "User with this email already exists"
    assert _user_count() == 1


def test_register_validation_errors_are_reported_as_400() -> None:
    with TestClient(app) as client:
        response = client.post("/api/auth/register", json={"email": "not-an-email", "password": "123", "name": ""})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    fields = {item["field"] for item in body["details"]}
    assert {"email", "password", "name"} <= fields


def test_login_success_and_uniform_failures() -> None:
    with TestClient(app) as client:
        _register(client, "bob@example.com", password="hunter22")

        ok = _login(client, "bob@example.com", "hunter22")
        wrong_password = _login(client, "bob@example.com", "wrong-password")
        unknown = _login(client, "nobody@example.com", "hunter22")

    assert ok.status_code == 200, ok.text
    assert ok.json()["data"]["token"]
    assert wrong_password.status_code == 401
    assert unknown.status_code == 401
    assert wrong_password.json()["error"] == INVALID_CREDENTIALS
    assert unknown.json()["error"] == INVALID_CREDENTIALS


def test_password_login_against_google_only_account() -> None:
    with SessionLocal() as session:
        session.add(User(email="oauth@example.com", name="OAuth Only", google_id="google-sub-1"))
        session.commit()

    with TestClient(app) as client:
        response = _login(client, "oauth@example.com", "whatever123")

    assert response.status_code == 401
    assert response.json()["error"] == GOOGLE_SIGN_IN_REQUIRED


def test_google_login_is_idempotent_on_provider_id() -> None:
    identity = FederatedIdentity(
        email="gina@example.com",
        name="Gina",
        picture="https://lh3.googleusercontent.com/a/gina",
        subject="google-sub-gina",
    )
    _use_verifier({"token-1": identity})

    with TestClient(app) as client:
        first = client.post("/api/auth/google", json={"idToken": "token-1"})
        second = client.post("/api/auth/google", json={"id_token": "token-1"})

    assert first.status_code == 200, first.text
    assert second.status_code == 200, second.text
    assert first.json()["data"]["isNewUser"] is True
    assert second.json()["data"]["isNewUser"] is False
    assert first.json()["data"]["user"]["id"] == second.json()["data"]["user"]["id"]
    assert first.json()["data"]["user"]["avatar"] == identity.picture
    assert first.json()["data"]["user"]["googleId"] == "google-sub-gina"
    assert _user_count() == 1


def test_google_login_refreshes_changed_picture() -> None:
    original = FederatedIdentity(email="pat@example.com", name="Pat", picture="https://example.com/old.png", subject="sub-pat")
    updated = FederatedIdentity(email="pat@example.com", name="Pat", picture="https://example.com/new.png", subject="sub-pat")
    _use_verifier({"old": original, "new": updated})

    with TestClient(app) as client:
        client.post("/api/auth/google", json={"idToken": "old"})
        response = client.post("/api/auth/google", json={"idToken": "new"})

    assert response.json()["data"]["user"]["avatar"] == "https://example.com/new.png"


def test_google_login_links_existing_password_account_by_email() -> None:
    identity = FederatedIdentity(email="carol@example.com", name="Carol G", picture="https://example.com/carol.png", subject="sub-carol")
    _use_verifier({"carol-token": identity})

    with TestClient(app) as client:
        registered = _register(client, "carol@example.com", password="secret123", name="Carol")
        linked = client.post("/api/auth/google", json={"idToken": "carol-token"})
        password_login = _login(client, "carol@example.com", "secret123")

    assert linked.status_code == 200, linked.text
    data = linked.json()["data"]
    assert data["isNewUser"] is False
    assert data["user"]["id"] == registered.json()["data"]["user"]["id"]
    assert data["user"]["googleId"] == "sub-carol"
    # The existing display name is kept; the empty avatar is filled in.
    assert data["user"]["name"] == "Carol"
    assert data["user"]["avatar"] == "https://example.com/carol.png"
    assert password_login.status_code == 200
    assert _user_count() == 1


def test_google_login_rejects_invalid_provider_token() -> None:
    _use_verifier({})

    with TestClient(app) as client:
        response = client.post("/api/auth/google", json={"idToken": "forged"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid Google token"
    assert _user_count() == 0


def test_expired_token_is_rejected_but_can_be_refreshed() -> None:
    with TestClient(app) as client:
        user_id = UUID(_register(client, "dana@example.com").json()["data"]["user"]["id"])

        with SessionLocal() as session:
            user = session.get(User, user_id)
            assert user is not None
            expired = create_access_token(user, expires_delta=timedelta(seconds=-30))

        with pytest.raises(Unauthorized):
            verify_token(expired)

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
        refreshed = client.post("/api/auth/refresh", headers={"Authorization": f"Bearer {expired}"})

    assert me.status_code == 401
    assert refreshed.status_code == 200, refreshed.text
    new_token = refreshed.json()["data"]["token"]
    assert verify_token(new_token).user_id == user_id


def test_refresh_rejects_bad_signature_and_missing_token() -> None:
    with TestClient(app) as client:
        forged = client.post("/api/auth/refresh", headers={"Authorization": "Bearer not.a.token"})
        missing = client.post("/api/auth/refresh")

    assert forged.status_code == 401
    assert missing.status_code == 401
    assert missing.json()["success"] is False


def test_refresh_reflects_current_admin_status() -> None:
    with TestClient(app) as client:
        body = _register(client, "erin@example.com").json()["data"]
        with SessionLocal() as session:
            user = session.get(User, UUID(body["user"]["id"]))
            assert user is not None
            user.is_admin = True
            session.commit()

        refreshed = client.post("/api/auth/refresh", headers={"Authorization": f"Bearer {body['token']}"})

    assert verify_token(refreshed.json()["data"]["token"]).is_admin is True


def test_me_verify_and_logout() -> None:
    with TestClient(app) as client:
        body = _register(client, "frank@example.com", name="Frank").json()["data"]
        headers = {"Authorization": f"Bearer {body['token']}"}

        me = client.get("/api/auth/me", headers=headers)
        verify = client.post("/api/auth/verify", headers=headers)
        logout = client.post("/api/auth/logout", headers=headers)
        anonymous = client.get("/api/auth/me")

    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Frank"
    assert verify.json()["data"] == {
        "valid": True,
        "user": {"id": body["user"]["id"], "email": "frank@example.com", "isAdmin": False},
    }
    assert logout.json() == {"success": True, "message": "Logged out successfully"}
    assert anonymous.status_code == 401
    assert anonymous.headers["www-authenticate"] == "Bearer"


def test_token_for_deleted_user_is_rejected() -> None:
    with TestClient(app) as client:
        body = _register(client, "gone@example.com").json()["data"]
        with SessionLocal() as session:
            session.execute(delete(User).where(User.id == UUID(body["user"]["id"])))
            session.commit()

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})

    assert response.status_code == 401


def test_password_hashing_round_trip_and_corrupt_hash() -> None:
    hashed = hash_password("correct horse")

    assert hashed.startswith("$2")
    assert verify_password("correct horse", hashed) is True
    assert verify_password("wrong horse", hashed) is False
    with pytest.raises(InternalError):
        verify_password("correct horse", "not-a-bcrypt-hash")


def test_google_link_replaces_existing_avatar_with_google_picture() -> None:
    identity = FederatedIdentity(email="hank@example.com", name="Hank", picture="https://example.com/hank-google.png", subject="sub-hank")
    _use_verifier({"hank-token": identity})

    with TestClient(app) as client:
        body = _register(client, "hank@example.com", name="Hank").json()["data"]
        with SessionLocal() as session:
            user = session.get(User, UUID(body["user"]["id"]))
            assert user is not None
            user.avatar_url = "https://example.com/hank-uploaded.png"
            session.commit()

        linked = client.post("/api/auth/google", json={"idToken": "hank-token"})

    assert linked.status_code == 200, linked.text
    assert linked.json()["data"]["user"]["avatar"] == "https://example.com/hank-google.png"


class _BrokenBackend:
    def hash(self, password: str) -> str:
        raise RuntimeError("bcrypt backend unavailable")

    def verify(self, password: str, hashed_password: str) -> bool:
        raise RuntimeError("bcrypt backend unavailable")


def test_password_backend_failures_are_internal_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(auth_service, "_password_context", lambda: _BrokenBackend())

    with pytest.raises(InternalError):
        hash_password("correct horse")
    with pytest.raises(InternalError):
        verify_password("correct horse", "$2b$04$abcdefghijklmnopqrstuu")
