"""Verification of Google-issued identity tokens."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

from fastapi.concurrency import run_in_threadpool
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from ..config import get_settings
from ..errors import InternalError, Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FederatedIdentity:
    """Profile data extracted from a verified provider token."""

    email: str
    name: str
    picture: str | None
    subject: str


class GoogleIdentityVerifier:
    """Verify Google ID tokens against the configured OAuth client id.

    Signature, expiry, issuer and audience checks are delegated to
    ``google.oauth2.id_token``; this class only enforces that the profile
    carries the fields the directory needs.
    """

    def __init__(
        self,
        client_id: str | None,
        *,
        verify: Callable[..., dict[str, Any]] = id_token.verify_oauth2_token,
    ) -> None:
        self._client_id = client_id
        self._verify = verify
        self._request = google_requests.Request()

    def _decode(self, provider_token: str) -> dict[str, Any]:
        if not self._client_id:
            raise InternalError("Google sign-in is not configured")
        try:
            return self._verify(provider_token, self._request, self._client_id)
        except (ValueError, GoogleAuthError) as exc:
            logger.warning("Rejected Google identity token: %s", exc)
            raise Unauthorized("Invalid Google token") from exc

    async def verify(self, provider_token: str) -> FederatedIdentity:
        payload = await run_in_threadpool(self._decode, provider_token)

        email = payload.get("email")
        name = payload.get("name")
        subject = payload.get("sub")
        if not email or not name or not subject:
            raise Unauthorized("Incomplete Google profile data")

        return FederatedIdentity(email=email, name=name, picture=payload.get("picture"), subject=str(subject))


@lru_cache(maxsize=1)
def get_identity_verifier() -> GoogleIdentityVerifier:
    """FastAPI dependency returning the verifier for the configured client id."""

    return GoogleIdentityVerifier(get_settings().google_client_id)


__all__ = ["FederatedIdentity", "GoogleIdentityVerifier", "get_identity_verifier"]
