"""
SnapPDF Backend - Google Identity Service (Identity Exchange)
===============================================================

What:  Turns a Google authorization code into a verified identity.
How:   1. POST the code to Google's token endpoint (httpx.AsyncClient, shared
          from app.state)
       2. Verify the returned ID token with google-auth
          (`google.oauth2.id_token.verify_oauth2_token`), audience = our
          client id. Verification may fetch Google's certs over HTTP, so it
          runs in a worker thread.
       3. Read `email` and `picture` from the verified payload
Who:   POST /api/auth/google/login

Exchange States:
    pending-code ──► verified  (email, avatar)
                 └─► rejected  (reason: invalid_code | missing_email)

    Both terminal states are final for that code. Codes are single-use, so a
    rejected exchange is never retried; the client starts over with a new code.

    Failures that say nothing about the code (network errors, Google 5xx,
    wrong client secret) are not rejections: they raise IdentityProviderError.
"""

import asyncio
import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from snappdf.config import Settings
from snappdf.exceptions import IdentityProviderError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_SCOPES = "openid email profile"

# Token endpoint error codes that mean "this code is no good"
_REJECTED_GRANT_ERRORS = {"invalid_grant", "invalid_request"}


class IdentityState(str, enum.Enum):
    PENDING_CODE = "pending-code"
    VERIFIED = "verified"
    REJECTED = "rejected"


class RejectionReason(str, enum.Enum):
    INVALID_CODE = "invalid_code"
    MISSING_EMAIL = "missing_email"


@dataclass(frozen=True)
class IdentityResult:
    """Terminal outcome of one code exchange."""

    state: IdentityState
    email: Optional[str] = None
    avatar: Optional[str] = None
    reason: Optional[RejectionReason] = None

    @classmethod
    def verified(cls, email: str, avatar: Optional[str]) -> "IdentityResult":
        return cls(state=IdentityState.VERIFIED, email=email, avatar=avatar)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "IdentityResult":
        return cls(state=IdentityState.REJECTED, reason=reason)

    @property
    def is_verified(self) -> bool:
        return self.state == IdentityState.VERIFIED


class IdentityService:
    """
    Google OAuth 2.0 authorization-code flow.

    Responsibilities:
        - build_authorization_url(): consent screen URL for the frontend
        - exchange_code(): code → IdentityResult
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self.client_id = settings.google_client_id
        self.client_secret = settings.google_client_secret
        self.redirect_uri = settings.google_redirect_uri
        self.timeout = settings.google_timeout_seconds

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "access_type": "offline",
            "include_granted_scopes": "true",
            "prompt": "consent",
            "state": state or secrets.token_urlsafe(16),
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> IdentityResult:
        """
        Exchange an authorization code for a verified identity.

        Returns:
            IdentityResult in state `verified` or `rejected`

        Raises:
            IdentityProviderError: Google could not be reached or failed for a
                reason unrelated to the code
        """
        raw_id_token = await self._fetch_id_token(code)
        if raw_id_token is None:
            return IdentityResult.rejected(RejectionReason.INVALID_CODE)

        try:
            payload = await asyncio.to_thread(
                id_token.verify_oauth2_token,
                raw_id_token,
                google_requests.Request(),
                self.client_id,
            )
        except ValueError as e:
            logger.warning("Google ID token failed verification: %s", str(e))
            return IdentityResult.rejected(RejectionReason.INVALID_CODE)
        except google_auth_exceptions.GoogleAuthError as e:
            logger.error("Could not verify Google ID token: %s", str(e))
            raise IdentityProviderError(context={"stage": "verify", "error_type": type(e).__name__})

        email = payload.get("email")
        if not email:
            logger.warning("Verified Google ID token carries no email (sub=%s)", payload.get("sub"))
            return IdentityResult.rejected(RejectionReason.MISSING_EMAIL)

        logger.info("Google identity verified for %s", email)
        return IdentityResult.verified(email=email, avatar=payload.get("picture"))

    async def _fetch_id_token(self, code: str) -> Optional[str]:
        """POST the code to the token endpoint. None means Google rejected the code."""
        try:
            response = await self._http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("Google token endpoint unreachable: %s", str(e))
            raise IdentityProviderError(context={"stage": "token", "error_type": type(e).__name__})

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 400 and body.get("error") in _REJECTED_GRANT_ERRORS:
            logger.warning(
                "Google rejected authorization code: %s (%s)",
                body.get("error"),
                body.get("error_description", ""),
            )
            return None

        if response.status_code != 200:
            logger.error(
                "Google token endpoint returned %d: %s",
                response.status_code,
                body.get("error", "unknown"),
            )
            raise IdentityProviderError(
                context={"stage": "token", "status": response.status_code, "error": body.get("error")},
            )

        raw_id_token = body.get("id_token")
        if not raw_id_token:
            logger.error("Google token response has no id_token (scope=%s)", body.get("scope"))
            raise IdentityProviderError(context={"stage": "token", "error": "missing_id_token"})
        return raw_id_token
