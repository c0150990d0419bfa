"""Authenticators producing per-call gRPC metadata.

Every variant satisfies ``AuthenticatorPort``; ``SpeechToText`` picks one at
construction time and the transport asks it for metadata before each call.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from speech_client.domain.errors import AuthenticationError
from speech_client.ports.authenticator import Metadata

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class ApiKeyAuthenticator:
    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise AuthenticationError("API key is empty")
        self._api_key = api_key

    async def metadata(self) -> Metadata:
        return [("x-goog-api-key", self._api_key)]


class TokenAuthenticator:
    """Fixed token; the caller replaces the client when it expires."""

    def __init__(self, token_type: str, token: str) -> None:
        if not token:
            raise AuthenticationError("Token is empty")
        self._header = f"{token_type} {token}"

    async def metadata(self) -> Metadata:
        return [("authorization", self._header)]


class ServiceAccountAuthenticator:
    def __init__(self, credentials: service_account.Credentials) -> None:
        self._credentials = credentials
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_file(cls, path: str | Path) -> "ServiceAccountAuthenticator":
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=[CLOUD_PLATFORM_SCOPE]
            )
        except (OSError, ValueError) as exc:
            raise AuthenticationError(f"Cannot load service account from {path}: {exc}") from exc
        return cls(credentials)

    @classmethod
    def from_info(cls, info: dict) -> "ServiceAccountAuthenticator":
        try:
            credentials = service_account.Credentials.from_service_account_info(
                info, scopes=[CLOUD_PLATFORM_SCOPE]
            )
        except ValueError as exc:
            raise AuthenticationError(f"Invalid service account info: {exc}") from exc
        return cls(credentials)

    async def metadata(self) -> Metadata:
        async with self._refresh_lock:
            if not self._credentials.valid:
                try:
                    await asyncio.to_thread(self._credentials.refresh, Request())
                except google.auth.exceptions.GoogleAuthError as exc:
                    raise AuthenticationError(f"Service account refresh failed: {exc}") from exc
                logger.info("Service account token refreshed")
        return [("authorization", f"Bearer {self._credentials.token}")]


@dataclass(frozen=True)
class AccessCredentials:
    token_type: str
    token: str
    expiry: datetime | None = None

    def expires_within(self, leeway: timedelta) -> bool:
        if self.expiry is None:
            return False
        return datetime.now(timezone.utc) + leeway >= self.expiry


class ThirdPartyAuthenticator:
    """Credentials obtained from the caller's own backend.

    ``obtain_credentials`` is awaited on first use and again once the cached
    credentials are within ``refresh_leeway`` of their expiry.

    Example::

        async def fetch() -> AccessCredentials:
            payload = await my_api.speech_token()
            return AccessCredentials("Bearer", payload["token"], payload["expiry"])

        client = SpeechToText.via_third_party_authenticator(ThirdPartyAuthenticator(fetch))
    """

    def __init__(
        self,
        obtain_credentials: Callable[[], Awaitable[AccessCredentials]],
        refresh_leeway: timedelta = timedelta(seconds=30),
    ) -> None:
        self._obtain_credentials = obtain_credentials
        self._refresh_leeway = refresh_leeway
        self._credentials: AccessCredentials | None = None
        self._lock = asyncio.Lock()

    async def metadata(self) -> Metadata:
        async with self._lock:
            if self._credentials is None or self._credentials.expires_within(self._refresh_leeway):
                self._credentials = await self._obtain_credentials()
                logger.info("Obtained third-party credentials (expiry=%s)", self._credentials.expiry)
            credentials = self._credentials
        return [("authorization", f"{credentials.token_type} {credentials.token}")]
