"""Aplos authentication handshake and bearer token reuse"""

import asyncio
import base64
import binascii
import logging
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Generator
from urllib.parse import quote

import httpx
from cryptography.hazmat.primitives.asymmetric import padding

from aplos.config import ClientConfig, settings
from aplos.domain.exceptions import AplosError, AuthError, CryptoError, DecodeError
from aplos.domain.models import BearerToken, Credential
from aplos.infrastructure.clients.base import get_envelope
from aplos.infrastructure.clients.schemas import AuthData
from aplos.infrastructure.observability.metrics import token_fetch_counter

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenProvider:
    """
    Holds the current bearer token and refreshes it once it expires.

    Aplos never receives a secret from us: it hands out an access token
    encrypted to our public key, and decrypting it proves we hold the
    private key. See https://www.aplos.com/api/authentication
    """

    def __init__(
        self,
        credential: Credential,
        http: httpx.AsyncClient,
        config: ClientConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.credential = credential
        self._http = http
        self._config = config or settings
        self._clock = clock or _utcnow
        self._leeway = timedelta(seconds=self._config.token_expiry_leeway_seconds)
        self._lock = asyncio.Lock()
        self._token: BearerToken | None = None

    @property
    def token(self) -> BearerToken | None:
        """Currently held token, possibly expired; None before the first handshake"""
        return self._token

    async def fetch_token(self) -> BearerToken:
        """
        Perform one handshake: download the encrypted token and decrypt it.

        Raises:
            NetworkError: If the auth endpoint cannot be reached or answers with an error status
            DecodeError: If the response, its base64 payload, or the token itself is malformed
            CryptoError: If the token cannot be decrypted with our key
        """
        try:
            token = await self._fetch_token()
        except AplosError as e:
            token_fetch_counter.labels(outcome=type(e).__name__).inc()
            raise
        token_fetch_counter.labels(outcome="success").inc()
        return token

    async def _fetch_token(self) -> BearerToken:
        data = await get_envelope(
            self._http,
            f"/auth/{quote(self.credential.client_id, safe='')}",
            AuthData,
            operation="auth",
        )

        try:
            ciphertext = base64.b64decode(data.token, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Failed to base64 decode encrypted token: {e}") from e

        try:
            plaintext = self.credential.private_key.decrypt(ciphertext, padding.PKCS1v15())
            access_token = plaintext.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise CryptoError(f"Failed to decrypt token: {e}") from e

        if not access_token:
            raise DecodeError("Auth response carried an empty token")
        if data.expires is None:
            raise DecodeError("Auth response carried no expiry")

        token = BearerToken(access_token=access_token, expiry=data.expires)
        # Same check get_token applies, so a fresh token is always reusable
        if token.expired(self._clock(), self._leeway):
            raise DecodeError(
                f"Auth response token expires at {data.expires.isoformat()}, "
                f"within the {self._leeway.total_seconds():g}s expiry leeway"
            )

        return token

    async def get_token(self) -> BearerToken:
        """
        Return the held token, fetching a new one first if it has expired.

        The expiry check and refresh run under one lock, so concurrent callers
        share a single handshake.

        Raises:
            AuthError: If a handshake was needed and failed; the cause is chained
        """
        async with self._lock:
            if self._token is not None and not self._token.expired(self._clock(), self._leeway):
                return self._token

            refreshing = self._token is not None
            try:
                token = await self.fetch_token()
            except AplosError as e:
                logger.error(
                    f"Aplos authentication failed: {e}",
                    extra={"client_id": self.credential.client_id, "refresh": refreshing},
                )
                raise AuthError(f"Failed to get access token: {e}") from e

            self._token = token
            logger.info(
                "Refreshed Aplos access token" if refreshing else "Obtained Aplos access token",
                extra={"client_id": self.credential.client_id, "expiry": token.expiry.isoformat()},
            )
            return token


class BearerAuth(httpx.Auth):
    """httpx auth flow attaching a valid bearer token to every request"""

    def __init__(self, provider: TokenProvider):
        self.provider = provider

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("BearerAuth requires httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self.provider.get_token()
        request.headers["Authorization"] = token.authorization
        yield request
