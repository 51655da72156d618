"""Bearer token verification against the identity provider's published keys.

Tokens are RS256 JWTs (Firebase ID tokens by default). The key set is cached
for a configurable TTL; verification itself is never cached.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from resume_api.config import Settings
from resume_api.errors import AuthFailure, Unauthenticated, Unavailable

logger = logging.getLogger("resume_api.identity")


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity asserted by a token whose signature and claims checked out."""

    subject_id: str
    email: str | None
    email_verified: bool


class IdentityVerifier:
    """Validates bearer tokens using the provider's JSON Web Key Set."""

    def __init__(
        self,
        issuer: str,
        audience: str,
        jwks_url: str,
        jwks_cache_ttl: timedelta = timedelta(hours=1),
        algorithms: tuple[str, ...] = ("RS256",),
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the verifier.

        Args:
            issuer: Expected ``iss`` claim.
            audience: Expected ``aud`` claim.
            jwks_url: Where the provider publishes its signing keys.
            jwks_cache_ttl: How long a fetched key set is trusted.
            algorithms: Accepted signing algorithms.
            http_client: Client used for key fetches; one is created if omitted.
        """
        self._issuer = issuer
        self._audience = audience
        self._jwks_url = jwks_url
        self._jwks_cache_ttl = jwks_cache_ttl
        self._algorithms = list(algorithms)
        self._http = http_client or httpx.AsyncClient(timeout=5.0)

        self._jwks: dict[str, Any] | None = None
        self._jwks_fetched_at: datetime | None = None
        self._jwks_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> IdentityVerifier:
        if not settings.effective_audience:
            logger.warning(
                "No firebase_project_id or token_audience configured; "
                "every bearer token will be rejected."
            )
        return cls(
            issuer=settings.effective_issuer,
            audience=settings.effective_audience,
            jwks_url=settings.jwks_url,
            jwks_cache_ttl=timedelta(seconds=settings.jwks_cache_seconds),
        )

    async def verify(self, token: str | None) -> VerifiedIdentity:
        """Validate a bearer token and return the identity it asserts.

        Raises:
            Unauthenticated: The token is missing, malformed, expired, or
                fails signature/issuer/audience checks.
            Unavailable: The provider's key set could not be fetched.
        """
        if not token:
            raise self._reject(AuthFailure.MISSING, "missing token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise self._reject(AuthFailure.MALFORMED, "Invalid token provided.", detail=str(e)) from e
        if not header:
            raise self._reject(AuthFailure.MALFORMED, "Invalid token provided.", detail="empty header")

        jwks = await self._get_jwks()

        try:
            claims = jwt.decode(
                token,
                jwks,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
            )
        except ExpiredSignatureError as e:
            raise self._reject(AuthFailure.EXPIRED, "Token expired. Please re-authenticate.") from e
        except JWTClaimsError as e:
            raise self._reject(AuthFailure.UNVERIFIABLE, "Unauthorized. Invalid token.", detail=str(e)) from e
        except JWTError as e:
            raise self._reject(AuthFailure.UNVERIFIABLE, "Unauthorized. Invalid token.", detail=str(e)) from e

        subject_id = claims.get("sub")
        if not subject_id:
            raise self._reject(AuthFailure.UNVERIFIABLE, "Unauthorized. Invalid token.", detail="missing sub claim")

        email = claims.get("email")
        return VerifiedIdentity(
            subject_id=str(subject_id),
            email=str(email) if email else None,
            email_verified=bool(claims.get("email_verified", False)),
        )

    async def aclose(self):
        await self._http.aclose()

    def _reject(self, reason: AuthFailure, message: str, detail: str | None = None) -> Unauthenticated:
        logger.info("Token rejected (%s)%s", reason.value, f": {detail}" if detail else "")
        return Unauthenticated(reason, message)

    async def _get_jwks(self) -> dict[str, Any]:
        if self._is_cache_valid():
            return self._jwks  # type: ignore[return-value]

        async with self._jwks_lock:
            # Another request may have refreshed the keys while we waited.
            if self._is_cache_valid():
                return self._jwks  # type: ignore[return-value]
            return await self._fetch_jwks()

    def _is_cache_valid(self) -> bool:
        if self._jwks is None or self._jwks_fetched_at is None:
            return False
        age = datetime.now(tz=timezone.utc) - self._jwks_fetched_at
        return age < self._jwks_cache_ttl

    async def _fetch_jwks(self) -> dict[str, Any]:
        try:
            response = await self._http.get(self._jwks_url)
            response.raise_for_status()
            jwks = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Could not fetch signing keys from %s: %s", self._jwks_url, e)
            raise Unavailable("Identity provider keys unavailable") from e

        if not isinstance(jwks, dict) or not jwks.get("keys"):
            logger.error("Key set from %s has no keys", self._jwks_url)
            raise Unavailable("Identity provider keys unavailable")

        self._jwks = jwks
        self._jwks_fetched_at = datetime.now(tz=timezone.utc)
        logger.info("Fetched %d signing keys from %s", len(jwks["keys"]), self._jwks_url)
        return jwks
