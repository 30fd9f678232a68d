"""JWKS-based signature validation.

Fetches key sets from provider JWKS endpoints, caches them per endpoint
for the configured TTL, selects the signing key by the token's ``kid``
and algorithm, and verifies the signature.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from jose import jws
from jose.exceptions import JOSEError, JWSError

from jwt_grant.domain.trust import RSA_SIGNATURE_ALGORITHMS
from jwt_grant.infrastructure.observability import (
    DefaultJWKSValidatorProbe,
    JWKSValidatorProbe,
)
from jwt_grant.ports.exceptions import JwksRetrievalError


class JWKSSignatureValidator:
    """Verifies JWT signatures with keys published at JWKS endpoints.

    Only RSA signature algorithms are accepted. When the token names a
    ``kid`` that the cached key set lacks, the key set is fetched again to
    pick up rotated keys, at most once per endpoint within the refresh
    cooldown.
    """

    def __init__(
        self,
        probe: JWKSValidatorProbe | None = None,
        cache_ttl: timedelta = timedelta(hours=1),
        timeout: float = 5.0,
        refresh_cooldown: timedelta = timedelta(minutes=1),
    ):
        """Initialize the validator.

        Args:
            probe: Observability probe for logging events.
            cache_ttl: How long to cache a fetched key set (default: 1 hour).
            timeout: HTTP timeout in seconds for JWKS fetches.
            refresh_cooldown: Minimum interval between unknown-kid refetches
                of one endpoint (default: 1 minute).
        """
        self._probe = probe or DefaultJWKSValidatorProbe()
        self._cache_ttl = cache_ttl
        self._timeout = timeout
        self._refresh_cooldown = refresh_cooldown

        # JWKS cache, keyed by endpoint
        self._jwks: dict[str, dict[str, Any]] = {}
        self._fetched_at: dict[str, datetime] = {}
        self._refreshed_at: dict[str, datetime] = {}
        self._jwks_lock = asyncio.Lock()

    async def validate_signature(
        self, serialized_token: str, jwks_uri: str, algorithm: str
    ) -> bool:
        """Verify the token signature with a key from ``jwks_uri``.

        Returns:
            True if a matching published key verifies the signature.

        Raises:
            JwksRetrievalError: If the key set cannot be fetched.
        """
        if algorithm not in RSA_SIGNATURE_ALGORITHMS:
            self._probe.jwks_key_not_found(
                jwks_uri=jwks_uri, key_id=None, algorithm=algorithm
            )
            return False

        try:
            key_id = jws.get_unverified_header(serialized_token).get("kid")
        except JWSError:
            return False

        jwks = await self._get_jwks(jwks_uri)
        key = self._select_key(jwks, key_id, algorithm)
        if key is None and key_id is not None:
            refreshed = await self._refresh_for_unknown_kid(jwks_uri, key_id)
            if refreshed is not None:
                key = self._select_key(refreshed, key_id, algorithm)

        if key is None:
            self._probe.jwks_key_not_found(
                jwks_uri=jwks_uri, key_id=key_id, algorithm=algorithm
            )
            return False

        try:
            jws.verify(serialized_token, key, algorithms=[algorithm])
        except JWSError:
            return False
        except (JOSEError, TypeError, ValueError) as e:
            # Raised while building the key from a malformed JWK
            self._probe.jwks_key_unusable(
                jwks_uri=jwks_uri, key_id=key_id, error=str(e)
            )
            return False
        return True

    @staticmethod
    def _select_key(
        jwks: dict[str, Any], key_id: str | None, algorithm: str
    ) -> dict[str, Any] | None:
        """Pick the first RSA signing key matching the kid and algorithm hints."""
        for key in jwks.get("keys", []):
            if not isinstance(key, dict):
                continue
            if key.get("kty") != "RSA":
                continue
            if key_id is not None and key.get("kid") != key_id:
                continue
            if key.get("use", "sig") != "sig":
                continue
            if key.get("alg", algorithm) != algorithm:
                continue
            return key
        return None

    async def _get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """Get the key set for an endpoint, fetching if the cache expired."""
        if self._is_cache_valid(jwks_uri):
            self._probe.jwks_cache_hit(jwks_uri=jwks_uri)
            return self._jwks[jwks_uri]

        async with self._jwks_lock:
            # Double-check after acquiring lock
            if self._is_cache_valid(jwks_uri):
                self._probe.jwks_cache_hit(jwks_uri=jwks_uri)
                return self._jwks[jwks_uri]

            return await self._fetch_jwks(jwks_uri)

    async def _refresh_for_unknown_kid(
        self, jwks_uri: str, key_id: str
    ) -> dict[str, Any] | None:
        """Refetch the key set unless it was refetched within the cooldown."""
        async with self._jwks_lock:
            refreshed_at = self._refreshed_at.get(jwks_uri)
            now = datetime.now(tz=timezone.utc)
            if refreshed_at is not None and (now - refreshed_at) < self._refresh_cooldown:
                self._probe.jwks_refresh_throttled(jwks_uri=jwks_uri, key_id=key_id)
                return None

            self._refreshed_at[jwks_uri] = now
            return await self._fetch_jwks(jwks_uri)

    def _is_cache_valid(self, jwks_uri: str) -> bool:
        fetched_at = self._fetched_at.get(jwks_uri)
        if fetched_at is None:
            return False
        now = datetime.now(tz=timezone.utc)
        return (now - fetched_at) < self._cache_ttl

    async def _fetch_jwks(self, jwks_uri: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(jwks_uri)
                response.raise_for_status()
                jwks = response.json()
        except httpx.HTTPError as e:
            self._probe.jwks_fetch_failed(jwks_uri=jwks_uri, error=str(e))
            raise JwksRetrievalError(f"Failed to fetch JWKS from {jwks_uri}: {e}") from e
        except ValueError as e:
            self._probe.jwks_fetch_failed(jwks_uri=jwks_uri, error=str(e))
            raise JwksRetrievalError(f"JWKS from {jwks_uri} is not valid JSON") from e

        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            self._probe.jwks_fetch_failed(jwks_uri=jwks_uri, error="Missing keys")
            raise JwksRetrievalError(f"JWKS from {jwks_uri} has no keys")

        self._jwks[jwks_uri] = jwks
        self._fetched_at[jwks_uri] = datetime.now(tz=timezone.utc)
        self._probe.jwks_fetched(jwks_uri=jwks_uri, key_count=len(jwks["keys"]))
        return jwks
