"""Domain probe for JWKS signature validation.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of fetching key sets and selecting keys.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class JWKSValidatorProbe(Protocol):
    """Domain probe for JWKS signature validation operations."""

    def jwks_fetched(self, jwks_uri: str, key_count: int) -> None:
        """Record that a JWKS was fetched from a provider."""
        ...

    def jwks_cache_hit(self, jwks_uri: str) -> None:
        """Record that a JWKS was served from cache."""
        ...

    def jwks_fetch_failed(self, jwks_uri: str, error: str) -> None:
        """Record that a JWKS fetch failed."""
        ...

    def jwks_key_not_found(
        self, jwks_uri: str, key_id: str | None, algorithm: str
    ) -> None:
        """Record that no published key matched the token's hints."""
        ...

    def jwks_key_unusable(self, jwks_uri: str, key_id: str | None, error: str) -> None:
        """Record that a published key could not be used for verification."""
        ...

    def jwks_refresh_throttled(self, jwks_uri: str, key_id: str) -> None:
        """Record that a refetch for an unknown kid was skipped."""
        ...

    def with_context(self, context: ObservationContext) -> JWKSValidatorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultJWKSValidatorProbe:
    """Default implementation of JWKSValidatorProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultJWKSValidatorProbe:
        """Create a new probe with observation context bound."""
        return DefaultJWKSValidatorProbe(logger=self._logger, context=context)

    def jwks_fetched(self, jwks_uri: str, key_count: int) -> None:
        """Record that a JWKS was fetched from a provider."""
        self._logger.info(
            "jwt_grant_jwks_fetched",
            jwks_uri=jwks_uri,
            key_count=key_count,
            **self._get_context_kwargs(),
        )

    def jwks_cache_hit(self, jwks_uri: str) -> None:
        """Record that a JWKS was served from cache."""
        self._logger.debug(
            "jwt_grant_jwks_cache_hit",
            jwks_uri=jwks_uri,
            **self._get_context_kwargs(),
        )

    def jwks_fetch_failed(self, jwks_uri: str, error: str) -> None:
        """Record that a JWKS fetch failed."""
        self._logger.error(
            "jwt_grant_jwks_fetch_failed",
            jwks_uri=jwks_uri,
            error=error,
            **self._get_context_kwargs(),
        )

    def jwks_key_not_found(
        self, jwks_uri: str, key_id: str | None, algorithm: str
    ) -> None:
        """Record that no published key matched the token's hints."""
        self._logger.warning(
            "jwt_grant_jwks_key_not_found",
            jwks_uri=jwks_uri,
            key_id=key_id,
            algorithm=algorithm,
            **self._get_context_kwargs(),
        )

    def jwks_key_unusable(self, jwks_uri: str, key_id: str | None, error: str) -> None:
        """Record that a published key could not be used for verification."""
        self._logger.warning(
            "jwt_grant_jwks_key_unusable",
            jwks_uri=jwks_uri,
            key_id=key_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def jwks_refresh_throttled(self, jwks_uri: str, key_id: str) -> None:
        """Record that a refetch for an unknown kid was skipped."""
        self._logger.info(
            "jwt_grant_jwks_refresh_throttled",
            jwks_uri=jwks_uri,
            key_id=key_id,
            **self._get_context_kwargs(),
        )
