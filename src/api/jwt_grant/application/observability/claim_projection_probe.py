"""Protocol for claim projection observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ClaimProjectionProbe(Protocol):
    """Domain probe for projecting assertion claims into OIDC attributes."""

    def claims_projected(self, provider_name: str, claim_count: int) -> None:
        """Record that OIDC attributes were cached for an access token."""
        ...

    def claims_not_in_local_dialect(self, provider_name: str) -> None:
        """Record that presented claims were dropped as not local."""
        ...

    def claim_projection_failed(self, provider_name: str | None, error: str) -> None:
        """Record that projecting claims failed."""
        ...

    def with_context(self, context: ObservationContext) -> ClaimProjectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultClaimProjectionProbe:
    """Default implementation of ClaimProjectionProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultClaimProjectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultClaimProjectionProbe(logger=self._logger, context=context)

    def claims_projected(self, provider_name: str, claim_count: int) -> None:
        self._logger.info(
            "jwt_grant_claims_projected",
            provider_name=provider_name,
            claim_count=claim_count,
            **self._get_context_kwargs(),
        )

    def claims_not_in_local_dialect(self, provider_name: str) -> None:
        self._logger.debug(
            "jwt_grant_claims_not_in_local_dialect",
            provider_name=provider_name,
            **self._get_context_kwargs(),
        )

    def claim_projection_failed(self, provider_name: str | None, error: str) -> None:
        self._logger.error(
            "jwt_grant_claim_projection_failed",
            provider_name=provider_name,
            error=error,
            **self._get_context_kwargs(),
        )
