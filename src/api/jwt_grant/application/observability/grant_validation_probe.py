"""Protocol for JWT bearer grant validation observability.

Defines the interface for domain probes that capture the domain events of
the assertion validation pipeline. Every rejection path reports through
``grant_rejected``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class GrantValidationProbe(Protocol):
    """Domain probe for JWT bearer grant validation."""

    def assertion_parsed(
        self, header: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> None:
        """Record the decoded header and payload of a presented assertion."""
        ...

    def provider_resolved(self, issuer: str, provider_name: str) -> None:
        """Record which identity provider was resolved for an issuer."""
        ...

    def resident_provider_lookup_failed(self, tenant_domain: str, error: str) -> None:
        """Record that re-reading the resident provider failed."""
        ...

    def signature_verified(
        self, provider_name: str, algorithm: str | None, trust: str
    ) -> None:
        """Record that the assertion signature was verified."""
        ...

    def subject_bound(self, subject: str) -> None:
        """Record that the subject was set as the authorized user."""
        ...

    def audience_matched(self, audience: str) -> None:
        """Record that the expected audience was found in aud."""
        ...

    def replay_check_skipped(self, reason: str) -> None:
        """Record that no replay check was performed."""
        ...

    def replay_cache_refreshed(self, jwt_id: str, previous_expiration: int) -> None:
        """Record that an expired jti was reused and its entry overwritten."""
        ...

    def grant_validated(self, issuer: str, subject: str, jwt_id: str | None) -> None:
        """Record that an assertion was accepted."""
        ...

    def grant_rejected(self, kind: str, reason: str) -> None:
        """Record that an assertion was rejected."""
        ...

    def with_context(self, context: ObservationContext) -> GrantValidationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGrantValidationProbe:
    """Default implementation of GrantValidationProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultGrantValidationProbe:
        """Create a new probe with observation context bound."""
        return DefaultGrantValidationProbe(logger=self._logger, context=context)

    def assertion_parsed(
        self, header: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> None:
        """Log the decoded header and payload. The signature is never logged."""
        self._logger.debug(
            "jwt_grant_assertion_parsed",
            header=dict(header),
            payload=dict(payload),
            **self._get_context_kwargs(),
        )

    def provider_resolved(self, issuer: str, provider_name: str) -> None:
        self._logger.debug(
            "jwt_grant_provider_resolved",
            issuer=issuer,
            provider_name=provider_name,
            **self._get_context_kwargs(),
        )

    def resident_provider_lookup_failed(self, tenant_domain: str, error: str) -> None:
        self._logger.debug(
            "jwt_grant_resident_provider_lookup_failed",
            tenant_domain=tenant_domain,
            error=error,
            **self._get_context_kwargs(),
        )

    def signature_verified(
        self, provider_name: str, algorithm: str | None, trust: str
    ) -> None:
        self._logger.debug(
            "jwt_grant_signature_verified",
            provider_name=provider_name,
            algorithm=algorithm,
            trust=trust,
            **self._get_context_kwargs(),
        )

    def subject_bound(self, subject: str) -> None:
        self._logger.debug(
            "jwt_grant_subject_bound",
            subject=subject,
            **self._get_context_kwargs(),
        )

    def audience_matched(self, audience: str) -> None:
        self._logger.debug(
            "jwt_grant_audience_matched",
            audience=audience,
            **self._get_context_kwargs(),
        )

    def replay_check_skipped(self, reason: str) -> None:
        self._logger.debug(
            "jwt_grant_replay_check_skipped",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def replay_cache_refreshed(self, jwt_id: str, previous_expiration: int) -> None:
        self._logger.debug(
            "jwt_grant_replay_cache_refreshed",
            jwt_id=jwt_id,
            previous_expiration=previous_expiration,
            **self._get_context_kwargs(),
        )

    def grant_validated(self, issuer: str, subject: str, jwt_id: str | None) -> None:
        """Record that an assertion was accepted."""
        self._logger.info(
            "jwt_grant_validated",
            issuer=issuer,
            subject=subject,
            jwt_id=jwt_id,
            **self._get_context_kwargs(),
        )

    def grant_rejected(self, kind: str, reason: str) -> None:
        """Record that an assertion was rejected."""
        self._logger.warning(
            "jwt_grant_rejected",
            kind=kind,
            reason=reason,
            **self._get_context_kwargs(),
        )
