"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped metadata that should be included with all
    instrumentation events of a grant request.

    Attributes:
        request_id: Unique identifier for the current token request.
        tenant_domain: Tenant the grant is evaluated in (if known).
        client_id: OAuth2 client presenting the assertion (if known).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            request_id="req-123",
            tenant_domain="carbon.super",
            client_id="client-abc",
        )
        probe = DefaultGrantValidationProbe().with_context(context)
    """

    request_id: str | None = None
    tenant_domain: str | None = None
    client_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.tenant_domain is not None:
            result["tenant_domain"] = self.tenant_domain
        if self.client_id is not None:
            result["client_id"] = self.client_id
        result.update(self.extra)
        return result

    def with_tenant(self, tenant_domain: str) -> ObservationContext:
        """Create a new context with the tenant domain set."""
        return ObservationContext(
            request_id=self.request_id,
            tenant_domain=tenant_domain,
            client_id=self.client_id,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            tenant_domain=self.tenant_domain,
            client_id=self.client_id,
            extra=new_extra,
        )
