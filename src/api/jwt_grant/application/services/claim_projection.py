"""Claim projection for identity-token-bearing JWT bearer grants.

After an access token is issued, maps the assertion's custom claims into
the local dialect, then into the OIDC dialect, and caches the result
against the access token for the identity token issuance stage.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from jwt_grant.application.extractor import extract
from jwt_grant.application.observability import (
    ClaimProjectionProbe,
    DefaultClaimProjectionProbe,
)
from jwt_grant.application.resolver import IdentityProviderResolver
from jwt_grant.domain.exceptions import ClaimProjectionError, GrantValidationError
from jwt_grant.domain.value_objects import (
    AuthenticatedUser,
    AuthorizationGrantCacheEntry,
    GrantRequest,
    IssuedAccessToken,
    ProviderRecord,
)
from jwt_grant.ports.claims import IAuthorizationGrantCache, IClaimDialectConverter
from jwt_grant.ports.exceptions import ClaimDialectConversionError


def stringify_claims(claims: Mapping[str, Any]) -> dict[str, str]:
    """Render claim values as strings; non-string values are JSON encoded."""
    return {
        name: value if isinstance(value, str) else json.dumps(value)
        for name, value in claims.items()
    }


class ClaimProjectionService:
    """Projects assertion claims into OIDC attributes of an issued token."""

    def __init__(
        self,
        resolver: IdentityProviderResolver,
        dialect_converter: IClaimDialectConverter,
        grant_cache: IAuthorizationGrantCache,
        default_tenant_domain: str,
        probe: ClaimProjectionProbe | None = None,
    ):
        self._resolver = resolver
        self._dialect_converter = dialect_converter
        self._grant_cache = grant_cache
        self._default_tenant_domain = default_tenant_domain
        self._probe = probe or DefaultClaimProjectionProbe()

    async def project(
        self,
        request: GrantRequest,
        issued_token: IssuedAccessToken,
        authorized_user: AuthenticatedUser,
    ) -> ClaimProjectionError | None:
        """Project the assertion's claims for an issued access token.

        The assertion is parsed again; the grant was already validated so
        no replay cache is consulted.

        Returns:
            None on success, or the ClaimProjectionError describing why the
            claims could not be projected.
        """
        provider_name = None
        try:
            token = extract(request.assertion)
            tenant_domain = request.tenant_domain or self._default_tenant_domain
            provider = await self._resolver.resolve(token.issuer or "", tenant_domain)
            provider_name = provider.name

            attributes = stringify_claims(token.custom_claims)
            if provider.is_resident:
                local_claims = self.claims_for_resident_provider(attributes, provider)
            else:
                local_claims = self.claims_for_federated_provider(
                    attributes, tenant_domain, provider
                )

            if not local_claims:
                return None

            try:
                oidc_claims = await self._dialect_converter.convert_to_oidc_dialect(
                    local_claims, tenant_domain
                )
            except ClaimDialectConversionError as e:
                raise ClaimProjectionError(
                    "Error while converting user claims to OIDC dialect."
                ) from e

            entry = AuthorizationGrantCacheEntry(
                attributes=oidc_claims,
                subject_claim=authorized_user.subject_identifier,
                token_id=issued_token.token_id or None,
            )
            await self._grant_cache.add_by_token(issued_token.access_token, entry)
            self._probe.claims_projected(
                provider_name=provider.name, claim_count=len(oidc_claims)
            )
            return None

        except ClaimProjectionError as e:
            self._probe.claim_projection_failed(provider_name=provider_name, error=e.reason)
            return e
        except GrantValidationError as e:
            error = ClaimProjectionError(f"Unable to project claims: {e.reason}")
            error.__cause__ = e
            self._probe.claim_projection_failed(provider_name=provider_name, error=error.reason)
            return error

    def claims_for_resident_provider(
        self, attributes: Mapping[str, str], provider: ProviderRecord
    ) -> dict[str, str]:
        """Claims asserted by the tenant's own provider.

        They are only used when already expressed in the local dialect.
        """
        return self._local_claims(attributes, provider)

    def claims_for_federated_provider(
        self,
        attributes: Mapping[str, str],
        tenant_domain: str,
        provider: ProviderRecord,
    ) -> dict[str, str]:
        """Claims asserted by a federated partner.

        Local-dialect claims pass through unchanged; otherwise the
        provider's claim mappings translate them.
        """
        if provider.local_claim_dialect:
            return self._local_claims(attributes, provider)
        if self._dialect_converter.is_in_local_dialect(attributes):
            return dict(attributes)
        if provider.claim_mappings:
            return self._dialect_converter.convert_federated_to_local(
                attributes, provider.claim_mappings, tenant_domain
            )
        self._probe.claims_not_in_local_dialect(provider_name=provider.name)
        return {}

    def _local_claims(
        self, attributes: Mapping[str, str], provider: ProviderRecord
    ) -> dict[str, str]:
        if self._dialect_converter.is_in_local_dialect(attributes):
            return dict(attributes)
        self._probe.claims_not_in_local_dialect(provider_name=provider.name)
        return {}
