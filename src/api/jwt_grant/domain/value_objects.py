"""Value objects for the JWT bearer grant domain.

Value objects are immutable descriptors shared by the validation pipeline.
A ``ParsedToken`` is owned by the validation call that parsed it and is
never mutated; a ``ProviderRecord`` is fetched fresh for every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from jwt_grant.domain.exceptions import GrantValidationError

JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_PARAMETER = "assertion"

RESIDENT_PROVIDER_NAME = "LOCAL"
PLACEHOLDER_PROVIDER_NAME = "default"

OIDC_SCOPE = "openid"

REGISTERED_CLAIMS = frozenset({"iss", "sub", "aud", "exp", "nbf", "iat", "jti"})


@dataclass(frozen=True)
class ParsedToken:
    """Decoded compact JWT.

    Temporal claims are kept in epoch milliseconds so they can be compared
    directly with the millisecond clock and skew.
    """

    serialized: str
    header: Mapping[str, Any]
    claims: Mapping[str, Any]
    signature: bytes
    issuer: str | None = None
    subject: str | None = None
    audience: tuple[str, ...] = ()
    expiration_time: int | None = None
    not_before: int | None = None
    issued_at: int | None = None
    jwt_id: str | None = None

    @property
    def algorithm(self) -> str | None:
        """Signature algorithm name from the JOSE header."""
        alg = self.header.get("alg")
        return str(alg) if alg is not None else None

    @property
    def custom_claims(self) -> Mapping[str, Any]:
        """Claims other than the registered iss/sub/aud/exp/nbf/iat/jti."""
        return MappingProxyType(
            {k: v for k, v in self.claims.items() if k not in REGISTERED_CLAIMS}
        )


@dataclass(frozen=True)
class ClaimMapping:
    """Maps a claim name used by a federated provider onto a local claim URI."""

    remote_claim: str
    local_claim: str


@dataclass(frozen=True)
class ProviderRecord:
    """Trust anchor for an issuer within a tenant.

    Attributes:
        name: Identity provider name as registered (``LOCAL`` for the
            resident provider, ``default`` for the registry placeholder).
        certificate: Trusted signer certificate, PEM or base64 DER.
        jwks_uri: Published JWKS endpoint of the provider.
        alias: Token endpoint alias, the audience expected from federated
            providers.
        oidc_entity_id: Entity id the resident provider asserts as issuer.
        oauth2_token_url: OIDC token endpoint URL, the audience expected
            for the resident provider.
        local_claim_dialect: Whether the provider already speaks the
            local claim dialect.
        claim_mappings: Ordered remote-to-local claim mappings.
    """

    name: str
    certificate: str | None = None
    jwks_uri: str | None = None
    alias: str | None = None
    oidc_entity_id: str | None = None
    oauth2_token_url: str | None = None
    local_claim_dialect: bool = False
    claim_mappings: tuple[ClaimMapping, ...] = ()

    @property
    def is_resident(self) -> bool:
        """True for the tenant's own identity provider."""
        return self.name == RESIDENT_PROVIDER_NAME

    @property
    def is_placeholder(self) -> bool:
        """True when the registry answered with its "no specific provider" record."""
        return self.name.lower() == PLACEHOLDER_PROVIDER_NAME


@dataclass(frozen=True)
class AuthenticatedUser:
    """The authorized user bound from the assertion subject."""

    subject_identifier: str
    username: str | None = None
    tenant_domain: str | None = None
    user_store_domain: str | None = None
    federated: bool = False

    @classmethod
    def local_from_subject_identifier(cls, subject: str) -> AuthenticatedUser:
        """Create a locally authenticated user without consulting a user store."""
        return cls(subject_identifier=subject, username=subject)


@dataclass(frozen=True)
class ReplayCacheEntry:
    """Last accepted token for a jti.

    ``serialized`` identifies the exact token; ``expiration_time`` is the
    cached token's exp in epoch milliseconds.
    """

    jwt_id: str
    serialized: str
    expiration_time: int

    @classmethod
    def from_token(cls, token: ParsedToken) -> ReplayCacheEntry:
        """Build an entry from an accepted token carrying jti and exp."""
        if token.jwt_id is None or token.expiration_time is None:
            raise ValueError("Only tokens with jti and exp can be cached")
        return cls(
            jwt_id=token.jwt_id,
            serialized=token.serialized,
            expiration_time=token.expiration_time,
        )


@dataclass(frozen=True)
class GrantRequest:
    """Grant request context handed over by the token endpoint."""

    tenant_domain: str | None = None
    scope: tuple[str, ...] = ()
    request_parameters: Mapping[str, Sequence[str]] = field(default_factory=dict)

    @property
    def assertion(self) -> str | None:
        """First value of the ``assertion`` parameter, if any."""
        values = self.request_parameters.get(ASSERTION_PARAMETER)
        if not values:
            return None
        return values[0] or None

    @property
    def is_oidc_request(self) -> bool:
        """True when the requested scope asks for an identity token."""
        return OIDC_SCOPE in self.scope


@dataclass(frozen=True)
class ValidationOutcome:
    """Binary result of validating one assertion."""

    accepted: bool
    authorized_user: AuthenticatedUser | None = None
    scope: tuple[str, ...] = ()
    audience: str | None = None
    provider_name: str | None = None
    jwt_id: str | None = None
    failure: GrantValidationError | None = None

    @property
    def failure_kind(self) -> str | None:
        """Kind of the rejection, or None when accepted."""
        return self.failure.kind if self.failure is not None else None

    @classmethod
    def rejected(cls, failure: GrantValidationError) -> ValidationOutcome:
        """Create a rejection outcome."""
        return cls(accepted=False, failure=failure)


@dataclass(frozen=True)
class IssuedAccessToken:
    """Access token handed back by the token issuance pipeline."""

    access_token: str
    token_id: str | None = None


@dataclass(frozen=True)
class AuthorizationGrantCacheEntry:
    """OIDC attributes stored against an issued access token.

    Read later by the identity token issuance stage.
    """

    attributes: Mapping[str, str]
    subject_claim: str
    token_id: str | None = None
