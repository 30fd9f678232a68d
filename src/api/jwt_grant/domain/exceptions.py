"""Domain exceptions for the JWT bearer grant bounded context.

Every rejection of an assertion is a ``GrantValidationError``. Each failing
condition has its own subclass so callers and tests can discriminate
without matching on message text.
"""


class GrantValidationError(Exception):
    """Base class for all assertion rejections.

    Attributes:
        kind: Stable name of the failure kind (class-level).
        reason: Human-readable explanation of the rejection.
    """

    kind = "GrantValidationError"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class MalformedTokenError(GrantValidationError):
    """Raised when the assertion is missing or is not a parseable compact JWT."""

    kind = "MalformedTokenError"


class MissingMandatoryClaimError(GrantValidationError):
    """Raised when iss, sub, exp or aud is absent or empty."""

    kind = "MissingMandatoryClaimError"


class UnknownIssuerError(GrantValidationError):
    """Raised when no trusted identity provider resolves for the issuer and tenant.

    This includes the case where the registry answers with its placeholder
    provider and the issuer is not the tenant's resident provider either.
    """

    kind = "UnknownIssuerError"


class IdentityProviderLookupError(GrantValidationError):
    """Raised when the identity provider registry itself fails."""

    kind = "IdentityProviderLookupError"


class MisconfiguredAudienceError(GrantValidationError):
    """Raised when the resolved provider has no expected audience value."""

    kind = "MisconfiguredAudienceError"


class SignatureVerificationError(GrantValidationError):
    """Raised when the signature cannot be verified.

    Covers missing or undecodable trust material, unsupported algorithms
    and cryptographic mismatch alike.
    """

    kind = "SignatureVerificationError"


class SubjectResolutionError(GrantValidationError):
    """Raised when the subject cannot be bound to a local user."""

    kind = "SubjectResolutionError"


class AudienceMismatchError(GrantValidationError):
    """Raised when the expected audience is not present in ``aud``."""

    kind = "AudienceMismatchError"


class TemporalValidationError(GrantValidationError):
    """Base class for failures of the exp/nbf/iat checks."""

    kind = "TemporalValidationError"


class ExpiredTokenError(TemporalValidationError):
    """Raised when the token has expired, skew included."""

    kind = "ExpiredTokenError"


class TokenNotYetValidError(TemporalValidationError):
    """Raised when the token is presented before its not-before time."""

    kind = "TokenNotYetValidError"


class TokenIssuedTooEarlyError(TemporalValidationError):
    """Raised when the token was issued longer ago than the validity window allows."""

    kind = "TokenIssuedTooEarlyError"


class ReplayedTokenError(GrantValidationError):
    """Raised when a jti is reused while its cached predecessor is still valid."""

    kind = "ReplayedTokenError"


class CustomClaimValidationError(GrantValidationError):
    """Raised when the custom claims hook rejects the token."""

    kind = "CustomClaimValidationError"


class ClaimProjectionError(GrantValidationError):
    """Raised when custom claims cannot be projected into the OIDC dialect.

    Never escapes the issuance path; it is reported to the caller while the
    already issued access token stays valid.
    """

    kind = "ClaimProjectionError"
