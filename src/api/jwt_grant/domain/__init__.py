"""Domain layer for the JWT bearer grant bounded context.

Pure value objects and validation rules; no I/O.
"""

from jwt_grant.domain.exceptions import (
    AudienceMismatchError,
    ClaimProjectionError,
    CustomClaimValidationError,
    ExpiredTokenError,
    GrantValidationError,
    IdentityProviderLookupError,
    MalformedTokenError,
    MisconfiguredAudienceError,
    MissingMandatoryClaimError,
    ReplayedTokenError,
    SignatureVerificationError,
    SubjectResolutionError,
    TemporalValidationError,
    TokenIssuedTooEarlyError,
    TokenNotYetValidError,
    UnknownIssuerError,
)
from jwt_grant.domain.value_objects import (
    AuthenticatedUser,
    AuthorizationGrantCacheEntry,
    ClaimMapping,
    GrantRequest,
    IssuedAccessToken,
    ParsedToken,
    ProviderRecord,
    ReplayCacheEntry,
    ValidationOutcome,
)

__all__ = [
    "AudienceMismatchError",
    "AuthenticatedUser",
    "AuthorizationGrantCacheEntry",
    "ClaimMapping",
    "ClaimProjectionError",
    "CustomClaimValidationError",
    "ExpiredTokenError",
    "GrantRequest",
    "GrantValidationError",
    "IdentityProviderLookupError",
    "IssuedAccessToken",
    "MalformedTokenError",
    "MisconfiguredAudienceError",
    "MissingMandatoryClaimError",
    "ParsedToken",
    "ProviderRecord",
    "ReplayCacheEntry",
    "ReplayedTokenError",
    "SignatureVerificationError",
    "SubjectResolutionError",
    "TemporalValidationError",
    "TokenIssuedTooEarlyError",
    "TokenNotYetValidError",
    "UnknownIssuerError",
    "ValidationOutcome",
]
