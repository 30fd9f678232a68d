"""Application services for the JWT bearer grant bounded context."""

from jwt_grant.application.services.claim_projection import ClaimProjectionService
from jwt_grant.application.services.grant_handler import (
    GrantValidationPolicy,
    IssueResult,
    JWTBearerGrantHandler,
)

__all__ = [
    "ClaimProjectionService",
    "GrantValidationPolicy",
    "IssueResult",
    "JWTBearerGrantHandler",
]
