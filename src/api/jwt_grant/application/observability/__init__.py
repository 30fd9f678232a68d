"""Domain-Oriented Observability for the JWT bearer grant application layer."""

from jwt_grant.application.observability.claim_projection_probe import (
    ClaimProjectionProbe,
    DefaultClaimProjectionProbe,
)
from jwt_grant.application.observability.grant_validation_probe import (
    DefaultGrantValidationProbe,
    GrantValidationProbe,
)

__all__ = [
    "ClaimProjectionProbe",
    "DefaultClaimProjectionProbe",
    "DefaultGrantValidationProbe",
    "GrantValidationProbe",
]
