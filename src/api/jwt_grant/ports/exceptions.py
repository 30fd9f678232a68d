"""Exceptions raised by external collaborators behind the ports.

Adapters raise these; the application layer translates them into
``GrantValidationError`` kinds or reports them, never lets them leak.
"""


class IdentityProviderRegistryError(Exception):
    """Raised when the identity provider registry cannot answer a lookup."""

    pass


class JwksRetrievalError(Exception):
    """Raised when a JWKS document cannot be fetched or understood."""

    pass


class ClaimDialectConversionError(Exception):
    """Raised when claims cannot be converted between dialects."""

    pass
