"""JWKS signature validation protocol (port)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IJwksSignatureValidator(Protocol):
    """Verifies a serialized JWT against keys published at a JWKS endpoint.

    Key selection and fetch policy belong to the implementation.
    """

    async def validate_signature(
        self, serialized_token: str, jwks_uri: str, algorithm: str
    ) -> bool:
        """Verify the token signature.

        Args:
            serialized_token: The compact JWT exactly as presented
            jwks_uri: JWKS endpoint of the issuing provider
            algorithm: Algorithm name from the token header

        Returns:
            True if a published key verifies the signature, False otherwise

        Raises:
            JwksRetrievalError: If the key set cannot be obtained
        """
        ...
