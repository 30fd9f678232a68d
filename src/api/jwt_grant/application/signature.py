"""Signature verification for JWT assertions.

Dispatches on the trust material selected for the provider: a published
JWKS (delegated to the JWKS validator port) or the provider's static
X.509 certificate, which only supports RSA signatures.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Mapping

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from jose import jws
from jose.exceptions import JWSError

from jwt_grant.application.observability import (
    DefaultGrantValidationProbe,
    GrantValidationProbe,
)
from jwt_grant.domain.exceptions import SignatureVerificationError
from jwt_grant.domain.trust import (
    RSA_SIGNATURE_ALGORITHMS,
    CertificateTrust,
    JwksTrust,
    select_trust,
)
from jwt_grant.domain.value_objects import ParsedToken, ProviderRecord
from jwt_grant.ports.exceptions import JwksRetrievalError
from jwt_grant.ports.signature import IJwksSignatureValidator

PEM_CERTIFICATE_MARKER = "-----BEGIN CERTIFICATE-----"


def decode_certificate(encoded: str) -> x509.Certificate:
    """Decode a certificate given as PEM, base64 DER or base64 PEM.

    Raises:
        ValueError: If the value is not a decodable X.509 certificate
    """
    encoded = encoded.strip()
    if encoded.startswith(PEM_CERTIFICATE_MARKER):
        return x509.load_pem_x509_certificate(encoded.encode("ascii"))

    try:
        raw = base64.b64decode("".join(encoded.split()), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Certificate is not base64 encoded: {e}") from e

    if raw.lstrip().startswith(PEM_CERTIFICATE_MARKER.encode("ascii")):
        return x509.load_pem_x509_certificate(raw)
    return x509.load_der_x509_certificate(raw)


class SignatureVerifier:
    """Verifies assertion signatures against the resolved provider's keys."""

    def __init__(
        self,
        jwks_validator: IJwksSignatureValidator,
        jwks_validation_enabled: bool = False,
        probe: GrantValidationProbe | None = None,
    ):
        """Initialize the verifier.

        Args:
            jwks_validator: Validator used for providers with a JWKS endpoint
            jwks_validation_enabled: Global JWKS validation toggle
            probe: Optional domain probe for observability
        """
        self._jwks_validator = jwks_validator
        self._jwks_validation_enabled = jwks_validation_enabled
        self._probe = probe or DefaultGrantValidationProbe()

    async def verify(self, token: ParsedToken, provider: ProviderRecord) -> bool:
        """Verify the token signature.

        Returns:
            True when the signature is valid.

        Raises:
            SignatureVerificationError: On missing or undecodable trust
                material, unsupported algorithm or cryptographic mismatch.
        """
        trust = select_trust(provider, self._jwks_validation_enabled)
        match trust:
            case JwksTrust():
                valid = await self._verify_with_jwks(token, trust)
                trust_kind = "jwks"
            case CertificateTrust():
                valid = self._verify_with_certificate(token, trust)
                trust_kind = "certificate"

        if not valid:
            raise SignatureVerificationError("Signature or Message Authentication invalid.")

        self._probe.signature_verified(
            provider_name=provider.name,
            algorithm=token.algorithm,
            trust=trust_kind,
        )
        return True

    def resolve_signer_certificate(
        self, header: Mapping[str, Any], provider: ProviderRecord
    ) -> x509.Certificate | None:
        """Resolve the certificate used to verify the signature.

        The default resolves the provider's single configured certificate
        and ignores header hints. Override to select by ``x5t`` or similar.

        Raises:
            SignatureVerificationError: If the certificate cannot be decoded
        """
        if not provider.certificate:
            return None
        try:
            return decode_certificate(provider.certificate)
        except ValueError as e:
            raise SignatureVerificationError(
                "Error occurred while decoding public certificate of Identity "
                f"Provider {provider.name}"
            ) from e

    async def _verify_with_jwks(self, token: ParsedToken, trust: JwksTrust) -> bool:
        algorithm = self._require_algorithm(token)
        try:
            return await self._jwks_validator.validate_signature(
                token.serialized, trust.jwks_uri, algorithm
            )
        except JwksRetrievalError as e:
            raise SignatureVerificationError(
                f"Error when verifying signature with JWKS endpoint {trust.jwks_uri}: {e}"
            ) from e

    def _verify_with_certificate(
        self, token: ParsedToken, trust: CertificateTrust
    ) -> bool:
        provider = trust.provider
        certificate = self.resolve_signer_certificate(token.header, provider)
        if certificate is None:
            raise SignatureVerificationError(
                f"Unable to locate certificate for Identity Provider {provider.name}; "
                f"JWT header {dict(token.header)}"
            )

        algorithm = self._require_algorithm(token)
        if algorithm not in RSA_SIGNATURE_ALGORITHMS:
            raise SignatureVerificationError(
                f"Could not create a signature verifier for algorithm type: {algorithm}"
            )

        public_key = certificate.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise SignatureVerificationError("Public key is not an RSA public key.")

        pem = public_key.public_bytes(Encoding.PEM, PublicFormat.SubjectPublicKeyInfo)
        try:
            jws.verify(token.serialized, pem, algorithms=[algorithm])
        except JWSError:
            return False
        return True

    @staticmethod
    def _require_algorithm(token: ParsedToken) -> str:
        algorithm = token.algorithm
        if not algorithm:
            raise SignatureVerificationError("Algorithm must not be null.")
        return algorithm
