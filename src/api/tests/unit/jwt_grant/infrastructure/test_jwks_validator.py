"""Unit tests for the JWKS signature validator.

The JWKS endpoint is mocked by patching httpx.AsyncClient.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from jose import jwk

from jwt_grant.infrastructure import JWKSSignatureValidator
from jwt_grant.infrastructure.observability import JWKSValidatorProbe
from jwt_grant.ports import IJwksSignatureValidator, JwksRetrievalError

JWKS_URI = "https://idp.partner.example/jwks"


def _response(json_data: Any) -> MagicMock:
    response = MagicMock()
    response.json.return_value = json_data
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def public_jwk(signing_key) -> dict[str, Any]:
    pem = signing_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    key = jwk.construct(pem, "RS256").to_dict()
    key.update({"kid": "k1", "use": "sig"})
    return key


@pytest.fixture
def jwks_probe() -> MagicMock:
    return MagicMock(spec=JWKSValidatorProbe)


@pytest.fixture
def validator(jwks_probe) -> JWKSSignatureValidator:
    return JWKSSignatureValidator(probe=jwks_probe)


class TestJWKSSignatureValidator:
    def test_implements_port(self, validator):
        assert isinstance(validator, IJwksSignatureValidator)

    @pytest.mark.asyncio
    async def test_valid_signature(self, validator, jwks_probe, public_jwk, mint_assertion):
        assertion = mint_assertion(headers={"kid": "k1"})

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            assert await validator.validate_signature(assertion, JWKS_URI, "RS256")

        mock_client.get.assert_awaited_once_with(JWKS_URI)
        jwks_probe.jwks_fetched.assert_called_once_with(jwks_uri=JWKS_URI, key_count=1)

    @pytest.mark.asyncio
    async def test_token_without_kid_uses_first_matching_key(
        self, validator, public_jwk, mint_assertion
    ):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            assert await validator.validate_signature(mint_assertion(), JWKS_URI, "RS256")

    @pytest.mark.asyncio
    async def test_key_set_cached(self, validator, jwks_probe, public_jwk, mint_assertion):
        assertion = mint_assertion(headers={"kid": "k1"})

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            await validator.validate_signature(assertion, JWKS_URI, "RS256")
            await validator.validate_signature(assertion, JWKS_URI, "RS256")

        assert mock_client.get.await_count == 1
        jwks_probe.jwks_cache_hit.assert_called_once_with(jwks_uri=JWKS_URI)

    @pytest.mark.asyncio
    async def test_expired_cache_refetched(self, jwks_probe, public_jwk, mint_assertion):
        validator = JWKSSignatureValidator(probe=jwks_probe, cache_ttl=timedelta(0))
        assertion = mint_assertion(headers={"kid": "k1"})

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            await validator.validate_signature(assertion, JWKS_URI, "RS256")
            await validator.validate_signature(assertion, JWKS_URI, "RS256")

        assert mock_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_kid_refetches_once(self, validator, public_jwk, mint_assertion):
        stale = {**public_jwk, "kid": "old"}

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.side_effect = [
                _response({"keys": [stale]}),
                _response({"keys": [stale, public_jwk]}),
            ]

            assert await validator.validate_signature(
                mint_assertion(headers={"kid": "k1"}), JWKS_URI, "RS256"
            )

        assert mock_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_kid_still_unknown_after_refetch(
        self, validator, jwks_probe, public_jwk, mint_assertion
    ):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            assert not await validator.validate_signature(
                mint_assertion(headers={"kid": "missing"}), JWKS_URI, "RS256"
            )

        assert mock_client.get.await_count == 2
        jwks_probe.jwks_key_not_found.assert_called_once_with(
            jwks_uri=JWKS_URI, key_id="missing", algorithm="RS256"
        )

    @pytest.mark.asyncio
    async def test_unknown_kid_refetch_throttled(
        self, validator, jwks_probe, public_jwk, mint_assertion
    ):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            for kid in ("bogus-1", "bogus-2"):
                assert not await validator.validate_signature(
                    mint_assertion(headers={"kid": kid}), JWKS_URI, "RS256"
                )

        # Initial fetch plus a single refetch for the first unknown kid
        assert mock_client.get.await_count == 2
        jwks_probe.jwks_refresh_throttled.assert_called_once_with(
            jwks_uri=JWKS_URI, key_id="bogus-2"
        )

    @pytest.mark.asyncio
    async def test_refetch_allowed_after_cooldown(
        self, jwks_probe, public_jwk, mint_assertion
    ):
        validator = JWKSSignatureValidator(
            probe=jwks_probe, refresh_cooldown=timedelta(0)
        )

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            for kid in ("bogus-1", "bogus-2"):
                await validator.validate_signature(
                    mint_assertion(headers={"kid": kid}), JWKS_URI, "RS256"
                )

        assert mock_client.get.await_count == 3
        jwks_probe.jwks_refresh_throttled.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_key_does_not_verify(
        self, validator, jwks_probe, mint_assertion
    ):
        malformed = {"kty": "RSA", "kid": "k1", "e": "AQAB"}

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [malformed]})

            assert not await validator.validate_signature(
                mint_assertion(headers={"kid": "k1"}), JWKS_URI, "RS256"
            )

        _, kwargs = jwks_probe.jwks_key_unusable.call_args
        assert kwargs["jwks_uri"] == JWKS_URI
        assert kwargs["key_id"] == "k1"

    @pytest.mark.asyncio
    async def test_encryption_key_not_used(self, validator, public_jwk, mint_assertion):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [{**public_jwk, "use": "enc"}]})

            assert not await validator.validate_signature(
                mint_assertion(headers={"kid": "k1"}), JWKS_URI, "RS256"
            )

    @pytest.mark.asyncio
    async def test_foreign_signature(
        self, validator, public_jwk, mint_assertion, untrusted_key_pem
    ):
        assertion = mint_assertion(key=untrusted_key_pem, headers={"kid": "k1"})

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response({"keys": [public_jwk]})

            assert not await validator.validate_signature(assertion, JWKS_URI, "RS256")

    @pytest.mark.asyncio
    async def test_non_rsa_algorithm_rejected_without_fetch(
        self, validator, jwks_probe, mint_assertion
    ):
        with patch("httpx.AsyncClient") as mock_client_class:
            assert not await validator.validate_signature(
                mint_assertion(), JWKS_URI, "HS256"
            )

        mock_client_class.assert_not_called()
        jwks_probe.jwks_key_not_found.assert_called_once()

    @pytest.mark.asyncio
    async def test_connection_failure(self, validator, jwks_probe, mint_assertion):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.side_effect = httpx.ConnectError("connection refused")

            with pytest.raises(JwksRetrievalError):
                await validator.validate_signature(mint_assertion(), JWKS_URI, "RS256")

        jwks_probe.jwks_fetch_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_http_error_status(self, validator, mint_assertion):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            response = _response({})
            response.raise_for_status.side_effect = httpx.HTTPStatusError(
                "404 Not Found", request=MagicMock(), response=MagicMock()
            )
            mock_client.get.return_value = response

            with pytest.raises(JwksRetrievalError):
                await validator.validate_signature(mint_assertion(), JWKS_URI, "RS256")

    @pytest.mark.asyncio
    async def test_invalid_json(self, validator, mint_assertion):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            response = _response(None)
            response.json.side_effect = ValueError("Expecting value")
            mock_client.get.return_value = response

            with pytest.raises(JwksRetrievalError):
                await validator.validate_signature(mint_assertion(), JWKS_URI, "RS256")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [{}, {"keys": "nope"}, ["keys"]])
    async def test_document_without_key_list(self, validator, mint_assertion, document):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = AsyncMock()
            mock_client_class.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _response(document)

            with pytest.raises(JwksRetrievalError):
                await validator.validate_signature(mint_assertion(), JWKS_URI, "RS256")
