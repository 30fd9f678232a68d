"""Claims extraction for compact-serialized JWT assertions.

Extraction is purely syntactic: nothing here evaluates trust, touches the
network or consults a cache.
"""

from __future__ import annotations

import math
from typing import Any

from jose import jwt
from jose.exceptions import JWTError
from jose.utils import base64url_decode

from jwt_grant.domain.exceptions import MalformedTokenError
from jwt_grant.domain.value_objects import JWT_BEARER_GRANT_TYPE, ParsedToken

# Year 9999; NumericDates beyond this cannot be represented as datetimes.
MAX_NUMERIC_DATE_SECONDS = 253_402_300_799


def extract(assertion: str | None) -> ParsedToken:
    """Parse a compact JWT into a ParsedToken.

    Args:
        assertion: The compact JWT submitted as the grant assertion.

    Returns:
        The decoded header, claim set and signature bytes.

    Raises:
        MalformedTokenError: If the assertion is missing, is not a three-part
            compact serialization, or its header or claim set cannot be decoded.
    """
    if not assertion:
        raise MalformedTokenError(
            f"No valid assertion was found for {JWT_BEARER_GRANT_TYPE}"
        )

    segments = assertion.split(".")
    if len(segments) != 3:
        raise MalformedTokenError(
            "Error while parsing the JWT: expected 3 segments, "
            f"found {len(segments)}"
        )

    try:
        header = jwt.get_unverified_header(assertion)
        claims = jwt.get_unverified_claims(assertion)
        signature = base64url_decode(segments[2].encode("ascii"))
    except (JWTError, ValueError) as e:
        raise MalformedTokenError(f"Error while parsing the JWT: {e}") from e

    return ParsedToken(
        serialized=assertion,
        header=header,
        claims=claims,
        signature=signature,
        issuer=_string_claim(claims, "iss"),
        subject=_string_claim(claims, "sub"),
        audience=_audience_claim(claims),
        expiration_time=_date_claim(claims, "exp"),
        not_before=_date_claim(claims, "nbf"),
        issued_at=_date_claim(claims, "iat"),
        jwt_id=_string_claim(claims, "jti"),
    )


def _string_claim(claims: dict[str, Any], name: str) -> str | None:
    value = claims.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedTokenError(f"The {name} claim is not a string")
    return value


def _audience_claim(claims: dict[str, Any]) -> tuple[str, ...]:
    """Normalize aud to an ordered tuple; a single string is a one-element audience."""
    value = claims.get("aud")
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise MalformedTokenError("The aud claim is not a string or a list of strings")


def _date_claim(claims: dict[str, Any], name: str) -> int | None:
    """Convert a NumericDate (seconds) claim to epoch milliseconds."""
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedTokenError(f"The {name} claim is not a NumericDate")
    if abs(value) > MAX_NUMERIC_DATE_SECONDS or not math.isfinite(value):
        raise MalformedTokenError(f"The {name} claim is out of range")
    return int(value * 1000)
