"""Temporal claim checks for JWT assertions.

All times are epoch milliseconds. Each check adds the configured skew to
the current time before comparing.
"""

from __future__ import annotations

from jwt_grant.domain.exceptions import (
    ExpiredTokenError,
    TokenIssuedTooEarlyError,
    TokenNotYetValidError,
)

MILLIS_PER_MINUTE = 60_000


def validity_window_millis(validity_period_minutes: int) -> int:
    """Convert the configured validity period into milliseconds."""
    return validity_period_minutes * MILLIS_PER_MINUTE


def check_expiration_time(
    expiration_time: int, current_time: int, skew_millis: int
) -> None:
    """Reject a token whose exp has passed.

    The JWT must contain an exp claim limiting the window in which it can
    be used; a token without one never reaches this check.

    Raises:
        ExpiredTokenError: If ``current_time + skew_millis > expiration_time``.
    """
    if current_time + skew_millis > expiration_time:
        raise ExpiredTokenError(
            "JSON Web Token is expired. "
            f"Expiration Time(ms): {expiration_time}, "
            f"TimeStamp Skew: {skew_millis}, "
            f"Current Time: {current_time}. JWT Rejected and validation terminated"
        )


def check_not_before_time(
    not_before: int, current_time: int, skew_millis: int
) -> None:
    """Reject a token presented before its nbf.

    Raises:
        TokenNotYetValidError: If ``current_time + skew_millis < not_before``.
    """
    if current_time + skew_millis < not_before:
        raise TokenNotYetValidError(
            "JSON Web Token is used before Not_Before_Time. "
            f"Not Before Time(ms): {not_before}, "
            f"TimeStamp Skew: {skew_millis}, "
            f"Current Time: {current_time}. JWT Rejected and validation terminated"
        )


def check_issued_at_time(
    issued_at: int,
    current_time: int,
    skew_millis: int,
    validity_window: int,
) -> None:
    """Reject a token issued too long ago, independently of its exp.

    Raises:
        TokenIssuedTooEarlyError: If
            ``current_time + skew_millis - issued_at > validity_window``.
    """
    if current_time + skew_millis - issued_at > validity_window:
        raise TokenIssuedTooEarlyError(
            "JSON Web Token is issued before the allowed time. "
            f"Issued At Time(ms): {issued_at}, "
            f"Reject before limit(ms): {validity_window}, "
            f"TimeStamp Skew: {skew_millis}, "
            f"Current Time: {current_time}. JWT Rejected and validation terminated"
        )
