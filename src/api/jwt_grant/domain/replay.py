"""Replay decision for previously seen token identifiers."""

from __future__ import annotations

from enum import StrEnum

from jwt_grant.domain.exceptions import ReplayedTokenError
from jwt_grant.domain.value_objects import ReplayCacheEntry


class ReplayDecision(StrEnum):
    """How an incoming jti relates to the cached one."""

    FIRST_USE = "first_use"
    REFRESH = "refresh"


def evaluate_cached_jti(
    cached: ReplayCacheEntry | None,
    current_time: int,
    skew_millis: int,
) -> ReplayDecision:
    """Decide whether a token with a known jti may proceed.

    The comparison uses the cached token's expiration, not the incoming
    one. Once the cached token has lapsed the jti may be reused and the
    entry is overwritten; while it is still valid any presentation with the
    same jti is a replay, whatever the incoming token's content.

    Args:
        cached: Entry currently stored for the jti, or None on a miss.
        current_time: Current time in epoch milliseconds.
        skew_millis: Configured clock skew in milliseconds.

    Returns:
        FIRST_USE on a miss, REFRESH when the cached token has expired.

    Raises:
        ReplayedTokenError: If the cached token is still valid.
    """
    if cached is None:
        return ReplayDecision.FIRST_USE

    if current_time + skew_millis > cached.expiration_time:
        return ReplayDecision.REFRESH

    raise ReplayedTokenError(
        f"JWT with jti '{cached.jwt_id}' has been replayed before the allowed "
        f"expiry time: {cached.expiration_time}"
    )
