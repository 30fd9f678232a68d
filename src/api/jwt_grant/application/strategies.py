"""Pluggable strategies of the grant validation pipeline.

Deployments customize subject resolution, subject binding and custom
claim validation by passing their own strategies to the grant handler.
The functions and classes here are the defaults.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from jwt_grant.domain.exceptions import SubjectResolutionError
from jwt_grant.domain.value_objects import AuthenticatedUser, ParsedToken
from jwt_grant.ports.registry import IUserStore


class SubjectResolver(Protocol):
    """Derives the subject identifier from a parsed token."""

    def __call__(self, token: ParsedToken) -> str | None: ...


class CustomClaimsValidator(Protocol):
    """Deployment-specific policy over the full claim set."""

    def __call__(self, claims: Mapping[str, Any]) -> bool: ...


def resolve_subject_from_sub(token: ParsedToken) -> str | None:
    """Use the ``sub`` claim verbatim."""
    return token.subject


def accept_all_custom_claims(claims: Mapping[str, Any]) -> bool:
    """Accept every claim set."""
    return True


class SubjectBinder(Protocol):
    """Binds a validated subject to the authorized user of the grant."""

    async def bind(self, subject: str, tenant_domain: str) -> AuthenticatedUser: ...


class LocalSubjectBinder:
    """Creates a locally authenticated user straight from the subject identifier."""

    async def bind(self, subject: str, tenant_domain: str) -> AuthenticatedUser:
        return AuthenticatedUser.local_from_subject_identifier(subject)


class UserStoreSubjectBinder:
    """Resolves the subject as a username through the local user store."""

    def __init__(self, user_store: IUserStore):
        self._user_store = user_store

    async def bind(self, subject: str, tenant_domain: str) -> AuthenticatedUser:
        """Look the subject up as a username.

        Raises:
            SubjectResolutionError: If the user store cannot resolve the subject
        """
        user = await self._user_store.get_user_by_username(subject, tenant_domain)
        if user is None:
            raise SubjectResolutionError(
                f"Subject '{subject}' could not be resolved in the user store"
            )
        return user


def subject_binder_for(
    split_authz_user_3_way: bool, user_store: IUserStore
) -> SubjectBinder:
    """Select the binding mode configured by ``split_authz_user_3_way``."""
    if split_authz_user_3_way:
        return UserStoreSubjectBinder(user_store)
    return LocalSubjectBinder()
