"""Unit tests for the pluggable validation strategies."""

from unittest.mock import create_autospec

import pytest

from jwt_grant.application.extractor import extract
from jwt_grant.application.strategies import (
    LocalSubjectBinder,
    UserStoreSubjectBinder,
    accept_all_custom_claims,
    resolve_subject_from_sub,
    subject_binder_for,
)
from jwt_grant.domain.exceptions import SubjectResolutionError
from jwt_grant.domain.value_objects import AuthenticatedUser
from jwt_grant.ports import IUserStore


class TestDefaults:
    def test_subject_from_sub(self, mint_assertion):
        assert resolve_subject_from_sub(extract(mint_assertion())) == "alice"

    def test_accept_all_custom_claims(self):
        assert accept_all_custom_claims({"anything": 1})


class TestLocalSubjectBinder:
    @pytest.mark.asyncio
    async def test_binds_subject_verbatim(self):
        user = await LocalSubjectBinder().bind("alice@partner", "carbon.super")

        assert user.subject_identifier == "alice@partner"
        assert not user.federated


class TestUserStoreSubjectBinder:
    @pytest.mark.asyncio
    async def test_resolves_through_user_store(self):
        user_store = create_autospec(IUserStore, instance=True)
        expected = AuthenticatedUser(subject_identifier="alice", username="alice")
        user_store.get_user_by_username.return_value = expected

        user = await UserStoreSubjectBinder(user_store).bind("alice", "carbon.super")

        assert user is expected
        user_store.get_user_by_username.assert_awaited_once_with("alice", "carbon.super")

    @pytest.mark.asyncio
    async def test_unresolvable_subject(self):
        user_store = create_autospec(IUserStore, instance=True)
        user_store.get_user_by_username.return_value = None

        with pytest.raises(SubjectResolutionError):
            await UserStoreSubjectBinder(user_store).bind("ghost", "carbon.super")


class TestSubjectBinderFor:
    def test_local_mode(self):
        user_store = create_autospec(IUserStore, instance=True)

        assert isinstance(subject_binder_for(False, user_store), LocalSubjectBinder)

    def test_user_store_mode(self):
        user_store = create_autospec(IUserStore, instance=True)

        assert isinstance(subject_binder_for(True, user_store), UserStoreSubjectBinder)
