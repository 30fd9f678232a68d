"""JWT bearer grant handler.

Validates a JWT presented as an OAuth2 ``jwt-bearer`` grant assertion and,
once the grant is accepted and a token issued, projects the assertion's
claims for identity token issuance.

A request format handled here looks like::

    POST /oauth2/token HTTP/1.1
    Content-Type: application/x-www-form-urlencoded

    grant_type=urn%3Aietf%3Aparams%3Aoauth%3Agrant-type%3Ajwt-bearer
    &assertion=eyJhbGciOiJSUzI1NiJ9.eyJpc3Mi[...omitted for brevity...]
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from jwt_grant.application.extractor import extract
from jwt_grant.application.observability import (
    DefaultGrantValidationProbe,
    GrantValidationProbe,
)
from jwt_grant.application.resolver import IdentityProviderResolver
from jwt_grant.application.services.claim_projection import ClaimProjectionService
from jwt_grant.application.signature import SignatureVerifier
from jwt_grant.application.strategies import (
    CustomClaimsValidator,
    LocalSubjectBinder,
    SubjectBinder,
    SubjectResolver,
    accept_all_custom_claims,
    resolve_subject_from_sub,
)
from jwt_grant.domain.exceptions import (
    AudienceMismatchError,
    ClaimProjectionError,
    CustomClaimValidationError,
    GrantValidationError,
    MissingMandatoryClaimError,
)
from jwt_grant.domain.replay import ReplayDecision, evaluate_cached_jti
from jwt_grant.domain.temporal import (
    check_expiration_time,
    check_issued_at_time,
    check_not_before_time,
    validity_window_millis,
)
from jwt_grant.domain.value_objects import (
    JWT_BEARER_GRANT_TYPE,
    GrantRequest,
    IssuedAccessToken,
    ParsedToken,
    ReplayCacheEntry,
    ValidationOutcome,
)
from jwt_grant.ports.issuance import IAccessTokenIssuer
from jwt_grant.ports.replay_cache import IReplayCache

DEFAULT_TENANT_DOMAIN = "carbon.super"


def current_time_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class GrantValidationPolicy:
    """Plain configuration values consumed by the grant handler."""

    validity_period_minutes: int
    cache_used_jti: bool
    timestamp_skew_millis: int
    split_authz_user_3_way: bool = False
    default_tenant_domain: str = DEFAULT_TENANT_DOMAIN

    @property
    def validity_window_millis(self) -> int:
        """Maximum age of an assertion, measured from its iat."""
        return validity_window_millis(self.validity_period_minutes)


@dataclass(frozen=True)
class IssueResult:
    """Issued access token plus any non-fatal claim projection error."""

    token: IssuedAccessToken
    claim_projection_error: ClaimProjectionError | None = None


class JWTBearerGrantHandler:
    """Grant validation orchestrator for the JWT bearer grant type.

    Runs the validation steps strictly in sequence and aborts on the first
    failure. Nothing is retried: a rejected assertion is final for the call.
    """

    grant_type = JWT_BEARER_GRANT_TYPE

    def __init__(
        self,
        policy: GrantValidationPolicy,
        resolver: IdentityProviderResolver,
        signature_verifier: SignatureVerifier,
        replay_cache: IReplayCache | None = None,
        subject_binder: SubjectBinder | None = None,
        subject_resolver: SubjectResolver = resolve_subject_from_sub,
        custom_claims_validator: CustomClaimsValidator = accept_all_custom_claims,
        token_issuer: IAccessTokenIssuer | None = None,
        claim_projection: ClaimProjectionService | None = None,
        clock: Callable[[], int] = current_time_millis,
        probe: GrantValidationProbe | None = None,
    ):
        """Initialize the handler with its collaborators.

        Args:
            policy: Skew, validity window, replay cache and tenant settings
            resolver: Identity provider resolver
            signature_verifier: Signature verifier for the resolved provider
            replay_cache: jti replay cache; required when the policy enables it
            subject_binder: Binds the subject to the authorized user
                (default: local user built from the subject identifier)
            subject_resolver: Derives the subject from the token (default: sub)
            custom_claims_validator: Extension hook over the claim set
                (default: accept everything)
            token_issuer: Access token issuance pipeline used by ``issue``
            claim_projection: Projects claims for identity token flows
            clock: Returns the current time in epoch milliseconds
            probe: Optional domain probe for observability
        """
        if policy.cache_used_jti and replay_cache is None:
            raise ValueError("A replay cache is required when cache_used_jti is enabled")

        self._policy = policy
        self._resolver = resolver
        self._signature_verifier = signature_verifier
        self._replay_cache = replay_cache
        self._subject_binder = subject_binder or LocalSubjectBinder()
        self._subject_resolver = subject_resolver
        self._custom_claims_validator = custom_claims_validator
        self._token_issuer = token_issuer
        self._claim_projection = claim_projection
        self._clock = clock
        self._probe = probe or DefaultGrantValidationProbe()

    def effective_tenant(self, request: GrantRequest) -> str:
        """Tenant of the request, else the platform default tenant."""
        return request.tenant_domain or self._policy.default_tenant_domain

    async def validate_grant(self, request: GrantRequest) -> ValidationOutcome:
        """Validate the assertion of a grant request.

        Returns:
            An accepted ValidationOutcome carrying the authorized user.

        Raises:
            GrantValidationError: The subclass matching the first failing check.
        """
        try:
            return await self._validate(request)
        except GrantValidationError as e:
            self._probe.grant_rejected(kind=e.kind, reason=e.reason)
            raise

    async def evaluate(self, request: GrantRequest) -> ValidationOutcome:
        """Validate the assertion and report rejections as an outcome value."""
        try:
            return await self.validate_grant(request)
        except GrantValidationError as e:
            return ValidationOutcome.rejected(e)

    async def issue(
        self, request: GrantRequest, outcome: ValidationOutcome
    ) -> IssueResult:
        """Issue an access token for an accepted grant.

        When the scope requests an identity token, the assertion's claims
        are projected into the attribute cache of the issued token. A
        projection failure is reported in the result and never revokes
        the issued token.
        """
        if not outcome.accepted or outcome.authorized_user is None:
            raise ValueError("Cannot issue a token for a rejected grant")
        if self._token_issuer is None:
            raise ValueError("No access token issuer configured")

        token = await self._token_issuer.issue(
            request, outcome.authorized_user, outcome.scope
        )

        projection_error = None
        if request.is_oidc_request and self._claim_projection is not None:
            projection_error = await self._claim_projection.project(
                request, token, outcome.authorized_user
            )
        return IssueResult(token=token, claim_projection_error=projection_error)

    async def _validate(self, request: GrantRequest) -> ValidationOutcome:
        tenant_domain = self.effective_tenant(request)

        token = extract(request.assertion)
        self._probe.assertion_parsed(header=token.header, payload=token.claims)

        subject = self._subject_resolver(token)
        if (
            not token.issuer
            or not subject
            or token.expiration_time is None
            or not token.audience
        ):
            raise MissingMandatoryClaimError(
                "Mandatory fields(Issuer, Subject, Expiration time or Audience) "
                "are empty in the given JSON Web Token."
            )

        provider = await self._resolver.resolve(token.issuer, tenant_domain)
        expected_audience = await self._resolver.expected_audience(
            provider, tenant_domain
        )

        await self._signature_verifier.verify(token, provider)

        authorized_user = await self._subject_binder.bind(subject, tenant_domain)
        self._probe.subject_bound(subject=subject)

        if expected_audience not in token.audience:
            raise AudienceMismatchError(
                "None of the audience values matched the tokenEndpoint Alias "
                f"{expected_audience}"
            )
        self._probe.audience_matched(audience=expected_audience)

        current_time = self._clock()
        self._check_temporal_claims(token, current_time)

        replay_cache = self._replay_cache if self._policy.cache_used_jti else None
        if replay_cache is not None and token.jwt_id is not None:
            await self._accept_once(replay_cache, token, token.jwt_id, current_time)
        else:
            self._probe.replay_check_skipped(
                reason="jti_cache_disabled"
                if not self._policy.cache_used_jti
                else "jti_not_present"
            )
            self._check_custom_claims(token)

        self._probe.grant_validated(
            issuer=token.issuer, subject=subject, jwt_id=token.jwt_id
        )
        return ValidationOutcome(
            accepted=True,
            authorized_user=authorized_user,
            scope=request.scope,
            audience=expected_audience,
            provider_name=provider.name,
            jwt_id=token.jwt_id,
        )

    def _check_temporal_claims(self, token: ParsedToken, current_time: int) -> None:
        skew = self._policy.timestamp_skew_millis
        check_expiration_time(token.expiration_time, current_time, skew)
        if token.not_before is not None:
            check_not_before_time(token.not_before, current_time, skew)
        if token.issued_at is not None:
            check_issued_at_time(
                token.issued_at,
                current_time,
                skew,
                self._policy.validity_window_millis,
            )

    async def _accept_once(
        self,
        replay_cache: IReplayCache,
        token: ParsedToken,
        jwt_id: str,
        current_time: int,
    ) -> None:
        """Run the replay check, the custom claims hook and the cache write.

        The jti lock is held across the whole sequence so that racing
        presentations of one jti see each other's writes.
        """
        async with replay_cache.lock(jwt_id):
            cached = await replay_cache.lookup(jwt_id)
            decision = evaluate_cached_jti(
                cached, current_time, self._policy.timestamp_skew_millis
            )
            if decision is ReplayDecision.REFRESH:
                self._probe.replay_cache_refreshed(
                    jwt_id=jwt_id, previous_expiration=cached.expiration_time
                )

            self._check_custom_claims(token)
            await replay_cache.upsert(ReplayCacheEntry.from_token(token))

    def _check_custom_claims(self, token: ParsedToken) -> None:
        if not self._custom_claims_validator(token.claims):
            raise CustomClaimValidationError("Custom Claims in the JWT were invalid")
