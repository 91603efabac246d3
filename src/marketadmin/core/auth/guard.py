"""Authorization guard for privileged routes.

The guard resolves a bearer credential to a subject and checks the
subject's role in the user store. Every failure, including verifier or
store outages and timeouts, is reported to the caller as the same
UnauthorizedError; the real reason is only logged.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from marketadmin.config import settings
from marketadmin.core.auth.verifier import IdentityVerifier
from marketadmin.core.errors import InvalidCredentialError, UnauthorizedError


logger = structlog.get_logger()

RoleLookup = Callable[[str], Awaitable[str | None]]

ADMIN_ROLE = "admin"
BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer`` header value.

    The scheme name is case-insensitive (RFC 7235).
    """
    if not authorization:
        return None
    if authorization[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX.lower():
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


class AuthorizationGuard:
    """Verifies credentials and enforces the administrator role.

    Attributes:
        verifier: Identity verifier for bearer credentials
        role_lookup: Coroutine returning a subject's role, or None if unknown
        timeout: Hard bound in seconds for verification plus role lookup
    """

    def __init__(
        self,
        verifier: IdentityVerifier,
        role_lookup: RoleLookup,
        timeout: float | None = None,
    ) -> None:
        self.verifier = verifier
        self.role_lookup = role_lookup
        self.timeout = timeout if timeout is not None else settings.auth_timeout_seconds

    async def _resolve(
        self, authorization: str | None, *, with_role: bool
    ) -> tuple[str, str | None] | None:
        """Verify the credential and optionally look up the role.

        Returns:
            (subject_id, role) on success, None on any failure
        """
        token = extract_bearer_token(authorization)
        if token is None:
            logger.info("auth_denied", reason="missing_token")
            return None

        try:
            async with asyncio.timeout(self.timeout):
                identity = await self.verifier.verify(token)
                if not identity.valid:
                    logger.info("auth_denied", reason="invalid_token")
                    return None
                role = await self.role_lookup(identity.subject_id) if with_role else None
        except InvalidCredentialError as exc:
            logger.info("auth_denied", reason="invalid_token", detail=str(exc))
            return None
        except TimeoutError:
            logger.warning("auth_denied", reason="timeout", timeout=self.timeout)
            return None
        except Exception:
            # Provider or store outage: deny rather than let requests through
            logger.exception("auth_denied", reason="provider_error")
            return None

        return identity.subject_id, role

    async def authorize(self, authorization: str | None) -> str:
        """Return the caller's id if it is an administrator.

        Args:
            authorization: Raw Authorization header value

        Returns:
            The administrator's identifier

        Raises:
            UnauthorizedError: For every non-admin outcome
        """
        resolved = await self._resolve(authorization, with_role=True)
        if resolved is None:
            raise UnauthorizedError()

        subject_id, role = resolved
        if role != ADMIN_ROLE:
            logger.info(
                "auth_denied",
                reason="unknown_subject" if role is None else "not_admin",
                subject_id=subject_id,
            )
            raise UnauthorizedError()

        return subject_id

    async def authenticate(self, authorization: str | None) -> str:
        """Return the caller's id for any valid credential.

        Raises:
            UnauthorizedError: Missing, invalid or unverifiable credential
        """
        resolved = await self._resolve(authorization, with_role=False)
        if resolved is None:
            raise UnauthorizedError("Authentication required")
        return resolved[0]
