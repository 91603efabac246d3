"""FastAPI dependencies for authentication and authorization."""

from typing import Annotated

from fastapi import Depends, Request

from marketadmin.api.dependencies import DBSession
from marketadmin.core.auth.guard import AuthorizationGuard
from marketadmin.core.auth.verifier import IdentityVerifier, JWTIdentityVerifier
from marketadmin.modules.users.repos import UserRepository


def get_identity_verifier() -> IdentityVerifier:
    """Dependency returning the identity verifier."""
    return JWTIdentityVerifier()


def get_authorization_guard(
    db: DBSession,
    verifier: Annotated[IdentityVerifier, Depends(get_identity_verifier)],
) -> AuthorizationGuard:
    """Dependency providing a guard backed by the user store."""
    return AuthorizationGuard(verifier, UserRepository(db).get_role)


Guard = Annotated[AuthorizationGuard, Depends(get_authorization_guard)]


async def require_admin(request: Request, guard: Guard) -> str:
    """Dependency returning the caller's id, or raising if not an admin.

    Routes using it must list their rate limit dependency first.
    """
    admin_id = await guard.authorize(request.headers.get("Authorization"))
    request.state.user_id = admin_id
    return admin_id


async def get_current_user_id(request: Request, guard: Guard) -> str:
    """Dependency returning the authenticated caller's id."""
    user_id = await guard.authenticate(request.headers.get("Authorization"))
    request.state.user_id = user_id
    return user_id


AdminId = Annotated[str, Depends(require_admin)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
