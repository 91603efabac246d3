"""Authentication and admin authorization."""

from marketadmin.core.auth.backend import create_access_token, decode_token
from marketadmin.core.auth.dependencies import (
    AdminId,
    CurrentUserId,
    Guard,
    get_authorization_guard,
    get_current_user_id,
    get_identity_verifier,
    require_admin,
)
from marketadmin.core.auth.guard import AuthorizationGuard, extract_bearer_token
from marketadmin.core.auth.schemas import TokenData, VerifiedIdentity
from marketadmin.core.auth.verifier import IdentityVerifier, JWTIdentityVerifier


__all__ = [
    "AdminId",
    "AuthorizationGuard",
    "CurrentUserId",
    "Guard",
    "IdentityVerifier",
    "JWTIdentityVerifier",
    "TokenData",
    "VerifiedIdentity",
    "create_access_token",
    "decode_token",
    "extract_bearer_token",
    "get_authorization_guard",
    "get_current_user_id",
    "get_identity_verifier",
    "require_admin",
]
