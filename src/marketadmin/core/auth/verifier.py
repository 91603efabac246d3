"""Identity verification of bearer credentials."""

from typing import Protocol

from marketadmin.core.auth.backend import decode_token
from marketadmin.core.auth.schemas import VerifiedIdentity
from marketadmin.core.errors import InvalidCredentialError


class IdentityVerifier(Protocol):
    """Verifies a bearer credential's signature and expiry."""

    async def verify(self, token: str) -> VerifiedIdentity:
        """Return the verified identity or raise InvalidCredentialError."""
        ...


class JWTIdentityVerifier:
    """Verifies access tokens signed with the application secret."""

    async def verify(self, token: str) -> VerifiedIdentity:
        token_data = decode_token(token)
        if token_data is None:
            raise InvalidCredentialError("Invalid or expired token")
        if token_data.type != "access":
            raise InvalidCredentialError("Invalid token type")
        return VerifiedIdentity(subject_id=token_data.user_id)
