"""Session token verification.

Tokens are JWTs issued by the identity provider (Clerk). Production tokens
are RS256-signed and checked against the provider's JWKS; a shared HS256
secret is accepted for locally minted tokens.
"""
import logging
from typing import Any, Optional

import jwt

from chatapp.config import settings

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when a session token cannot be verified."""


class TokenVerifier:
    """Verify bearer session tokens and extract the caller's user id."""

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        secret: Optional[str] = None,
        issuer: Optional[str] = None,
        authorized_parties: Optional[list[str]] = None,
        leeway: int = 5,
    ):
        self.secret = secret
        self.issuer = issuer
        self.authorized_parties = authorized_parties or []
        self.leeway = leeway
        self._jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url else None

    def decode(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            AuthError: On any signature, expiry, issuer or claim failure
        """
        try:
            if self._jwks_client is not None:
                key = self._jwks_client.get_signing_key_from_jwt(token).key
                algorithms = ["RS256"]
            elif self.secret:
                key = self.secret
                algorithms = ["HS256"]
            else:
                raise AuthError("No token verification key configured")

            claims = jwt.decode(
                token,
                key,
                algorithms=algorithms,
                issuer=self.issuer,
                leeway=self.leeway,
                options={"require": ["sub", "exp"], "verify_iss": bool(self.issuer)},
            )
        except jwt.PyJWTError as e:
            raise AuthError(str(e)) from e

        azp = claims.get("azp")
        if self.authorized_parties and azp not in self.authorized_parties:
            raise AuthError(f"Unauthorized party: {azp}")

        return claims

    def verify(self, token: str) -> str:
        """Return the user id (`sub` claim) of a valid token."""
        claims = self.decode(token)
        user_id = claims.get("sub")
        if not user_id:
            raise AuthError("Token has no subject")
        return str(user_id)


def build_verifier() -> TokenVerifier:
    return TokenVerifier(
        jwks_url=settings.CLERK_JWKS_URL,
        secret=settings.AUTH_SECRET,
        issuer=settings.CLERK_ISSUER,
        authorized_parties=settings.CLERK_AUTHORIZED_PARTIES,
    )
