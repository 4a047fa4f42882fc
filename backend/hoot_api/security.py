"""
Hoot API Backend: Identity Verification
========================================

What:  Turns a bearer token into a verified caller `Identity`.
How:   python-jose decodes and verifies the JWT with the shared secret.
       `get_current_user` is the FastAPI dependency every hoot route uses.
Who:   Mounted at router level in routes/hoots.py; handlers that need the
       caller also declare it as a parameter (FastAPI caches it per request).

Token shape:
    The identity service signs tokens as {"payload": {"_id": ..., "username": ...}}.
    Plain top-level claims ({"sub": ..., "username": ...}) are accepted too.
    An `exp` claim, when present, is enforced by jose.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from hoot_api.config import settings
from hoot_api.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

MAX_IDENTITY_ID_LENGTH = 255


@dataclass(frozen=True)
class Identity:
    """The verified caller of a request."""

    id: str
    username: Optional[str] = None


class IdentityVerifier:
    """
    Verifies bearer tokens signed with a shared HMAC secret.

    Constructed from settings once (see `identity_verifier` below); tests and
    deployments may swap it through `get_identity_verifier`.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: str) -> Identity:
        """
        Decode `token` and return the identity it names.

        Raises:
            UnauthenticatedError: bad signature, expired, malformed, or no id
        """
        if not self.secret:
            # An empty key would let jose accept tokens signed with ""
            logger.error("Token verification attempted without JWT_SECRET configured")
            raise UnauthenticatedError()

        try:
            decoded = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Rejected bearer token: %s", type(e).__name__)
            raise UnauthenticatedError() from e

        return self._identity_from_claims(decoded)

    @staticmethod
    def _identity_from_claims(decoded: Dict[str, Any]) -> Identity:
        claims = decoded.get("payload")
        if not isinstance(claims, dict):
            claims = decoded

        user_id = claims.get("_id") or claims.get("sub")
        if not user_id:
            raise UnauthenticatedError(message="Token does not identify a user")

        user_id = str(user_id)
        if len(user_id) > MAX_IDENTITY_ID_LENGTH:
            # users.id / author_id columns are String(255)
            raise UnauthenticatedError(message="Token identity is too long")

        username = claims.get("username")
        return Identity(
            id=user_id,
            username=str(username) if username is not None else None,
        )


identity_verifier = IdentityVerifier(settings.jwt_secret, settings.jwt_algorithm)

# auto_error=False: a missing header reaches get_current_user as None and is
# reported through UnauthenticatedError like every other auth failure
bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_verifier() -> IdentityVerifier:
    return identity_verifier


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    """
    FastAPI dependency: the verified caller, or 401.

    The caller id is also stored on request.state for the access log.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError(message="No authorization token provided")
    identity = verifier.verify(credentials.credentials)
    request.state.user_id = identity.id
    return identity
