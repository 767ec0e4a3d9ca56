"""
Bearer-token issuance and verification for the Bookstore API.

Tokens are HS256 JWTs carrying a ``role`` claim and a fixed validity
window. Verification is stateless: there is no revocation list, expiry is
the only way a token stops working.
"""

import time
from typing import Optional

import structlog
from authlib.jose import JoseError, JsonWebToken
from fastapi import Depends
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from bookstore.config import config
from bookstore.errors import InvalidOrExpiredToken, MissingToken

logger = structlog.get_logger(__name__)

# Raw token in the Authorization header, no "Bearer" prefix
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


class TokenClaims(BaseModel):
    """Decoded claims of a verified token."""
    role: str
    valid: bool = True


class TokenService:
    """Issues and verifies role-bearing bearer tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_hours: int = 12):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in_seconds = expires_hours * 3600
        # Only the configured algorithm is accepted on decode
        self._jwt = JsonWebToken([algorithm])

    def issue(self, role: str, now: Optional[int] = None) -> str:
        """
        Create a signed token for ``role``.

        Args:
            role: Role claim to embed
            now: Issue time as a UNIX timestamp (defaults to the current time)

        Returns:
            Signed token string
        """
        issued_at = int(time.time()) if now is None else now
        header = {"alg": self.algorithm, "typ": "JWT"}
        payload = {
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.expires_in_seconds,
        }
        token = self._jwt.encode(header, payload, self.secret_key)

        logger.info("Token issued", role=role, expires_at=payload["exp"])
        # authlib returns bytes, decode to string
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: Optional[str], now: Optional[int] = None) -> TokenClaims:
        """
        Verify a token and return its claims.

        Args:
            token: Raw token string from the request
            now: Verification time as a UNIX timestamp (defaults to the current time)

        Returns:
            TokenClaims with the decoded role

        Raises:
            MissingToken: If no token was supplied
            InvalidOrExpiredToken: If the signature is wrong, the token is
                malformed or it has expired
        """
        if not token:
            raise MissingToken()

        claims_options = {
            "exp": {"essential": True},
            "role": {"essential": True},
        }
        try:
            claims = self._jwt.decode(token, self.secret_key, claims_options=claims_options)
            claims.validate(now=now, leeway=0)
        except (JoseError, ValueError) as e:
            logger.warning("Token rejected", error=str(e))
            raise InvalidOrExpiredToken() from e

        return TokenClaims(role=str(claims["role"]))


token_service = TokenService(
    secret_key=config.secret_key,
    algorithm=config.algorithm,
    expires_hours=config.token_expire_hours,
)


def get_token_service() -> TokenService:
    return token_service


async def require_token(
    token: Optional[str] = Depends(authorization_header),
    service: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """FastAPI dependency guarding every book route."""
    return service.verify(token)
