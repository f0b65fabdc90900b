"""JWT authentication service implementation."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from cachetools import TTLCache
from jwt.exceptions import ExpiredSignatureError
from jwt.exceptions import InvalidTokenError as JWTError

from mealsync.domain.shared.identity import ROLE_USER, Identity
from mealsync.domain.shared.ports.auth_service import Credentials, IAuthService
from mealsync.infrastructure.config import DEFAULT_JWT_TTL_SECONDS

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JwtAuthService(IAuthService):
    """HS256 bearer tokens signed with a shared secret.

    Features:
    - Token issuing with configurable lifetime (default 7 days)
    - Verification cache (decoded identities, short TTL)
    - Developer override via ``x-dev-token`` when explicitly enabled

    Examples:
        >>> service = JwtAuthService(secret="s3cret")
        >>> token = service.issue_token(Identity("user-1"))
        >>> await service.authenticate(Credentials(token=token))
        Identity(id='user-1', role='user')
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_JWT_TTL_SECONDS,
        allow_dev_override: bool = False,
        cache_ttl: int = 60,
    ):
        """Initialize service.

        Args:
            secret: HS256 signing secret
            ttl_seconds: Lifetime of issued tokens
            allow_dev_override: Accept ``x-dev-token`` as the dev identity
            cache_ttl: Seconds a verified token stays cached

        Raises:
            ValueError: If secret is empty
        """
        if not secret:
            raise ValueError("JWT secret is required")

        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.allow_dev_override = allow_dev_override
        self._verified: TTLCache[str, Identity] = TTLCache(maxsize=1024, ttl=cache_ttl)

    def issue_token(self, identity: Identity) -> str:
        now = datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "sub": identity.id,
            "role": identity.role,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Identity:
        """Decode a token into an identity.

        Raises:
            jwt.InvalidTokenError: Expired, tampered or malformed token
        """
        cached = self._verified.get(token)
        if cached is not None:
            return cached

        claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        subject = claims.get("sub")
        if not subject:
            raise JWTError("Token missing 'sub'")

        identity = Identity(id=str(subject), role=str(claims.get("role") or ROLE_USER))
        self._verified[token] = identity
        return identity

    async def authenticate(self, credentials: Credentials) -> Optional[Identity]:
        """Resolve credentials, falling back to the dev identity when allowed.

        A valid bearer token always wins. When the token is missing or
        invalid, a non-empty ``x-dev-token`` yields the dev identity only if
        the override is enabled.
        """
        if credentials.token:
            try:
                return self.verify_token(credentials.token)
            except ExpiredSignatureError:
                logger.info("Rejected expired token")
            except JWTError as e:
                logger.warning("JWT verification error", extra={"error": str(e)})

        if credentials.dev_token and self.allow_dev_override:
            logger.debug("Dev override identity granted")
            return Identity.dev()

        return None
