from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import jwt
import logging

from ..exceptions import InvalidTokenError
from .utils import parse_duration

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies signed session tokens.

    Tokens are self-contained: validity depends only on the signature and
    the embedded expiry. There is no server-side session table and no
    revocation list, so a leaked token stays valid until it expires.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", default_ttl="7d"):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.default_ttl = parse_duration(default_ttl)

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(settings.jwt_secret, settings.jwt_algorithm, settings.jwt_expires)

    def issue(self, claims: Dict[str, Any], ttl: Optional[timedelta] = None) -> str:
        """Create a signed token carrying claims plus iat/exp"""

        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload.update({
            "iat": now,
            "exp": now + (self.default_ttl if ttl is None else ttl),
        })

        try:
            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
            logger.debug(f"Session token issued for user {claims.get('id')}")
            return token
        except Exception as e:
            logger.error(f"Failed to create session token: {e}")
            raise

    def verify(self, token: str) -> Dict[str, Any]:
        """Verify and decode a session token; raises InvalidTokenError on any failure"""

        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid session token: {e}")
            raise InvalidTokenError()

    @property
    def default_ttl_seconds(self) -> int:
        return int(self.default_ttl.total_seconds())
