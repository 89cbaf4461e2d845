from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Any, Callable, Dict, Optional
import logging

from ..config import Settings
from ..core.logger import SecurityEventType, log_security_event
from ..core.security import PasswordHasher
from ..database import get_db, utcnow
from ..exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from .jwt_handler import TokenService
from .otp_service import OTPService
from .repository import UserRepository
from .service import AuthService, Notifier

logger = logging.getLogger(__name__)

SESSION_COOKIE = "token"

# Security scheme; the cookie is the primary transport, the header a fallback
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_clock() -> Callable:
    return utcnow


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
    notifier: Notifier = Depends(get_notifier),
    clock: Callable = Depends(get_clock),
) -> AuthService:
    users = UserRepository(db)
    otps = OTPService(users, ttl_minutes=settings.otp_ttl_minutes, clock=clock)
    return AuthService(
        users,
        tokens,
        otps,
        notifier,
        hasher,
        reset_requires_otp=settings.reset_requires_otp,
    )


def get_token_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Verified claims of the caller's session token, or 401"""

    token = request.cookies.get(SESSION_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials

    if not token:
        raise AuthenticationError()

    try:
        return tokens.verify(token)
    except InvalidTokenError:
        raise AuthenticationError()


require_user = get_token_claims


def require_role(role: str):
    """Dependency factory: authenticated caller whose role claim equals role, else 403"""

    def dependency(request: Request, claims: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
        if claims.get("role") != role:
            log_security_event(
                SecurityEventType.ACCESS_DENIED,
                user_id=claims.get("id"),
                email=claims.get("email"),
                details={"required_role": role, "path": request.url.path},
                level=logging.WARNING,
            )
            raise AuthorizationError()
        return claims

    return dependency


require_admin = require_role("admin")
