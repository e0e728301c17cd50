"""JWT Token Validation for shared-secret bearer tokens"""
import jwt
from typing import Any, Dict, List, Optional

from ..config.settings import Settings, get_settings
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """
    HS256 bearer token validator

    Tokens are issued by the identity provider in front of this service;
    only verification happens here.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a bearer token

        Args:
            token: Bearer token (with or without 'Bearer ' prefix)

        Returns:
            Decoded token claims

        Raises:
            AuthenticationError: If token is invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["sub"], "verify_exp": True},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str) -> ActorContext:
        """
        Extract actor context from validated token

        Claims: ``sub`` is the directory user ID, ``name`` the display name
        and ``roles`` a list of role names.
        """
        claims = self.validate_token(token)

        user_id = str(claims.get("sub") or "").strip()
        if not user_id:
            raise AuthenticationError("Unable to determine user from token")

        roles = claims.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        if not isinstance(roles, list):
            raise AuthenticationError("Invalid roles claim")

        return ActorContext(
            user_id=user_id,
            display_name=claims.get("name") or user_id,
            roles=[str(role) for role in roles]
        )


def create_token(
    user_id: str,
    display_name: str = "",
    roles: Optional[List[str]] = None,
    settings: Optional[Settings] = None,
    extra_claims: Optional[Dict[str, Any]] = None
) -> str:
    """Mint a token with the configured secret (local tooling and tests)"""
    settings = settings or get_settings()
    claims: Dict[str, Any] = {"sub": user_id, "name": display_name, "roles": roles or []}
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """
    Get current user from authorization header

    Args:
        authorization: Authorization header value

    Returns:
        ActorContext
    """
    return get_jwt_validator().get_actor_context(authorization)
