from fastapi import Depends, Request
from jose import jwt, JWTError
from pydantic import BaseModel
from typing import Optional
from datetime import datetime, timezone
from pixico.core.config import Settings, settings
from pixico.core.gateway import (
    AuthError,
    AuthSession,
    AuthUser,
    Gateway,
    GatewayError,
    get_gateway,
)
from pixico.core.logging_config import log_security_event, get_client_ip
from pixico.schemas.profile import Profile
import logging

logger = logging.getLogger(__name__)

# Backend access tokens are HS256 JWTs issued for the "authenticated" audience
ALGORITHM = "HS256"
TOKEN_AUDIENCE = "authenticated"

SESSION_KEY = "admin"

UNAUTHORIZED = "Unauthorized"
ADMIN_REQUIRED = "Forbidden: Admin access required"
NOT_AN_ADMIN = "Unauthorized: You do not have administrator privileges."


class AdminIdentity(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: str


class AdminAccessError(Exception):
    """Admin verification failed; carries the HTTP status to answer with."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AdminUnauthorized(Exception):
    """Credentials were valid but the identity is not an administrator."""


class AdminLoginRequired(Exception):
    """Raised from admin page dependencies; answered with a login redirect."""


def decode_access_token(token: str, secret: str) -> dict:
    """
    Verify a backend access token locally.

    Raises:
        AuthError: If the token is expired, malformed or has the wrong audience
    """
    try:
        payload = jwt.decode(
            token, secret, algorithms=[ALGORITHM], audience=TOKEN_AUDIENCE
        )
    except JWTError as e:
        logger.warning(f"Access token rejected: {e}")
        raise AuthError("Invalid or expired access token", status_code=401) from e

    if not payload.get("sub"):
        raise AuthError("Access token has no subject", status_code=401)
    return payload


async def resolve_identity(
    gateway: Gateway, access_token: str, config: Settings = settings
) -> AuthUser:
    """Identity behind a token, verified locally when the JWT secret is known."""
    if config.SUPABASE_JWT_SECRET:
        payload = decode_access_token(access_token, config.SUPABASE_JWT_SECRET)
        return AuthUser(id=payload["sub"], email=payload.get("email"))
    return await gateway.auth.get_user(access_token)


async def fetch_profile(gateway: Gateway, access_token: str, user_id: str) -> Optional[Profile]:
    """Profile row for an identity, read with that identity's own token."""
    async with gateway.for_user(access_token) as user_gateway:
        try:
            return await (
                user_gateway.table("profiles")
                .select("id, email, full_name, role")
                .eq("id", user_id)
                .single(model=Profile)
            )
        except GatewayError as e:
            logger.warning(f"Profile lookup failed for {user_id}: {e.message}")
            return None


async def admin_login(gateway: Gateway, email: str, password: str) -> AuthSession:
    """
    Authenticate an administrator.

    The password is checked by the auth service first. The profile for that
    identity must then carry ``role = admin``; otherwise the freshly created
    session is signed out again before ``AdminUnauthorized`` is raised, so no
    authenticated-but-unauthorized session stays alive.

    Raises:
        AuthError: Credentials rejected by the auth service
        AdminUnauthorized: Identity is not an administrator
    """
    session = await gateway.auth.sign_in_with_password(email.strip(), password)

    profile = await fetch_profile(gateway, session.access_token, session.user.id)
    if profile is None or not profile.is_admin:
        try:
            await gateway.auth.sign_out(session.access_token)
        except GatewayError as e:
            logger.warning(f"Sign-out of non-admin session failed: {e.message}")
        raise AdminUnauthorized(NOT_AN_ADMIN)

    return session


def start_admin_session(request: Request, session: AuthSession) -> None:
    request.session[SESSION_KEY] = {
        "access_token": session.access_token,
        "user_id": session.user.id,
        "email": session.user.email,
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
    }


def end_admin_session(request: Request) -> Optional[str]:
    """Drop the admin session, returning its access token if there was one."""
    data = request.session.pop(SESSION_KEY, None)
    return data.get("access_token") if data else None


def _session_token(request: Request) -> Optional[str]:
    data = request.scope.get("session", {}).get(SESSION_KEY)
    if not data:
        return None

    expires_at = data.get("expires_at")
    if expires_at and datetime.fromisoformat(expires_at) <= datetime.now(timezone.utc):
        logger.info("Admin session expired")
        return None

    return data.get("access_token")


async def verify_admin(
    request: Request, gateway: Gateway, config: Settings = settings
) -> AdminIdentity:
    """
    Check that the request carries a live administrator session.

    Raises:
        AdminAccessError: 401 without a valid session, 403 for non-admins,
            500 when the backend cannot be asked
    """
    token = _session_token(request)
    if not token:
        raise AdminAccessError(401, UNAUTHORIZED)

    try:
        user = await resolve_identity(gateway, token, config)
    except AuthError:
        raise AdminAccessError(401, UNAUTHORIZED)
    except GatewayError as e:
        logger.error(f"Admin verification could not reach auth service: {e.message}")
        raise AdminAccessError(500, "Server error")

    profile = await fetch_profile(gateway, token, user.id)
    if profile is None or not profile.is_admin:
        log_security_event(
            event_type="admin.access.denied",
            message="Non-admin identity attempted to use admin area",
            level=logging.WARNING,
            user_id=user.id,
            email=user.email,
            ip_address=get_client_ip(request),
            request_path=request.url.path,
        )
        raise AdminAccessError(403, ADMIN_REQUIRED)

    return AdminIdentity(user_id=user.id, email=user.email, access_token=token)


async def require_admin_page(
    request: Request, gateway: Gateway = Depends(get_gateway)
) -> AdminIdentity:
    """Dependency for admin HTML pages."""
    try:
        return await verify_admin(request, gateway)
    except AdminAccessError as e:
        raise AdminLoginRequired(e.message)
