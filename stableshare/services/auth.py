import base64
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.config import get_settings
from stableshare.models.organization import MemberRole, OrganizationUser

settings = get_settings()


class AuthError(Exception):
    def __init__(self, error_code: str, message: str, status_code: int = 401):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and in which organization, for one member request."""
    user_id: str
    organization_id: str
    role: MemberRole

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.admin


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(raw: str) -> bytes:
    padding = "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode(raw + padding)


def _sign(payload_part: str) -> str:
    secret = settings.secret_key.encode("utf-8")
    digest = hmac.new(secret, payload_part.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def issue_session_token(user_id: str, ttl_seconds: Optional[int] = None) -> str:
    payload = {
        "v": 1,
        "jti": uuid.uuid4().hex,
        "sub": user_id,
        "exp": int(time.time()) + (ttl_seconds or settings.session_token_ttl_seconds),
    }
    payload_part = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    return f"{payload_part}.{_sign(payload_part)}"


def verify_session_token(token: str) -> str:
    """Return the user id carried by a valid session token."""
    parts = token.split(".")
    if len(parts) != 2:
        raise AuthError("INVALID_SESSION", "Malformed session token")
    payload_part, sig_part = parts
    if not hmac.compare_digest(_sign(payload_part), sig_part):
        raise AuthError("INVALID_SESSION", "Invalid session token signature")
    try:
        payload = json.loads(_b64url_decode(payload_part).decode("utf-8"))
    except ValueError:
        raise AuthError("INVALID_SESSION", "Unreadable session token")
    if not isinstance(payload, dict) or not payload.get("sub"):
        raise AuthError("INVALID_SESSION", "Invalid session token")
    if int(payload.get("exp", 0)) < int(time.time()):
        raise AuthError("SESSION_EXPIRED", "Session has expired")
    return str(payload["sub"])


async def require_membership(
    db: AsyncSession,
    user_id: str,
    organization_id: str,
) -> RequestContext:
    result = await db.execute(
        select(OrganizationUser).where(
            OrganizationUser.organization_id == organization_id,
            OrganizationUser.user_id == user_id,
        )
    )
    member = result.scalars().first()
    if member is None:
        raise AuthError(
            "NOT_A_MEMBER",
            "User is not a member of this organization",
            status_code=403,
        )
    return RequestContext(user_id=user_id, organization_id=organization_id, role=member.role)
