"""
Share-link access control.

    LOOKUP -> NOT_FOUND          no link for the token
    LOOKUP -> EXPIRED            now >= expires_at
    LOOKUP -> EXHAUSTED          one-time link already used up
    LOOKUP -> PASSWORD_REQUIRED  password link, no password given
    LOOKUP -> RATE_LIMITED       password link, too many failed attempts
    LOOKUP -> PASSWORD_INVALID   password link, wrong password
    LOOKUP -> GRANTED            otherwise

Every state but GRANTED is terminal and surfaces as ShareAccessError. On
GRANTED the view is counted atomically, the record is redacted and a ledger
row is appended (best-effort).
"""
import logging
from datetime import datetime
from typing import Callable, Optional
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from stableshare.core.config import get_settings
from stableshare.core.database import as_utc, utcnow
from stableshare.models.share_link import ShareLink
from stableshare.services import horses, ledger, rate_limit, storage
from stableshare.services import share as share_service
from stableshare.services.ledger import ClientInfo
from stableshare.services.passwords import verify_password
from stableshare.services.redaction import SignUrl, build_shared_view

logger = logging.getLogger(__name__)
settings = get_settings()

NOT_FOUND = "NOT_FOUND"
EXPIRED = "EXPIRED"
EXHAUSTED = "EXHAUSTED"
PASSWORD_REQUIRED = "PASSWORD_REQUIRED"
PASSWORD_INVALID = "PASSWORD_INVALID"
RATE_LIMITED = "RATE_LIMITED"
UPSTREAM_FAILURE = "UPSTREAM_FAILURE"

# error_code -> (HTTP status, message shown to the viewer)
ACCESS_ERRORS = {
    NOT_FOUND: (404, "This share link is invalid or no longer available."),
    EXPIRED: (410, "This share link has expired. Please contact the owner for a new link."),
    EXHAUSTED: (410, "This one-time link has already been used. Please ask the owner for a new link."),
    PASSWORD_REQUIRED: (401, "This share link is password protected. Enter the password to continue."),
    PASSWORD_INVALID: (403, "Incorrect password. Please try again."),
    RATE_LIMITED: (429, "Too many password attempts. Please try again later."),
    UPSTREAM_FAILURE: (503, "Something went wrong loading this link. Please try again."),
}


class ShareAccessError(Exception):
    def __init__(self, error_code: str, retry_after: Optional[int] = None):
        self.error_code = error_code
        self.status_code, self.message = ACCESS_ERRORS[error_code]
        self.retry_after = retry_after
        super().__init__(self.message)


def _default_sign_url(path: str) -> str:
    return storage.create_signed_url(path, settings.signed_url_ttl_seconds)


class ShareLinkAccessController:
    """Resolves share tokens for anonymous viewers, one request at a time."""

    def __init__(
        self,
        db: AsyncSession,
        sign_url: Optional[SignUrl] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.sign_url = sign_url or _default_sign_url
        self.clock = clock

    async def resolve(
        self,
        token: str,
        password: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> dict:
        try:
            return await self._resolve(token, password, client)
        except (SQLAlchemyError, BotoCoreError, ClientError) as e:
            logger.error(f"Share link resolution failed upstream: {e}", exc_info=True)
            raise ShareAccessError(UPSTREAM_FAILURE)

    async def _resolve(self, token: str, password: Optional[str], client: Optional[ClientInfo]) -> dict:
        link = await share_service.get_link_by_token(self.db, token)
        if link is None:
            raise ShareAccessError(NOT_FOUND)

        now = self.clock()
        if link.is_expired(now):
            raise ShareAccessError(EXPIRED)
        if link.is_exhausted():
            raise ShareAccessError(EXHAUSTED)
        if link.requires_password():
            await self._check_password(link, password)

        # Decision made; count the view before any content is built
        view_count = await share_service.claim_view(self.db, link.id)
        if view_count is None:
            raise ShareAccessError(EXHAUSTED)
        logger.info(f"Share link {link.id} granted (view {view_count})")

        record = await horses.get_horse_record(self.db, link.horse_id, link.organization_id)
        if record is None:
            logger.warning(f"Share link {link.id} points at a missing horse {link.horse_id}")
            raise ShareAccessError(NOT_FOUND)

        horse = await run_in_threadpool(
            build_shared_view, record, link.shared_fields or [], self.sign_url
        )
        profile = await horses.get_organization_profile(self.db, link.organization_id)
        link_summary = {
            "link_type": link.link_type.value,
            "recipient_name": link.recipient_name,
            "expires_at": as_utc(link.expires_at).isoformat(),
            "view_count": view_count,
            "max_views": link.max_views,
        }

        # A failed ledger write rolls back and expires loaded rows; read them first
        await ledger.record_view(self.db, link.id, client)

        return {
            "horse": horse,
            "organization": profile["organization"],
            "contacts": profile["contacts"],
            "link": link_summary,
        }

    async def _check_password(self, link: ShareLink, password: Optional[str]) -> None:
        if not password:
            raise ShareAccessError(PASSWORD_REQUIRED)

        status = await rate_limit.check_rate_limit(self.db, link.id)
        if not status.allowed:
            raise ShareAccessError(RATE_LIMITED, retry_after=status.retry_after)

        matches = await run_in_threadpool(verify_password, link.password_hash or "", password)
        if not matches:
            await rate_limit.record_failed_attempt(self.db, link.id)
            logger.info(f"Wrong password for share link {link.id}")
            raise ShareAccessError(PASSWORD_INVALID)

        if status.remaining < settings.password_max_attempts:
            await rate_limit.clear_rate_limit(self.db, link.id)
