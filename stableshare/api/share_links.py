import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.config import get_settings
from stableshare.core.database import get_db
from stableshare.models.share_link import ShareLink
from stableshare.services import analytics as analytics_service
from stableshare.services import share as share_service
from stableshare.services.auth import AuthError, RequestContext, require_membership, verify_session_token
from stableshare.services.share import ShareLinkError

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/api/organizations/{org_id}/share-links", tags=["share-links"])


# ─── Models ──────────────────────────────────────────────────────────────────

class CreateShareLinkRequest(BaseModel):
    horse_id: str
    recipient_name: str
    link_type: str = "standard"
    expires_at: datetime
    shared_fields: list[str]
    password: Optional[str] = None
    max_views: Optional[int] = None


class ShareLinkResponse(BaseModel):
    id: str
    horse_id: str
    organization_id: str
    token: str
    share_url: str
    recipient_name: str
    link_type: str
    expires_at: str
    created_at: Optional[str] = None
    created_by: str
    view_count: int
    max_views: Optional[int] = None
    shared_fields: list[str]
    status: str


def _to_response(link: ShareLink) -> ShareLinkResponse:
    return ShareLinkResponse(share_url=settings.share_url(link.token), **link.to_owner_dict())


def _http_error(e) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error_code": e.error_code, "message": e.message},
    )


# ─── Request context ─────────────────────────────────────────────────────────

async def current_user_id(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=401,
            detail={"error_code": "AUTH_REQUIRED", "message": "Authorization header required"},
        )
    try:
        return verify_session_token(authorization[7:].strip())
    except AuthError as e:
        raise _http_error(e)


async def member_context(
    org_id: str,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    try:
        return await require_membership(db, user_id, org_id)
    except AuthError as e:
        raise _http_error(e)


# ─── POST /api/organizations/{org_id}/share-links ────────────────────────────

@router.post("", response_model=ShareLinkResponse, status_code=201)
async def create_share_link(
    req: CreateShareLinkRequest,
    ctx: RequestContext = Depends(member_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        link = await share_service.create_share_link(
            db,
            ctx,
            horse_id=req.horse_id,
            recipient_name=req.recipient_name,
            link_type=req.link_type,
            expires_at=req.expires_at,
            shared_fields=req.shared_fields,
            password=req.password,
            max_views=req.max_views,
        )
    except ShareLinkError as e:
        raise _http_error(e)
    return _to_response(link)


# ─── GET /api/organizations/{org_id}/share-links ─────────────────────────────

@router.get("", response_model=list[ShareLinkResponse])
async def list_share_links(
    horse_id: Optional[str] = None,
    ctx: RequestContext = Depends(member_context),
    db: AsyncSession = Depends(get_db),
):
    links = await share_service.list_share_links(db, ctx, horse_id=horse_id)
    return [_to_response(link) for link in links]


# ─── DELETE /api/organizations/{org_id}/share-links/{link_id} ────────────────

@router.delete("/{link_id}", status_code=204)
async def delete_share_link(
    link_id: str,
    ctx: RequestContext = Depends(member_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        await share_service.delete_share_link(db, ctx, link_id)
    except ShareLinkError as e:
        raise _http_error(e)
    return Response(status_code=204)


# ─── GET /api/organizations/{org_id}/share-links/{link_id}/analytics ─────────

@router.get("/{link_id}/analytics")
async def share_link_analytics(
    link_id: str,
    ctx: RequestContext = Depends(member_context),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await analytics_service.get_share_link_analytics(db, ctx, link_id)
    except ShareLinkError as e:
        raise _http_error(e)
