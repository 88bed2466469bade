import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.core.database import get_db
from stableshare.services.access import ShareAccessError, ShareLinkAccessController
from stableshare.services.ledger import ClientInfo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shared", tags=["shared"])


class PasswordRequest(BaseModel):
    password: str


def get_access_controller(db: AsyncSession = Depends(get_db)) -> ShareLinkAccessController:
    return ShareLinkAccessController(db)


def _client_info(request: Request) -> ClientInfo:
    peer_ip = request.client.host if request.client else None
    return ClientInfo.from_headers(request.headers, peer_ip=peer_ip)


async def _resolve(
    controller: ShareLinkAccessController,
    request: Request,
    token: str,
    password: Optional[str] = None,
) -> JSONResponse:
    try:
        payload = await controller.resolve(token, password=password, client=_client_info(request))
    except ShareAccessError as e:
        headers = {"Cache-Control": "no-store"}
        if e.retry_after:
            headers["Retry-After"] = str(e.retry_after)
        raise HTTPException(
            status_code=e.status_code,
            detail={"error_code": e.error_code, "message": e.message},
            headers=headers,
        )
    return JSONResponse(payload, headers={"Cache-Control": "no-store"})


# ─── GET /shared/{token} ─────────────────────────────────────────────────────

@router.get("/{token}")
async def view_shared_horse(
    token: str,
    request: Request,
    controller: ShareLinkAccessController = Depends(get_access_controller),
):
    """Resolve a share link with no password (standard and one-time links)."""
    return await _resolve(controller, request, token)


# ─── POST /shared/{token} ────────────────────────────────────────────────────

@router.post("/{token}")
async def unlock_shared_horse(
    token: str,
    req: PasswordRequest,
    request: Request,
    controller: ShareLinkAccessController = Depends(get_access_controller),
):
    """Follow-up for password-protected links."""
    return await _resolve(controller, request, token, password=req.password)
