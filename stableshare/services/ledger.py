import ipaddress
import logging
from dataclasses import dataclass
from typing import Mapping, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from stableshare.models.share_link import ShareLinkView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], peer_ip: Optional[str] = None) -> "ClientInfo":
        forwarded = headers.get("x-forwarded-for")
        ip = forwarded.split(",")[0].strip() if forwarded else peer_ip
        return cls(
            ip_address=anonymize_ip(ip) if ip else None,
            user_agent=_header(headers, "user-agent", 512),
            referer=_header(headers, "referer", 1024),
            # Geolocation is derived by the edge proxy; no external lookup
            country=headers.get("cf-ipcountry") or None,
            city=headers.get("cf-ipcity") or None,
            region=headers.get("cf-region") or None,
        )


def _header(headers: Mapping[str, str], name: str, limit: int) -> Optional[str]:
    value = headers.get(name)
    return value[:limit] if value else None


def anonymize_ip(ip: str) -> str:
    """
    IPv4: zero the last octet (192.168.1.100 -> 192.168.1.0)
    IPv6: keep the first three groups (2001:db8:85a3::0)
    """
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return "anonymous"
    if addr.version == 4:
        octets = str(addr).split(".")
        return ".".join(octets[:3] + ["0"])
    groups = addr.exploded.split(":")[:3]
    return ":".join(g.lstrip("0") or "0" for g in groups) + "::0"


async def record_view(db: AsyncSession, share_link_id: str, client: Optional[ClientInfo]) -> bool:
    """
    Append one ledger row. Best-effort: failures are logged and swallowed,
    never retried. Returns whether the row was written.
    """
    client = client or ClientInfo()
    db.add(
        ShareLinkView(
            share_link_id=share_link_id,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            referer=client.referer,
            country=client.country,
            city=client.city,
            region=client.region,
        )
    )
    try:
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"View ledger write failed for share link {share_link_id}: {e}")
        return False
