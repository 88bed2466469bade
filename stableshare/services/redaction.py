"""
Field-level redaction of a horse record for share-link viewers.

The output starts empty and gains one category at a time. A category that
was not shared is left out entirely, so a viewer cannot tell "not shared"
from "empty".
"""
import copy
import logging
from typing import Callable, Iterable
from botocore.exceptions import BotoCoreError, ClientError
from stableshare.models.share_link import SharedField

logger = logging.getLogger(__name__)

# Identity and morphology; shared with every viewer
MANDATORY_FIELDS = ("id", "name", "breed", "age", "color", "gender", "height")

# Categories copied verbatim from the source record
_VERBATIM_CATEGORIES = (
    SharedField.description,
    SharedField.pedigree,
    SharedField.health,
    SharedField.training,
    SharedField.competitions,
    SharedField.images,
    SharedField.videos,
    SharedField.price,
)

SignUrl = Callable[[str], str]


def _sign_xrays(xrays: list, sign_url: SignUrl) -> list:
    signed = []
    for xray in xrays:
        item = copy.deepcopy(xray)
        if item.get("file_type") == "upload":
            try:
                item["file_url"] = sign_url(item["file_url"])
            except (BotoCoreError, ClientError, ValueError) as e:
                # Drop only this asset's URL; the rest of the view still ships
                logger.warning(f"Signing X-ray {item.get('id')} failed: {e}")
                item.pop("file_url", None)
        signed.append(item)
    return signed


def build_shared_view(
    record: dict,
    shared_fields: Iterable[str],
    sign_url: SignUrl,
) -> dict:
    fields = {getattr(f, "value", f) for f in shared_fields}
    view = {name: record.get(name) for name in MANDATORY_FIELDS}

    for category in _VERBATIM_CATEGORIES:
        if category.value in fields and category.value in record:
            view[category.value] = copy.deepcopy(record[category.value])

    if SharedField.xrays.value in fields:
        view[SharedField.xrays.value] = _sign_xrays(record.get("xrays") or [], sign_url)

    return view
