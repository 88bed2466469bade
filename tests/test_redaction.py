import copy
import json

import pytest
from botocore.exceptions import ClientError

from stableshare.models.share_link import SharedField
from stableshare.services.redaction import MANDATORY_FIELDS, build_shared_view


def _record():
    return {
        "id": "horse-1",
        "name": "Bella Nova",
        "breed": "Danish Warmblood",
        "age": 7,
        "color": "Bay",
        "gender": "Mare",
        "height": "16.2 hands",
        "description": "Careful jumper.",
        "price": 45000.0,
        "pedigree": {"sire": "Cornet Obolensky", "dam": "Bella Donna"},
        "health": {"vaccinations": True, "coggins": True, "last_vet_check": "2026-05-01"},
        "training": {"level": "1.40m", "disciplines": ["show jumping"]},
        "competitions": [{"id": "c1", "event": "Spring Tour", "placement": "2"}],
        "images": [{"id": "i1", "url": "https://cdn.test/1.jpg"}],
        "videos": [{"id": "v1", "url": "https://youtube.test/v1"}],
        "xrays": [
            {"id": "x1", "file_url": "org/horse/front.dcm", "file_type": "upload"},
            {"id": "x2", "file_url": "https://pacs.test/991", "file_type": "url"},
        ],
    }


def _signer(path):
    return f"https://signed.test/{path}"


def test_basic_info_only_has_mandatory_fields():
    view = build_shared_view(_record(), ["basic_info"], _signer)

    assert set(view) == set(MANDATORY_FIELDS)
    assert view["name"] == "Bella Nova"
    assert view["age"] == 7


def test_pedigree_and_images_only():
    view = build_shared_view(_record(), ["pedigree", "images"], _signer)

    assert view["pedigree"] == {"sire": "Cornet Obolensky", "dam": "Bella Donna"}
    assert view["images"] == [{"id": "i1", "url": "https://cdn.test/1.jpg"}]
    for hidden in ("health", "training", "competitions", "videos", "price", "xrays", "description"):
        assert hidden not in view


def test_accepts_enum_members():
    view = build_shared_view(_record(), [SharedField.price, SharedField.videos], _signer)

    assert view["price"] == 45000.0
    assert view["videos"][0]["id"] == "v1"


def test_repeated_calls_are_identical():
    record = _record()
    fields = ["description", "health", "xrays"]

    first = build_shared_view(record, fields, _signer)
    second = build_shared_view(record, fields, _signer)

    assert first == second
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_source_record_is_not_mutated():
    record = _record()
    snapshot = copy.deepcopy(record)

    view = build_shared_view(record, list(f.value for f in SharedField), _signer)
    view["images"].append({"id": "extra"})
    view["pedigree"]["sire"] = "changed"

    assert record == snapshot


def test_uploaded_xrays_are_signed_and_urls_pass_through():
    view = build_shared_view(_record(), ["xrays"], _signer)

    uploaded, linked = view["xrays"]
    assert uploaded["file_url"] == "https://signed.test/org/horse/front.dcm"
    assert linked["file_url"] == "https://pacs.test/991"


def test_sign_failure_omits_only_that_asset_url():
    def failing_signer(path):
        raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "GetObject")

    record = _record()
    record["xrays"].append({"id": "x3", "file_url": "org/horse/hind.dcm", "file_type": "upload"})

    view = build_shared_view(record, ["xrays", "images"], failing_signer)

    assert [x["id"] for x in view["xrays"]] == ["x1", "x2", "x3"]
    assert "file_url" not in view["xrays"][0]
    assert view["xrays"][1]["file_url"] == "https://pacs.test/991"
    assert "file_url" not in view["xrays"][2]
    assert view["images"]


@pytest.mark.parametrize("fields", [[], ["unknown_category"]])
def test_no_optional_categories(fields):
    view = build_shared_view(_record(), fields, _signer)

    assert set(view) == set(MANDATORY_FIELDS)
