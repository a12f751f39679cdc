from __future__ import annotations

import json

import pytest

from kudos_importer.errors import RequestDecodeError
from kudos_importer.schemas.project_payload import decode_project_payload


def test_decodes_camel_case_attributes_and_keeps_order_and_duplicates() -> None:
    raw = json.dumps(
        {
            "name": "Kudos",
            "slug": "kudos",
            "attributes": {
                "purposes": ["b", "a", "b"],
                "stackLevels": ["frontend", "backend"],
                "technologies": ["rust"],
                "types": ["app", "app"],
            },
            "links": {
                "repository": [
                    {"label": "One", "url": "https://github.com/acme/one"},
                    {"label": "Two", "url": "https://github.com/acme/two", "extra": True},
                ]
            },
            "unknown": "ignored",
        }
    )

    project = decode_project_payload(raw)

    assert project.attributes.purposes == ["b", "a", "b"]
    assert project.attributes.stack_levels == ["frontend", "backend"]
    assert project.attributes.types == ["app", "app"]
    assert [link.label for link in project.links.repository] == ["One", "Two"]


def test_accepts_bytes() -> None:
    raw = json.dumps(
        {
            "name": "Kudos",
            "slug": "kudos",
            "attributes": {"purposes": [], "stackLevels": [], "technologies": [], "types": []},
            "links": {"repository": []},
        }
    ).encode("utf-8")

    assert decode_project_payload(raw).slug == "kudos"


@pytest.mark.parametrize("raw", [None, "", "   ", b"\xff\xfe", "{", '{"name": "Kudos"}'])
def test_rejects_unusable_bodies(raw) -> None:
    with pytest.raises(RequestDecodeError):
        decode_project_payload(raw)
