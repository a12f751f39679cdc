"""Request payload schemas."""

from kudos_importer.schemas.project_payload import (
    ProjectAttributes,
    ProjectLinks,
    ProjectPayload,
    RepositoryLink,
    decode_project_payload,
)

__all__ = [
    "ProjectAttributes",
    "ProjectLinks",
    "ProjectPayload",
    "RepositoryLink",
    "decode_project_payload",
]
