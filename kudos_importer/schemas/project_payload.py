"""Pydantic models for the project import request body."""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kudos_importer.errors import RequestDecodeError


class ProjectAttributes(BaseModel):
    """Categorical lists; order and duplicates are kept as sent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    purposes: list[str]
    stack_levels: list[str] = Field(alias="stackLevels")
    technologies: list[str]
    types: list[str]


class RepositoryLink(BaseModel):
    model_config = ConfigDict(extra="ignore")

    label: str
    url: str


class ProjectLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repository: list[RepositoryLink]


class ProjectPayload(BaseModel):
    """Project import request: the project row plus the repositories to import."""

    model_config = ConfigDict(extra="ignore")

    name: str
    slug: str
    attributes: ProjectAttributes
    links: ProjectLinks


def decode_project_payload(raw: Union[str, bytes, None]) -> ProjectPayload:
    """Parse a JSON request body, raising `RequestDecodeError` for anything unusable."""
    if raw is None:
        raise RequestDecodeError("Request body is missing")
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RequestDecodeError("Request body is not UTF-8 text") from exc
    if not raw.strip():
        raise RequestDecodeError("Request body is empty")

    try:
        return ProjectPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise RequestDecodeError(f"Error parsing JSON: {exc.error_count()} validation error(s)") from exc
