"""Repository identity resolution from repository URLs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from kudos_importer.errors import IdentityResolutionError


@dataclass(frozen=True, slots=True)
class RepoInfo:
    """Owner/name pair used to address the GitHub issues endpoint."""

    owner: str
    name: str


@dataclass(frozen=True, slots=True)
class RepoIdentityResult:
    """Outcome of parsing one repository URL."""

    url: str
    repo: Optional[RepoInfo] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.repo is not None


def parse_repo_url(url: str) -> RepoIdentityResult:
    """Take the last two non-empty path segments of `url` as (owner, name).

    The URL is split verbatim on `/`, so scheme and host count as segments and
    nothing is validated against GitHub naming rules.
    """

    segments = [segment for segment in url.rstrip("/").split("/") if segment]
    if len(segments) < 2:
        return RepoIdentityResult(
            url=url,
            error=f"expected at least 2 path segments, found {len(segments)}",
        )

    owner, name = segments[-2], segments[-1]
    return RepoIdentityResult(url=url, repo=RepoInfo(owner=owner, name=name))


def resolve_repo_info(url: str) -> RepoInfo:
    """Same as `parse_repo_url` but raises `IdentityResolutionError` on failure."""
    result = parse_repo_url(url)
    if result.repo is None:
        raise IdentityResolutionError(url, result.error or "unparseable url")
    return result.repo
