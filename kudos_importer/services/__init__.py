"""Pure helpers for repository identity and issue mapping."""

from kudos_importer.services.issue_mapper import KudosIssue, classify_issues, is_pull_request, map_issue
from kudos_importer.services.repo_identity import RepoIdentityResult, RepoInfo, parse_repo_url, resolve_repo_info

__all__ = [
    "KudosIssue",
    "classify_issues",
    "is_pull_request",
    "map_issue",
    "RepoIdentityResult",
    "RepoInfo",
    "parse_repo_url",
    "resolve_repo_info",
]
