"""Pull-request filtering and canonical mapping for GitHub issue payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from kudos_importer.errors import UpstreamApiError


@dataclass(slots=True)
class KudosIssue:
    """Storage-ready representation of one open GitHub issue."""

    number: int
    title: str
    html_url: str
    issue_created_at: datetime
    issue_updated_at: datetime
    user: Optional[str]
    labels: list[str] = field(default_factory=list)

    def to_row(self, repository_id: int) -> dict[str, Any]:
        """Column mapping for the `issues` table."""
        return {
            "number": self.number,
            "title": self.title,
            "labels": list(self.labels),
            "repository_id": repository_id,
            "issue_created_at": self.issue_created_at,
        }


def is_pull_request(item: dict[str, Any]) -> bool:
    """The issues endpoint returns PRs as issues carrying a populated `pull_request` object."""
    return item.get("pull_request") is not None


def map_issue(item: dict[str, Any]) -> KudosIssue:
    number = item.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        raise UpstreamApiError(f"Issue payload has no usable number: {number!r}")

    user = item.get("user") if isinstance(item.get("user"), dict) else {}
    return KudosIssue(
        number=number,
        title=str(item.get("title") or ""),
        html_url=str(item.get("html_url") or ""),
        issue_created_at=_parse_timestamp(item.get("created_at"), number=number, field_name="created_at"),
        issue_updated_at=_parse_timestamp(item.get("updated_at"), number=number, field_name="updated_at"),
        user=user.get("login"),
        labels=_label_names(item.get("labels")),
    )


def classify_issues(items: Iterable[dict[str, Any]]) -> list[KudosIssue]:
    """Drop pull requests and map the remaining items, keeping fetch order."""
    return [map_issue(item) for item in items if not is_pull_request(item)]


def _label_names(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []

    names: list[str] = []
    for label in raw:
        if isinstance(label, dict):
            name = label.get("name")
            if isinstance(name, str):
                names.append(name)
        elif isinstance(label, str):
            names.append(label)
    return names


def _parse_timestamp(raw: Any, *, number: int, field_name: str) -> datetime:
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = date_parser.isoparse(raw)
        except (TypeError, ValueError) as exc:
            raise UpstreamApiError(f"Issue #{number} has an invalid {field_name}: {raw!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise UpstreamApiError(f"Issue #{number} is missing {field_name}")
