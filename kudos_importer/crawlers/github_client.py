"""Async GitHub client for listing open repository issues."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from kudos_importer.config.settings import Settings, settings as default_settings
from kudos_importer.errors import UpstreamApiError

logger = logging.getLogger(__name__)

_REDACTED = "***REDACTED***"
# Keys whose values never reach the log: GitHub credentials and DB passwords.
_SECRET_KEYS = ("authorization", "token", "password")
# Keys carrying the raw request body; only its length is logged.
_BODY_KEYS = ("body",)
_BEARER_PATTERN = re.compile(r"(?i)(bearer\s+)[^\s,;]+")
_DSN_PASSWORD_PATTERN = re.compile(r"(://[^:/@\s]+:)[^@\s]+(@)")


def sanitize_for_log(value: Any, *, key: Optional[str] = None) -> Any:
    """Copy of a log value with bearer tokens, DSN passwords and request bodies masked."""

    if isinstance(value, dict):
        return {str(field): _sanitize_field(str(field), item) for field, item in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [sanitize_for_log(item, key=key) for item in value]

    if isinstance(value, str):
        if key and _matches(key, _BODY_KEYS):
            return _mask_body(value)
        return _DSN_PASSWORD_PATTERN.sub(rf"\1{_REDACTED}\2", _BEARER_PATTERN.sub(rf"\1{_REDACTED}", value))

    return value


def sanitize_log_extra(**kwargs: Any) -> dict[str, Any]:
    """Helper for `extra=` payloads in structured logging."""

    return {key: _sanitize_field(key, value) for key, value in kwargs.items()}


def _sanitize_field(field: str, value: Any) -> Any:
    if _matches(field, _SECRET_KEYS) and value is not None:
        return _REDACTED
    return sanitize_for_log(value, key=field)


def _matches(field: str, keywords: tuple[str, ...]) -> bool:
    lowered = field.lower()
    return any(keyword in lowered for keyword in keywords)


def _mask_body(raw: str) -> str:
    if not raw.strip():
        return ""
    return f"<redacted payload ({len(raw)} chars)>"


class GitHubIssuesClient:
    """Fetches the first page of open issues for a repository. No pagination, no retries."""

    API_VERSION = "2022-11-28"
    ACCEPT_JSON = "application/vnd.github+json"

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        per_page: Optional[int] = None,
        base_url: Optional[str] = None,
        config: Optional[Settings] = None,
        transport: Optional[Any] = None,
    ) -> None:
        self._config = config or default_settings
        self._token = token or self._config.GITHUB_TOKEN
        self._timeout_seconds = timeout_seconds or self._config.GITHUB_TIMEOUT_SECONDS
        self._per_page = per_page or self._config.GITHUB_ISSUES_PER_PAGE
        self._base_url = base_url or self._config.GITHUB_API_BASE_URL
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubIssuesClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def list_open_issues(self, owner: str, name: str) -> list[dict[str, Any]]:
        """Return the raw items of the first page of open issues (pull requests included)."""

        if not self._token:
            raise UpstreamApiError(f"GITHUB_TOKEN is not configured; not requesting issues for {owner}/{name}")

        path = f"/repos/{owner}/{name}/issues"
        params = {"state": "open", "per_page": self._per_page, "page": 1}
        client = await self._ensure_client()

        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning(
                "GitHub request failed",
                extra=sanitize_log_extra(path=path, params=params, error=str(exc)),
            )
            raise UpstreamApiError(f"GitHub request to {path} failed: {exc}") from exc

        if response.status_code in (401, 403):
            logger.warning(
                "GitHub rejected credentials",
                extra=sanitize_log_extra(path=path, status_code=response.status_code),
            )
            raise UpstreamApiError(
                f"GitHub authentication failed for {path} ({response.status_code})",
                status_code=response.status_code,
            )

        if not response.is_success:
            logger.warning(
                "GitHub returned non-success status",
                extra=sanitize_log_extra(path=path, params=params, status_code=response.status_code),
            )
            raise UpstreamApiError(
                f"GitHub returned {response.status_code} for {path}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamApiError(
                f"GitHub returned invalid JSON for {path}",
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, list):
            raise UpstreamApiError(
                f"GitHub returned unexpected payload type {type(payload).__name__} for {path}",
                status_code=response.status_code,
            )

        if len(payload) >= self._per_page:
            logger.warning(
                "Issue page is full; open issues beyond the first page are not imported",
                extra=sanitize_log_extra(repo=f"{owner}/{name}", per_page=self._per_page),
            )

        return payload

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client:
            return self._client

        headers = {
            "Accept": self.ACCEPT_JSON,
            "User-Agent": self._config.USER_AGENT,
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout_seconds,
            transport=self._transport,
        )
        return self._client
