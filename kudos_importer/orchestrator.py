"""Import coordinator: project row, then repositories one by one, accumulating issue counts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from kudos_importer.config.database import SessionLocal
from kudos_importer.config.settings import Settings, settings as default_settings
from kudos_importer.crawlers.github_client import GitHubIssuesClient, sanitize_log_extra
from kudos_importer.crawlers.import_writer import ImportWriter
from kudos_importer.errors import StoreWriteError
from kudos_importer.schemas.project_payload import ProjectPayload, RepositoryLink
from kudos_importer.services.issue_mapper import classify_issues
from kudos_importer.services.repo_identity import resolve_repo_info

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RepositoryImportStats:
    """Outcome of importing one repository."""

    label: str
    owner: str
    name: str
    repository_id: int
    fetched: int
    pull_requests_skipped: int
    inserted: int


@dataclass(slots=True)
class ImportResult:
    """Outcome of a fully successful import request."""

    project_id: int
    total_issues_imported: int = 0
    repositories: list[RepositoryImportStats] = field(default_factory=list)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class IssueImportOrchestrator:
    """Runs one project import.

    The project row is committed first, then each repository (its row plus its
    issue batch) is committed as one unit in input order. The first failure rolls
    back the in-flight repository, stops the import and propagates; repositories
    committed before it stay in the store.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Any] = SessionLocal,
        github_client_factory: Optional[Callable[[], Any]] = None,
        writer: Optional[ImportWriter] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self._config = config or default_settings
        self._session_factory = session_factory
        self._github_client_factory = github_client_factory or (lambda: GitHubIssuesClient(config=self._config))
        self._writer = writer or ImportWriter()

    async def run_import(self, project: ProjectPayload) -> ImportResult:
        repository_links = project.links.repository
        logger.info(
            "Issue import started",
            extra=sanitize_log_extra(project=project.slug, repositories=len(repository_links)),
        )

        db = self._session_factory()
        started_at = datetime.now(UTC).isoformat()
        current: Optional[str] = None
        try:
            project_id = self._writer.create_project(db, project)
            self._commit(db)
            result = ImportResult(project_id=project_id, started_at=started_at)

            async with self._github_client_factory() as client:
                for link in repository_links:
                    current = link.label
                    stats = await self._import_repository(db, client, link, project_id)
                    self._commit(db)
                    result.repositories.append(stats)
                    result.total_issues_imported += stats.inserted
                    logger.info(
                        "Repository imported",
                        extra=sanitize_log_extra(
                            project=project.slug,
                            repository=f"{stats.owner}/{stats.name}",
                            fetched=stats.fetched,
                            pull_requests_skipped=stats.pull_requests_skipped,
                            inserted=stats.inserted,
                        ),
                    )

            result.completed_at = datetime.now(UTC).isoformat()
            logger.info(
                "Issue import completed",
                extra=sanitize_log_extra(
                    project=project.slug,
                    project_id=project_id,
                    total_issues_imported=result.total_issues_imported,
                ),
            )
            return result
        except Exception as exc:
            db.rollback()
            logger.exception(
                "Issue import aborted",
                extra=sanitize_log_extra(
                    project=project.slug,
                    repository=current,
                    error=str(exc),
                ),
            )
            raise
        finally:
            db.close()

    async def _import_repository(
        self,
        db: Any,
        client: Any,
        link: RepositoryLink,
        project_id: int,
    ) -> RepositoryImportStats:
        repo_info = resolve_repo_info(link.url)
        repository_id = self._writer.create_repository(db, label=link.label, project_id=project_id)

        items = await client.list_open_issues(repo_info.owner, repo_info.name)
        issues = classify_issues(items)
        inserted = self._writer.insert_issues(db, issues, repository_id)

        return RepositoryImportStats(
            label=link.label,
            owner=repo_info.owner,
            name=repo_info.name,
            repository_id=repository_id,
            fetched=len(items),
            pull_requests_skipped=len(items) - len(issues),
            inserted=inserted,
        )

    @staticmethod
    def _commit(db: Any) -> None:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to commit import transaction: {exc}") from exc
