"""Insert-only writer for projects, repositories and issue batches."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError

from kudos_importer.errors import StoreWriteError
from kudos_importer.models.issue import Issue
from kudos_importer.models.project import Project
from kudos_importer.models.repository import Repository
from kudos_importer.schemas.project_payload import ProjectPayload
from kudos_importer.services.issue_mapper import KudosIssue

logger = logging.getLogger(__name__)


class ImportWriter:
    """Writes one import request's rows. Never updates or deletes."""

    def create_project(self, db: Any, project: ProjectPayload) -> int:
        attributes = project.attributes
        statement = (
            pg_insert(Project)
            .values(
                name=project.name,
                slug=project.slug,
                categories=list(attributes.types),
                purposes=list(attributes.purposes),
                stack_levels=list(attributes.stack_levels),
                technologies=list(attributes.technologies),
            )
            .returning(Project.id)
        )
        try:
            project_id = db.execute(statement).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to insert project {project.slug!r}: {exc}") from exc
        return int(project_id)

    def create_repository(self, db: Any, *, label: str, project_id: int) -> int:
        statement = (
            pg_insert(Repository)
            .values(slug=label, project_id=project_id)
            .returning(Repository.id)
        )
        try:
            repository_id = db.execute(statement).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to insert repository {label!r}: {exc}") from exc
        return int(repository_id)

    @staticmethod
    def build_issue_insert(issues: Sequence[KudosIssue], repository_id: int):
        """Single multi-row INSERT with one parameter group per issue."""
        if not issues:
            raise ValueError("Cannot build a multi-row insert for zero issues")
        return pg_insert(Issue).values([issue.to_row(repository_id) for issue in issues])

    def insert_issues(self, db: Any, issues: Sequence[KudosIssue], repository_id: int) -> int:
        """Insert all issues in one round trip and return the row count reported by the store.

        An empty batch touches nothing and reports 0.
        """
        if not issues:
            return 0

        statement = self.build_issue_insert(issues, repository_id)
        try:
            result = db.execute(statement)
        except SQLAlchemyError as exc:
            raise StoreWriteError(
                f"Failed to insert {len(issues)} issues for repository {repository_id}: {exc}"
            ) from exc

        inserted = max(int(result.rowcount or 0), 0)
        if inserted != len(issues):
            logger.warning(
                "Store reported fewer inserted issues than submitted",
                extra={"repository_id": repository_id, "submitted": len(issues), "inserted": inserted},
            )
        return inserted
