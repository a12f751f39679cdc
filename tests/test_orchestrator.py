from __future__ import annotations

import asyncio
from typing import Any, Sequence

import pytest

from sqlalchemy.dialects import postgresql

from kudos_importer.crawlers.import_writer import ImportWriter
from kudos_importer.errors import IdentityResolutionError, StoreWriteError, UpstreamApiError
from kudos_importer.orchestrator import IssueImportOrchestrator
from kudos_importer.schemas.project_payload import ProjectPayload
from kudos_importer.services.issue_mapper import KudosIssue


def make_item(number: int, *, pull_request: bool = False) -> dict[str, Any]:
    item: dict[str, Any] = {
        "number": number,
        "title": f"Issue {number}",
        "html_url": f"https://github.com/o/r/issues/{number}",
        "created_at": "2024-05-01T00:00:00Z",
        "updated_at": "2024-05-02T00:00:00Z",
        "user": {"login": "octocat"},
        "labels": [{"name": "good first issue"}],
    }
    if pull_request:
        item["pull_request"] = {"url": f"https://api.github.com/repos/o/r/pulls/{number}"}
    return item


def make_project(*urls: str) -> ProjectPayload:
    return ProjectPayload.model_validate(
        {
            "name": "Kudos",
            "slug": "kudos",
            "attributes": {"purposes": [], "stackLevels": [], "technologies": [], "types": []},
            "links": {"repository": [{"label": url.rstrip("/").split("/")[-1], "url": url} for url in urls]},
        }
    )


class FakeDB:
    """Rows written since the last commit are pending; rollback drops them."""

    def __init__(self) -> None:
        self.pending: list[tuple[str, Any]] = []
        self.committed: list[tuple[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def commit(self) -> None:
        self.committed.extend(self.pending)
        self.pending = []
        self.commits += 1

    def rollback(self) -> None:
        self.pending = []
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    def committed_rows(self, kind: str) -> list[Any]:
        return [row for row_kind, row in self.committed if row_kind == kind]


class FakeWriter(ImportWriter):
    def __init__(self, *, fail_issue_insert_for: int | None = None, rowcount_cap: int | None = None) -> None:
        self.fail_issue_insert_for = fail_issue_insert_for
        self.rowcount_cap = rowcount_cap
        self.issue_insert_calls: list[tuple[int, int]] = []
        self._next_repository_id = 100

    def create_project(self, db: FakeDB, project: ProjectPayload) -> int:
        db.pending.append(("project", project.slug))
        return 1

    def create_repository(self, db: FakeDB, *, label: str, project_id: int) -> int:
        self._next_repository_id += 1
        db.pending.append(("repository", (self._next_repository_id, label, project_id)))
        return self._next_repository_id

    def insert_issues(self, db: FakeDB, issues: Sequence[KudosIssue], repository_id: int) -> int:
        if not issues:
            return 0
        self.issue_insert_calls.append((repository_id, len(issues)))
        if repository_id == self.fail_issue_insert_for:
            raise StoreWriteError("insert or update on table issues violates foreign key constraint")
        for issue in issues:
            db.pending.append(("issue", (repository_id, issue.number)))
        if self.rowcount_cap is not None:
            return min(len(issues), self.rowcount_cap)
        return len(issues)


class FakeClient:
    def __init__(self, pages: dict[str, list[dict[str, Any]]], *, fail_for: str | None = None) -> None:
        self.pages = pages
        self.fail_for = fail_for
        self.calls: list[str] = []
        self.closed = False

    async def __aenter__(self) -> "FakeClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        self.closed = True

    async def list_open_issues(self, owner: str, name: str) -> list[dict[str, Any]]:
        full_name = f"{owner}/{name}"
        self.calls.append(full_name)
        if full_name == self.fail_for:
            raise UpstreamApiError("GitHub returned 500", status_code=500)
        return self.pages.get(full_name, [])


def make_orchestrator(db: FakeDB, client: FakeClient, writer: FakeWriter) -> IssueImportOrchestrator:
    return IssueImportOrchestrator(
        session_factory=lambda: db,
        github_client_factory=lambda: client,
        writer=writer,
    )


def test_total_counts_issues_and_skips_empty_repository_insert() -> None:
    db = FakeDB()
    client = FakeClient({"acme/widgets": [make_item(1), make_item(2), make_item(3)], "acme/empty": []})
    writer = FakeWriter()

    result = asyncio.run(
        make_orchestrator(db, client, writer).run_import(
            make_project("https://github.com/acme/widgets", "https://github.com/acme/empty/")
        )
    )

    assert result.total_issues_imported == 3
    assert result.project_id == 1
    assert [stats.inserted for stats in result.repositories] == [3, 0]
    assert writer.issue_insert_calls == [(101, 3)]
    assert client.calls == ["acme/widgets", "acme/empty"]
    assert [row[1] for row in db.committed_rows("repository")] == ["widgets", "empty"]
    assert db.closed is True
    assert client.closed is True


def test_pull_requests_are_not_written() -> None:
    db = FakeDB()
    items = [
        make_item(1),
        make_item(2, pull_request=True),
        make_item(3),
        make_item(4, pull_request=True),
        make_item(5),
    ]
    client = FakeClient({"acme/widgets": items})

    result = asyncio.run(
        make_orchestrator(db, client, FakeWriter()).run_import(make_project("https://github.com/acme/widgets"))
    )

    assert result.total_issues_imported == 3
    stats = result.repositories[0]
    assert stats.fetched == 5
    assert stats.pull_requests_skipped == 2
    assert [row[1] for row in db.committed_rows("issue")] == [1, 3, 5]


def test_failure_on_second_repository_aborts_and_keeps_first() -> None:
    db = FakeDB()
    client = FakeClient(
        {
            "acme/one": [make_item(1), make_item(2)],
            "acme/two": [make_item(3)],
            "acme/three": [make_item(4)],
        }
    )
    writer = FakeWriter(fail_issue_insert_for=102)
    orchestrator = make_orchestrator(db, client, writer)

    with pytest.raises(StoreWriteError):
        asyncio.run(
            orchestrator.run_import(
                make_project(
                    "https://github.com/acme/one",
                    "https://github.com/acme/two",
                    "https://github.com/acme/three",
                )
            )
        )

    assert db.committed_rows("project") == ["kudos"]
    assert [row[1] for row in db.committed_rows("repository")] == ["one"]
    assert db.committed_rows("issue") == [(101, 1), (101, 2)]
    assert client.calls == ["acme/one", "acme/two"]
    assert db.pending == []
    assert db.rollbacks == 1
    assert db.closed is True


def test_bad_repository_url_aborts_before_later_repositories() -> None:
    db = FakeDB()
    client = FakeClient({"acme/one": [make_item(1)]})

    with pytest.raises(IdentityResolutionError):
        asyncio.run(
            make_orchestrator(db, client, FakeWriter()).run_import(
                make_project("https://github.com/acme/one", "widgets", "https://github.com/acme/three")
            )
        )

    assert client.calls == ["acme/one"]
    assert db.committed_rows("issue") == [(101, 1)]


def test_upstream_failure_rolls_back_in_flight_repository_row() -> None:
    db = FakeDB()
    client = FakeClient({}, fail_for="acme/broken")

    with pytest.raises(UpstreamApiError):
        asyncio.run(
            make_orchestrator(db, client, FakeWriter()).run_import(make_project("https://github.com/acme/broken"))
        )

    assert db.committed_rows("project") == ["kudos"]
    assert db.committed_rows("repository") == []


def test_total_sums_store_reported_counts() -> None:
    db = FakeDB()
    client = FakeClient(
        {
            "acme/one": [make_item(1), make_item(2), make_item(3)],
            "acme/two": [make_item(4), make_item(5)],
        }
    )

    result = asyncio.run(
        make_orchestrator(db, client, FakeWriter(rowcount_cap=2)).run_import(
            make_project("https://github.com/acme/one", "https://github.com/acme/two")
        )
    )

    assert [stats.inserted for stats in result.repositories] == [2, 2]
    assert result.total_issues_imported == 4


def test_project_without_repositories_imports_nothing() -> None:
    db = FakeDB()
    client = FakeClient({})

    result = asyncio.run(make_orchestrator(db, client, FakeWriter()).run_import(make_project()))

    assert result.total_issues_imported == 0
    assert result.repositories == []
    assert db.committed_rows("project") == ["kudos"]
    assert client.calls == []


class FakeResult:
    def __init__(self, *, scalar: Any = None, rowcount: int = 0) -> None:
        self._scalar = scalar
        self.rowcount = rowcount

    def scalar_one(self) -> Any:
        return self._scalar


class StatementRecordingDB(FakeDB):
    """Session double that answers the real writer's INSERT statements."""

    def __init__(self) -> None:
        super().__init__()
        self.statements: list[tuple[str, dict[str, Any]]] = []
        self._next_id = {"projects": 0, "repositories": 100}

    def execute(self, statement: Any) -> FakeResult:
        table = statement.table.name
        params = statement.compile(dialect=postgresql.dialect()).params
        self.statements.append((table, params))
        self.pending.append((table, params))
        if table == "issues":
            return FakeResult(rowcount=len(params) // 5)
        self._next_id[table] += 1
        return FakeResult(scalar=self._next_id[table])


def test_real_writer_issues_one_issue_statement_and_skips_empty_repository() -> None:
    db = StatementRecordingDB()
    client = FakeClient(
        {
            "acme/widgets": [make_item(1), make_item(2, pull_request=True), make_item(3), make_item(4)],
            "acme/empty": [make_item(5, pull_request=True)],
        }
    )
    orchestrator = IssueImportOrchestrator(
        session_factory=lambda: db,
        github_client_factory=lambda: client,
        writer=ImportWriter(),
    )

    result = asyncio.run(
        orchestrator.run_import(make_project("https://github.com/acme/widgets", "https://github.com/acme/empty"))
    )

    assert result.total_issues_imported == 3
    assert [table for table, _ in db.statements] == ["projects", "repositories", "issues", "repositories"]
    issue_params = db.statements[2][1]
    assert sorted(value for key, value in issue_params.items() if key.startswith("number")) == [1, 3, 4]
    assert {value for key, value in issue_params.items() if key.startswith("repository_id")} == {101}
    assert db.statements[3][1] == {"slug": "empty", "project_id": 1}
    assert db.commits == 3
    assert db.pending == []


def test_result_timestamps_are_utc() -> None:
    db = FakeDB()
    client = FakeClient({"acme/widgets": [make_item(1)]})

    result = asyncio.run(
        make_orchestrator(db, client, FakeWriter()).run_import(make_project("https://github.com/acme/widgets"))
    )

    assert result.started_at.endswith("+00:00")
    assert result.completed_at.endswith("+00:00")
    assert result.started_at <= result.completed_at
