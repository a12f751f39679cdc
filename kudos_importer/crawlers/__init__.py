"""GitHub fetching and store writing for issue imports."""

from kudos_importer.crawlers.github_client import GitHubIssuesClient
from kudos_importer.crawlers.import_writer import ImportWriter

__all__ = [
    "GitHubIssuesClient",
    "ImportWriter",
]
