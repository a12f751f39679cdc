"""Database models"""

from kudos_importer.models.issue import Issue
from kudos_importer.models.project import Project
from kudos_importer.models.repository import Repository

__all__ = [
    "Issue",
    "Project",
    "Repository",
]
