"""Project model for the kudos `projects` table."""

from sqlalchemy import Column, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY

from kudos_importer.config.database import Base


class Project(Base):
    """Project entity mapped to `projects` table.

    `categories` holds the request's `attributes.types` list.
    """

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False)
    categories = Column(ARRAY(Text), nullable=False, default=list)
    purposes = Column(ARRAY(Text), nullable=False, default=list)
    stack_levels = Column(ARRAY(Text), nullable=False, default=list)
    technologies = Column(ARRAY(Text), nullable=False, default=list)

    def __repr__(self):
        return f"<Project {self.slug}>"
