"""Repository model for the kudos `repositories` table."""

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from kudos_importer.config.database import Base


class Repository(Base):
    """Repository linked to a project; `slug` stores the label given in the request."""

    __tablename__ = "repositories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(Text, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    project = relationship("Project", backref="repositories")

    def __repr__(self):
        return f"<Repository {self.slug} project={self.project_id}>"
