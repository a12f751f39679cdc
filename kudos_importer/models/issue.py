"""Issue model for the kudos `issues` table."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship

from kudos_importer.config.database import Base


class Issue(Base):
    """Open GitHub issue imported for a repository.

    (number, repository_id) is not unique; re-importing a repository adds duplicate rows.
    """

    __tablename__ = "issues"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    number = Column(BigInteger, nullable=False)
    title = Column(Text, nullable=False)
    labels = Column(ARRAY(Text), nullable=False, default=list)
    repository_id = Column(Integer, ForeignKey("repositories.id"), nullable=False)
    issue_created_at = Column(DateTime(timezone=True), nullable=False)

    repository = relationship("Repository", backref="issues")

    __table_args__ = (
        Index("idx_issues_repository_number", "repository_id", "number"),
    )

    def __repr__(self):
        return f"<Issue #{self.number} repo={self.repository_id}>"
