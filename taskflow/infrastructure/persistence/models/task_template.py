"""Task template ORM model. A template may bind the workflow its tasks follow."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import SpaceScopedModel


class TaskTemplate(SpaceScopedModel, Base):
    """Task template. Table: task_template."""

    __tablename__ = "task_template"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    workflow_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workflow.id", ondelete="RESTRICT"), nullable=True, index=True
    )
