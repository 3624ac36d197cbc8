"""SQLAlchemy model for runtime settings stored in the database."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from concept_dictionary.core.database import Base

CONCEPTS_LOCKED_PROPERTY = "concepts.locked"


class GlobalProperty(Base):
    """Key/value setting shared by every instance of the service."""

    __tablename__ = "global_properties"

    property: Mapped[str] = mapped_column(String(255), primary_key=True)
    property_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<GlobalProperty({self.property}={self.property_value!r})>"
