"""SQLAlchemy model for drugs."""

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from concept_dictionary.core.database import Base, CreatorMixin, RetireMixin
from concept_dictionary.models.concept import Concept


class Drug(CreatorMixin, RetireMixin, Base):
    """A pharmaceutical product, linked to the concept it is a form of.

    Dosage form and route are themselves concepts (e.g. "TABLET",
    "ORAL"). Drugs in the table make up the formulary.
    """

    __tablename__ = "drugs"

    drug_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    combination: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dosage_form_id: Mapped[int | None] = mapped_column(ForeignKey("concepts.concept_id"), nullable=True)
    dose_strength: Mapped[float | None] = mapped_column(Float, nullable=True)
    maximum_daily_dose: Mapped[float | None] = mapped_column(Float, nullable=True)
    minimum_daily_dose: Mapped[float | None] = mapped_column(Float, nullable=True)
    route_id: Mapped[int | None] = mapped_column(ForeignKey("concepts.concept_id"), nullable=True)
    units: Mapped[str | None] = mapped_column(String(50), nullable=True)

    concept: Mapped[Concept] = relationship(foreign_keys=[concept_id])
    dosage_form: Mapped[Concept | None] = relationship(foreign_keys=[dosage_form_id])
    route: Mapped[Concept | None] = relationship(foreign_keys=[route_id])

    def __repr__(self) -> str:
        return f"<Drug(drug_id={self.drug_id}, name='{self.name}', concept_id={self.concept_id})>"
