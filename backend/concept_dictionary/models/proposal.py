"""SQLAlchemy model for concept proposals."""

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from concept_dictionary.core.database import Base, ChangeMixin, CreatorMixin
from concept_dictionary.models.concept import Concept
from concept_dictionary.schemas.base import ProposalState


class ConceptProposal(CreatorMixin, ChangeMixin, Base):
    """A user-submitted term awaiting mapping to an existing concept.

    ``obs_concept`` is the question the text was entered for, when the
    proposal came from data entry. Mapping sets ``mapped_concept`` and
    moves the proposal out of the UNMAPPED state.
    """

    __tablename__ = "concept_proposals"

    concept_proposal_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    original_text: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    final_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    obs_concept_id: Mapped[int | None] = mapped_column(ForeignKey("concepts.concept_id"), nullable=True)
    mapped_concept_id: Mapped[int | None] = mapped_column(
        ForeignKey("concepts.concept_id"),
        nullable=True,
        index=True,
    )
    state: Mapped[ProposalState] = mapped_column(
        Enum(ProposalState, name="proposal_state", create_constraint=True),
        nullable=False,
        default=ProposalState.UNMAPPED,
        index=True,
    )
    comments: Mapped[str | None] = mapped_column(String(255), nullable=True)
    locale: Mapped[str | None] = mapped_column(String(20), nullable=True)

    obs_concept: Mapped[Concept | None] = relationship(foreign_keys=[obs_concept_id])
    mapped_concept: Mapped[Concept | None] = relationship(foreign_keys=[mapped_concept_id])

    def __repr__(self) -> str:
        return f"<ConceptProposal(id={self.concept_proposal_id}, text='{self.original_text}', state={self.state})>"

    @property
    def is_completed(self) -> bool:
        return self.state != ProposalState.UNMAPPED
