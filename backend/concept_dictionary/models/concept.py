"""SQLAlchemy models for concepts and their parts."""

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from concept_dictionary.core.database import Base, ChangeMixin, CreatorMixin, RetireMixin
from concept_dictionary.core.locale import locale_language, normalize_locale


class ConceptClass(CreatorMixin, RetireMixin, Base):
    """Classification of a concept (Diagnosis, Test, Drug, Symptom...)."""

    __tablename__ = "concept_classes"

    concept_class_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<ConceptClass(id={self.concept_class_id}, name='{self.name}')>"


class ConceptDatatype(CreatorMixin, RetireMixin, Base):
    """Kind of value a concept holds (Numeric, Coded, Text, N/A...)."""

    __tablename__ = "concept_datatypes"

    concept_datatype_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    hl7_abbreviation: Mapped[str | None] = mapped_column(String(3), nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<ConceptDatatype(id={self.concept_datatype_id}, name='{self.name}')>"


class Concept(CreatorMixin, ChangeMixin, RetireMixin, Base):
    """A coded clinical term.

    A concept carries one name per locale plus any number of synonyms.
    Coded concepts list their possible answers; set concepts list their
    members. Concepts of the Numeric datatype may carry a ConceptNumeric
    record with reference ranges.
    """

    __tablename__ = "concepts"

    concept_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    class_id: Mapped[int] = mapped_column(
        ForeignKey("concept_classes.concept_class_id"),
        nullable=False,
        index=True,
    )
    datatype_id: Mapped[int] = mapped_column(
        ForeignKey("concept_datatypes.concept_datatype_id"),
        nullable=False,
        index=True,
    )
    is_set: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[str | None] = mapped_column(String(50), nullable=True)

    concept_class: Mapped[ConceptClass] = relationship(lazy="joined")
    datatype: Mapped[ConceptDatatype] = relationship(lazy="joined")

    names: Mapped[list["ConceptName"]] = relationship(
        back_populates="concept",
        cascade="all, delete-orphan",
        order_by="ConceptName.locale",
    )
    synonyms: Mapped[list["ConceptSynonym"]] = relationship(
        back_populates="concept",
        cascade="all, delete-orphan",
        order_by="ConceptSynonym.concept_synonym_id",
    )
    answers: Mapped[list["ConceptAnswer"]] = relationship(
        back_populates="concept",
        foreign_keys="ConceptAnswer.concept_id",
        cascade="all, delete-orphan",
        order_by="ConceptAnswer.concept_answer_id",
    )
    set_members: Mapped[list["ConceptSet"]] = relationship(
        back_populates="concept_set",
        foreign_keys="ConceptSet.concept_set_id",
        cascade="all, delete-orphan",
        order_by="ConceptSet.sort_weight",
    )
    numeric: Mapped["ConceptNumeric | None"] = relationship(
        back_populates="concept",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Concept(concept_id={self.concept_id}, name='{self.name}')>"

    def get_name(self, locale: str | None = None) -> "ConceptName | None":
        """Best name for ``locale``.

        Prefers an exact locale match, then a name in the same language,
        then the first name the concept has.
        """
        if not self.names:
            return None
        if locale is not None:
            wanted = normalize_locale(locale)
            for concept_name in self.names:
                if normalize_locale(concept_name.locale) == wanted:
                    return concept_name
            language = locale_language(wanted)
            for concept_name in self.names:
                if locale_language(concept_name.locale) == language:
                    return concept_name
        return self.names[0]

    @property
    def name(self) -> str | None:
        """Name text in the first available locale."""
        concept_name = self.get_name()
        return concept_name.name if concept_name else None

    def add_name(
        self,
        name: str,
        locale: str,
        short_name: str | None = None,
        description: str | None = None,
    ) -> "ConceptName":
        """Set the name for ``locale``, replacing any existing one."""
        locale = normalize_locale(locale)
        for concept_name in self.names:
            if concept_name.locale == locale:
                concept_name.name = name
                concept_name.short_name = short_name
                concept_name.description = description
                return concept_name
        concept_name = ConceptName(name=name, locale=locale, short_name=short_name, description=description)
        self.names.append(concept_name)
        return concept_name

    def add_synonym(self, synonym: str, locale: str) -> "ConceptSynonym":
        locale = normalize_locale(locale)
        for existing in self.synonyms:
            if existing.locale == locale and existing.synonym.upper() == synonym.upper():
                return existing
        concept_synonym = ConceptSynonym(synonym=synonym, locale=locale)
        self.synonyms.append(concept_synonym)
        return concept_synonym

    def add_answer(self, answer_concept: "Concept", answer_drug=None) -> "ConceptAnswer":
        concept_answer = ConceptAnswer(answer_concept=answer_concept, answer_drug=answer_drug)
        self.answers.append(concept_answer)
        return concept_answer

    def add_set_member(self, member: "Concept", sort_weight: float | None = None) -> "ConceptSet":
        if sort_weight is None:
            sort_weight = float(len(self.set_members))
        concept_set = ConceptSet(concept=member, sort_weight=sort_weight)
        self.set_members.append(concept_set)
        return concept_set


class ConceptName(Base):
    """Name of a concept in one locale."""

    __tablename__ = "concept_names"
    __table_args__ = (UniqueConstraint("concept_id", "locale", name="uq_concept_names_concept_locale"),)

    concept_name_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    short_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    locale: Mapped[str] = mapped_column(String(20), nullable=False)

    concept: Mapped[Concept] = relationship(back_populates="names")

    def __repr__(self) -> str:
        return f"<ConceptName(concept_id={self.concept_id}, locale='{self.locale}', name='{self.name}')>"


class ConceptSynonym(Base):
    """Alternative name of a concept in one locale."""

    __tablename__ = "concept_synonyms"

    concept_synonym_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    synonym: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    locale: Mapped[str] = mapped_column(String(20), nullable=False)

    concept: Mapped[Concept] = relationship(back_populates="synonyms")

    def __repr__(self) -> str:
        return f"<ConceptSynonym(concept_id={self.concept_id}, synonym='{self.synonym}', locale='{self.locale}')>"


class ConceptNumeric(Base):
    """Reference ranges and units for a Numeric concept."""

    __tablename__ = "concept_numerics"

    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        primary_key=True,
    )
    hi_absolute: Mapped[float | None] = mapped_column(Float, nullable=True)
    hi_critical: Mapped[float | None] = mapped_column(Float, nullable=True)
    hi_normal: Mapped[float | None] = mapped_column(Float, nullable=True)
    low_absolute: Mapped[float | None] = mapped_column(Float, nullable=True)
    low_critical: Mapped[float | None] = mapped_column(Float, nullable=True)
    low_normal: Mapped[float | None] = mapped_column(Float, nullable=True)
    units: Mapped[str | None] = mapped_column(String(50), nullable=True)
    precise: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    concept: Mapped[Concept] = relationship(back_populates="numeric")

    def __repr__(self) -> str:
        return f"<ConceptNumeric(concept_id={self.concept_id}, units='{self.units}')>"


class ConceptAnswer(CreatorMixin, Base):
    """A possible coded answer to a question concept."""

    __tablename__ = "concept_answers"

    concept_answer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    answer_concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id"),
        nullable=False,
        index=True,
    )
    answer_drug_id: Mapped[int | None] = mapped_column(
        ForeignKey("drugs.drug_id"),
        nullable=True,
    )

    concept: Mapped[Concept] = relationship(back_populates="answers", foreign_keys=[concept_id])
    answer_concept: Mapped[Concept] = relationship(foreign_keys=[answer_concept_id])
    answer_drug = relationship("Drug", foreign_keys=[answer_drug_id])

    def __repr__(self) -> str:
        return f"<ConceptAnswer(concept_id={self.concept_id}, answer_concept_id={self.answer_concept_id})>"


class ConceptSet(CreatorMixin, Base):
    """Direct membership of a concept in a set concept."""

    __tablename__ = "concept_sets"

    concept_set_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        primary_key=True,
    )
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id"),
        primary_key=True,
        index=True,
    )
    sort_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    concept_set: Mapped[Concept] = relationship(back_populates="set_members", foreign_keys=[concept_set_id])
    concept: Mapped[Concept] = relationship(foreign_keys=[concept_id])

    def __repr__(self) -> str:
        return f"<ConceptSet(set={self.concept_set_id}, concept={self.concept_id}, weight={self.sort_weight})>"


class ConceptSetDerived(Base):
    """Flattened transitive set membership, rebuilt by a maintenance job."""

    __tablename__ = "concept_set_derived"

    concept_set_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        primary_key=True,
    )
    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    sort_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    def __repr__(self) -> str:
        return f"<ConceptSetDerived(set={self.concept_set_id}, concept={self.concept_id})>"


class ConceptWord(Base):
    """One search token of a concept name or synonym in one locale.

    ``synonym`` is the empty string for words taken from the concept
    name, otherwise the synonym text the word came from. ``name`` keeps
    the full text (name or synonym) for display and ranking.
    """

    __tablename__ = "concept_words"

    concept_id: Mapped[int] = mapped_column(
        ForeignKey("concepts.concept_id", ondelete="CASCADE"),
        primary_key=True,
    )
    word: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)
    synonym: Mapped[str] = mapped_column(String(255), primary_key=True, default="")
    locale: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    concept: Mapped[Concept] = relationship()

    def __repr__(self) -> str:
        return f"<ConceptWord(concept_id={self.concept_id}, word='{self.word}', locale='{self.locale}')>"

    @property
    def is_synonym(self) -> bool:
        return self.synonym != ""
