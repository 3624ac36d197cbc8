"""Concept dictionary service.

Creating, retiring, purging and querying concepts, drugs, concept
classes and datatypes, concept sets, and concept proposals, plus
maintenance of the concept word search index and the derived concept
set table.

Every public operation is guarded by ``@authorized`` and runs inside
``@transactional``; the first call on a service instance owns the
transaction and commits or rolls it back.

Usage:
    with Session(get_sync_engine()) as session:
        service = ConceptService(session, UserContext.system())
        words = service.get_concept_words("fever", ["en"])
"""

import logging
from collections.abc import Iterable, Iterator, Sequence

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session, aliased

from concept_dictionary.core.audit import AuditAction, log_dictionary_change
from concept_dictionary.core.config import settings
from concept_dictionary.core.database import utcnow
from concept_dictionary.core.exceptions import (
    APIException,
    ConceptInUseException,
    ConceptsLockedException,
)
from concept_dictionary.core.locale import normalize_locale
from concept_dictionary.core.privileges import Privilege, UserContext, authorized
from concept_dictionary.core.transaction import transactional
from concept_dictionary.models import (
    CONCEPTS_LOCKED_PROPERTY,
    Concept,
    ConceptAnswer,
    ConceptClass,
    ConceptDatatype,
    ConceptName,
    ConceptNumeric,
    ConceptProposal,
    ConceptSet,
    ConceptSetDerived,
    ConceptWord,
    Drug,
    GlobalProperty,
)
from concept_dictionary.schemas.base import ConceptSortField, DatatypeName, ProposalState
from concept_dictionary.services.concept_search import (
    ConceptSearchCriteria,
    build_search_statement,
    word_match_criteria,
)
from concept_dictionary.services.concept_words import get_unique_words, make_concept_words

logger = logging.getLogger(__name__)


def _is_new(instance: object) -> bool:
    """True if the instance has never been flushed to the database."""
    state = sa_inspect(instance)
    return state.transient or state.pending


def _parse_int(value: int | str) -> int | None:
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    return None


class ConceptService:
    """Operations on the concept dictionary.

    Args:
        session: SQLAlchemy session used for every query and change.
        user: The caller. Defaults to the system context holding every
            privilege, for jobs and scripts.
    """

    def __init__(self, session: Session, user: UserContext | None = None) -> None:
        self.session = session
        self.user = user or UserContext.system()
        self._tx_depth = 0

    def _audit(self, action: AuditAction, resource_type: str, resource_id: int | None, **details) -> None:
        log_dictionary_change(action, resource_type, resource_id, self.user.username, details or None)

    # ------------------------------------------------------------------
    # Dictionary lock
    # ------------------------------------------------------------------

    @transactional(read_only=True)
    def is_locked(self) -> bool:
        """Whether concept changes are currently blocked."""
        prop = self.session.get(GlobalProperty, CONCEPTS_LOCKED_PROPERTY)
        if prop is None or prop.property_value is None:
            return settings.concepts_locked_default
        return prop.property_value.strip().lower() == "true"

    def check_if_locked(self) -> None:
        """Raise ConceptsLockedException if the dictionary is locked."""
        if self.is_locked():
            raise ConceptsLockedException()

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def set_concepts_locked(self, locked: bool) -> None:
        prop = self.session.get(GlobalProperty, CONCEPTS_LOCKED_PROPERTY)
        if prop is None:
            prop = GlobalProperty(property=CONCEPTS_LOCKED_PROPERTY)
            self.session.add(prop)
        prop.property_value = "true" if locked else "false"
        logger.info(f"Concept dictionary {'locked' if locked else 'unlocked'} by {self.user.username}")
        self._audit(AuditAction.UPDATE, "global_property", None, property=CONCEPTS_LOCKED_PROPERTY, value=locked)

    # ------------------------------------------------------------------
    # Concepts
    # ------------------------------------------------------------------

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def save_concept(self, concept: Concept) -> Concept:
        """Save or update a concept and regenerate its search words.

        Raises:
            ConceptsLockedException: If the dictionary is locked.
            APIException: If the concept has no name, class or datatype,
                or carries numeric ranges without the Numeric datatype.
        """
        self.check_if_locked()

        if not concept.names:
            raise APIException("A concept must have at least one name")
        if concept.concept_class is None and concept.class_id is None:
            raise APIException("A concept must have a concept class")
        if concept.datatype is None and concept.datatype_id is None:
            raise APIException("A concept must have a datatype")

        datatype = concept.datatype or self.session.get(ConceptDatatype, concept.datatype_id)
        if concept.numeric is not None and (datatype is None or datatype.name != DatatypeName.NUMERIC.value):
            raise APIException("Only concepts with the Numeric datatype can have numeric ranges")

        for concept_name in concept.names:
            concept_name.locale = normalize_locale(concept_name.locale)
        for concept_synonym in concept.synonyms:
            concept_synonym.locale = normalize_locale(concept_synonym.locale)

        now = utcnow()
        is_new = _is_new(concept)
        if is_new:
            concept.creator = concept.creator or self.user.username
            concept.date_created = concept.date_created or now
        else:
            concept.changed_by = self.user.username
            concept.date_changed = now
        for child in [*concept.answers, *concept.set_members]:
            if child.creator is None:
                child.creator = self.user.username

        self.session.add(concept)
        self.session.flush()

        self.update_concept_word(concept)

        logger.info(f"Saved concept {concept.concept_id} ({concept.name})")
        self._audit(AuditAction.CREATE if is_new else AuditAction.UPDATE, "concept", concept.concept_id)
        return concept

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def retire_concept(self, concept: Concept, reason: str) -> Concept:
        """Mark a concept retired without deleting it.

        Raises:
            APIException: If no reason is given.
        """
        if not reason or not reason.strip():
            raise APIException("A reason is required when retiring a concept")
        self.check_if_locked()
        concept.retire(reason.strip(), self.user.username)
        self.save_concept(concept)
        self._audit(AuditAction.RETIRE, "concept", concept.concept_id, reason=reason)
        return concept

    @authorized(Privilege.PURGE_CONCEPTS)
    @transactional()
    def purge_concept(self, concept: Concept) -> None:
        """Delete a concept and everything that belongs only to it.

        Raises:
            ConceptsLockedException: If the dictionary is locked.
            ConceptInUseException: If drugs, other concepts, sets or
                proposals still reference the concept.
        """
        self.check_if_locked()
        concept_id = concept.concept_id

        references = {
            "drugs": select(func.count(Drug.drug_id)).where(
                or_(
                    Drug.concept_id == concept_id,
                    Drug.dosage_form_id == concept_id,
                    Drug.route_id == concept_id,
                )
            ),
            "answers": select(func.count(ConceptAnswer.concept_answer_id)).where(
                ConceptAnswer.answer_concept_id == concept_id,
                ConceptAnswer.concept_id != concept_id,
            ),
            "sets": select(func.count()).select_from(ConceptSet).where(
                ConceptSet.concept_id == concept_id,
                ConceptSet.concept_set_id != concept_id,
            ),
            "proposals": select(func.count(ConceptProposal.concept_proposal_id)).where(
                or_(
                    ConceptProposal.mapped_concept_id == concept_id,
                    ConceptProposal.obs_concept_id == concept_id,
                )
            ),
        }
        in_use = {name: self.session.scalar(stmt) or 0 for name, stmt in references.items()}
        in_use = {name: count for name, count in in_use.items() if count}
        if in_use:
            used_by = ", ".join(f"{count} {name}" for name, count in in_use.items())
            raise ConceptInUseException(f"Concept {concept_id} is still referenced by {used_by}")

        self.session.execute(delete(ConceptWord).where(ConceptWord.concept_id == concept_id))
        self.session.execute(
            delete(ConceptSetDerived).where(
                or_(
                    ConceptSetDerived.concept_id == concept_id,
                    ConceptSetDerived.concept_set_id == concept_id,
                )
            )
        )
        self.session.delete(concept)
        self.session.flush()

        logger.info(f"Purged concept {concept_id}")
        self._audit(AuditAction.DELETE, "concept", concept_id)

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept(self, concept_id_or_name: int | str) -> Concept | None:
        """Get a concept by id, or by name when the value is not numeric."""
        concept_id = _parse_int(concept_id_or_name)
        if concept_id is not None:
            return self.session.get(Concept, concept_id)
        return self.get_concept_by_name(str(concept_id_or_name))

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concepts_by_name(self, name: str) -> list[Concept]:
        """All concepts with a name equal to ``name`` in any locale."""
        stmt = (
            select(Concept)
            .join(ConceptName, ConceptName.concept_id == Concept.concept_id)
            .where(func.upper(ConceptName.name) == name.strip().upper())
            .order_by(Concept.concept_id)
        )
        return list(self.session.scalars(stmt).unique())

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_by_name(self, name: str) -> Concept | None:
        concepts = self.get_concepts_by_name(name)
        return concepts[0] if concepts else None

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_numeric(self, concept_id: int) -> ConceptNumeric | None:
        return self.session.get(ConceptNumeric, concept_id)

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_answer(self, concept_answer_id: int) -> ConceptAnswer | None:
        return self.session.get(ConceptAnswer, concept_answer_id)

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_all_concepts(
        self,
        sort_by: ConceptSortField | str = ConceptSortField.CONCEPT_ID,
        asc: bool = True,
        include_retired: bool = True,
    ) -> list[Concept]:
        """List concepts sorted by id, creation date or default-locale name.

        Raises:
            APIException: If ``sort_by`` is not a sortable field.
        """
        try:
            sort_field = ConceptSortField(sort_by)
        except ValueError as e:
            raise APIException(f"Cannot sort concepts by '{sort_by}'") from e

        stmt = select(Concept)
        if sort_field == ConceptSortField.NAME:
            default_name = aliased(ConceptName)
            stmt = stmt.outerjoin(
                default_name,
                (default_name.concept_id == Concept.concept_id)
                & (default_name.locale == normalize_locale(settings.default_locale)),
            )
            sort_column = func.upper(default_name.name)
        elif sort_field == ConceptSortField.DATE_CREATED:
            sort_column = Concept.date_created
        else:
            sort_column = Concept.concept_id

        if not include_retired:
            stmt = stmt.where(Concept.retired.is_(False))

        direction = sort_column.asc() if asc else sort_column.desc()
        stmt = stmt.order_by(direction, Concept.concept_id)
        return list(self.session.scalars(stmt).unique())

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concepts_by_class(self, concept_class: ConceptClass) -> list[Concept]:
        """Non-retired concepts of a class."""
        stmt = (
            select(Concept)
            .where(Concept.class_id == concept_class.concept_class_id)
            .where(Concept.retired.is_(False))
            .order_by(Concept.concept_id)
        )
        return list(self.session.scalars(stmt).unique())

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_prev_concept(self, concept: Concept) -> Concept | None:
        """Concept with the next lower concept id."""
        stmt = (
            select(Concept)
            .where(Concept.concept_id < concept.concept_id)
            .order_by(Concept.concept_id.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_next_concept(self, concept: Concept) -> Concept | None:
        """Concept with the next higher concept id."""
        stmt = (
            select(Concept)
            .where(Concept.concept_id > concept.concept_id)
            .order_by(Concept.concept_id.asc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_next_available_id(self) -> int:
        """Lowest positive concept id not currently in use."""
        if self.session.get(Concept, 1) is None:
            return 1
        following = aliased(Concept)
        stmt = select(func.min(Concept.concept_id + 1)).where(
            ~select(following.concept_id)
            .where(following.concept_id == Concept.concept_id + 1)
            .exists()
        )
        return int(self.session.scalar(stmt))

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concepts_with_drugs_in_formulary(self) -> list[Concept]:
        """Concepts that at least one drug is a form of."""
        drug_concepts = select(Drug.concept_id).distinct()
        stmt = select(Concept).where(Concept.concept_id.in_(drug_concepts)).order_by(Concept.concept_id)
        return list(self.session.scalars(stmt).unique())

    # ------------------------------------------------------------------
    # Concept answers
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_questions_for_answer(self, concept: Concept) -> list[Concept]:
        """Concepts listing ``concept`` as one of their coded answers."""
        question_ids = select(ConceptAnswer.concept_id).where(
            ConceptAnswer.answer_concept_id == concept.concept_id
        )
        stmt = select(Concept).where(Concept.concept_id.in_(question_ids)).order_by(Concept.concept_id)
        return list(self.session.scalars(stmt).unique())

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_answers(
        self,
        phrase: str,
        locale: str | None,
        concept: Concept,
        include_retired: bool = False,
    ) -> list[ConceptWord]:
        """Search the possible coded answers of ``concept``."""
        return self.get_concept_words(
            phrase,
            [locale] if locale else None,
            include_retired=include_retired,
            answers_to_concept=concept,
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_words(
        self,
        phrase: str,
        locales: str | Sequence[str] | None = None,
        include_retired: bool = False,
        require_classes: Iterable[ConceptClass] | None = None,
        exclude_classes: Iterable[ConceptClass] | None = None,
        require_datatypes: Iterable[ConceptDatatype] | None = None,
        exclude_datatypes: Iterable[ConceptDatatype] | None = None,
        answers_to_concept: Concept | None = None,
        start: int | None = None,
        size: int | None = None,
    ) -> list[ConceptWord]:
        """Search concepts through the concept word index.

        Args:
            phrase: Free text; every word must prefix-match a word of the
                same concept name or synonym.
            locales: Locale or ordered list of locales to search in.
                Earlier locales rank first. Defaults to the configured
                default locale.
            include_retired: Include retired concepts.
            require_classes: Only concepts of these classes.
            exclude_classes: No concepts of these classes.
            require_datatypes: Only concepts of these datatypes.
            exclude_datatypes: No concepts of these datatypes.
            answers_to_concept: Only concepts that are coded answers of
                this concept.
            start: Offset of the first result (default 0).
            size: Maximum results (default ``max_search_results``).

        Returns:
            One ConceptWord per matching concept, best match first.

        Raises:
            APIException: If ``start`` is negative or ``size`` below 1.
        """
        start = 0 if start is None else start
        size = settings.max_search_results if size is None else size
        if start < 0:
            raise APIException("Search start must not be negative")
        if size < 1:
            raise APIException("Search size must be at least 1")

        words = get_unique_words(phrase or "")
        if not words:
            return []

        if locales is None:
            locale_list = [settings.default_locale]
        elif isinstance(locales, str):
            locale_list = [locales]
        else:
            locale_list = list(locales) or [settings.default_locale]

        criteria = ConceptSearchCriteria(
            words=words,
            phrase=phrase,
            locales=[normalize_locale(locale) for locale in locale_list],
            include_retired=include_retired,
            require_class_ids=[c.concept_class_id for c in require_classes or []],
            exclude_class_ids=[c.concept_class_id for c in exclude_classes or []],
            require_datatype_ids=[d.concept_datatype_id for d in require_datatypes or []],
            exclude_datatype_ids=[d.concept_datatype_id for d in exclude_datatypes or []],
            answers_to_concept_id=answers_to_concept.concept_id if answers_to_concept else None,
        )
        results = list(self.session.scalars(build_search_statement(criteria, start, size)))
        logger.debug(f"Concept search '{phrase}' in {criteria.locales}: {len(results)} results")
        return results

    def find_concepts(
        self,
        phrase: str,
        locales: str | Sequence[str] | None = None,
        include_retired: bool = False,
        **filters,
    ) -> list[ConceptWord]:
        """Alias of get_concept_words taking one locale or a list."""
        return self.get_concept_words(phrase, locales, include_retired, **filters)

    # ------------------------------------------------------------------
    # Concept word index
    # ------------------------------------------------------------------

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def update_concept_word(self, concept: Concept) -> int:
        """Replace the index rows of one concept. Returns the row count."""
        self.session.flush()
        self.session.execute(delete(ConceptWord).where(ConceptWord.concept_id == concept.concept_id))
        words = make_concept_words(concept)
        self.session.add_all(words)
        return len(words)

    def _concept_batches(
        self,
        start: int | None,
        end: int | None,
        batch_size: int,
    ) -> Iterator[list[Concept]]:
        """Yield concepts in the id range, ``batch_size`` at a time, keyed on concept_id."""
        last_id: int | None = None
        while True:
            stmt = select(Concept).order_by(Concept.concept_id).limit(batch_size)
            if start is not None:
                stmt = stmt.where(Concept.concept_id >= start)
            if end is not None:
                stmt = stmt.where(Concept.concept_id <= end)
            if last_id is not None:
                stmt = stmt.where(Concept.concept_id > last_id)
            batch = list(self.session.scalars(stmt).unique())
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            last_id = batch[-1].concept_id

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def update_concept_words(self, start: int | None = None, end: int | None = None) -> int:
        """Rebuild the index for concepts with ``start <= concept_id <= end``.

        Either bound may be None. Concepts are loaded and flushed in
        batches of ``concept_word_batch_size``.

        Returns:
            Number of concepts reindexed.
        """
        batch_size = max(settings.concept_word_batch_size, 1)
        processed = 0
        for batch in self._concept_batches(start, end, batch_size):
            for concept in batch:
                self.update_concept_word(concept)
            self.session.flush()
            processed += len(batch)
            logger.info(f"Reindexed {processed} concepts")

        logger.info(f"Concept word index rebuilt for {processed} concepts (range {start}..{end})")
        return processed

    # ------------------------------------------------------------------
    # Concept sets
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concept_sets_by_concept(self, concept: Concept) -> list[ConceptSet]:
        """Direct members of a set concept, by sort weight."""
        return self._set_members(concept)

    def _set_members(self, concept: Concept) -> list[ConceptSet]:
        stmt = (
            select(ConceptSet)
            .where(ConceptSet.concept_set_id == concept.concept_id)
            .order_by(ConceptSet.sort_weight, ConceptSet.concept_id)
        )
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_concepts_by_concept_set(self, concept: Concept) -> list[Concept]:
        """Leaf concepts of a set, expanding nested sets depth first."""
        expanded: list[Concept] = []
        self._expand_set(concept, {concept.concept_id}, expanded, include_sets=False)
        return expanded

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_sets_containing_concept(self, concept: Concept) -> list[ConceptSet]:
        """Memberships of ``concept`` in set concepts."""
        stmt = (
            select(ConceptSet)
            .where(ConceptSet.concept_id == concept.concept_id)
            .order_by(ConceptSet.concept_set_id)
        )
        return list(self.session.scalars(stmt))

    def _expand_set(
        self,
        concept: Concept,
        seen: set[int],
        expanded: list[Concept],
        include_sets: bool,
    ) -> None:
        for membership in self._set_members(concept):
            member = membership.concept
            if member.concept_id in seen:
                continue
            seen.add(member.concept_id)
            if member.is_set:
                if include_sets:
                    expanded.append(member)
                self._expand_set(member, seen, expanded, include_sets)
            else:
                expanded.append(member)

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def update_concept_set_derived(self, concept: Concept | None = None) -> int:
        """Recompute the flattened membership table.

        Args:
            concept: The set to recompute. None recomputes every set.

        Returns:
            Number of derived rows written.
        """
        if concept is None:
            self.session.execute(delete(ConceptSetDerived))
            set_concepts = self.session.scalars(
                select(Concept).where(Concept.is_set.is_(True)).order_by(Concept.concept_id)
            ).unique().all()
        else:
            self.session.execute(
                delete(ConceptSetDerived).where(ConceptSetDerived.concept_set_id == concept.concept_id)
            )
            set_concepts = [concept]

        written = 0
        for set_concept in set_concepts:
            descendants: list[Concept] = []
            self._expand_set(set_concept, {set_concept.concept_id}, descendants, include_sets=True)
            for position, member in enumerate(descendants):
                self.session.add(
                    ConceptSetDerived(
                        concept_set_id=set_concept.concept_id,
                        concept_id=member.concept_id,
                        sort_weight=float(position),
                    )
                )
            written += len(descendants)

        logger.info(f"Derived concept sets rebuilt for {len(set_concepts)} sets ({written} rows)")
        return written

    # ------------------------------------------------------------------
    # Drugs
    # ------------------------------------------------------------------

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def save_drug(self, drug: Drug) -> Drug:
        """Save or update a drug.

        Raises:
            APIException: If the drug has no name or concept.
        """
        if not drug.name or not drug.name.strip():
            raise APIException("A drug must have a name")
        if drug.concept is None and drug.concept_id is None:
            raise APIException("A drug must be linked to a concept")

        is_new = _is_new(drug)
        if is_new:
            drug.creator = drug.creator or self.user.username
            drug.date_created = drug.date_created or utcnow()
        self.session.add(drug)
        self.session.flush()

        self._audit(AuditAction.CREATE if is_new else AuditAction.UPDATE, "drug", drug.drug_id)
        return drug

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def retire_drug(self, drug: Drug, reason: str) -> Drug:
        if not reason or not reason.strip():
            raise APIException("A reason is required when retiring a drug")
        drug.retire(reason.strip(), self.user.username)
        self.save_drug(drug)
        self._audit(AuditAction.RETIRE, "drug", drug.drug_id, reason=reason)
        return drug

    @authorized(Privilege.PURGE_CONCEPTS)
    @transactional()
    def purge_drug(self, drug: Drug) -> None:
        """Delete a drug.

        Raises:
            ConceptInUseException: If a concept answer still points at it.
        """
        answers = self.session.scalar(
            select(func.count(ConceptAnswer.concept_answer_id)).where(ConceptAnswer.answer_drug_id == drug.drug_id)
        )
        if answers:
            raise ConceptInUseException(f"Drug {drug.drug_id} is still used by {answers} concept answers")
        drug_id = drug.drug_id
        self.session.delete(drug)
        self.session.flush()
        self._audit(AuditAction.DELETE, "drug", drug_id)

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_drug(self, drug_id_or_name: int | str) -> Drug | None:
        """Get a drug by id, falling back to an exact name match."""
        drug_id = _parse_int(drug_id_or_name)
        if drug_id is not None:
            drug = self.session.get(Drug, drug_id)
            if drug is not None:
                return drug
        stmt = (
            select(Drug)
            .where(func.upper(Drug.name) == str(drug_id_or_name).strip().upper())
            .order_by(Drug.drug_id)
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_all_drugs(self, include_retired: bool = True) -> list[Drug]:
        stmt = select(Drug).order_by(Drug.name, Drug.drug_id)
        if not include_retired:
            stmt = stmt.where(Drug.retired.is_(False))
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def get_drugs_by_concept(self, concept: Concept) -> list[Drug]:
        stmt = (
            select(Drug)
            .where(Drug.concept_id == concept.concept_id)
            .where(Drug.retired.is_(False))
            .order_by(Drug.name, Drug.drug_id)
        )
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPTS)
    @transactional(read_only=True)
    def find_drugs(self, phrase: str, include_retired: bool = False) -> list[Drug]:
        """Drugs whose name holds every phrase word, or whose concept matches.

        The concept side uses the concept word index in any locale.
        """
        words = get_unique_words(phrase or "")
        if not words:
            return []

        name_match = [func.upper(Drug.name).contains(word, autoescape=True) for word in words]
        concept_ids = select(ConceptWord.concept_id).where(*word_match_criteria(ConceptWord, words))

        stmt = select(Drug).where(or_(and_(*name_match), Drug.concept_id.in_(concept_ids)))
        if not include_retired:
            stmt = stmt.where(Drug.retired.is_(False))
        stmt = stmt.order_by(Drug.name, Drug.drug_id)
        return list(self.session.scalars(stmt))

    # ------------------------------------------------------------------
    # Concept classes
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPT_CLASSES)
    @transactional(read_only=True)
    def get_concept_class(self, concept_class_id: int) -> ConceptClass | None:
        return self.session.get(ConceptClass, concept_class_id)

    @authorized(Privilege.VIEW_CONCEPT_CLASSES)
    @transactional(read_only=True)
    def get_concept_class_by_name(self, name: str) -> ConceptClass | None:
        stmt = select(ConceptClass).where(func.upper(ConceptClass.name) == name.strip().upper())
        return self.session.scalars(stmt).first()

    @authorized(Privilege.VIEW_CONCEPT_CLASSES)
    @transactional(read_only=True)
    def get_all_concept_classes(self, include_retired: bool = True) -> list[ConceptClass]:
        stmt = select(ConceptClass).order_by(ConceptClass.name)
        if not include_retired:
            stmt = stmt.where(ConceptClass.retired.is_(False))
        return list(self.session.scalars(stmt))

    @authorized(Privilege.MANAGE_CONCEPT_CLASSES)
    @transactional()
    def save_concept_class(self, concept_class: ConceptClass) -> ConceptClass:
        if not concept_class.name or not concept_class.name.strip():
            raise APIException("A concept class must have a name")
        is_new = _is_new(concept_class)
        if is_new:
            concept_class.creator = concept_class.creator or self.user.username
        self.session.add(concept_class)
        self.session.flush()
        self._audit(
            AuditAction.CREATE if is_new else AuditAction.UPDATE,
            "concept_class",
            concept_class.concept_class_id,
        )
        return concept_class

    @authorized(Privilege.MANAGE_CONCEPT_CLASSES)
    @transactional()
    def retire_concept_class(self, concept_class: ConceptClass, reason: str) -> ConceptClass:
        if not reason or not reason.strip():
            raise APIException("A reason is required when retiring a concept class")
        concept_class.retire(reason.strip(), self.user.username)
        self.session.flush()
        self._audit(AuditAction.RETIRE, "concept_class", concept_class.concept_class_id, reason=reason)
        return concept_class

    @authorized(Privilege.PURGE_CONCEPT_CLASSES)
    @transactional()
    def purge_concept_class(self, concept_class: ConceptClass) -> None:
        """Delete a concept class no concept uses.

        Raises:
            ConceptInUseException: If concepts still belong to the class.
        """
        count = self.session.scalar(
            select(func.count(Concept.concept_id)).where(Concept.class_id == concept_class.concept_class_id)
        )
        if count:
            raise ConceptInUseException(
                f"Concept class {concept_class.name} is still used by {count} concepts"
            )
        class_id = concept_class.concept_class_id
        self.session.delete(concept_class)
        self.session.flush()
        self._audit(AuditAction.DELETE, "concept_class", class_id)

    # ------------------------------------------------------------------
    # Concept datatypes
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPT_DATATYPES)
    @transactional(read_only=True)
    def get_concept_datatype(self, concept_datatype_id: int) -> ConceptDatatype | None:
        return self.session.get(ConceptDatatype, concept_datatype_id)

    @authorized(Privilege.VIEW_CONCEPT_DATATYPES)
    @transactional(read_only=True)
    def get_concept_datatype_by_name(self, name: str) -> ConceptDatatype | None:
        stmt = select(ConceptDatatype).where(func.upper(ConceptDatatype.name) == name.strip().upper())
        return self.session.scalars(stmt).first()

    @authorized(Privilege.VIEW_CONCEPT_DATATYPES)
    @transactional(read_only=True)
    def get_concept_datatypes(self, name: str) -> list[ConceptDatatype]:
        """Datatypes whose name starts with ``name``."""
        stmt = (
            select(ConceptDatatype)
            .where(func.upper(ConceptDatatype.name).startswith(name.strip().upper(), autoescape=True))
            .order_by(ConceptDatatype.name)
        )
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPT_DATATYPES)
    @transactional(read_only=True)
    def get_all_concept_datatypes(self, include_retired: bool = True) -> list[ConceptDatatype]:
        stmt = select(ConceptDatatype).order_by(ConceptDatatype.name)
        if not include_retired:
            stmt = stmt.where(ConceptDatatype.retired.is_(False))
        return list(self.session.scalars(stmt))

    @authorized(Privilege.MANAGE_CONCEPT_DATATYPES)
    @transactional()
    def save_concept_datatype(self, datatype: ConceptDatatype) -> ConceptDatatype:
        if not datatype.name or not datatype.name.strip():
            raise APIException("A concept datatype must have a name")
        is_new = _is_new(datatype)
        if is_new:
            datatype.creator = datatype.creator or self.user.username
        self.session.add(datatype)
        self.session.flush()
        self._audit(
            AuditAction.CREATE if is_new else AuditAction.UPDATE,
            "concept_datatype",
            datatype.concept_datatype_id,
        )
        return datatype

    @authorized(Privilege.PURGE_CONCEPT_DATATYPES)
    @transactional()
    def purge_concept_datatype(self, datatype: ConceptDatatype) -> None:
        """Delete a datatype no concept uses.

        Raises:
            ConceptInUseException: If concepts still use the datatype.
        """
        count = self.session.scalar(
            select(func.count(Concept.concept_id)).where(Concept.datatype_id == datatype.concept_datatype_id)
        )
        if count:
            raise ConceptInUseException(f"Concept datatype {datatype.name} is still used by {count} concepts")
        datatype_id = datatype.concept_datatype_id
        self.session.delete(datatype)
        self.session.flush()
        self._audit(AuditAction.DELETE, "concept_datatype", datatype_id)

    # ------------------------------------------------------------------
    # Concept proposals
    # ------------------------------------------------------------------

    @authorized(Privilege.VIEW_CONCEPT_PROPOSALS)
    @transactional(read_only=True)
    def get_all_concept_proposals(self, include_completed: bool = False) -> list[ConceptProposal]:
        """Proposals still awaiting a decision, or all of them."""
        stmt = select(ConceptProposal).order_by(
            ConceptProposal.original_text,
            ConceptProposal.concept_proposal_id,
        )
        if not include_completed:
            stmt = stmt.where(ConceptProposal.state == ProposalState.UNMAPPED)
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPT_PROPOSALS)
    @transactional(read_only=True)
    def get_concept_proposal(self, concept_proposal_id: int) -> ConceptProposal | None:
        return self.session.get(ConceptProposal, concept_proposal_id)

    @authorized(Privilege.VIEW_CONCEPT_PROPOSALS)
    @transactional(read_only=True)
    def get_concept_proposals(self, text: str) -> list[ConceptProposal]:
        """Unmapped proposals with the given original text."""
        stmt = (
            select(ConceptProposal)
            .where(func.upper(ConceptProposal.original_text) == text.strip().upper())
            .where(ConceptProposal.state == ProposalState.UNMAPPED)
            .order_by(ConceptProposal.concept_proposal_id)
        )
        return list(self.session.scalars(stmt))

    @authorized(Privilege.VIEW_CONCEPT_PROPOSALS)
    @transactional(read_only=True)
    def get_proposed_concepts(self, text: str) -> list[Concept]:
        """Concepts that proposals with the given text were mapped to."""
        mapped_ids = select(ConceptProposal.mapped_concept_id).where(
            func.upper(ConceptProposal.original_text) == text.strip().upper(),
            ConceptProposal.state.not_in([ProposalState.UNMAPPED, ProposalState.REJECT]),
            ConceptProposal.mapped_concept_id.is_not(None),
        )
        stmt = select(Concept).where(Concept.concept_id.in_(mapped_ids)).order_by(Concept.concept_id)
        return list(self.session.scalars(stmt).unique())

    @authorized(Privilege.ADD_CONCEPT_PROPOSALS, Privilege.EDIT_CONCEPT_PROPOSALS)
    @transactional()
    def save_concept_proposal(self, proposal: ConceptProposal) -> ConceptProposal:
        """Create or update a proposal.

        Raises:
            APIException: If the original text is blank.
        """
        return self._save_proposal(proposal)

    def _save_proposal(self, proposal: ConceptProposal) -> ConceptProposal:
        if not proposal.original_text or not proposal.original_text.strip():
            raise APIException("A concept proposal must have original text")

        is_new = _is_new(proposal)
        if is_new:
            proposal.creator = proposal.creator or self.user.username
            proposal.date_created = proposal.date_created or utcnow()
            if proposal.state is None:
                proposal.state = ProposalState.UNMAPPED
        else:
            proposal.changed_by = self.user.username
            proposal.date_changed = utcnow()
        if proposal.locale:
            proposal.locale = normalize_locale(proposal.locale)

        self.session.add(proposal)
        self.session.flush()
        self._audit(
            AuditAction.CREATE if is_new else AuditAction.UPDATE,
            "concept_proposal",
            proposal.concept_proposal_id,
        )
        return proposal

    @authorized(Privilege.PURGE_CONCEPT_PROPOSALS)
    @transactional()
    def purge_concept_proposal(self, proposal: ConceptProposal) -> None:
        proposal_id = proposal.concept_proposal_id
        self.session.delete(proposal)
        self.session.flush()
        self._audit(AuditAction.DELETE, "concept_proposal", proposal_id)

    @authorized(Privilege.MANAGE_CONCEPTS)
    @transactional()
    def map_concept_proposal_to_concept(
        self,
        proposal: ConceptProposal,
        mapped_concept: Concept | None,
    ) -> Concept | None:
        """Resolve a proposal according to its state.

        REJECT rejects the proposal and returns None. SYNONYM adds the
        proposal's final text to the concept as a synonym. CONCEPT (and
        UNMAPPED) simply points the proposal at the concept.

        Raises:
            APIException: If no concept is given, or a SYNONYM mapping has
                no final text.
        """
        if proposal.state == ProposalState.REJECT:
            self._reject_proposal(proposal)
            return None

        if mapped_concept is None:
            raise APIException("A concept proposal must be mapped to an existing concept")

        if proposal.state == ProposalState.SYNONYM:
            final_text = (proposal.final_text or "").strip()
            if not final_text:
                raise APIException("A synonym mapping requires the proposal's final text")
            proposal.final_text = final_text
            mapped_concept.add_synonym(final_text, proposal.locale or settings.default_locale)
            self.save_concept(mapped_concept)
        else:
            proposal.state = ProposalState.CONCEPT
            proposal.final_text = ""

        proposal.mapped_concept = mapped_concept
        self._save_proposal(proposal)

        logger.info(
            f"Mapped proposal {proposal.concept_proposal_id} '{proposal.original_text}' "
            f"to concept {mapped_concept.concept_id} as {proposal.state.value}"
        )
        self._audit(
            AuditAction.MAP,
            "concept_proposal",
            proposal.concept_proposal_id,
            concept_id=mapped_concept.concept_id,
            state=proposal.state.value,
        )
        return mapped_concept

    @authorized(Privilege.EDIT_CONCEPT_PROPOSALS)
    @transactional()
    def reject_concept_proposal(self, proposal: ConceptProposal) -> ConceptProposal:
        return self._reject_proposal(proposal)

    def _reject_proposal(self, proposal: ConceptProposal) -> ConceptProposal:
        proposal.state = ProposalState.REJECT
        proposal.mapped_concept = None
        proposal.final_text = ""
        self._save_proposal(proposal)
        self._audit(AuditAction.REJECT, "concept_proposal", proposal.concept_proposal_id)
        return proposal
