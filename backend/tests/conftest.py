"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator, Callable, Generator
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from concept_dictionary.core.database import Base, get_session
from concept_dictionary.core.privileges import UserContext
from concept_dictionary.models import Concept, ConceptClass, ConceptDatatype
from concept_dictionary.services.concept_service import ConceptService

CLASS_NAMES = ["Diagnosis", "Test", "Drug", "Symptom", "Question", "Misc", "ConvSet"]
DATATYPE_NAMES = [("Numeric", "NM"), ("Coded", "CWE"), ("Text", "ST"), ("N/A", "ZZ")]


@dataclass
class Dictionary:
    """Concept classes and datatypes created for a test, keyed by name."""

    classes: dict[str, ConceptClass]
    datatypes: dict[str, ConceptDatatype]


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with every dictionary table.

    StaticPool keeps one connection so the API tests, which run sync
    endpoints in a worker thread, see the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Session bound to the test engine."""
    session = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db_session: Session) -> ConceptService:
    """ConceptService running as the system user."""
    return ConceptService(db_session, UserContext.system())


@pytest.fixture
def dictionary(service: ConceptService) -> Dictionary:
    """Create the standard concept classes and datatypes."""
    classes = {name: service.save_concept_class(ConceptClass(name=name)) for name in CLASS_NAMES}
    datatypes = {
        name: service.save_concept_datatype(ConceptDatatype(name=name, hl7_abbreviation=hl7))
        for name, hl7 in DATATYPE_NAMES
    }
    return Dictionary(classes=classes, datatypes=datatypes)


@pytest.fixture
def make_concept(service: ConceptService, dictionary: Dictionary) -> Callable[..., Concept]:
    """Factory saving a concept with names and synonyms.

    ``synonyms`` holds plain strings (in ``locale``) or (text, locale) pairs.
    ``names`` adds further names keyed by locale.
    """

    def _make(
        name: str,
        locale: str = "en",
        concept_class: str = "Diagnosis",
        datatype: str = "N/A",
        synonyms: tuple = (),
        names: dict[str, str] | None = None,
        is_set: bool = False,
    ) -> Concept:
        concept = Concept(
            concept_class=dictionary.classes[concept_class],
            datatype=dictionary.datatypes[datatype],
            is_set=is_set,
        )
        concept.add_name(name, locale)
        for extra_locale, extra_name in (names or {}).items():
            concept.add_name(extra_name, extra_locale)
        for synonym in synonyms:
            if isinstance(synonym, tuple):
                concept.add_synonym(*synonym)
            else:
                concept.add_synonym(synonym, locale)
        return service.save_concept(concept)

    return _make


@pytest.fixture
async def client(db_session: Session) -> AsyncGenerator[AsyncClient, None]:
    """Async test client backed by the SQLite test session.

    Authentication stays disabled, so every request runs as the system user.
    """
    from concept_dictionary.main import app

    def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
