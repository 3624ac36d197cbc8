"""Tests for database configuration, base model and mixins."""

from sqlalchemy.orm import Session

from concept_dictionary.core.config import Settings, settings
from concept_dictionary.core.database import Base, get_session
from concept_dictionary.models import Concept, ConceptClass, Drug


class TestSettings:
    """Test application settings."""

    def test_database_url_configured(self) -> None:
        """Test that database URL is configured."""
        assert settings.database_url is not None
        assert "postgresql" in settings.database_url

    def test_sync_database_url(self) -> None:
        """Test sync database URL swaps asyncpg for psycopg."""
        sync_url = Settings(database_url="postgresql+asyncpg://u:p@db:5432/dictionary").sync_database_url
        assert sync_url == "postgresql+psycopg://u:p@db:5432/dictionary"

    def test_redis_url_configured(self) -> None:
        """Test that Redis URL is configured."""
        assert "redis://" in settings.redis_url

    def test_dictionary_defaults(self) -> None:
        """Test the dictionary settings defaults."""
        defaults = Settings()
        assert defaults.default_locale == "en"
        assert defaults.concepts_locked_default is False
        assert defaults.max_search_results > 0
        assert defaults.concept_word_batch_size > 0

    def test_api_keys_from_environment(self, monkeypatch) -> None:
        """Test API keys are read as a JSON object."""
        monkeypatch.setenv(
            "API_KEYS",
            '{"k1": {"username": "admin", "privileges": ["View Concepts", "Manage Concepts"]}}',
        )
        configured = Settings()
        assert configured.api_keys["k1"].username == "admin"
        assert len(configured.api_keys["k1"].privileges) == 2


class TestModels:
    """Test the dictionary tables and mixin columns."""

    def test_all_tables_registered(self) -> None:
        """Test every dictionary table is part of the metadata."""
        assert {
            "concept_classes",
            "concept_datatypes",
            "concepts",
            "concept_names",
            "concept_synonyms",
            "concept_numerics",
            "concept_answers",
            "concept_sets",
            "concept_set_derived",
            "concept_words",
            "drugs",
            "concept_proposals",
            "global_properties",
        } <= set(Base.metadata.tables)

    def test_concept_has_audit_and_retire_columns(self) -> None:
        columns = Concept.__table__.c
        for name in ("creator", "date_created", "changed_by", "date_changed", "retired", "retire_reason"):
            assert name in columns

    def test_drug_and_class_are_retirable(self) -> None:
        assert "retired_by" in Drug.__table__.c
        assert "date_retired" in ConceptClass.__table__.c

    def test_retire_sets_fields(self) -> None:
        """Test RetireMixin.retire."""
        concept_class = ConceptClass(name="Misc")
        concept_class.retire("Unused", "admin")
        assert concept_class.retired is True
        assert concept_class.retire_reason == "Unused"
        assert concept_class.retired_by == "admin"
        assert concept_class.date_retired is not None


class TestGetSession:
    """Test the session dependency."""

    def test_get_session_yields_and_closes(self, engine, monkeypatch) -> None:
        """Test get_session yields a Session from the session factory."""
        from sqlalchemy.orm import sessionmaker

        monkeypatch.setattr(
            "concept_dictionary.core.database.get_sync_session_maker",
            lambda: sessionmaker(bind=engine),
        )
        generator = get_session()
        session = next(generator)
        assert isinstance(session, Session)
        generator.close()
