"""Tests for @transactional unit-of-work handling."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from concept_dictionary.core.exceptions import APIException
from concept_dictionary.core.transaction import transactional
from concept_dictionary.models import ConceptClass


class FakeService:
    """Minimal object exposing what @transactional needs."""

    def __init__(self) -> None:
        self.session = MagicMock()
        self._tx_depth = 0

    @transactional()
    def write(self) -> str:
        return "written"

    @transactional()
    def write_twice(self) -> None:
        self.write()
        self.write()

    @transactional(read_only=True)
    def read(self) -> str:
        return "read"

    @transactional()
    def fail(self) -> None:
        raise ValueError("boom")

    @transactional()
    def outer_fails_in_inner(self) -> None:
        self.fail()

    @transactional()
    def violate(self) -> None:
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


class TestTransactional:
    """Tests for the transactional decorator."""

    def test_outermost_write_commits(self) -> None:
        """A top-level write commits once."""
        service = FakeService()
        assert service.write() == "written"
        service.session.commit.assert_called_once()

    def test_nested_writes_flush_and_outer_commits(self) -> None:
        """Nested calls join the outer transaction."""
        service = FakeService()
        service.write_twice()
        service.session.commit.assert_called_once()
        assert service.session.flush.call_count == 2
        assert service._tx_depth == 0

    def test_read_only_never_commits(self) -> None:
        service = FakeService()
        assert service.read() == "read"
        service.session.commit.assert_not_called()

    def test_error_rolls_back_and_propagates(self) -> None:
        """Exceptions roll back at the outermost call and propagate."""
        service = FakeService()
        with pytest.raises(ValueError):
            service.outer_fails_in_inner()
        service.session.rollback.assert_called_once()
        service.session.commit.assert_not_called()
        assert service._tx_depth == 0

    def test_integrity_error_becomes_api_exception(self) -> None:
        """Constraint violations surface as APIException."""
        service = FakeService()
        with pytest.raises(APIException, match="violate"):
            service.violate()
        service.session.rollback.assert_called_once()

    def test_decorator_records_read_only(self) -> None:
        assert FakeService.read.read_only is True
        assert FakeService.write.read_only is False


class TestServiceTransactions:
    """Transactions on the real ConceptService."""

    def test_failed_save_leaves_session_usable(self, service, dictionary) -> None:
        """A rejected save rolls back and later work still commits."""
        with pytest.raises(APIException):
            service.save_concept_class(ConceptClass(name="Diagnosis"))

        saved = service.save_concept_class(ConceptClass(name="Procedure"))
        assert service.get_concept_class_by_name("procedure") is saved
