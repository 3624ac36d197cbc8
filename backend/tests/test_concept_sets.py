"""Tests for concept set membership and the derived set table."""

from sqlalchemy import select

from concept_dictionary.models import ConceptSetDerived


def derived_rows(db_session, set_concept) -> list[tuple[int, float]]:
    stmt = (
        select(ConceptSetDerived.concept_id, ConceptSetDerived.sort_weight)
        .where(ConceptSetDerived.concept_set_id == set_concept.concept_id)
        .order_by(ConceptSetDerived.sort_weight)
    )
    return [tuple(row) for row in db_session.execute(stmt)]


class TestSetMembers:
    """Tests for direct and expanded membership."""

    def test_direct_members_follow_sort_weight(self, service, make_concept) -> None:
        weight = make_concept("Weight (kg)", concept_class="Test")
        temperature = make_concept("Temperature (C)", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        vitals.add_set_member(temperature, sort_weight=2.0)
        vitals.add_set_member(weight, sort_weight=1.0)
        service.save_concept(vitals)

        members = service.get_concept_sets_by_concept(vitals)

        assert [m.concept_id for m in members] == [weight.concept_id, temperature.concept_id]
        assert all(m.concept_set_id == vitals.concept_id for m in members)

    def test_expanded_members_flatten_nested_sets(self, service, make_concept) -> None:
        weight = make_concept("Weight (kg)", concept_class="Test")
        temperature = make_concept("Temperature (C)", concept_class="Test")
        hemoglobin = make_concept("Hemoglobin", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        vitals.add_set_member(weight)
        vitals.add_set_member(temperature)
        service.save_concept(vitals)
        panel = make_concept("Admission panel", concept_class="ConvSet", is_set=True)
        panel.add_set_member(vitals)
        panel.add_set_member(hemoglobin)
        service.save_concept(panel)

        expanded = service.get_concepts_by_concept_set(panel)

        assert expanded == [weight, temperature, hemoglobin]

    def test_expansion_lists_each_concept_once(self, service, make_concept) -> None:
        weight = make_concept("Weight (kg)", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        vitals.add_set_member(weight)
        service.save_concept(vitals)
        panel = make_concept("Admission panel", concept_class="ConvSet", is_set=True)
        panel.add_set_member(weight)
        panel.add_set_member(vitals)
        service.save_concept(panel)

        assert service.get_concepts_by_concept_set(panel) == [weight]

    def test_expansion_stops_at_cycles(self, service, make_concept) -> None:
        leaf = make_concept("Pulse", concept_class="Test")
        first = make_concept("Set one", concept_class="ConvSet", is_set=True)
        second = make_concept("Set two", concept_class="ConvSet", is_set=True)
        second.add_set_member(first)
        second.add_set_member(leaf)
        service.save_concept(second)
        first.add_set_member(second)
        service.save_concept(first)

        assert service.get_concepts_by_concept_set(first) == [leaf]
        assert service.get_concepts_by_concept_set(second) == [leaf]

    def test_non_set_has_no_members(self, service, make_concept) -> None:
        concept = make_concept("Malaria")

        assert service.get_concept_sets_by_concept(concept) == []
        assert service.get_concepts_by_concept_set(concept) == []

    def test_sets_containing_concept(self, service, make_concept) -> None:
        weight = make_concept("Weight (kg)", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        growth = make_concept("Growth chart", concept_class="ConvSet", is_set=True)
        for set_concept in (vitals, growth):
            set_concept.add_set_member(weight)
            service.save_concept(set_concept)

        containing = service.get_sets_containing_concept(weight)

        assert [m.concept_set_id for m in containing] == [vitals.concept_id, growth.concept_id]


class TestConceptSetDerived:
    """Tests for update_concept_set_derived."""

    def _nested(self, service, make_concept):
        weight = make_concept("Weight (kg)", concept_class="Test")
        temperature = make_concept("Temperature (C)", concept_class="Test")
        hemoglobin = make_concept("Hemoglobin", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        vitals.add_set_member(weight)
        vitals.add_set_member(temperature)
        service.save_concept(vitals)
        panel = make_concept("Admission panel", concept_class="ConvSet", is_set=True)
        panel.add_set_member(vitals)
        panel.add_set_member(hemoglobin)
        service.save_concept(panel)
        return weight, temperature, hemoglobin, vitals, panel

    def test_rebuild_all_sets(self, service, db_session, make_concept) -> None:
        weight, temperature, hemoglobin, vitals, panel = self._nested(service, make_concept)

        written = service.update_concept_set_derived()

        assert written == 6
        assert derived_rows(db_session, vitals) == [(weight.concept_id, 0.0), (temperature.concept_id, 1.0)]
        assert derived_rows(db_session, panel) == [
            (vitals.concept_id, 0.0),
            (weight.concept_id, 1.0),
            (temperature.concept_id, 2.0),
            (hemoglobin.concept_id, 3.0),
        ]

    def test_rebuild_one_set(self, service, db_session, make_concept) -> None:
        weight, temperature, hemoglobin, vitals, panel = self._nested(service, make_concept)

        written = service.update_concept_set_derived(vitals)

        assert written == 2
        assert derived_rows(db_session, panel) == []
        assert len(derived_rows(db_session, vitals)) == 2

    def test_rebuild_replaces_old_rows(self, service, db_session, make_concept) -> None:
        weight, temperature, hemoglobin, vitals, panel = self._nested(service, make_concept)
        service.update_concept_set_derived()

        vitals.set_members = [m for m in vitals.set_members if m.concept_id != temperature.concept_id]
        service.save_concept(vitals)
        service.update_concept_set_derived()

        assert derived_rows(db_session, vitals) == [(weight.concept_id, 0.0)]
        assert [row[0] for row in derived_rows(db_session, panel)] == [
            vitals.concept_id,
            weight.concept_id,
            hemoglobin.concept_id,
        ]

    def test_purging_a_set_removes_its_derived_rows(self, service, db_session, make_concept) -> None:
        weight = make_concept("Weight (kg)", concept_class="Test")
        vitals = make_concept("Vital signs", concept_class="ConvSet", is_set=True)
        vitals.add_set_member(weight)
        service.save_concept(vitals)
        service.update_concept_set_derived()

        service.purge_concept(vitals)

        assert derived_rows(db_session, vitals) == []
        assert service.get_sets_containing_concept(weight) == []
