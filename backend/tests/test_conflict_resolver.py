"""
Unit Tests for the Conflict Resolver

Tests credibility and recency resolution and unresolved conflict records.
"""

from datetime import date, datetime

import pytest

from services.conflict_resolver import ConflictResolver, subtract_months
from conftest import make_finding, make_specialist


AS_OF = date(2024, 6, 30)


@pytest.fixture
def resolver(engine_settings) -> ConflictResolver:
    return ConflictResolver(engine_settings)


@pytest.fixture
def chf(vocabulary):
    return vocabulary.get_term("Congestive Heart Failure")


@pytest.fixture
def chest_pain(vocabulary):
    return vocabulary.get_term("Chest Pain")


class TestSubtractMonths:
    """Tests for calendar month arithmetic."""

    def test_simple(self):
        assert subtract_months(date(2024, 3, 15), 6) == date(2023, 9, 15)

    def test_clamps_day(self):
        assert subtract_months(date(2024, 8, 31), 6) == date(2024, 2, 29)

    def test_crosses_year(self):
        assert subtract_months(date(2024, 1, 31), 2) == date(2023, 11, 30)


class TestResolve:
    """Tests for per-term resolution."""

    def test_only_present_keeps_most_credible(self, resolver, chf):
        pcp = make_finding(chf, present=True, specialist=make_specialist("Primary Care Physician", 3))
        cardio = make_finding(chf, present=True, specialist=make_specialist("Cardiologist", 1))

        result = resolver.resolve([pcp, cardio], as_of=AS_OF)

        assert result.resolved == [cardio]
        assert result.conflicts == []

    def test_only_absent_keeps_first_on_tie(self, resolver, chf):
        first = make_finding(chf, negated=True, section_index=0)
        second = make_finding(chf, negated=True, section_index=1)

        result = resolver.resolve([first, second], as_of=AS_OF)

        assert result.resolved == [first]

    def test_lower_priority_number_wins(self, resolver, chf):
        present = make_finding(chf, present=True, specialist=make_specialist("Primary Care Physician", 3))
        denied = make_finding(chf, negated=True, specialist=make_specialist("Cardiologist", 1))

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [denied]
        assert result.conflicts == []

    def test_known_specialist_beats_unknown(self, resolver, chf):
        present = make_finding(chf, present=True, specialist=make_specialist("Other Specialist", 4))
        denied = make_finding(chf, negated=True)

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [present]

    def test_recent_beats_stale_on_tie(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2024, 5, 1))
        denied = make_finding(chf, negated=True, specialist=cardio, visit_date=date(2023, 1, 1))

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [present]
        assert result.conflicts == []

    def test_more_recent_wins_when_both_recent(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2024, 3, 1))
        denied = make_finding(chf, negated=True, specialist=cardio, visit_date=date(2024, 6, 1))

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [denied]

    def test_more_recent_wins_when_both_stale(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2022, 3, 1))
        denied = make_finding(chf, negated=True, specialist=cardio, visit_date=date(2021, 6, 1))

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [present]

    def test_recency_window_uses_as_of(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2024, 1, 15))
        denied = make_finding(chf, negated=True, specialist=cardio, visit_date=date(2023, 12, 1))

        # Both recent: the later date wins
        assert resolver.resolve([present, denied], as_of=date(2024, 2, 1)).resolved == [present]
        # Only the present finding is recent
        assert resolver.resolve([present, denied], as_of=date(2024, 7, 1)).resolved == [present]

    def test_missing_date_is_unresolved(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2024, 2, 1))
        denied = make_finding(chf, negated=True, specialist=cardio)

        result = resolver.resolve([present, denied], as_of=AS_OF)

        assert result.resolved == [present]
        [conflict] = result.conflicts
        assert conflict.finding == "Congestive Heart Failure"
        assert [(s.specialty, s.assessment, s.date) for s in conflict.sources] == [
            ("Cardiologist", "Present", "02/01/2024"),
            ("Cardiologist", "Absent/Denied", None),
        ]

    def test_same_date_is_unresolved(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        visit = date(2024, 5, 5)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=visit)
        uncertain = make_finding(chf, uncertain=True, specialist=cardio, visit_date=visit)

        result = resolver.resolve([present, uncertain], as_of=AS_OF)

        assert len(result.conflicts) == 1
        assert result.resolved == [present]

    def test_no_specialists_is_unresolved(self, resolver, chf):
        present = make_finding(chf, present=True)
        denied = make_finding(chf, negated=True)

        result = resolver.resolve([present, denied], as_of=AS_OF)

        [conflict] = result.conflicts
        assert {s.specialty for s in conflict.sources} == {"Unknown"}

    def test_groups_in_first_seen_order(self, resolver, chf, chest_pain):
        findings = [
            make_finding(chest_pain, present=True),
            make_finding(chf, negated=True),
            make_finding(chest_pain, negated=True, specialist=make_specialist("Cardiologist", 1)),
        ]

        result = resolver.resolve(findings, as_of=AS_OF)

        assert [f.term.term for f in result.resolved] == ["Chest Pain", "Congestive Heart Failure"]
        assert result.resolved[0].is_negated

    def test_accepts_datetime_as_of(self, resolver, chf):
        cardio = make_specialist("Cardiologist", 1)
        present = make_finding(chf, present=True, specialist=cardio, visit_date=date(2024, 5, 1))
        denied = make_finding(chf, negated=True, specialist=cardio, visit_date=date(2023, 1, 1))

        result = resolver.resolve([present, denied], as_of=datetime(2024, 6, 30, 12, 0))

        assert result.resolved == [present]

    def test_empty(self, resolver):
        result = resolver.resolve([], as_of=AS_OF)

        assert result.resolved == []
        assert result.conflicts == []
