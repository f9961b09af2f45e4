"""Tests for mutation parsing and change relevance analysis."""

import pytest

from docrelate.relations import (
    Modifier,
    Replacement,
    is_relevant,
    modified_fields,
    parse_mutation,
    top_level_fields,
)
from conftest import make_author_relation


# =============================================================================
# parse_mutation tests
# =============================================================================


class TestParseMutation:
    def test_operator_keys_make_a_modifier(self):
        parsed = parse_mutation({"$set": {"name": "B"}, "$unset": {"country": True}})
        assert isinstance(parsed, Modifier)

    def test_plain_keys_make_a_replacement(self):
        parsed = parse_mutation({"name": "B", "country": "UK"})
        assert isinstance(parsed, Replacement)
        assert parsed.document == {"name": "B", "country": "UK"}

    def test_empty_mapping_is_an_empty_replacement(self):
        assert parse_mutation({}) == Replacement({})

    def test_mixed_keys_rejected(self):
        with pytest.raises(ValueError, match="mixes update operators"):
            parse_mutation({"$set": {"name": "B"}, "country": "UK"})


# =============================================================================
# Field flattening tests
# =============================================================================


class TestModifiedFields:
    def test_top_level_fields_reduces_dotted_paths(self):
        assert top_level_fields(["name", "address.city", "tags.0"]) == {
            "name",
            "address",
            "tags",
        }

    def test_modifier_fields_flattened_across_operators(self):
        mutation = Modifier(
            {
                "$set": {"name": "B", "profile.bio": "x"},
                "$unset": {"country": True},
                "$pull": {"tags": "old"},
            }
        )
        assert modified_fields(mutation) == {"name", "profile", "country", "tags"}

    def test_replacement_fields_are_its_keys(self):
        assert modified_fields(Replacement({"name": "B", "meta.x": 1})) == {
            "name",
            "meta",
        }

    def test_unknown_type_rejected(self):
        with pytest.raises(TypeError):
            modified_fields({"$set": {"name": "B"}})


# =============================================================================
# is_relevant tests
# =============================================================================


class TestIsRelevant:
    @pytest.fixture
    def relation(self, authors):
        return make_author_relation(authors, projection=frozenset({"name", "profile"}))

    def test_projected_field_is_relevant(self, relation):
        assert is_relevant({"$set": {"name": "B"}}, relation)

    def test_unprojected_field_is_not_relevant(self, relation):
        assert not is_relevant({"$set": {"country": "DE"}}, relation)

    def test_key_alone_is_not_relevant(self, relation):
        assert not is_relevant({"$set": {"_id": 10}}, relation)

    def test_nested_path_reduced_to_projected_top_level(self, relation):
        assert is_relevant({"$set": {"profile.bio": "hello"}}, relation)

    def test_any_operator_counts(self, relation):
        assert is_relevant({"$unset": {"name": True}}, relation)

    def test_replacement_with_projected_field(self, relation):
        assert is_relevant({"name": "B", "country": "DE"}, relation)

    def test_replacement_without_projected_field(self, relation):
        assert not is_relevant({"country": "DE"}, relation)

    def test_accepts_parsed_mutation(self, relation):
        assert is_relevant(Modifier({"$set": {"name": "B"}}), relation)
