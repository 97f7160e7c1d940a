"""Tests for the duplicate classifier thresholds and messages."""

import pytest

from matching.classify import CONTACT, DEAL, classify_matches
from matching.models import DuplicateMatch, SuggestedAction


def make_match(record_id="r1", similarity=1.0, reason="Exact email match"):
    return DuplicateMatch(candidate_id=record_id, similarity=similarity,
                          match_reason=reason, matched_record={"id": record_id})


class TestEmpty:
    @pytest.mark.parametrize("entity", [CONTACT, DEAL])
    def test_no_matches(self, entity):
        result = classify_matches([], entity)

        assert result.is_duplicate is False
        assert result.suggested_action is SuggestedAction.CREATE
        assert result.message == "No duplicates found"


class TestContactThresholds:
    @pytest.mark.parametrize("similarity,action", [
        (1.0, SuggestedAction.MERGE),
        (0.9, SuggestedAction.MERGE),
        (0.89, SuggestedAction.UPDATE),
        (0.7, SuggestedAction.UPDATE),
        (0.69, SuggestedAction.CREATE),
        (0.0, SuggestedAction.CREATE),
    ])
    def test_action(self, similarity, action):
        result = classify_matches([make_match(similarity=similarity)], CONTACT)

        assert result.suggested_action is action
        assert result.is_duplicate is True

    def test_messages(self):
        strong = classify_matches([make_match(similarity=1.0)], CONTACT)
        possible = classify_matches([make_match(similarity=0.7, reason="Name and account match")], CONTACT)
        weak = classify_matches([make_match(similarity=0.5, reason="Weak")], CONTACT)

        assert strong.message == ("Strong duplicate detected: Exact email match. "
                                  "Consider merging or updating existing contact.")
        assert possible.message == ("Possible duplicate detected: Name and account match. "
                                    "Please review before creating.")
        assert weak.message == "Potential duplicate detected: Weak. Please verify before creating."


class TestDealThresholds:
    @pytest.mark.parametrize("similarity,action", [
        (1.0, SuggestedAction.MERGE),
        (0.95, SuggestedAction.MERGE),
        (0.9, SuggestedAction.MERGE),
        (0.85, SuggestedAction.UPDATE),
        (0.8, SuggestedAction.UPDATE),
        (0.75, SuggestedAction.CREATE),
    ])
    def test_action(self, similarity, action):
        assert classify_matches([make_match(similarity=similarity)], DEAL).suggested_action is action

    def test_merge_message_names_deal(self):
        result = classify_matches([make_match(similarity=0.95, reason="Exact name and account match")], DEAL)

        assert result.message.endswith("Consider merging or updating existing deal.")


class TestOrdering:
    def test_strongest_match_decides(self):
        matches = [make_match("a", 0.7, "Name and account match"), make_match("b", 0.9, "Exact phone match")]

        result = classify_matches(matches, CONTACT)

        assert [m.candidate_id for m in result.matches] == ["b", "a"]
        assert result.suggested_action is SuggestedAction.MERGE
        assert "Exact phone match" in result.message

    def test_ties_keep_input_order(self):
        matches = [make_match("a", 0.8, "x"), make_match("b", 0.8, "y")]

        result = classify_matches(matches, DEAL)

        assert [m.candidate_id for m in result.matches] == ["a", "b"]

    def test_classification_is_repeatable(self):
        matches = [make_match("a", 0.7, "Name and account match"), make_match("b", 1.0)]

        first = classify_matches(matches, CONTACT)
        second = classify_matches(matches, CONTACT)

        assert first.suggested_action is second.suggested_action
        assert first.message == second.message
        assert first.to_dict() == second.to_dict()

    def test_to_dict_uses_plain_values(self):
        result = classify_matches([make_match()], CONTACT)

        data = result.to_dict()

        assert data["suggested_action"] == "merge"
        assert data["matches"][0]["candidate_id"] == "r1"
