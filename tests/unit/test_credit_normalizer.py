"""Unit tests for songwriter credit splitting and cleanup."""

from __future__ import annotations

import pytest

from songscout.utils.credit_normalizer import (
    canonicalize_delimiters,
    dedupe_names,
    filter_known_prefixes,
    find_glue_points,
    normalize_credit_list,
    process_credit_entries,
    split_concatenated_names,
    title_case_names,
)


# ─── Pipeline stages ──────────────────────────────────────────────


class TestCanonicalizeDelimiters:
    def test_all_delimiters_become_commas(self) -> None:
        assert canonicalize_delimiters("A & B / C | D; E\nF") == "A, B, C, D, E, F"

    def test_collapses_spaces_and_trims_commas(self) -> None:
        assert canonicalize_delimiters("  Jane   Doe ,  John Roe , ") == "Jane Doe, John Roe"


class TestGluePoints:
    def test_finds_lower_to_upper_transition(self) -> None:
        assert find_glue_points("JohnSmith") == [4]

    def test_no_points_in_spaced_names(self) -> None:
        assert find_glue_points("John Smith") == []

    def test_mc_prefix_is_not_a_split(self) -> None:
        text = "Daniel McDonald"
        assert filter_known_prefixes(text, find_glue_points(text)) == []

    def test_accepted_split_starts_new_word(self) -> None:
        text = "BoysMcKinley"
        assert filter_known_prefixes(text, find_glue_points(text)) == [4]


class TestTitleCase:
    def test_lowercase_names_are_capitalised(self) -> None:
        assert title_case_names(["daniel mcdonald"]) == ["Daniel McDonald"]

    def test_o_apostrophe_prefix(self) -> None:
        assert title_case_names(["mary o'neil"]) == ["Mary O'Neil"]

    def test_mac_is_not_treated_as_prefix(self) -> None:
        assert title_case_names(["macy gray"]) == ["Macy Gray"]

    def test_existing_capitals_preserved(self) -> None:
        assert title_case_names(["DJ LaToya"]) == ["DJ LaToya"]


def test_dedupe_is_case_insensitive_and_keeps_first() -> None:
    assert dedupe_names(["Jane Doe", "JANE DOE", "John Roe"]) == ["Jane Doe", "John Roe"]


# ─── normalize_credit_list ────────────────────────────────────────


class TestNormalizeCreditList:
    def test_splits_glued_names(self) -> None:
        assert normalize_credit_list("Daniel McDonaldJohn Smith") == ["Daniel McDonald", "John Smith"]

    def test_mixed_delimiters(self) -> None:
        assert normalize_credit_list("Jane Doe & John Roe / Sam Poe") == ["Jane Doe", "John Roe", "Sam Poe"]

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input(self, raw: str | None) -> None:
        assert normalize_credit_list(raw) == []

    def test_single_character_names_dropped(self) -> None:
        assert normalize_credit_list("A, Bob Jones") == ["Bob Jones"]

    def test_duplicates_removed(self) -> None:
        assert normalize_credit_list("jane doe; Jane Doe") == ["Jane Doe"]


# ─── Credit arrays ────────────────────────────────────────────────


class TestSplitConcatenatedNames:
    def test_stage_name_with_one_point_is_kept(self) -> None:
        assert split_concatenated_names("DaBaby") == ["DaBaby"]

    def test_one_point_with_spaced_segment_splits(self) -> None:
        assert split_concatenated_names("Alex JonesKendall Quarles") == ["Alex Jones", "Kendall Quarles"]

    def test_two_points_split(self) -> None:
        assert split_concatenated_names("AnnaBethCarl") == ["Anna", "Beth", "Carl"]

    def test_plain_name_unchanged(self) -> None:
        assert split_concatenated_names(" Jane Doe ") == ["Jane Doe"]


def test_process_credit_entries_cleans_array() -> None:
    entries = ["Alex JonesKendall Quarles", "", "DaBaby & X", "alex jones"]
    assert process_credit_entries(entries) == ["Alex Jones", "Kendall Quarles", "DaBaby"]
