"""Unit tests for the tagged-span parser."""

from __future__ import annotations

from src.services.tag_parser import TagParseFailure, TagParseSuccess, parse_tagged_span


class TestParseTaggedSpan:
    def test_single_fragment(self) -> None:
        result = parse_tagged_span("<12>Some sentence.</12>")

        assert isinstance(result, TagParseSuccess)
        assert result.indices == [12]
        assert result.fragments[0].text == "Some sentence."

    def test_multiple_fragments_keep_order_of_appearance(self) -> None:
        result = parse_tagged_span("<9>later</9> <3>earlier</3>")

        assert isinstance(result, TagParseSuccess)
        assert result.indices == [9, 3]
        assert (result.start_index, result.end_index) == (3, 9)

    def test_missing_closing_tag_runs_to_next_opening_tag(self) -> None:
        result = parse_tagged_span("<4>first <5>second</5>")

        assert isinstance(result, TagParseSuccess)
        assert [(f.index, f.text) for f in result.fragments] == [(4, "first"), (5, "second")]

    def test_missing_closing_tag_runs_to_end(self) -> None:
        result = parse_tagged_span("<8>dangling text")

        assert isinstance(result, TagParseSuccess)
        assert result.fragments[0].text == "dangling text"

    def test_mismatched_closing_number_still_closes(self) -> None:
        result = parse_tagged_span("<2>text</3> noise")

        assert isinstance(result, TagParseSuccess)
        assert [(f.index, f.text) for f in result.fragments] == [(2, "text")]

    def test_non_index_angle_brackets_are_text(self) -> None:
        result = parse_tagged_span("<6>a < b and <em>c</em></6>")

        assert isinstance(result, TagParseSuccess)
        assert result.fragments[0].text == "a < b and <em>c</em>"

    def test_no_tags_is_a_failure(self) -> None:
        result = parse_tagged_span("The model forgot the tags.")

        assert isinstance(result, TagParseFailure)
        assert "no index tags" in result.reason

    def test_empty_span_is_a_failure(self) -> None:
        assert isinstance(parse_tagged_span(""), TagParseFailure)
        assert isinstance(parse_tagged_span("   "), TagParseFailure)

    def test_stray_closing_tag_only_is_a_failure(self) -> None:
        assert isinstance(parse_tagged_span("text</4>"), TagParseFailure)
