"""Tests for search operator parsing."""

import pytest

from omnisearch_mcp.core.operators import (
    OperatorFilters,
    apply_search_operators,
    build_query_with_operators,
    parse_search_operators,
)


def _filters(query: str) -> OperatorFilters:
    return apply_search_operators(parse_search_operators(query))


class TestParseSearchOperators:
    """Tests for operator extraction."""

    def test_mixed_operators(self):
        parsed = parse_search_operators(
            'foo site:example.com -site:bad.com "exact phrase" before:2020'
        )
        filters = apply_search_operators(parsed)

        assert parsed.base_query == "foo"
        assert filters.include_domains == ["example.com"]
        assert filters.exclude_domains == ["bad.com"]
        assert filters.exact_phrases == ["exact phrase"]
        assert filters.date_before == "2020"

    def test_plain_query_has_no_operators(self):
        parsed = parse_search_operators("async python tutorial")
        assert parsed.base_query == "async python tutorial"
        assert parsed.operators == []

    def test_site_and_exact_phrase(self):
        parsed = parse_search_operators('foo site:example.com "exact phrase"')
        filters = apply_search_operators(parsed)

        assert parsed.base_query == "foo"
        assert filters.include_domains == ["example.com"]
        assert filters.exact_phrases == ["exact phrase"]

    def test_exclude_site_not_seen_as_site(self):
        filters = _filters("news -site:spam.com site:good.com")
        assert filters.include_domains == ["good.com"]
        assert filters.exclude_domains == ["spam.com"]

    def test_filetype_and_ext_alias(self):
        assert _filters("report filetype:pdf").file_type == "pdf"
        assert _filters("report ext:docx").file_type == "docx"

    def test_quoted_title_filter(self):
        parsed = parse_search_operators('intitle:"release notes" python')
        filters = apply_search_operators(parsed)

        assert filters.title_filter == "release notes"
        assert filters.exact_phrases == []
        assert parsed.base_query == "python"

    def test_language_location_and_dates(self):
        filters = _filters("elections lang:de loc:DE after:2024-01-01 before:2024-06-01")
        assert filters.language == "de"
        assert filters.location == "DE"
        assert filters.date_after == "2024-01-01"
        assert filters.date_before == "2024-06-01"

    def test_force_include_and_exclude_terms(self):
        parsed = parse_search_operators("jaguar +speed -car")
        filters = apply_search_operators(parsed)

        assert parsed.base_query == "jaguar"
        assert filters.force_include_terms == ["speed"]
        assert filters.exclude_terms == ["car"]

    def test_hyphenated_words_are_not_exclusions(self):
        parsed = parse_search_operators("well-known patterns")
        assert parsed.base_query == "well-known patterns"
        assert parsed.operators == []

    def test_boolean_operators(self):
        parsed = parse_search_operators("cats OR dogs")
        assert parsed.base_query == "cats dogs"
        assert apply_search_operators(parsed).boolean_operators == ["OR"]

    def test_last_single_value_wins(self):
        assert _filters("x filetype:pdf filetype:doc").file_type == "doc"

    def test_operator_only_query_leaves_empty_base(self):
        assert parse_search_operators("site:example.com").base_query == ""


class TestBuildQueryWithOperators:
    """Tests for re-serializing filters."""

    def test_round_trips_supported_operators(self):
        parsed = parse_search_operators(
            'python "type hints" +mypy -java site:a.com site:b.com -site:c.com filetype:pdf'
        )
        query = build_query_with_operators(parsed.base_query, apply_search_operators(parsed))

        assert query.startswith("python")
        assert '"type hints"' in query
        assert "+mypy" in query
        assert "-java" in query
        assert "site:a.com OR site:b.com" in query
        assert "-site:c.com" in query
        assert "filetype:pdf" in query

    def test_flags_drop_native_operators(self):
        filters = _filters("q site:a.com filetype:pdf before:2024 lang:en")
        query = build_query_with_operators(
            "q", filters, include_domains=False, file_type=False, dates=False
        )
        assert query == "q"

    def test_language_opt_in(self):
        filters = _filters("q lang:en")
        assert build_query_with_operators("q", filters, language=True) == "q lang:en"

    @pytest.mark.parametrize(
        "query,expected",
        [
            ('x intitle:"two words"', 'x intitle:"two words"'),
            ("x inurl:docs", "x inurl:docs"),
        ],
    )
    def test_text_filters_requote_spaced_values(self, query, expected):
        parsed = parse_search_operators(query)
        assert build_query_with_operators(parsed.base_query, apply_search_operators(parsed)) == expected
