"""Inline search operator parsing.

Splits a free-text query into a base query plus typed operators. Patterns
are applied in table order; each match is recorded and stripped before the
remaining text is whitespace-collapsed into ``base_query``. Negative forms
(``-site:``) run before their positive counterparts so ``site:`` never sees
them, and quoted title/URL filters run before bare exact phrases.

Example usage:
    >>> parsed = parse_search_operators('foo site:example.com "exact phrase"')
    >>> parsed.base_query
    'foo'
    >>> filters = apply_search_operators(parsed)
    >>> filters.include_domains, filters.exact_phrases
    (['example.com'], ['exact phrase'])
"""

import re
from dataclasses import dataclass, field
from typing import Optional

_VALUE = r'("[^"]+"|\S+)'

# (operator type, pattern); group 1 is the value
OPERATOR_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("exclude_site", re.compile(r"(?:^|(?<=\s))-site:(\S+)", re.IGNORECASE)),
    ("site", re.compile(r"(?:^|(?<=\s))site:(\S+)", re.IGNORECASE)),
    ("filetype", re.compile(r"(?:^|(?<=\s))(?:filetype|ext):(\S+)", re.IGNORECASE)),
    ("intitle", re.compile(r"(?:^|(?<=\s))intitle:" + _VALUE, re.IGNORECASE)),
    ("inurl", re.compile(r"(?:^|(?<=\s))inurl:" + _VALUE, re.IGNORECASE)),
    ("inbody", re.compile(r"(?:^|(?<=\s))inbody:" + _VALUE, re.IGNORECASE)),
    ("inpage", re.compile(r"(?:^|(?<=\s))inpage:" + _VALUE, re.IGNORECASE)),
    ("language", re.compile(r"(?:^|(?<=\s))lang:(\S+)", re.IGNORECASE)),
    ("location", re.compile(r"(?:^|(?<=\s))loc:(\S+)", re.IGNORECASE)),
    ("before", re.compile(r"(?:^|(?<=\s))before:(\S+)", re.IGNORECASE)),
    ("after", re.compile(r"(?:^|(?<=\s))after:(\S+)", re.IGNORECASE)),
    ("exact", re.compile(r'"([^"]+)"')),
    ("force_include", re.compile(r"(?:^|(?<=\s))\+(\S+)")),
    ("exclude_term", re.compile(r"(?:^|(?<=\s))-(\S+)")),
    ("boolean", re.compile(r"\b(AND|OR|NOT)\b")),
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class SearchOperator:
    type: str
    value: str


@dataclass(frozen=True)
class ParsedQuery:
    base_query: str
    operators: list[SearchOperator] = field(default_factory=list)


@dataclass
class OperatorFilters:
    """Structured view of the operators found in a query."""

    include_domains: list[str] = field(default_factory=list)
    exclude_domains: list[str] = field(default_factory=list)
    file_type: Optional[str] = None
    title_filter: Optional[str] = None
    url_filter: Optional[str] = None
    body_filter: Optional[str] = None
    page_filter: Optional[str] = None
    language: Optional[str] = None
    location: Optional[str] = None
    date_before: Optional[str] = None
    date_after: Optional[str] = None
    exact_phrases: list[str] = field(default_factory=list)
    force_include_terms: list[str] = field(default_factory=list)
    exclude_terms: list[str] = field(default_factory=list)
    boolean_operators: list[str] = field(default_factory=list)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_search_operators(query: str) -> ParsedQuery:
    """Extract operators from ``query`` and return the remaining base query."""
    remaining = query
    operators: list[SearchOperator] = []

    for op_type, pattern in OPERATOR_PATTERNS:
        for match in pattern.finditer(remaining):
            value = match.group(1)
            if op_type != "exact":
                value = _unquote(value)
            operators.append(SearchOperator(type=op_type, value=value))
        remaining = pattern.sub(" ", remaining)

    base_query = _WHITESPACE.sub(" ", remaining).strip()
    return ParsedQuery(base_query=base_query, operators=operators)


_SINGLE_VALUE_FIELDS = {
    "filetype": "file_type",
    "intitle": "title_filter",
    "inurl": "url_filter",
    "inbody": "body_filter",
    "inpage": "page_filter",
    "language": "language",
    "location": "location",
    "before": "date_before",
    "after": "date_after",
}

_LIST_FIELDS = {
    "site": "include_domains",
    "exclude_site": "exclude_domains",
    "exact": "exact_phrases",
    "force_include": "force_include_terms",
    "exclude_term": "exclude_terms",
    "boolean": "boolean_operators",
}


def apply_search_operators(parsed: ParsedQuery) -> OperatorFilters:
    """Fold parsed operators into ``OperatorFilters``; the last single value wins."""
    filters = OperatorFilters()
    for op in parsed.operators:
        if op.type in _LIST_FIELDS:
            getattr(filters, _LIST_FIELDS[op.type]).append(op.value)
        elif op.type in _SINGLE_VALUE_FIELDS:
            setattr(filters, _SINGLE_VALUE_FIELDS[op.type], op.value)
    return filters


def _quote_if_spaced(value: str) -> str:
    return f'"{value}"' if " " in value else value


def build_query_with_operators(
    base_query: str,
    filters: OperatorFilters,
    *,
    include_domains: bool = True,
    exclude_domains: bool = True,
    file_type: bool = True,
    dates: bool = True,
    language: bool = False,
) -> str:
    """Re-serialize ``filters`` into query syntax around ``base_query``.

    Flags let a provider keep operators it maps to native request
    parameters out of the query string.
    """
    parts = [base_query] if base_query else []
    parts.extend(f'"{phrase}"' for phrase in filters.exact_phrases)
    parts.extend(f"+{term}" for term in filters.force_include_terms)
    parts.extend(f"-{term}" for term in filters.exclude_terms)

    if include_domains and filters.include_domains:
        parts.append(" OR ".join(f"site:{d}" for d in filters.include_domains))
    if exclude_domains:
        parts.extend(f"-site:{d}" for d in filters.exclude_domains)
    if file_type and filters.file_type:
        parts.append(f"filetype:{filters.file_type}")
    for prefix, value in (
        ("intitle", filters.title_filter),
        ("inurl", filters.url_filter),
        ("inbody", filters.body_filter),
        ("inpage", filters.page_filter),
    ):
        if value:
            parts.append(f"{prefix}:{_quote_if_spaced(value)}")
    if language and filters.language:
        parts.append(f"lang:{filters.language}")
    if dates:
        if filters.date_before:
            parts.append(f"before:{filters.date_before}")
        if filters.date_after:
            parts.append(f"after:{filters.date_after}")

    return " ".join(parts)


__all__ = [
    "OPERATOR_PATTERNS",
    "OperatorFilters",
    "ParsedQuery",
    "SearchOperator",
    "apply_search_operators",
    "build_query_with_operators",
    "parse_search_operators",
]
