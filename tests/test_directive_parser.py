from __future__ import annotations

import random

import pytest

from shortsyntax.directive_parser import (
    SHORT_SYNTAX_DUE_RE,
    SHORT_SYNTAX_PROJECT_RE,
    SHORT_SYNTAX_TAGS_RE,
    SHORT_SYNTAX_TIME_RE,
    Directive,
    scan_directives,
)


def test_scan_splits_directives_in_order() -> None:
    directives = scan_directives("Plan trip #travel #budget")
    assert directives == [
        Directive(sigil="#", body="travel ", start=10, end=18),
        Directive(sigil="#", body="budget", start=18, end=25),
    ]


def test_scan_filters_by_sigil() -> None:
    title = "Ship it +Website #urgent @tom"
    assert [d.text for d in scan_directives(title, "+")] == ["+Website "]
    assert [d.text for d in scan_directives(title, "#")] == ["#urgent "]
    assert [d.text for d in scan_directives(title, "@")] == ["@tom"]


def test_body_stops_at_parens_and_pipes() -> None:
    assert [d.text for d in scan_directives("a (+b) c|#d|e")] == ["+b", "#d"]


@pytest.mark.parametrize("title", ["", "plain title", "end +", "C++", "#", "@@"])
def test_lone_sigils_are_not_directives(title: str) -> None:
    assert scan_directives(title) == []


def test_doubled_sigil_starts_directive_at_second() -> None:
    assert scan_directives("C++ rocks") == [Directive(sigil="+", body=" rocks", start=2, end=9)]


@pytest.mark.parametrize(
    "title,spent,estimate",
    [
        ("Buy milk 1h/2h", "1h", "2h"),
        ("Buy milk 1h / 2h  ", "1h", "2h"),
        ("Write docs 1h30m", None, "1h30m"),
        ("Meeting t30m", None, "30m"),
        ("Call /15m", None, "15m"),
    ],
)
def test_time_pattern_groups(title: str, spent: str | None, estimate: str) -> None:
    match = SHORT_SYNTAX_TIME_RE.search(title)
    assert match is not None
    assert match.group("spent") == spent
    assert match.group("estimate") == estimate


@pytest.mark.parametrize("title", ["Buy milk", "1h", "Buy 1h milk", "Write 3 tests"])
def test_time_pattern_requires_trailing_token(title: str) -> None:
    assert SHORT_SYNTAX_TIME_RE.search(title) is None


_ALPHABET = "ab1 +#@()|"


def _generate_titles(seed: int) -> list[str]:
    rng = random.Random(seed)
    return [
        "".join(rng.choice(_ALPHABET) for _ in range(rng.randint(0, 24)))
        for _ in range(256)
    ]


@pytest.mark.parametrize(
    "sigil,pattern",
    [("+", SHORT_SYNTAX_PROJECT_RE), ("#", SHORT_SYNTAX_TAGS_RE), ("@", SHORT_SYNTAX_DUE_RE)],
)
def test_scanner_matches_exported_patterns_for_random_inputs(sigil, pattern) -> None:
    for title in _generate_titles(seed=ord(sigil)):
        scanned = [(d.start, d.text) for d in scan_directives(title, sigil)]
        matched = [(m.start(), m.group()) for m in pattern.finditer(title)]
        assert scanned == matched, title
