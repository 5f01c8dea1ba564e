from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable, Sequence

import arrow
from dateparser.date import DateDataParser
from dateparser.search import search_dates

from .directive_parser import CH_DUE, scan_directives

__all__ = [
    "DEFAULT_RESOLVER",
    "DEFAULT_RULES",
    "DateResolver",
    "DateRule",
    "ResolvedDate",
    "end_of_day",
]

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\S+")


@lru_cache(maxsize=32)
def _date_parser(
    languages: tuple[str, ...], forward_dates: bool, relative_base: datetime
) -> DateDataParser:
    # Shared by every lookup made against the same reference instant.
    settings = {"RELATIVE_BASE": relative_base, "RETURN_TIME_AS_PERIOD": True}
    if forward_dates:
        settings["PREFER_DATES_FROM"] = "future"
    return DateDataParser(languages=list(languages), settings=settings)


@dataclass(frozen=True)
class DateRule:
    """A literal date form the date library does not know about."""

    pattern: re.Pattern[str]
    extract: Callable[[arrow.Arrow], arrow.Arrow]


@dataclass(frozen=True)
class ResolvedDate:
    text: str
    index: int
    start: arrow.Arrow
    hour_certain: bool

    @property
    def end(self) -> int:
        return self.index + len(self.text)


def end_of_day(value: arrow.Arrow) -> arrow.Arrow:
    return value.replace(hour=23, minute=59, second=59, microsecond=0)


def _literal_rule(word: str, days: int) -> DateRule:
    # Matches "@word" anywhere or a bare "word" as the whole expression.
    pattern = re.compile(rf"(?<=@){word}\b|^{word}\s*$", re.IGNORECASE)
    return DateRule(pattern=pattern, extract=lambda now: now.shift(days=days).floor("day"))


DEFAULT_RULES: tuple[DateRule, ...] = (
    _literal_rule("tom", 1),
    _literal_rule("tod", 0),
)


class DateResolver:
    """Find date expressions in free text.

    Custom rules run first, then each ``@`` run and the free text go to
    ``dateparser``. With ``forward_dates`` ambiguous expressions resolve to
    the next occurrence.
    """

    def __init__(
        self,
        rules: Sequence[DateRule] = DEFAULT_RULES,
        *,
        languages: Sequence[str] = ("en",),
        forward_dates: bool = True,
    ) -> None:
        self.rules = tuple(rules)
        self.languages = list(languages)
        self.forward_dates = forward_dates

    def _settings(self, now: arrow.Arrow) -> dict:
        settings = {"RELATIVE_BASE": now.naive}
        if self.forward_dates:
            settings["PREFER_DATES_FROM"] = "future"
        return settings

    def _to_arrow(self, value: datetime, now: arrow.Arrow) -> arrow.Arrow:
        if value.tzinfo is None:
            return arrow.get(value, tzinfo=now.tzinfo)
        return arrow.get(value).to(now.tzinfo)

    def _rule_candidates(self, text: str, now: arrow.Arrow) -> list[ResolvedDate]:
        found: list[ResolvedDate] = []
        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                found.append(
                    ResolvedDate(
                        text=match.group().strip(),
                        index=match.start(),
                        start=rule.extract(now),
                        hour_certain=False,
                    )
                )
        return found

    def _parser(self, now: arrow.Arrow) -> DateDataParser:
        return _date_parser(tuple(self.languages), self.forward_dates, now.naive)

    def _directive_candidates(self, text: str, now: arrow.Arrow) -> list[ResolvedDate]:
        """Read each ``@`` run as the longest leading word sequence that is a date."""
        parser = self._parser(now)
        found: list[ResolvedDate] = []
        for directive in scan_directives(text, CH_DUE):
            words = list(_WORD_RE.finditer(directive.body))
            for count in range(len(words), 0, -1):
                expression = directive.body[words[0].start() : words[count - 1].end()]
                data = parser.get_date_data(expression)
                if data.date_obj is None:
                    continue
                found.append(
                    ResolvedDate(
                        text=expression,
                        index=directive.start + len(CH_DUE) + words[0].start(),
                        start=self._to_arrow(data.date_obj, now),
                        hour_certain=data.period == "time",
                    )
                )
                break
        return found

    def _has_explicit_time(self, text: str, now: arrow.Arrow) -> bool:
        data = self._parser(now).get_date_data(text)
        return data.date_obj is not None and data.period == "time"

    def _library_candidates(self, text: str, now: arrow.Arrow) -> list[ResolvedDate]:
        # The library cannot read "@friday"; blank the sigils so indices still line up.
        searchable = text.replace(CH_DUE, " ")
        matches = search_dates(searchable, languages=self.languages, settings=self._settings(now))
        found: list[ResolvedDate] = []
        cursor = 0
        for matched, value in matches or []:
            matched = matched.strip()
            if not matched:
                continue
            index = searchable.find(matched, cursor)
            if index == -1:
                index = searchable.find(matched)
            if index == -1:
                continue
            cursor = index + len(matched)
            found.append(
                ResolvedDate(
                    text=matched,
                    index=index,
                    start=self._to_arrow(value, now),
                    hour_certain=self._has_explicit_time(matched, now),
                )
            )
        return found

    def candidates(self, text: str, now: arrow.Arrow | None = None) -> list[ResolvedDate]:
        """All candidates ordered by position.

        On a tie custom rules come first, then ``@`` runs read whole, then
        free-text search results.
        """
        reference = now or arrow.now()
        found = (
            self._rule_candidates(text, reference)
            + self._directive_candidates(text, reference)
            + self._library_candidates(text, reference)
        )
        return sorted(found, key=lambda candidate: candidate.index)

    def resolve(self, text: str, now: arrow.Arrow | None = None) -> ResolvedDate | None:
        found = self.candidates(text, now)
        if not found:
            return None
        logger.debug("resolved %r to %s", found[0].text, found[0].start)
        return found[0]


DEFAULT_RESOLVER = DateResolver()
