from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Sequence

import arrow

from .date_resolver import DEFAULT_RESOLVER, DateResolver, ResolvedDate, end_of_day
from .directive_parser import (
    CH_DUE,
    CH_PROJECT,
    CH_TAG,
    SHORT_SYNTAX_PROJECT_RE,
    SHORT_SYNTAX_TAGS_RE,
    SHORT_SYNTAX_TIME_RE,
    Directive,
    scan_directives,
)
from .durations import get_worklog_str, string_to_ms
from .models import ParseResult, Project, Tag, Task, TaskChanges

__all__ = [
    "PIPELINE",
    "ProjectMatch",
    "SHORT_SYNTAX_PROJECT_RE",
    "SHORT_SYNTAX_TAGS_RE",
    "TagChanges",
    "parse",
    "parse_project_changes",
    "parse_scheduled_date",
    "parse_tag_changes",
    "parse_time_changes",
]

logger = logging.getLogger(__name__)

# Tags found this close to the start are taken as issue numbers ("#123 fix").
_MIN_TAG_INDEX = 4


@dataclass(frozen=True)
class ProjectMatch:
    title: str
    project_id: str


@dataclass(frozen=True)
class TagChanges:
    task_changes: TaskChanges = field(default_factory=TaskChanges)
    new_tag_titles: tuple[str, ...] = ()


def _remove_span(title: str, start: int, end: int) -> str:
    return title[:start] + title[end:]


def parse_time_changes(
    title: str,
    time_spent_on_day: Mapping[str, int] | None = None,
    *,
    today_key: str,
) -> TaskChanges:
    """Strip a trailing ``[spent/]estimate`` annotation such as ``1h/2h``."""
    match = SHORT_SYNTAX_TIME_RE.search(title or "")
    if not match:
        return TaskChanges()
    estimate = string_to_ms(match.group("estimate"))
    spent_raw = match.group("spent")
    spent = string_to_ms(spent_raw) if spent_raw else None
    if estimate is None or (spent_raw and spent is None):
        return TaskChanges()
    time_spent = None
    if spent_raw:
        time_spent = {**(time_spent_on_day or {}), today_key: spent}
    return TaskChanges(
        title=_remove_span(title, match.start(), match.end()),
        time_estimate=estimate,
        time_spent_on_day=time_spent,
    )


def _inside_directive(candidate: ResolvedDate, directives: Sequence[Directive]) -> bool:
    return any(d.start < candidate.index < d.end for d in directives)


def parse_scheduled_date(
    title: str,
    *,
    now: arrow.Arrow,
    resolver: DateResolver = DEFAULT_RESOLVER,
) -> TaskChanges:
    directives = scan_directives(title, CH_DUE)
    if not directives:
        return TaskChanges()
    candidates = resolver.candidates(title, now)
    if not candidates:
        # Leave text the resolver could not read where it is.
        return TaskChanges()
    chosen = next(
        (c for c in candidates if _inside_directive(c, directives)),
        candidates[0],
    )
    start = chosen.start
    if not chosen.hour_certain:
        start = end_of_day(start)
    elif start < now:
        start = start.shift(days=1)
    planned_at = start.int_timestamp * 1000 + start.microsecond // 1000
    new_title = title
    if chosen.index > 0 and title[chosen.index - 1] == CH_DUE:
        new_title = _remove_span(title, chosen.index - 1, chosen.end)
    logger.debug("scheduled %r for %s", chosen.text, start.isoformat())
    return TaskChanges(title=new_title.strip(), planned_at=planned_at)


def _normalize_project_title(value: str) -> str:
    return value.strip().replace(" ", "").lower()


def _find_project(phrase: str, all_projects: Sequence[Project]) -> Project | None:
    needle = _normalize_project_title(phrase)
    if not needle:
        return None
    return next(
        (p for p in all_projects if _normalize_project_title(p.title).startswith(needle)),
        None,
    )


def parse_project_changes(
    title: str,
    all_projects: Sequence[Project] | None,
    *,
    issue_id: str | None = None,
) -> ProjectMatch | None:
    # Issue tasks keep the project of their issue provider.
    if issue_id:
        return None
    if not all_projects or not title:
        return None
    directives = scan_directives(title, CH_PROJECT)
    if not directives:
        return None
    directive = directives[0]
    phrase = directive.body.rstrip()

    project = _find_project(phrase, all_projects)
    if project is not None:
        end = directive.start + len(CH_PROJECT) + len(phrase)
        logger.debug("project %r matched %r", phrase, project.title)
        return ProjectMatch(
            title=_remove_span(title, directive.start, end).strip(),
            project_id=project.id,
        )

    words = phrase.split()
    if not words:
        return None
    first_word = words[0]
    project = _find_project(first_word, all_projects)
    if project is None:
        return None
    end = directive.start + len(CH_PROJECT) + phrase.index(first_word) + len(first_word)
    logger.debug("project %r matched %r on first word", first_word, project.title)
    return ProjectMatch(
        title=_remove_span(title, directive.start, end).strip().replace("  ", " ", 1),
        project_id=project.id,
    )


def parse_tag_changes(
    title: str,
    tag_ids: Sequence[str] | None,
    all_tags: Sequence[Tag] | None,
    *,
    parent_id: str | None = None,
) -> TagChanges:
    if parent_id:
        return TagChanges()
    if tag_ids is None or all_tags is None or not title:
        return TagChanges()

    stripped = title.strip()
    found: list[tuple[Directive, str]] = []
    for directive in scan_directives(title, CH_TAG):
        token = directive.text.strip()[len(CH_TAG):]
        if not token:
            continue
        if stripped.rfind(token) <= _MIN_TAG_INDEX:
            continue
        found.append((directive, token))
    if not found:
        return TagChanges()

    ids_to_add: list[str] = []
    new_tag_titles: list[str] = []
    for _, token in found:
        lowered = token.lower()
        existing = next((tag for tag in all_tags if tag.title.lower() == lowered), None)
        if existing is None:
            if token not in new_tag_titles:
                new_tag_titles.append(token)
        elif existing.id not in tag_ids and existing.id not in ids_to_add:
            ids_to_add.append(existing.id)
    if new_tag_titles:
        logger.debug("tags to create: %s", ", ".join(new_tag_titles))

    new_title = title
    for directive, token in reversed(found):
        new_title = _remove_span(new_title, directive.start, directive.start + len(CH_TAG) + len(token))
    return TagChanges(
        task_changes=TaskChanges(
            title=new_title.strip(),
            tag_ids=[*tag_ids, *ids_to_add] if ids_to_add else None,
        ),
        new_tag_titles=tuple(new_tag_titles),
    )


@dataclass(frozen=True)
class _ParseContext:
    task: Task
    all_tags: Sequence[Tag] | None
    all_projects: Sequence[Project] | None
    now: arrow.Arrow
    resolver: DateResolver
    worklog_key: Callable[[arrow.Arrow], str]


@dataclass(frozen=True)
class ParseState:
    title: str
    changes: TaskChanges = field(default_factory=TaskChanges)
    project_id: str | None = None
    new_tag_titles: tuple[str, ...] = ()

    def apply(self, partial: TaskChanges, **extra: Any) -> ParseState:
        return replace(
            self,
            title=partial.title if partial.title is not None else self.title,
            changes=self.changes.merge(partial),
            **extra,
        )


Stage = Callable[[ParseState, _ParseContext], ParseState]


def time_stage(state: ParseState, context: _ParseContext) -> ParseState:
    prior = state.changes.time_spent_on_day
    if prior is None:
        prior = context.task.time_spent_on_day
    partial = parse_time_changes(
        state.title, prior, today_key=context.worklog_key(context.now)
    )
    return state.apply(partial)


def scheduled_date_stage(state: ParseState, context: _ParseContext) -> ParseState:
    partial = parse_scheduled_date(state.title, now=context.now, resolver=context.resolver)
    return state.apply(partial)


def project_stage(state: ParseState, context: _ParseContext) -> ParseState:
    match = parse_project_changes(
        state.title, context.all_projects, issue_id=context.task.issue_id
    )
    if match is None:
        return state
    return state.apply(TaskChanges(title=match.title), project_id=match.project_id)


def tag_stage(state: ParseState, context: _ParseContext) -> ParseState:
    result = parse_tag_changes(
        state.title,
        context.task.tag_ids,
        context.all_tags,
        parent_id=context.task.parent_id,
    )
    return state.apply(result.task_changes, new_tag_titles=result.new_tag_titles)


# Time runs twice: removing a tag can expose a trailing duration.
PIPELINE: tuple[Stage, ...] = (
    time_stage,
    scheduled_date_stage,
    project_stage,
    tag_stage,
    time_stage,
)


def parse(
    task: Task | Mapping[str, Any],
    all_tags: Sequence[Tag] | None = None,
    all_projects: Sequence[Project] | None = None,
    *,
    now: arrow.Arrow | None = None,
    resolver: DateResolver | None = None,
    worklog_key: Callable[[arrow.Arrow], str] = get_worklog_str,
) -> ParseResult | None:
    """Extract short syntax directives from ``task.title``.

    Returns None when the title holds nothing to change.
    """
    if isinstance(task, Mapping):
        task = Task.from_dict(task)
    if not task.title:
        return None
    if not isinstance(task.title, str):
        raise TypeError(f"task title must be a str, not {type(task.title).__name__}")

    context = _ParseContext(
        task=task,
        all_tags=all_tags,
        all_projects=all_projects,
        now=now or arrow.now(),
        resolver=resolver or DEFAULT_RESOLVER,
        worklog_key=worklog_key,
    )
    state = ParseState(title=task.title)
    for stage in PIPELINE:
        state = stage(state, context)

    if state.changes.is_empty():
        return None
    return ParseResult(
        task_changes=state.changes,
        new_tag_titles=list(state.new_tag_titles),
        remind_at=None,
        project_id=state.project_id,
    )
