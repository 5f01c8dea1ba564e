from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .directive_parser import SHORT_SYNTAX_PROJECT_RE, SHORT_SYNTAX_TAGS_RE
from .models import ParseResult, Project, Tag, Task, TaskChanges
from .short_syntax import parse


__all__ = [
    "SHORT_SYNTAX_PROJECT_RE",
    "SHORT_SYNTAX_TAGS_RE",
    "ParseResult",
    "Project",
    "Tag",
    "Task",
    "TaskChanges",
    "parse",
]


try:
    __version__ = version("shortsyntax")
except PackageNotFoundError:
    __version__ = "0.1.0"
