from __future__ import annotations

import re
from dataclasses import dataclass

from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor


__all__ = [
    "CH_DUE",
    "CH_PROJECT",
    "CH_TAG",
    "Directive",
    "SHORT_SYNTAX_DUE_RE",
    "SHORT_SYNTAX_PROJECT_RE",
    "SHORT_SYNTAX_TAGS_RE",
    "SHORT_SYNTAX_TIME_RE",
    "scan_directives",
]


CH_PROJECT = "+"
CH_TAG = "#"
CH_DUE = "@"

# A directive body ends at the next sigil or at any of "(", ")" and "|".
_BODY_CLASS = r"[^()|+#@]"

SHORT_SYNTAX_PROJECT_RE = re.compile(rf"\{CH_PROJECT}{_BODY_CLASS}+")
SHORT_SYNTAX_TAGS_RE = re.compile(rf"\{CH_TAG}{_BODY_CLASS}+")
SHORT_SYNTAX_DUE_RE = re.compile(rf"\{CH_DUE}{_BODY_CLASS}+")
SHORT_SYNTAX_TIME_RE = re.compile(
    r" t?(?:(?P<spent>(?:[0-9]+[mhd]+)+)? */ *)?(?P<estimate>(?:[0-9]+[mhd]+)+) *$",
    re.IGNORECASE,
)


_TITLE_GRAMMAR = Grammar(
    r"""
    title = chunk*
    chunk = directive / sigil / text
    directive = sigil body
    sigil = ~"[+#@]"
    body = ~"[^()|+#@]+"
    text = ~"[^+#@]+"
    """,
)


@dataclass(frozen=True)
class Directive:
    sigil: str
    body: str
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.sigil + self.body


class _DirectiveVisitor(NodeVisitor):
    def __init__(self) -> None:
        super().__init__()
        self.directives: list[Directive] = []

    def visit_directive(self, node, _visited_children):
        sigil, body = node.children
        self.directives.append(
            Directive(sigil=sigil.text, body=body.text, start=node.start, end=node.end)
        )
        return None

    def visit_title(self, _node, _visited_children):
        return list(self.directives)

    def generic_visit(self, node, visited_children):
        return visited_children or node


def scan_directives(title: str, sigil: str | None = None) -> list[Directive]:
    """Return the directives of ``title`` in order, optionally only one sigil."""
    visitor = _DirectiveVisitor()
    directives = visitor.visit(_TITLE_GRAMMAR.parse(title or ""))
    if sigil is None:
        return directives
    return [directive for directive in directives if directive.sigil == sigil]
