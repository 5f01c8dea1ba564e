from __future__ import annotations

import sys
from pathlib import Path

import pytest


root = Path(__file__).resolve().parent.parent
src = root / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from shortsyntax import date_resolver  # noqa: E402


@pytest.fixture
def no_library_dates(monkeypatch: pytest.MonkeyPatch) -> None:
    """Leave only the custom date rules active."""
    monkeypatch.setattr(date_resolver, "search_dates", lambda *args, **kwargs: None)
    monkeypatch.setattr(
        date_resolver.DateResolver, "_directive_candidates", lambda self, text, now: []
    )
