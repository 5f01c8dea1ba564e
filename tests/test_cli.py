from __future__ import annotations

import io
import json
from contextlib import redirect_stdout
from pathlib import Path

import pytest

import shortsyntax
from shortsyntax import cli
from shortsyntax.config import ShortSyntaxConfig, load_config_from_path
from shortsyntax.models import Project, Tag


CONFIG = ShortSyntaxConfig(
    tags=[Tag(id="t-work", title="work")],
    projects=[Project(id="p-web", title="Website Redesign")],
)


def run_cli(arguments: list[str]) -> tuple[int, str]:
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        try:
            exit_code = cli.main(arguments)
        except SystemExit as exc:
            exit_code = exc.code or 0
    return exit_code, buffer.getvalue()


@pytest.fixture(autouse=True)
def stub_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "_resolve_config", lambda env: CONFIG)


def test_parse_prints_json() -> None:
    exit_code, stdout = run_cli(["parse", "--json", "Fix", "bug", "+Website", "#work"])
    assert exit_code == 0
    payload = json.loads(stdout)
    assert payload["projectId"] == "p-web"
    assert payload["taskChanges"] == {"title": "Fix bug", "tagIds": ["t-work"]}
    assert payload["remindAt"] is None


def test_parse_passes_existing_tag_ids() -> None:
    exit_code, stdout = run_cli(["parse", "--json", "--tag-id", "t-work", "Fix bug #work"])
    assert exit_code == 0
    assert json.loads(stdout)["taskChanges"] == {"title": "Fix bug"}


def test_parse_prints_table() -> None:
    exit_code, stdout = run_cli(["parse", "Buy milk 1h/2h +Website"])
    assert exit_code == 0
    assert "Website Redesign" in stdout
    assert "Buy milk" in stdout
    assert "2h" in stdout


def test_parse_without_directives() -> None:
    exit_code, stdout = run_cli(["parse", "Buy", "milk"])
    assert exit_code == 0
    assert stdout.strip() == "no short syntax found"


def test_issue_tasks_keep_their_project() -> None:
    _, stdout = run_cli(["parse", "--issue-id", "GH-1", "Fix bug +Website"])
    assert stdout.strip() == "no short syntax found"


def test_config_init_writes_file(tmp_path: Path) -> None:
    exit_code, stdout = run_cli(
        ["--env", "test", "config", "init", "--config-home", str(tmp_path), "--language", "de"]
    )
    assert exit_code == 0
    target = tmp_path / "config.test.toml"
    assert f"created config file at {target}" in stdout
    assert load_config_from_path(target).languages == ["de"]

    exit_code, stdout = run_cli(["--env", "test", "config", "init", "--config-home", str(tmp_path)])
    assert exit_code == 1
    assert "already exists" in stdout


def test_missing_config_file_is_reported(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def _missing(env):
        raise FileNotFoundError(f"config file not found: {tmp_path / 'x.toml'}")

    monkeypatch.setattr(cli, "_resolve_config", _missing)
    exit_code, stdout = run_cli(["parse", "Fix bug"])
    assert exit_code == 1
    assert "config file not found" in stdout


def test_version_matches_package() -> None:
    exit_code, stdout = run_cli(["--version"])
    assert exit_code == 0
    assert stdout.strip() == f"shortsyntax {shortsyntax.__version__}"
    assert cli._get_version() == shortsyntax.__version__
