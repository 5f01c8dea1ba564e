from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .date_resolver import DEFAULT_RESOLVER, DateResolver
from .models import Project, Tag


DEFAULT_LANGUAGES = ["en"]
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class ShortSyntaxConfig:
    tags: list[Tag] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    languages: list[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    log_level: str = DEFAULT_LOG_LEVEL


def resolve_env(env: str | None = None) -> str:
    return env or os.environ.get("SHORTSYNTAX_ENV") or "default"


def config_file_path(env: str | None = None, config_home: Path | None = None) -> Path:
    base_home = config_home or Path.home() / ".config" / "shortsyntax"
    resolved_env = resolve_env(env)
    return base_home / f"config.{resolved_env}.toml"


def _entry_lines(table: str, entries: list[Tag] | list[Project]) -> list[str]:
    lines: list[str] = []
    for entry in entries:
        lines.append("")
        lines.append(f"[[{table}]]")
        lines.append(f"id = {json.dumps(entry.id)}")
        lines.append(f"title = {json.dumps(entry.title)}")
    return lines


def write_config_file(path: Path, config: ShortSyntaxConfig, *, force: bool = False) -> Path:
    if path.exists() and not force:
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["[parser]"]
    lines.append(f"languages = {json.dumps(list(config.languages))}")
    lines.append(f"log_level = {json.dumps(config.log_level)}")
    lines.extend(_entry_lines("tags", config.tags))
    lines.extend(_entry_lines("projects", config.projects))
    path.write_text("\n".join(lines) + "\n")
    return path


def _parse_entries(raw: Any, kind: str) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RuntimeError(f"{kind} must be an array of tables")
    for entry in raw:
        if not isinstance(entry, dict) or "id" not in entry or "title" not in entry:
            raise RuntimeError(f"every entry in {kind} requires id and title")
    return raw


def _parse_toml_file(path: Path) -> dict[str, Any]:
    data = tomllib.loads(path.read_text())
    result: dict[str, Any] = {}
    section = data.get("parser")
    if isinstance(section, dict):
        for key, value in section.items():
            if value is None:
                continue
            result[key.lower()] = value
    result["tags"] = [Tag.from_dict(entry) for entry in _parse_entries(data.get("tags"), "tags")]
    result["projects"] = [
        Project.from_dict(entry) for entry in _parse_entries(data.get("projects"), "projects")
    ]
    return result


def _split_list_value(raw: str | list[str] | None) -> list[str] | None:
    if raw is None:
        return None
    if isinstance(raw, list):
        return [str(item).strip() for item in raw if str(item).strip()]
    return [segment.strip() for segment in raw.split(",") if segment.strip()]


def load_config(env: str | None = None, config_home: Path | None = None) -> ShortSyntaxConfig:
    values: dict[str, Any] = {
        "languages": os.environ.get("SHORTSYNTAX_LANGUAGES"),
        "log_level": os.environ.get("SHORTSYNTAX_LOG_LEVEL"),
    }
    path = config_file_path(env, config_home)
    if path.exists():
        file_values = _parse_toml_file(path)
        # Environment variables win over the file.
        for key, value in file_values.items():
            if values.get(key) is None:
                values[key] = value
    return _build_config(values)


def load_config_from_path(path: Path) -> ShortSyntaxConfig:
    if not path.exists():
        raise FileNotFoundError(f"config file not found: {path}")
    return _build_config(_parse_toml_file(path))


def _build_config(values: dict[str, Any]) -> ShortSyntaxConfig:
    languages = _split_list_value(values.get("languages")) or list(DEFAULT_LANGUAGES)
    log_level = str(values.get("log_level") or DEFAULT_LOG_LEVEL).upper()
    return ShortSyntaxConfig(
        tags=list(values.get("tags") or []),
        projects=list(values.get("projects") or []),
        languages=languages,
        log_level=log_level,
    )


def build_resolver(config: ShortSyntaxConfig) -> DateResolver:
    if config.languages == DEFAULT_LANGUAGES:
        return DEFAULT_RESOLVER
    return DateResolver(languages=config.languages)
