"""Storage utilities for JSON files and front-matter markdown documents."""

import json
from dataclasses import dataclass
from pathlib import Path
from datetime import datetime
from typing import Any

import yaml
from pydantic import BaseModel


FRONTMATTER_DELIMITER = "---"


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    def default(self, obj: object) -> str:
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def read_json(path: Path) -> dict:
    """Read a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON object.
    """
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(path: Path, data: dict | BaseModel) -> None:
    """Write a JSON file.

    Args:
        path: Path to the JSON file.
        data: Dict or Pydantic model to write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, BaseModel):
        path.write_text(data.model_dump_json(indent=2), encoding='utf-8')
        return

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, cls=DateTimeEncoder)


@dataclass
class MarkdownDocument:
    """A markdown file split into its YAML front matter and body."""
    data: dict[str, Any]
    content: str


def parse_frontmatter(text: str) -> MarkdownDocument:
    """Split a markdown document into front-matter data and body.

    A document without a leading ``---`` block has empty data.

    Raises:
        ValueError: If the front matter is not a YAML mapping.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return MarkdownDocument(data={}, content=text)

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            header = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            break
    else:
        raise ValueError("Unterminated front matter block")

    data = yaml.safe_load(header) or {}
    if not isinstance(data, dict):
        raise ValueError("Front matter must be a mapping")

    return MarkdownDocument(data=data, content=body.lstrip("\n"))


def dump_frontmatter(data: dict[str, Any] | BaseModel, content: str = "") -> str:
    """Render front-matter data and a body back to markdown text."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", exclude_none=True)

    header = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    text = f"{FRONTMATTER_DELIMITER}\n{header}{FRONTMATTER_DELIMITER}\n"
    if content:
        text += "\n" + content.lstrip("\n")
    return text


def read_markdown(path: Path) -> MarkdownDocument:
    """Read a front-matter markdown file."""
    return parse_frontmatter(path.read_text(encoding='utf-8'))


def write_markdown(path: Path, data: dict[str, Any] | BaseModel, content: str = "") -> None:
    """Write a front-matter markdown file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_frontmatter(data, content), encoding='utf-8')
