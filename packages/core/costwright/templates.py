"""Named presets of resource kinds for common application shapes."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from costwright.config import data_dir
from costwright.errors import InvalidRequestError, RuleTableError
from costwright.models import SubCategory


class Template(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    resources: list[SubCategory] = Field(default_factory=list)


class TemplateLibrary:
    """Templates from data/templates.yaml, kept in file order."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else data_dir() / "templates.yaml"
        self._templates: dict[str, Template] = {}
        self._load()

    def _load(self) -> None:
        data = yaml.safe_load(self._path.read_text()) or {}
        for row in data.get("templates") or []:
            try:
                template = Template.model_validate(row)
            except ValidationError as e:
                raise RuleTableError(self._path.name, f"bad template {row!r}: {e}") from e
            key = template.name.lower()
            if key in self._templates:
                raise RuleTableError(self._path.name, f"duplicate template {template.name!r}")
            self._templates[key] = template

    def get(self, name: str) -> Template:
        template = self._templates.get(name.strip().lower())
        if template is None:
            raise InvalidRequestError("template", name, self.names())
        return template

    def names(self) -> list[str]:
        return [t.name for t in self._templates.values()]

    def all(self) -> list[Template]:
        return list(self._templates.values())


_library: TemplateLibrary | None = None


def get_library() -> TemplateLibrary:
    global _library
    if _library is None:
        _library = TemplateLibrary()
    return _library


def get_template(name: str) -> Template:
    """Template by name, case-insensitive. Unknown names raise InvalidRequestError."""
    return get_library().get(name)


def list_templates() -> list[Template]:
    return get_library().all()
