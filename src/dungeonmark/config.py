"""Journal configuration: settings schema and journal.toml loader"""

import os
import tomllib
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dungeonmark.errors import ConfigError


CONFIG_FILE = "journal.toml"
ENV_PREFIX = "DUNGEONMARK_"

T = TypeVar("T")


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True)


class JournalConfig(_Section):
    title:       Optional[str] = None
    authors:     list[str] = Field(default_factory=list)
    description: Optional[str] = None
    source:      str = Field(default="src", description="Directory holding JOURNAL.md, relative to the root")


class RendererConfig(_Section):
    name:    str
    command: Optional[str] = Field(default=None, description="Shell-style command; falls back to name")

    @property
    def command_line(self) -> str:
        return self.name if self.command is None else self.command


class BuildConfig(_Section):
    build_dir:     str = Field(default="build",    description="Parent directory of every renderer destination")
    parser_config: str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    renderers:     list[RendererConfig] = Field(default_factory=list)


class Config(_Section):
    """Typed view of journal.toml; unknown top-level tables are kept as extras."""
    model_config = ConfigDict(alias_generator=_kebab, populate_by_name=True, extra="allow")

    journal: JournalConfig = Field(default_factory=JournalConfig)
    build:   BuildConfig = Field(default_factory=BuildConfig)

    def get(self, key: str, type_: type[T]) -> T:
        """Validate the extra table `key` into `type_`, or return `type_()` when absent."""
        raw = (self.model_extra or {}).get(key)
        if raw is None:
            return type_()
        try:
            return TypeAdapter(type_).validate_python(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid [{key}] in {CONFIG_FILE}: {e}") from e


def load_config(root: Path, overrides: dict[str, Any] = None) -> Config:
    """Load Config from root/journal.toml, then DUNGEONMARK_<FIELD> env vars, then non-None CLI overrides.

    Env vars and overrides apply to the scalar [build] fields (build_dir, parser_config).
    """
    path = Path(root) / CONFIG_FILE
    data: dict[str, Any] = {}
    if path.exists():
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid {CONFIG_FILE}: {e}") from e

    build = dict(data.get("build") or {})
    for name, field in BuildConfig.model_fields.items():
        if name == "renderers":
            continue
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            build[field.alias] = val
        if overrides and overrides.get(name) is not None:
            build[field.alias] = overrides[name]
    data["build"] = build

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {CONFIG_FILE}: {e}") from e
