"""Project configuration: targets and per-target code generation options.

Configuration lives in ``sketchddd.yaml`` next to the model documents:

    version: 1
    targets: [typescript, rust]
    output_dir: generated
    options:
      typescript: {namespace: Commerce, include_comments: false}
      java: {package_name: com.acme.commerce}
    diagnostics: {context_lines: 2}
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError, UnsupportedTargetError

logger = logging.getLogger(__name__)


class Target(str, Enum):
    """Code generation targets."""
    TYPESCRIPT = "typescript"
    RUST = "rust"
    KOTLIN = "kotlin"
    JAVA = "java"
    SHACL = "shacl"

    @classmethod
    def parse(cls, text: str) -> Target:
        aliases = {"ts": "typescript", "rs": "rust", "kt": "kotlin", "ttl": "shacl"}
        value = text.strip().lower()
        value = aliases.get(value, value)
        for target in cls:
            if target.value == value:
                return target
        raise UnsupportedTargetError(
            f"unsupported target '{text}' (expected one of: {', '.join(t.value for t in cls)})"
        )


class TargetOptions(BaseModel):
    """Per-target generation options."""

    model_config = ConfigDict(extra="forbid")

    namespace: str = Field(default="Domain", description="Namespace / module name for generated code")
    package_name: str = Field(default="com.example.domain", description="JVM package name")
    include_comments: bool = Field(default=True, description="Emit doc comments")
    emit_interfaces: bool = Field(default=True, description="Emit interfaces / traits")
    emit_classes: bool = Field(default=True, description="Emit classes / structs")


class DiagnosticSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context_lines: int = Field(default=1, ge=0, description="Source lines shown around a span")
    show_help: bool = Field(default=True, description="Show 'help:' suggestion lines")


class ProjectConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=1)
    targets: list[Target] = Field(default_factory=lambda: [Target.TYPESCRIPT])
    options: dict[Target, TargetOptions] = Field(default_factory=dict)
    output_dir: str = Field(default="generated")
    diagnostics: DiagnosticSettings = Field(default_factory=DiagnosticSettings)

    @field_validator("targets", mode="before")
    @classmethod
    def _parse_targets(cls, value):
        if isinstance(value, str):
            value = [value]
        return [Target.parse(v) if isinstance(v, str) else v for v in value]

    @field_validator("options", mode="before")
    @classmethod
    def _parse_option_keys(cls, value):
        if not isinstance(value, dict):
            return value
        return {Target.parse(k) if isinstance(k, str) else k: v for k, v in value.items()}

    def options_for(self, target: Target) -> TargetOptions:
        return self.options.get(target) or TargetOptions()


class ConfigLoader:
    """Load and save sketchddd configuration."""

    CONFIG_FILENAME = "sketchddd.yaml"

    def __init__(self, project_path: Path | None = None):
        self._project_path = project_path or Path.cwd()

    def get_config_path(self) -> Path | None:
        config = self._project_path / self.CONFIG_FILENAME
        return config if config.exists() else None

    def load(self, path: Path | None = None) -> ProjectConfig:
        """Load configuration, returning defaults if no config file exists.

        An explicit ``path`` must exist. A file that exists but does not
        parse or validate raises ConfigError.
        """
        config_path = path or self.get_config_path()
        if config_path is None:
            logger.debug("No config file found, using defaults")
            return ProjectConfig()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"cannot read {config_path}: {e.strerror}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {config_path}: {e}") from e

        try:
            config = ProjectConfig.model_validate(data)
        except (ValidationError, UnsupportedTargetError) as e:
            raise ConfigError(f"invalid configuration in {config_path}: {e}") from e

        logger.info("Loaded config from: %s", config_path)
        return config

    def save(self, config: ProjectConfig) -> Path:
        """Write ``config`` to the project directory and return the path."""
        config_path = self._project_path / self.CONFIG_FILENAME
        data = config.model_dump(mode="json", exclude_defaults=False)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info("Saved config to: %s", config_path)
        return config_path


def load_config(project_path: Path | str | None = None, config_path: Path | str | None = None) -> ProjectConfig:
    """Convenience wrapper around ConfigLoader."""
    loader = ConfigLoader(Path(project_path) if project_path else None)
    return loader.load(Path(config_path) if config_path else None)
