"""Pydantic configuration model with YAML loading and environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from accesshtml.errors import ConfigValidationError

_DEFAULT_CONFIG_NAME = "accesshtml.yaml"


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ScraperConfig(_Section):
    """Where and how documentation is fetched."""

    wcag_base_url: str = "https://www.w3.org/WAI/WCAG21/"
    techniques_path: str = "Techniques/"
    timeout_ms: int = Field(default=30000, ge=1000)
    request_delay_ms: int = Field(default=1000, ge=0)
    user_agent: str = "accesshtml-docs-fetcher (+https://www.w3.org/WAI/)"


class EvaluatorConfig(_Section):
    """Evaluation settings."""

    wcag_level: Literal["A", "AA", "AAA"] = "AA"
    min_impact_level: Literal["minor", "moderate", "serious", "critical"] = "minor"
    enable_aria_validation: bool = True
    max_workers: int = Field(default=1, ge=1)


class IntegrationConfig(_Section):
    """Output locations and documentation refresh policy."""

    output_dir: Path = Path("./output")
    cache_dir: Path = Path("./cache")
    update_interval_hours: float = Field(default=24, gt=0)
    auto_update: bool = True


class OutputConfig(_Section):
    """Report file settings."""

    report_format: Literal["json", "markdown"] = "json"


class LoggingConfig(_Section):
    """Log level and optional log file."""

    level: Literal["error", "warn", "info", "debug"] = "info"
    enable_file_logging: bool = False
    log_file: Path = Path("./logs/accesshtml.log")


class AccessHTMLConfig(_Section):
    """Top-level configuration for AccessHTML."""

    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    integration: IntegrationConfig = Field(default_factory=IntegrationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> AccessHTMLConfig:
        """Load config from a YAML file, then apply environment overrides.

        Search order when *path* is None:
          1. ./accesshtml.yaml
          2. ~/.config/accesshtml/accesshtml.yaml

        Defaults are used if no file is found.  Raises
        ``ConfigValidationError`` for any invalid value.
        """
        raw: dict[str, Any] = {}
        if path is not None:
            raw = _read_yaml(path)
        else:
            candidates = [
                Path.cwd() / _DEFAULT_CONFIG_NAME,
                Path.home() / ".config" / "accesshtml" / _DEFAULT_CONFIG_NAME,
            ]
            for candidate in candidates:
                if candidate.is_file():
                    raw = _read_yaml(candidate)
                    break

        _apply_env(raw, os.environ if env is None else env)
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> AccessHTMLConfig:
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first["loc"])
            raise ConfigValidationError(first["msg"], field=field) from exc


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML: {exc}", field=str(path)) from exc
    if not isinstance(raw, dict):
        raise ConfigValidationError("Top level must be a mapping", field=str(path))
    return raw


# env var -> (section, key, kind)
_ENV_OVERRIDES: dict[str, tuple[str, str, str]] = {
    "WCAG_BASE_URL": ("scraper", "wcag_base_url", "str"),
    "TIMEOUT_MS": ("scraper", "timeout_ms", "int"),
    "REQUEST_DELAY_MS": ("scraper", "request_delay_ms", "int"),
    "WCAG_LEVEL": ("evaluator", "wcag_level", "str"),
    "MIN_IMPACT_LEVEL": ("evaluator", "min_impact_level", "str"),
    "OUTPUT_DIR": ("integration", "output_dir", "str"),
    "CACHE_DIR": ("integration", "cache_dir", "str"),
    "UPDATE_INTERVAL": ("integration", "update_interval_hours", "int"),
    "AUTO_UPDATE": ("integration", "auto_update", "bool"),
    "LOG_LEVEL": ("logging", "level", "str"),
    "ENABLE_FILE_LOGGING": ("logging", "enable_file_logging", "bool"),
    "LOG_FILE": ("logging", "log_file", "str"),
}


def _apply_env(raw: dict[str, Any], env: Mapping[str, str]) -> None:
    for name, (section, key, kind) in _ENV_OVERRIDES.items():
        value = env.get(name)
        if value is None or value == "":
            continue
        target = raw.setdefault(section, {})
        if not isinstance(target, dict):
            raise ConfigValidationError("Section must be a mapping", field=section)
        if kind == "int":
            try:
                target[key] = int(value)
            except ValueError as exc:
                raise ConfigValidationError(f"Expected an integer, got {value!r}", field=name) from exc
        elif kind == "bool":
            target[key] = value.strip().lower() == "true"
        else:
            target[key] = value


_EXAMPLE = """\
# AccessHTML configuration
scraper:
  wcag_base_url: "https://www.w3.org/WAI/WCAG21/"
  techniques_path: "Techniques/"
  timeout_ms: 30000        # per request, at least 1000
  request_delay_ms: 1000   # pause between documentation pages

evaluator:
  wcag_level: AA           # A, AA or AAA
  min_impact_level: minor  # minor, moderate, serious or critical
  enable_aria_validation: true
  max_workers: 1

integration:
  output_dir: ./output
  cache_dir: ./cache
  update_interval_hours: 24
  auto_update: true

output:
  report_format: json      # json or markdown

logging:
  level: info              # error, warn, info or debug
  enable_file_logging: false
  log_file: ./logs/accesshtml.log
"""


def write_example(path: Path) -> Path:
    """Write a commented example config to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_EXAMPLE, encoding="utf-8")
    return path
