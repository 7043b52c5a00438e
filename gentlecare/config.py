"""
Configuration for the GentleCare assistant.

Loaded from gentlecare.yaml. Search order:
  1. explicit path (--config)
  2. ./gentlecare.yaml
  3. ~/.gentlecare/config.yaml

Missing file means defaults. A file that exists but is malformed raises
ConfigError. API keys fall back to OPENAI_API_KEY / ANTHROPIC_API_KEY for the
backend in effect after CLI overrides.

    assistant:
      default_mode: hybrid          # on_device | cloud | hybrid
      simple_word_limit: 10
      companion_name: GentleCare AI
      sensitive_terms: [...]
      keywords:
        medical_advice: [...]
    cloud:
      backend: openai               # openai | anthropic
      model: gpt-4o-mini
      base_url: null
      api_key: null
      timeout: 30
      max_tokens: 512
    connectivity:
      probe_url: https://www.gstatic.com/generate_204
      timeout: 2
      offline: false
    audit:
      enabled: true
      log_dir: ~/.gentlecare
    locale:
      fallback_name: amigo
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .assistant.classifier import DEFAULT_KEYWORD_SETS, SIMPLE_WORD_LIMIT
from .assistant.cloud import BACKENDS
from .assistant.connectivity import DEFAULT_PROBE_URL
from .assistant.on_device import FALLBACK_NAME
from .assistant.schemas import AIMode, ProfileSnapshot
from .assistant.sensitivity import SENSITIVE_TERMS
from .errors import ConfigError


def config_candidates() -> list[Path]:
    return [
        Path.cwd() / "gentlecare.yaml",
        Path.home() / ".gentlecare" / "config.yaml",
    ]


KEYWORD_CATEGORIES = tuple(k.category.value for k in DEFAULT_KEYWORD_SETS)

API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


@dataclass
class RoutingConfig:
    default_mode: AIMode = AIMode.HYBRID
    simple_word_limit: int = SIMPLE_WORD_LIMIT
    sensitive_terms: list[str] = field(default_factory=lambda: list(SENSITIVE_TERMS))
    keywords: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class CloudConfig:
    backend: str = "openai"
    model: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 30.0
    max_tokens: int = 512

    @property
    def resolved_api_key(self) -> Optional[str]:
        """The explicit key, else the environment key for the current backend."""
        return self.api_key or os.environ.get(API_KEY_ENV[self.backend])


@dataclass
class ConnectivityConfig:
    probe_url: str = DEFAULT_PROBE_URL
    timeout: float = 2.0
    offline: bool = False


@dataclass
class AuditConfig:
    enabled: bool = True
    log_dir: Optional[Path] = None


@dataclass
class AssistantConfig:
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    cloud: CloudConfig = field(default_factory=CloudConfig)
    connectivity: ConnectivityConfig = field(default_factory=ConnectivityConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    companion_name: str = "GentleCare AI"
    fallback_name: str = FALLBACK_NAME
    source: Optional[Path] = None


def load_yaml(path: Path) -> dict:
    """Read one YAML mapping. Empty file is an empty mapping."""
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"{path}: cannot read: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return raw


def find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    if explicit:
        path = Path(explicit).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    for candidate in config_candidates():
        if candidate.exists():
            return candidate
    return None


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _positive(value: Any, name: str, kind=float):
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return number


def parse_mode(value: Any) -> AIMode:
    try:
        return AIMode(str(value).lower())
    except ValueError as e:
        options = ", ".join(m.value for m in AIMode)
        raise ConfigError(f"Unknown AI mode {value!r} (expected one of: {options})") from e


def _string_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings")
    return [v.lower() for v in value]


def build_routing(section: dict) -> RoutingConfig:
    routing = RoutingConfig()
    if "default_mode" in section:
        routing.default_mode = parse_mode(section["default_mode"])
    if "simple_word_limit" in section:
        routing.simple_word_limit = _positive(
            section["simple_word_limit"], "assistant.simple_word_limit", int
        )
    if "sensitive_terms" in section:
        routing.sensitive_terms = _string_list(
            section["sensitive_terms"], "assistant.sensitive_terms"
        )

    keywords = section.get("keywords") or {}
    if not isinstance(keywords, dict):
        raise ConfigError("assistant.keywords must be a mapping")
    for category, words in keywords.items():
        if category not in KEYWORD_CATEGORIES:
            raise ConfigError(
                f"assistant.keywords: unknown category {category!r} "
                f"(expected one of: {', '.join(KEYWORD_CATEGORIES)})"
            )
        routing.keywords[category] = _string_list(words, f"assistant.keywords.{category}")
    return routing


def build_cloud(section: dict) -> CloudConfig:
    cloud = CloudConfig()
    backend = section.get("backend", cloud.backend)
    if backend not in BACKENDS:
        raise ConfigError(f"cloud.backend must be one of {BACKENDS}, got {backend!r}")
    cloud.backend = backend
    cloud.model = section.get("model", cloud.model)
    cloud.base_url = section.get("base_url", cloud.base_url)
    cloud.api_key = section.get("api_key")
    if "timeout" in section:
        cloud.timeout = _positive(section["timeout"], "cloud.timeout")
    if "max_tokens" in section:
        cloud.max_tokens = _positive(section["max_tokens"], "cloud.max_tokens", int)
    return cloud


def build_config(raw: dict, source: Optional[Path] = None) -> AssistantConfig:
    """Turn a parsed YAML mapping into an AssistantConfig."""
    assistant = _section(raw, "assistant")
    net = _section(raw, "connectivity")
    audit = _section(raw, "audit")
    locale = _section(raw, "locale")

    connectivity = ConnectivityConfig(
        probe_url=net.get("probe_url", DEFAULT_PROBE_URL),
        offline=bool(net.get("offline", False)),
    )
    if "timeout" in net:
        connectivity.timeout = _positive(net["timeout"], "connectivity.timeout")

    log_dir = audit.get("log_dir")
    return AssistantConfig(
        routing=build_routing(assistant),
        cloud=build_cloud(_section(raw, "cloud")),
        connectivity=connectivity,
        audit=AuditConfig(
            enabled=bool(audit.get("enabled", True)),
            log_dir=Path(log_dir).expanduser() if log_dir else None,
        ),
        companion_name=assistant.get("companion_name", "GentleCare AI"),
        fallback_name=locale.get("fallback_name", FALLBACK_NAME),
        source=source,
    )


def load_config(path: Optional[str] = None) -> AssistantConfig:
    """Find, read and validate gentlecare.yaml. Defaults if none exists."""
    found = find_config_file(path)
    if found is None:
        return build_config({})
    return build_config(load_yaml(found), source=found)


def load_profile(path: str) -> ProfileSnapshot:
    """Read a care-recipient profile from YAML.

        first_name: Rosa
        last_name: Garcia
        age: 78
        medical_conditions: [hipertension]
        allergies: [penicilina]
        preferred_ai_mode: hybrid
        active_medications:
          - {name: Losartan, dose: 50 mg, next_dose_at: 2026-10-17T20:00:00}
        upcoming_appointments:
          - {doctor_name: Dra. Lopez, starts_at: 2026-10-20T10:30:00, location: Clinica Norte}
    """
    file = Path(path).expanduser()
    if not file.exists():
        raise ConfigError(f"Profile file not found: {file}")
    try:
        return ProfileSnapshot.model_validate(load_yaml(file))
    except ValidationError as e:
        raise ConfigError(f"{file}: invalid profile: {e}") from e
