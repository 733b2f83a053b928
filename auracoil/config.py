"""Configuration loading for auracoil (.auracoil/config.yaml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .bundle.builder import DEFAULT_EXCLUDE_PATTERNS, BundleConfig
from .errors import ConfigError
from .llm.oracle import ReviewerEnvironment

CONFIG_DIRNAME = ".auracoil"
CONFIG_FILENAME = "config.yaml"
CONFIG_VERSION = "1.0"

DEFAULT_DOCUMENT = "AGENTS.md"

DEFAULT_EXCLUDES: List[str] = [
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/target/**",
    "**/__pycache__/**",
    "**/venv/**",
    "**/.venv/**",
    "**/vendor/**",
    "**/coverage/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/package-lock.json",
    "**/yarn.lock",
    "**/pnpm-lock.yaml",
    "**/.env*",
    "**/credentials*",
    "**/secrets*",
    "**/*.pem",
    "**/*.key",
]


@dataclass
class AnalysisConfig:
    """Bundle budgets."""

    max_files: int = 50
    max_total_size: int = 500_000
    max_tokens: int = 100_000


@dataclass
class ReviewerConfig:
    """External reviewer invocation settings."""

    executable: str = "oracle"
    model: str = "gpt-5.2-pro"
    timeout: float = 1800.0
    env: Dict[str, str] = field(default_factory=dict)


@dataclass
class ReviewConfig:
    history_limit: int = 20
    cache: bool = False


@dataclass
class AuracoilConfig:
    """Represents the settings defined in .auracoil/config.yaml."""

    root: Path
    document: str = DEFAULT_DOCUMENT
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    reviewer: ReviewerConfig = field(default_factory=ReviewerConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)

    def bundle_config(self) -> BundleConfig:
        patterns = list(dict.fromkeys([*DEFAULT_EXCLUDE_PATTERNS, *self.exclude]))
        return BundleConfig(
            max_files=self.analysis.max_files,
            max_total_size=self.analysis.max_total_size,
            max_tokens=self.analysis.max_tokens,
            exclude_patterns=tuple(patterns),
        )

    def reviewer_environment(self) -> ReviewerEnvironment:
        return ReviewerEnvironment(executable=self.reviewer.executable, env=dict(self.reviewer.env))


def config_path(root: Path) -> Path:
    return root / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(root: Path | str) -> AuracoilConfig:
    """Load configuration for the repository at `root`; a missing file yields defaults."""
    root_path = Path(root).expanduser().resolve()
    path = config_path(root_path)
    if not path.exists():
        return AuracoilConfig(root=root_path)

    data = _read_config(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_DIRNAME}/{CONFIG_FILENAME} must contain a mapping at the root")

    defaults_analysis = AnalysisConfig()
    analysis_data = _as_dict(data.get("analysis"))
    analysis = AnalysisConfig(
        max_files=_positive(_as_int(analysis_data.get("max_files")), defaults_analysis.max_files),
        max_total_size=_positive(
            _as_int(analysis_data.get("max_total_size")), defaults_analysis.max_total_size
        ),
        max_tokens=_positive(_as_int(analysis_data.get("max_tokens")), defaults_analysis.max_tokens),
    )

    defaults_reviewer = ReviewerConfig()
    reviewer_data = _as_dict(data.get("reviewer"))
    timeout = _as_float(reviewer_data.get("timeout"))
    reviewer = ReviewerConfig(
        executable=_as_str(reviewer_data.get("executable")) or defaults_reviewer.executable,
        model=_as_str(reviewer_data.get("model")) or defaults_reviewer.model,
        timeout=timeout if timeout is not None and timeout > 0 else defaults_reviewer.timeout,
        env=_as_str_mapping(reviewer_data.get("env")),
    )

    defaults_review = ReviewConfig()
    review_data = _as_dict(data.get("review"))
    review_cache = _as_bool(review_data.get("cache"))
    review = ReviewConfig(
        history_limit=_positive(
            _as_int(review_data.get("history_limit")), defaults_review.history_limit
        ),
        cache=review_cache if review_cache is not None else defaults_review.cache,
    )

    exclude = _as_str_list(data.get("exclude")) if "exclude" in data else list(DEFAULT_EXCLUDES)

    return AuracoilConfig(
        root=root_path,
        document=_as_str(data.get("document")) or DEFAULT_DOCUMENT,
        analysis=analysis,
        exclude=exclude,
        reviewer=reviewer,
        review=review,
    )


def default_config_mapping() -> Dict[str, Any]:
    """Mapping written by `auracoil init`."""
    analysis = AnalysisConfig()
    reviewer = ReviewerConfig()
    review = ReviewConfig()
    return {
        "version": CONFIG_VERSION,
        "document": DEFAULT_DOCUMENT,
        "analysis": {
            "max_files": analysis.max_files,
            "max_total_size": analysis.max_total_size,
            "max_tokens": analysis.max_tokens,
        },
        "exclude": list(DEFAULT_EXCLUDES),
        "reviewer": {
            "executable": reviewer.executable,
            "model": reviewer.model,
            "timeout": int(reviewer.timeout),
            "env": {},
        },
        "review": {
            "history_limit": review.history_limit,
            "cache": review.cache,
        },
    }


def dump_config(mapping: Dict[str, Any]) -> str:
    return yaml.safe_dump(mapping, sort_keys=False, default_flow_style=False, width=100)


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _positive(value: Optional[int], default: int) -> int:
    return value if value is not None and value > 0 else default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_str_mapping(value: Any) -> Dict[str, str]:
    mapping = _as_dict(value)
    return {str(key): str(item) for key, item in mapping.items() if item is not None}


__all__ = [
    "AnalysisConfig",
    "AuracoilConfig",
    "ConfigError",
    "ReviewConfig",
    "ReviewerConfig",
    "config_path",
    "default_config_mapping",
    "dump_config",
    "load_config",
]
