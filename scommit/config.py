"""Configuration management for scommit."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigError

CONFIG_DIR_NAME = ".scommit"
CONFIG_FILE_NAME = "config.json"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_REQUEST_TIMEOUT = 20.0
DEFAULT_MAX_TOKENS = 480
DEFAULT_TEMPERATURE = 0.25

_TRUTHY = {"1", "true", "yes", "on"}

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Runtime configuration for scommit."""

    model: str = DEFAULT_MODEL
    llm_endpoint: str = DEFAULT_ENDPOINT
    api_key_env: str = DEFAULT_API_KEY_ENV
    git_repo_path: str = "."
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    auto_push: bool = True
    use_ai: bool = True

    def resolve_api_key(self) -> Optional[str]:
        """Return the API key from the configured environment variable."""
        value = os.environ.get(self.api_key_env)
        return value or None

    def ai_enabled(self) -> bool:
        """AI refinement runs only when enabled and a credential exists."""
        return self.use_ai and self.resolve_api_key() is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise configuration to a dict for persistence."""
        return asdict(self)


_CONFIG_STATE: Dict[str, Optional[Config]] = {"active": None}


def _ensure_path(path_like: Optional[Path]) -> Path:
    if path_like is None:
        return Path.cwd().resolve(strict=False)
    return Path(path_like).expanduser().resolve(strict=False)


def _config_file(repo_root: Optional[Path] = None) -> Path:
    return _ensure_path(repo_root) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _resolve_repo_path(raw: str, base_root: Path) -> str:
    candidate = Path(raw).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve(strict=False))
    return str((base_root / candidate).resolve(strict=False))


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.debug("ignoring non-numeric %s=%r", name, raw)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.debug("ignoring non-integer %s=%r", name, raw)
        return default


def save_config(config: Config, repo_root: Optional[Path] = None) -> Path:
    """Persist configuration JSON within the repository."""
    cfg_path = _config_file(repo_root)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()
    data["git_repo_path"] = _resolve_repo_path(
        data.get("git_repo_path") or ".", _ensure_path(repo_root)
    )
    config.git_repo_path = data["git_repo_path"]
    cfg_path.write_text(json.dumps(data, indent=2))
    return cfg_path


def load_persisted_config(
    repo_root: Optional[Path] = None,
) -> Optional[Config]:
    cfg_path = _config_file(repo_root)
    if not cfg_path.exists():
        return None
    try:
        data = json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config file {cfg_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file {cfg_path}: expected object")
    known = {f.name for f in fields(Config)}
    unknown = set(data) - known
    if unknown:
        logger.debug("dropping unknown config keys: %s", sorted(unknown))
    data = {k: v for k, v in data.items() if k in known}
    resolved_root = cfg_path.parent.parent
    data["git_repo_path"] = _resolve_repo_path(
        data.get("git_repo_path") or ".", resolved_root
    )
    return Config(**data)


def load_config(
    *,
    repo_root: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """Build configuration from config file, environment and overrides."""

    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    repo_root = _ensure_path(repo_root)
    persisted = load_persisted_config(repo_root)

    model = (
        overrides.get("model")
        or (persisted.model if persisted else None)
        or os.environ.get("SCOMMIT_MODEL")
        or DEFAULT_MODEL
    )
    endpoint = (
        overrides.get("endpoint")
        or (persisted.llm_endpoint if persisted else None)
        or os.environ.get("SCOMMIT_LLM_ENDPOINT")
        or DEFAULT_ENDPOINT
    )
    api_key_env = (
        overrides.get("api_key_env")
        or (persisted.api_key_env if persisted else None)
        or os.environ.get("SCOMMIT_API_KEY_ENV")
        or DEFAULT_API_KEY_ENV
    )

    git_repo_path = _resolve_repo_path(
        overrides.get("repo_path")
        or os.environ.get("SCOMMIT_GIT_REPO_PATH")
        or (persisted.git_repo_path if persisted else str(repo_root)),
        repo_root,
    )

    if "request_timeout" in overrides:
        request_timeout = float(overrides["request_timeout"])
    elif persisted is not None:
        request_timeout = persisted.request_timeout
    else:
        request_timeout = _env_float(
            "SCOMMIT_LLM_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT
        )

    if persisted is not None:
        max_tokens = persisted.max_tokens
        temperature = persisted.temperature
    else:
        max_tokens = _env_int("SCOMMIT_MAX_TOKENS", DEFAULT_MAX_TOKENS)
        temperature = DEFAULT_TEMPERATURE

    auto_push_env = os.environ.get("SCOMMIT_AUTO_PUSH")
    if "auto_push" in overrides:
        auto_push = _as_bool(overrides["auto_push"])
    elif persisted is not None:
        auto_push = bool(persisted.auto_push)
    elif auto_push_env:
        auto_push = _as_bool(auto_push_env)
    else:
        auto_push = True

    use_ai_env = os.environ.get("SCOMMIT_USE_AI")
    if "use_ai" in overrides:
        use_ai = _as_bool(overrides["use_ai"])
    elif persisted is not None:
        use_ai = bool(persisted.use_ai)
    elif use_ai_env:
        use_ai = _as_bool(use_ai_env)
    else:
        use_ai = True

    if request_timeout <= 0:
        raise ConfigError(f"request timeout must be positive: {request_timeout}")

    config = Config(
        model=model,
        llm_endpoint=endpoint,
        api_key_env=api_key_env,
        git_repo_path=git_repo_path,
        request_timeout=request_timeout,
        max_tokens=max_tokens,
        temperature=temperature,
        auto_push=auto_push,
        use_ai=use_ai,
    )

    set_active_config(config)
    return config


def set_active_config(config: Config) -> None:
    _CONFIG_STATE["active"] = config


def get_active_config() -> Config:
    active = _CONFIG_STATE.get("active")
    if active is None:
        return load_config()
    return active


def clear_active_config() -> None:
    _CONFIG_STATE["active"] = None
