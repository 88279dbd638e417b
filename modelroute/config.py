"""App configuration — environment variable loading with typed defaults.

Loads settings from a .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.
Provider credentials (ANTHROPIC_API_KEY, OPENROUTER_API_KEY, ...) are not
copied into Settings; adapters read them from the environment at call time.

Default-model policy (MODELROUTE_DEFAULT_POLICY):
    builtin  — with nothing else configured, fall back to BUILTIN_FALLBACK_MODEL
    require  — with nothing else configured, resolution fails (NoDefaultModel)
MODELROUTE_MODEL, when set, is the process default under either policy.

Usage:
    from modelroute.config import get_settings
    settings = get_settings()
    print(settings.process_default_model)  # "openrouter/qwen/qwen3-coder:free"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from modelroute.models import BUILTIN_FALLBACK_MODEL

# Only load .env from the project root, never from parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_CONFIG_DIR = "~/.recoder-code"

POLICY_BUILTIN = "builtin"
POLICY_REQUIRE = "require"
_POLICIES = (POLICY_BUILTIN, POLICY_REQUIRE)


@dataclass(frozen=True)
class Settings:
    """Typed configuration for modelroute.

    All fields have sensible defaults for a single-user local install.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Storage
    config_dir: Path

    # Resolution
    env_model: str | None
    default_model_policy: str

    # Network
    catalog_ttl_seconds: float
    probe_timeout_seconds: float

    @property
    def process_default_model(self) -> str | None:
        """The identifier used when nothing is given and nothing is stored."""
        if self.env_model:
            return self.env_model
        if self.default_model_policy == POLICY_BUILTIN:
            return BUILTIN_FALLBACK_MODEL
        return None


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _positive_float(env_var: str, default: str) -> float:
    """Reads a positive number of seconds from the environment.

    Raises:
        ValueError: If the value is not a positive number.
    """
    raw = os.environ.get(env_var, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {env_var}: {raw!r}. Expected a number of seconds.") from None
    if value <= 0:
        raise ValueError(f"Invalid value for {env_var}: {raw!r}. Must be greater than zero.")
    return value


def _policy(value: str) -> str:
    """Validates MODELROUTE_DEFAULT_POLICY.

    Raises:
        ValueError: If the value is not a known policy.
    """
    policy = value.strip().lower()
    if policy in _POLICIES:
        return policy
    valid = ", ".join(_POLICIES)
    raise ValueError(
        f"Invalid value for MODELROUTE_DEFAULT_POLICY: {value!r}. "
        f"Valid options: {valid}"
    )


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "vscode-webview://*,http://localhost:3000")
        ),
        # Storage
        config_dir=Path(os.environ.get("MODELROUTE_CONFIG_DIR", DEFAULT_CONFIG_DIR)).expanduser(),
        # Resolution
        env_model=os.environ.get("MODELROUTE_MODEL", "").strip() or None,
        default_model_policy=_policy(os.environ.get("MODELROUTE_DEFAULT_POLICY", POLICY_BUILTIN)),
        # Network
        catalog_ttl_seconds=_positive_float("MODELROUTE_CATALOG_TTL", "600"),
        probe_timeout_seconds=_positive_float("MODELROUTE_PROBE_TIMEOUT", "5"),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
