"""
Unified configuration state management.

This module provides a single source of truth for all application configuration,
combining hierarchical YAML files with environment overrides, type validation,
and sensible defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS - Type-Safe Configuration
# =============================================================================


class ProxySettings(BaseModel):
    """CORS pass-through proxy in front of every upstream request."""

    base_url: str = Field(default="http://localhost:3000/api/proxy")
    query_param: str = Field(default="url")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if v.startswith(("http://", "https://")):
            return v.rstrip("/")
        raise ValueError("Proxy URL must start with http:// or https://")

    class Config:
        extra = "allow"


class SheetSettings(BaseModel):
    """Google Sheets registry location and credentials."""

    spreadsheet_id: str = Field(default="")
    api_key: str = Field(default="")
    sheet_range: str = Field(default="Sheet1!A2:Z1000")
    base_url: str = Field(default="https://sheets.googleapis.com/v4/spreadsheets")

    class Config:
        extra = "allow"


class ExplorerSettings(BaseModel):
    """Blockscout stats endpoints."""

    transactions_path: str = Field(default="/api/v1/lines/newTxns")
    active_accounts_path: str = Field(default="/api/v1/lines/activeAccounts")
    default_start_date: str = Field(default="2000-01-01")

    class Config:
        extra = "allow"


class L2BeatSettings(BaseModel):
    """L2BEAT tRPC endpoints."""

    base_url: str = Field(default="https://l2beat.com/api/trpc")
    tvl_procedure: str = Field(default="tvl.chart")
    activity_procedure: str = Field(default="activity.chart")
    tvl_divisor: float = Field(default=1e8, gt=0)
    default_range: str = Field(default="max")

    class Config:
        extra = "allow"


class HttpSettings(BaseModel):
    """HTTP transport and fan-out limits."""

    timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    max_connections: int = Field(default=100, ge=1)
    max_concurrency: int = Field(default=16, ge=0)

    class Config:
        extra = "allow"


class CacheSettings(BaseModel):
    """Local dataset cache location and TTLs (seconds)."""

    cache_dir: str = Field(default=".raas_cache")
    default_ttl: float = Field(default=6 * 60 * 60, gt=0)
    ttls: dict[str, float] = Field(default_factory=dict)

    class Config:
        extra = "allow"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    class Config:
        extra = "allow"


class ConfigState(BaseModel):
    """
    Root configuration state - single source of truth for all app config.

    Provides unified access to all settings with type safety, validation,
    and sensible defaults.
    """

    proxy: ProxySettings = Field(default_factory=ProxySettings)
    sheets: SheetSettings = Field(default_factory=SheetSettings)
    explorer: ExplorerSettings = Field(default_factory=ExplorerSettings)
    l2beat: L2BeatSettings = Field(default_factory=L2BeatSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Environment metadata
    env: str = Field(default="dev")
    config_dir: str = Field(default="./config")

    class Config:
        extra = "allow"  # Allow additional fields from YAML


# =============================================================================
# CONFIG LOADER - Clean, Validated Loading
# =============================================================================


class ConfigLoader:
    """
    Load and validate configuration from hierarchical YAML files.

    Merges:
      1. Global defaults (hardcoded)
      2. YAML files from config_dir
      3. Environment-specific YAML (env/<env>.yaml)
      4. Environment variable overrides
    """

    CONFIG_FILES = ("sources.yaml", "cache.yaml")

    def __init__(self, config_dir: str | Path = "./config", env: str | None = None):
        self.config_dir = Path(config_dir)
        self._yaml_cache: dict[Path, Any] = {}
        self.env = env or os.getenv("RAAS_ENV", "dev")

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML file with caching."""
        if path in self._yaml_cache:
            return self._yaml_cache[path]

        if not path.exists():
            logger.debug(f"Config file not found (using defaults): {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Ignoring {path}: top level must be a mapping")
            return {}

        self._yaml_cache[path] = data
        logger.debug(f"Loaded config: {path.relative_to(self.config_dir)}")
        return data

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to config."""
        if proxy_url := os.getenv("RAAS_PROXY_URL"):
            config.setdefault("proxy", {})["base_url"] = proxy_url

        if api_key := os.getenv("SHEETS_API_KEY"):
            config.setdefault("sheets", {})["api_key"] = api_key

        if spreadsheet_id := os.getenv("SHEETS_SPREADSHEET_ID"):
            config.setdefault("sheets", {})["spreadsheet_id"] = spreadsheet_id

        if cache_dir := os.getenv("RAAS_CACHE_DIR"):
            config.setdefault("cache", {})["cache_dir"] = cache_dir

        if log_level := os.getenv("LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level

        return config

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        """Deep merge override into base dict."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def load(self) -> ConfigState:
        """
        Load complete configuration state.

        Returns:
            ConfigState: Validated configuration object

        Raises:
            ValidationError: If configuration is invalid
        """
        logger.info(f"Loading configuration from {self.config_dir} (env: {self.env})")

        config: dict[str, Any] = {}

        # 1. Load top-level YAML files
        for config_file in self.CONFIG_FILES:
            file_config = self._load_yaml(self.config_dir / config_file)
            config = self._merge_dicts(config, file_config)

        # 2. Load environment-specific overrides
        env_config = self._load_yaml(self.config_dir / "env" / f"{self.env}.yaml")
        config = self._merge_dicts(config, env_config)

        # 3. Apply environment variable overrides
        config = self._apply_env_overrides(config)

        # 4. Create ConfigState with validation
        config.pop("env", None)
        config.pop("config_dir", None)
        state = ConfigState(env=self.env, config_dir=str(self.config_dir), **config)
        logger.info(
            f"Configuration loaded: proxy={state.proxy.base_url}, "
            f"cache_dir={state.cache.cache_dir}, "
            f"sheets_key={'set' if state.sheets.api_key else 'missing'}"
        )
        return state


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================


def get_config(config_dir: str | None = None, env: str | None = None) -> ConfigState:
    """
    Load and return the global configuration state.

    Args:
        config_dir: Override config directory. Defaults to $RAAS_CONFIG_DIR or ./config
        env: Override environment name. Defaults to $RAAS_ENV or "dev"

    Returns:
        ConfigState: Validated configuration object
    """
    if config_dir is None:
        config_dir = os.getenv("RAAS_CONFIG_DIR", "./config")
        if not Path(config_dir).exists():
            logger.warning(f"Config directory not found at {config_dir}, using defaults")

    loader = ConfigLoader(config_dir=config_dir, env=env)
    return loader.load()


__all__ = [
    "CacheSettings",
    "ConfigLoader",
    "ConfigState",
    "ExplorerSettings",
    "HttpSettings",
    "L2BeatSettings",
    "LoggingConfig",
    "ProxySettings",
    "SheetSettings",
    "get_config",
]
