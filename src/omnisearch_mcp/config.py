"""
Server configuration for omnisearch-mcp.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (omnisearch-mcp.toml)
3. Default values (lowest priority)

Environment variables:
- OMNISEARCH_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- OMNISEARCH_MCP_STRUCTURED_LOGGING: Emit JSON log lines (true/false)
- OMNISEARCH_MCP_DISABLED_TOOLS: Comma-separated tool names to leave unregistered
- OMNISEARCH_MCP_CONFIG_FILE: Path to TOML config file
- TAVILY_API_KEY, BRAVE_API_KEY, KAGI_API_KEY, PERPLEXITY_API_KEY,
  JINA_AI_API_KEY, FIRECRAWL_API_KEY, EXA_API_KEY, GITHUB_API_KEY:
  Provider credentials. A provider whose key is unset is not registered.

TOML layout:

    [server]
    name = "omnisearch-mcp"

    [logging]
    level = "DEBUG"
    structured = true

    [tools]
    disabled = ["exa_process"]

    [providers.brave]
    timeout = 15.0
    max_retries = 2

API keys are read from the environment only, never from the TOML file.
"""

import json
import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from omnisearch_mcp.core.http import AuthType
from omnisearch_mcp.core.models import ProviderConfig
from omnisearch_mcp.core.shared import redact_secrets

logger = logging.getLogger(__name__)

ENV_PREFIX = "OMNISEARCH_MCP_"
DEFAULT_CONFIG_FILES = ("omnisearch-mcp.toml", ".omnisearch-mcp.toml")
TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass(frozen=True)
class ProviderDefaults:
    """Built-in endpoint settings for one provider."""

    key_env: str
    base_url: str
    timeout: float
    auth_type: AuthType = "bearer"


PROVIDER_DEFAULTS: Mapping[str, ProviderDefaults] = MappingProxyType(
    {
        # search
        "tavily": ProviderDefaults("TAVILY_API_KEY", "https://api.tavily.com", 30.0),
        "brave": ProviderDefaults(
            "BRAVE_API_KEY", "https://api.search.brave.com/res/v1", 10.0, "custom"
        ),
        "kagi": ProviderDefaults("KAGI_API_KEY", "https://kagi.com/api/v0", 20.0, "custom"),
        "exa": ProviderDefaults("EXA_API_KEY", "https://api.exa.ai", 30.0, "custom"),
        "github": ProviderDefaults("GITHUB_API_KEY", "https://api.github.com", 20.0, "custom"),
        # ai_response
        "perplexity": ProviderDefaults("PERPLEXITY_API_KEY", "https://api.perplexity.ai", 60.0),
        "kagi_fastgpt": ProviderDefaults(
            "KAGI_API_KEY", "https://kagi.com/api/v0", 30.0, "custom"
        ),
        "exa_answer": ProviderDefaults("EXA_API_KEY", "https://api.exa.ai", 30.0, "custom"),
        # processing
        "tavily_extract": ProviderDefaults("TAVILY_API_KEY", "https://api.tavily.com", 30.0),
        "jina_reader": ProviderDefaults("JINA_AI_API_KEY", "https://r.jina.ai", 30.0),
        "kagi_summarizer": ProviderDefaults(
            "KAGI_API_KEY", "https://kagi.com/api/v0/summarize", 30.0, "custom"
        ),
        "firecrawl_scrape": ProviderDefaults(
            "FIRECRAWL_API_KEY", "https://api.firecrawl.dev/v1/scrape", 60.0
        ),
        "firecrawl_crawl": ProviderDefaults(
            "FIRECRAWL_API_KEY", "https://api.firecrawl.dev/v1/crawl", 120.0
        ),
        "firecrawl_map": ProviderDefaults(
            "FIRECRAWL_API_KEY", "https://api.firecrawl.dev/v1/map", 60.0
        ),
        "firecrawl_extract": ProviderDefaults(
            "FIRECRAWL_API_KEY", "https://api.firecrawl.dev/v1/extract", 60.0
        ),
        "firecrawl_actions": ProviderDefaults(
            "FIRECRAWL_API_KEY", "https://api.firecrawl.dev/v1/scrape", 90.0
        ),
        "exa_contents": ProviderDefaults("EXA_API_KEY", "https://api.exa.ai", 30.0, "custom"),
        "exa_similar": ProviderDefaults("EXA_API_KEY", "https://api.exa.ai", 30.0, "custom"),
        # enhancement
        "jina_grounding": ProviderDefaults("JINA_AI_API_KEY", "https://g.jina.ai", 20.0),
        "kagi_enrichment": ProviderDefaults(
            "KAGI_API_KEY", "https://kagi.com/api/v0/enrich", 20.0, "custom"
        ),
    }
)

_OVERRIDABLE = ("base_url", "timeout", "max_retries", "retry_delay")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _numeric_override(
    provider: str,
    overrides: Mapping[str, Any],
    key: str,
    default: float,
    cast: Callable[[Any], Any],
    minimum: float,
) -> Any:
    """Coerce one numeric override, falling back to ``default`` when unusable."""
    if key not in overrides:
        return cast(default)
    raw = overrides[key]
    try:
        if isinstance(raw, bool):
            raise ValueError("booleans are not numbers")
        value = cast(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring {key}={raw!r} for {provider}: {e}")
        return cast(default)
    if value < minimum:
        logger.warning(f"Ignoring {key}={raw!r} for {provider}: must be >= {minimum:g}")
        return cast(default)
    return value


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with secrets redacted from the message."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_secrets(record.getMessage()),
        }
        metric = getattr(record, "metric", None)
        if metric is not None:
            entry["metric"] = metric
        if record.exc_info:
            entry["exception"] = redact_secrets(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return redact_secrets(super().format(record))


@dataclass
class ServerConfig:
    """Server configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    # Server configuration
    server_name: str = "omnisearch-mcp"
    disabled_tools: List[str] = field(default_factory=list)

    # Provider configuration
    api_keys: Dict[str, str] = field(default_factory=dict)
    provider_overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            for default_path in DEFAULT_CONFIG_FILES:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = srv["name"]

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = bool(log["structured"])

        if "tools" in data:
            tools = data["tools"]
            if "disabled" in tools:
                self.disabled_tools = [str(t) for t in tools["disabled"]]

        for name, settings in data.get("providers", {}).items():
            if name not in PROVIDER_DEFAULTS:
                logger.warning(f"Ignoring settings for unknown provider: {name}")
                continue
            overrides = {k: v for k, v in settings.items() if k in _OVERRIDABLE}
            if "api_key" in settings:
                logger.warning(f"Ignoring api_key for {name} in {path}; use the environment")
            self.provider_overrides.setdefault(name, {}).update(overrides)

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get(f"{ENV_PREFIX}STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

        if disabled := os.environ.get(f"{ENV_PREFIX}DISABLED_TOOLS"):
            self.disabled_tools = [t.strip() for t in disabled.split(",") if t.strip()]

        for key_env in {d.key_env for d in PROVIDER_DEFAULTS.values()}:
            if value := os.environ.get(key_env):
                self.api_keys[key_env] = value

    def provider_config(self, name: str) -> Optional[ProviderConfig]:
        """Resolve the ``ProviderConfig`` for ``name``, or None if its key is unset."""
        defaults = PROVIDER_DEFAULTS.get(name)
        if defaults is None:
            raise KeyError(f"Unknown provider: {name}")

        api_key = self.api_keys.get(defaults.key_env)
        if not api_key or not api_key.strip():
            return None

        overrides = self.provider_overrides.get(name, {})
        return ProviderConfig(
            api_key=api_key,
            base_url=overrides.get("base_url", defaults.base_url),
            timeout=_numeric_override(name, overrides, "timeout", defaults.timeout, float, 0.001),
            max_retries=_numeric_override(name, overrides, "max_retries", 3, int, 0),
            retry_delay=_numeric_override(name, overrides, "retry_delay", 1.0, float, 0),
            auth_type=defaults.auth_type,
        )

    def setup_logging(self) -> None:
        """Configure logging based on settings.

        Logs go to stderr; stdout carries the stdio transport.
        """
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            formatter: logging.Formatter = StructuredFormatter()
        else:
            formatter = RedactingFormatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("omnisearch_mcp")
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
