"""Tests for server configuration loading and logging setup."""

import json
import logging
import sys

import pytest

from omnisearch_mcp.config import (
    PROVIDER_DEFAULTS,
    ServerConfig,
    StructuredFormatter,
    get_config,
    set_config,
)
from omnisearch_mcp.core.models import ProviderConfig

KEY_ENVS = sorted({d.key_env for d in PROVIDER_DEFAULTS.values()})


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no omnisearch settings in the environment."""
    monkeypatch.chdir(tmp_path)
    for name in KEY_ENVS:
        monkeypatch.delenv(name, raising=False)
    for suffix in ("LOG_LEVEL", "STRUCTURED_LOGGING", "DISABLED_TOOLS", "CONFIG_FILE"):
        monkeypatch.delenv(f"OMNISEARCH_MCP_{suffix}", raising=False)
    return monkeypatch


class TestFromEnv:
    def test_defaults(self, clean_env):
        config = ServerConfig.from_env()
        assert config.log_level == "INFO"
        assert config.structured_logging is False
        assert config.server_name == "omnisearch-mcp"
        assert config.disabled_tools == []
        assert config.api_keys == {}

    def test_environment_variables(self, clean_env):
        clean_env.setenv("OMNISEARCH_MCP_LOG_LEVEL", "debug")
        clean_env.setenv("OMNISEARCH_MCP_STRUCTURED_LOGGING", "yes")
        clean_env.setenv("OMNISEARCH_MCP_DISABLED_TOOLS", "exa_process, ,ai_search")
        clean_env.setenv("TAVILY_API_KEY", "tvly-abc")

        config = ServerConfig.from_env()

        assert config.log_level == "DEBUG"
        assert config.structured_logging is True
        assert config.disabled_tools == ["exa_process", "ai_search"]
        assert config.api_keys == {"TAVILY_API_KEY": "tvly-abc"}

    def test_toml_file(self, clean_env, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            '[server]\nname = "search-box"\n\n'
            '[logging]\nlevel = "warning"\nstructured = true\n\n'
            '[tools]\ndisabled = ["github_search"]\n\n'
            '[providers.brave]\ntimeout = 15.0\nmax_retries = 2\napi_key = "ignored"\n'
        )

        config = ServerConfig.from_env(str(path))

        assert config.server_name == "search-box"
        assert config.log_level == "WARNING"
        assert config.structured_logging is True
        assert config.disabled_tools == ["github_search"]
        assert config.provider_overrides == {"brave": {"timeout": 15.0, "max_retries": 2}}
        assert config.api_keys == {}

    def test_env_beats_toml(self, clean_env, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[logging]\nlevel = "WARNING"\n')
        clean_env.setenv("OMNISEARCH_MCP_CONFIG_FILE", str(path))
        clean_env.setenv("OMNISEARCH_MCP_LOG_LEVEL", "ERROR")

        assert ServerConfig.from_env().log_level == "ERROR"

    def test_default_file_in_working_directory(self, clean_env, tmp_path):
        (tmp_path / "omnisearch-mcp.toml").write_text('[server]\nname = "local"\n')
        assert ServerConfig.from_env().server_name == "local"

    def test_missing_file_keeps_defaults(self, clean_env, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="omnisearch_mcp.config"):
            config = ServerConfig.from_env(str(tmp_path / "absent.toml"))
        assert config.server_name == "omnisearch-mcp"
        assert "Config file not found" in caplog.text

    def test_invalid_toml_is_logged(self, clean_env, tmp_path, caplog):
        path = tmp_path / "broken.toml"
        path.write_text("[server\n")
        with caplog.at_level(logging.ERROR, logger="omnisearch_mcp.config"):
            ServerConfig.from_env(str(path))
        assert "Error loading config file" in caplog.text

    def test_unknown_provider_section_ignored(self, clean_env, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("[providers.bing]\ntimeout = 1.0\n")
        assert ServerConfig.from_env(str(path)).provider_overrides == {}


class TestProviderConfig:
    def test_unset_key(self):
        assert ServerConfig().provider_config("tavily") is None

    def test_unknown_provider(self):
        with pytest.raises(KeyError):
            ServerConfig().provider_config("bing")

    def test_defaults(self):
        config = ServerConfig(api_keys={"BRAVE_API_KEY": "brv"})
        brave = config.provider_config("brave")

        assert brave.api_key == "brv"
        assert brave.base_url == "https://api.search.brave.com/res/v1"
        assert brave.timeout == 10.0
        assert brave.max_retries == 3
        assert brave.retry_delay == 1.0
        assert brave.auth_type == "custom"

    def test_overrides(self):
        config = ServerConfig(
            api_keys={"FIRECRAWL_API_KEY": "fc"},
            provider_overrides={
                "firecrawl_crawl": {"base_url": "http://proxy.test/crawl", "retry_delay": 0.5}
            },
        )
        crawl = config.provider_config("firecrawl_crawl")

        assert crawl.base_url == "http://proxy.test/crawl"
        assert crawl.retry_delay == 0.5
        assert crawl.timeout == 120.0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_retries": -1},
            {"timeout": "fast"},
            {"timeout": 0},
            {"retry_delay": -0.5},
            {"max_retries": "three"},
            {"max_retries": True},
        ],
    )
    def test_unusable_overrides_fall_back_to_defaults(self, overrides, caplog):
        config = ServerConfig(
            api_keys={"BRAVE_API_KEY": "brv"}, provider_overrides={"brave": overrides}
        )
        with caplog.at_level(logging.WARNING, logger="omnisearch_mcp.config"):
            brave = config.provider_config("brave")

        assert (brave.timeout, brave.max_retries, brave.retry_delay) == (10.0, 3, 1.0)
        assert f"Ignoring {next(iter(overrides))}=" in caplog.text

    def test_bad_toml_override_does_not_stop_startup(self, clean_env, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[providers.tavily]\ntimeout = "fast"\nmax_retries = -1\n')
        clean_env.setenv("TAVILY_API_KEY", "tvly-abc")

        tavily = ServerConfig.from_env(str(path)).provider_config("tavily")

        assert tavily.timeout == 30.0
        assert tavily.max_retries == 3

    def test_provider_config_rejects_negative_budget(self):
        with pytest.raises(ValueError, match="max_retries must be non-negative"):
            ProviderConfig(api_key="k", base_url="https://x.test", max_retries=-1)

    def test_one_key_shared_by_several_providers(self):
        config = ServerConfig(api_keys={"EXA_API_KEY": "exa"})
        names = [n for n in PROVIDER_DEFAULTS if config.provider_config(n) is not None]
        assert names == ["exa", "exa_answer", "exa_contents", "exa_similar"]


class TestLogging:
    def test_setup_logging_writes_to_stderr(self):
        config = ServerConfig(log_level="DEBUG")
        config.setup_logging()

        root = logging.getLogger("omnisearch_mcp")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_setup_logging_is_idempotent(self):
        config = ServerConfig(structured_logging=True)
        config.setup_logging()
        config.setup_logging()

        handlers = logging.getLogger("omnisearch_mcp").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, StructuredFormatter)

    def test_structured_formatter_redacts(self):
        record = logging.LogRecord(
            "omnisearch_mcp.test", logging.INFO, __file__, 1, "using api_key=%s", ("sk-12345678abc",), None
        )
        record.metric = {"name": "tool.invocations"}

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "omnisearch_mcp.test"
        assert "sk-12345678abc" not in entry["message"]
        assert entry["metric"] == {"name": "tool.invocations"}


def test_global_config_round_trip():
    config = ServerConfig(server_name="global-test")
    set_config(config)
    assert get_config() is config
