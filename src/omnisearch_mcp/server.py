"""
omnisearch-mcp server entry point.

Builds the provider registry from configuration, registers the MCP tools
whose backends are available and serves them over stdio.
"""

import logging
from typing import Optional

import click
from mcp.server.fastmcp import FastMCP

from omnisearch_mcp import __version__
from omnisearch_mcp.config import ServerConfig, set_config
from omnisearch_mcp.providers.registry import ProviderRegistry, initialize_providers
from omnisearch_mcp.tools import register_tools

logger = logging.getLogger(__name__)


def create_server(config: ServerConfig, registry: Optional[ProviderRegistry] = None) -> FastMCP:
    """
    Create and configure the FastMCP server.

    Args:
        config: Server configuration
        registry: Provider registry; built from ``config`` when omitted

    Returns:
        Configured FastMCP server instance
    """
    if registry is None:
        registry = initialize_providers(config)

    mcp = FastMCP(config.server_name)
    tools = register_tools(mcp, registry, config)
    if not tools:
        logger.warning("No tools registered; set at least one provider API key")

    logger.info(f"Server created: {config.server_name} v{__version__}")
    return mcp


@click.command("omnisearch-mcp")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML config file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.version_option(__version__, prog_name="omnisearch-mcp")
def main(config_file: Optional[str], log_level: Optional[str]) -> None:
    """Run the omnisearch MCP server over stdio."""
    config = ServerConfig.from_env(config_file)
    if log_level:
        config.log_level = log_level.upper()
    set_config(config)
    config.setup_logging()

    mcp = create_server(config)
    logger.info("Starting omnisearch-mcp server over stdio")
    mcp.run()


if __name__ == "__main__":
    main()
