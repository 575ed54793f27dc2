"""
Axicov SDK HTTP server entry point.

Usage:
    # Built-in tool registries
    python -m axicov_sdk --port 3000

    # Custom selectable registry (ToolRegistry, mapping or list of factories)
    python -m axicov_sdk --registry my_tools.registry:ALL_TOOLS --core-registry my_tools.registry:CORE
"""
import argparse
import asyncio
import logging

import uvicorn

from .config import Settings
from .http_api import ENDPOINTS, create_app
from .registry import ToolRegistry
from .store import AgentStore

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Axicov SDK Server")
    parser.add_argument("--host", help="Bind address (env HOST)")
    parser.add_argument("--port", type=int, help="Bind port (env PORT)")
    parser.add_argument("--registry", help="Selectable tool registry as 'package.module:attribute'")
    parser.add_argument("--core-registry", help="Core tool registry as 'package.module:attribute'")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def build_app(args: argparse.Namespace, settings: Settings):
    """Create the FastAPI app with the registries selected on the command line."""
    from .tools.builtin import CORE_REGISTRY, TOOL_REGISTRY

    core_registry = ToolRegistry.from_import_path(args.core_registry) if args.core_registry else CORE_REGISTRY
    all_registry = ToolRegistry.from_import_path(args.registry) if args.registry else TOOL_REGISTRY

    logger.info(f"Core tools: {core_registry.keys()}")
    logger.info(f"Selectable tools: {all_registry.keys()}")
    return create_app(
        store=AgentStore.get_instance(),
        core_registry=core_registry,
        all_registry=all_registry,
        settings=settings,
    )


async def main(argv=None):
    """Main entry point for the server."""
    args = parse_args(argv)
    settings = Settings.from_environment()
    host = args.host or settings.host
    port = args.port or settings.port
    log_level = (args.log_level or settings.log_level).upper()

    logging.basicConfig(level=log_level)

    app = build_app(args, settings)

    logger.info(f"Axicov SDK Server running on {host}:{port}")
    logger.info("Endpoints:")
    for endpoint in ENDPOINTS:
        logger.info(f"  {endpoint}")

    config = uvicorn.Config(app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
