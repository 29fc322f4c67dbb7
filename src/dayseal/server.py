"""dayseal server - main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# MCP imports are optional - only needed when running the server
try:
    from mcp.server import Server  # pragma: no cover
    from mcp.server.stdio import stdio_server  # pragma: no cover
    from mcp.types import Tool, TextContent  # pragma: no cover
    HAS_MCP = True  # pragma: no cover
except ImportError:
    HAS_MCP = False
    Server = None  # type: ignore
    Tool = None  # type: ignore
    TextContent = None  # type: ignore

from .config import DaySealConfig, load_config
from .controller import DailyRecordController
from .log import configure_logging, get_logger
from .results import DaySealError
from .storage import JsonFileStore
from .tools import execute_tool, make_tools

logger = get_logger(__name__)


def create_controller(config: DaySealConfig) -> DailyRecordController:
    """Wire a controller to the file store described by ``config``."""
    store = JsonFileStore(config.get_data_path(), lock_timeout=config.lock_timeout)
    store.ensure_directory()
    return DailyRecordController(store, config=config)


def create_server(config: DaySealConfig) -> "Server":
    """Create and configure the MCP server.

    Raises:
        ImportError: If MCP package is not installed
    """
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install dayseal[mcp]"
        )

    server = Server("dayseal")
    controller = create_controller(config)
    tool_defs = make_tools(controller)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool invocation."""
        result = await execute_tool(controller, name, arguments or {})
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: DaySealConfig) -> None:
    """Run the MCP server with stdio transport."""
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install dayseal[mcp]"
        )

    server = create_server(config)  # pragma: no cover

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="dayseal - daily tasks and journal, sealed into a permanent record"
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Directory holding records and config (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Create the record directory and exit",
    )

    args = parser.parse_args()
    project_root = args.project_root.resolve()

    try:
        config = load_config(project_root, args.config)
    except (DaySealError, OSError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_level, config.log_json)

    if args.init:
        create_controller(config)
        print(f"Initialized record directory in {project_root}")
        print(f"  - {config.data_dir}/")
        return

    # Check for MCP before starting the server
    if not HAS_MCP:
        print("Error: MCP package not installed.", file=sys.stderr)
        print("Install with: pip install dayseal[mcp]", file=sys.stderr)
        sys.exit(1)

    logger.info("server_starting", project_root=str(project_root))
    asyncio.run(run_server(config))


if __name__ == "__main__":  # pragma: no cover
    main()
