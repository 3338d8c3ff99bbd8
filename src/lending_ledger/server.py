"""Lending Ledger MCP Server - FastMCP Implementation

Exposes the library's catalog and lending ledger to MCP clients over stdio.

Features exposed:
- Resources: Book catalog, patron records, loan history, overdue loans,
  statistics and the book report
- Tools: Catalog maintenance, loans, returns, reservations, extensions,
  fine payments, fine accrual and overdue notices
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import get_config
from .database.session import get_db_manager
from .resources import all_resources
from .tools import all_tools

# Load configuration
config = get_config()

# Initialize logging - stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=config.effective_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

# Create the FastMCP server instance
mcp = FastMCP(
    name=config.server_name,
    version=config.server_version,
    instructions=(
        "Lending Ledger - a library lending system. Books can be loaned to one patron "
        "at a time for 14 days; reservations queue patrons for the next loan; overdue "
        "loans accrue fines of $0.50 per day. Use resources to inspect the catalog, "
        "loans and statistics, and tools to lend, return, reserve and manage fines."
    ),
)

# Register all resources with the MCP server
for resource in all_resources:
    uri = resource.get("uri_template", resource.get("uri"))
    if not uri:
        logger.error("Resource missing URI: %s", resource)
        continue

    logger.debug("Registering resource: %s with URI: %s", resource["name"], uri)
    try:
        mcp.resource(
            uri=uri,
            name=resource["name"],
            description=resource["description"],
            mime_type=resource["mime_type"],
        )(resource["handler"])
    except Exception:
        logger.exception("Failed to register resource %s", resource["name"])
        raise

logger.info("Registered %d resources", len(all_resources))

# Register all tools with the MCP server
for tool in all_tools:
    logger.debug("Registering tool: %s", tool["name"])
    try:
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])
    except Exception:
        logger.exception("Failed to register tool %s", tool["name"])
        raise

logger.info("Registered %d tools", len(all_tools))


def run_stdio_server() -> None:
    """Run the MCP server using stdio transport.

    Stdin receives JSON-RPC requests, stdout sends responses.
    """
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    if not config.debug:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # The in-memory database starts empty; create the schema before serving
    db = get_db_manager()
    if not db.verify_connection():
        logger.error("Database unavailable: %s", db.database_url)
        sys.exit(1)

    try:
        logger.info("MCP Server ready and waiting for connections...")
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


def main() -> None:
    """Main entry point for the MCP server.

    Started via ``python -m lending_ledger.server`` or the
    ``lending-ledger`` console script.
    """
    try:
        logger.info("=" * 60)
        logger.info("Lending Ledger MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Notifier: %s", config.notifier)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        if config.transport == "stdio":
            run_stdio_server()
        else:
            logger.error("Unsupported transport: %s", config.transport)
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
