import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()


def main() -> None:
    try:
        from ssh_mcp.server import connection_manager, mcp, settings
    except Exception:
        logger.exception("Fatal error while starting SSH MCP server")
        sys.exit(1)

    logger.info(f"SSH MCP server running on {settings.transport}")
    try:
        mcp.run(transport=settings.transport)
    except Exception:
        logger.exception("Fatal error in SSH MCP server")
        sys.exit(1)
    finally:
        connection_manager.close_all()


if __name__ == "__main__":
    main()
