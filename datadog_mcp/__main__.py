"""Run the Datadog MCP server over stdio: ``python -m datadog_mcp``."""

from .server import main

if __name__ == "__main__":
    main()
