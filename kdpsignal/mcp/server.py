"""MCP Server setup for KDP Signal."""

from mcp.server import Server
from mcp.types import Tool, TextContent

from kdpsignal.config import settings
from .tools import (
    get_notifications_handler,
    get_notification_summary_handler,
    estimate_royalty_handler,
)


def create_mcp_server() -> Server:
    """Create and configure the MCP server."""
    server = Server(settings.mcp_server_name)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available MCP tools."""
        return [
            Tool(
                name="get_notifications",
                description="""List a publisher's ASIN notifications, most relevant first.

Each notification carries:
- Status (better / worse / stable) and net impact
- The drivers that moved (review velocity, BSR, royalty, price)
- Confidence (high / medium / low) based on data coverage
- A relevance score (0-100) learnt from the user's feedback

Example: get_notifications(user_id="u-123", recommended_only=true)""",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "user_id": {
                            "type": "string",
                            "description": "Publisher user ID",
                        },
                        "asin": {
                            "type": "string",
                            "description": "Only notifications for this ASIN",
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Number of notifications (default: 10, max: 100)",
                            "default": 10,
                        },
                        "recommended_only": {
                            "type": "boolean",
                            "description": "Only notifications scoring at or above the recommend threshold",
                            "default": False,
                        },
                    },
                    "required": ["user_id"],
                },
            ),
            Tool(
                name="get_notification_summary",
                description="""Summarize how a publisher's catalog is trending.

Returns better/worse/stable counts and the average net impact, either for
the latest day with data or for the whole window.""",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "user_id": {
                            "type": "string",
                            "description": "Publisher user ID",
                        },
                        "asin": {
                            "type": "string",
                            "description": "Only this ASIN",
                        },
                        "window_days": {
                            "type": "integer",
                            "description": "Days to look back (1-90, default: 30)",
                            "default": 30,
                        },
                        "mode": {
                            "type": "string",
                            "enum": ["latest", "window"],
                            "default": "latest",
                        },
                    },
                    "required": ["user_id"],
                },
            ),
            Tool(
                name="estimate_royalty",
                description="""Estimate the KDP paperback royalty per copy.

Returns the VAT-exclusive price, printing cost and net royalty for the
marketplace. With a BSR, also returns an estimated monthly sales and
income band.

Example: estimate_royalty(price=9.99, page_count=200, country="com", bsr=15000)""",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "price": {
                            "type": "number",
                            "description": "List price including VAT",
                        },
                        "page_count": {
                            "type": "integer",
                            "description": "Interior page count (default: 120)",
                        },
                        "country": {
                            "type": "string",
                            "description": "Amazon marketplace domain suffix (com, co.uk, de, fr, it, es)",
                            "default": "com",
                        },
                        "interior_type": {
                            "type": "string",
                            "enum": ["bw", "color", "premium"],
                            "default": "bw",
                        },
                        "trim_size": {
                            "type": "string",
                            "description": "Trim size, e.g. '6 x 9 in'",
                        },
                        "bsr": {
                            "type": "integer",
                            "description": "Best Sellers Rank for the income estimate",
                        },
                    },
                    "required": ["price"],
                },
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        """Handle tool calls."""
        handlers = {
            "get_notifications": get_notifications_handler,
            "get_notification_summary": get_notification_summary_handler,
            "estimate_royalty": estimate_royalty_handler,
        }

        handler = handlers.get(name)
        if not handler:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        try:
            result = await handler(arguments)
            return [TextContent(type="text", text=result)]
        except Exception as e:
            return [TextContent(type="text", text=f"Error: {str(e)}")]

    return server
