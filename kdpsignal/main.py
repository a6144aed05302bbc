"""Command line entry point for KDP Signal.

    kdp-signal mcp [--no-scheduler]     MCP server on stdio (default)
    kdp-signal api [--host H --port P]  HTTP API under uvicorn
    kdp-signal generate [--user-id U]   one generation run, then exit
"""

import argparse
import asyncio
import logging
import sys

from mcp.server.stdio import stdio_server

from kdpsignal.config import settings
from kdpsignal.db.database import init_db
from kdpsignal.jobs import create_scheduler, run_generation
from kdpsignal.mcp import create_mcp_server

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kdp-signal",
        description="ASIN trend notifications for KDP publishers",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    commands = parser.add_subparsers(dest="command")

    mcp_parser = commands.add_parser("mcp", help="Serve the MCP tools over stdio")
    mcp_parser.add_argument("--no-scheduler", action="store_true", help="Do not run the nightly generation job")

    api_parser = commands.add_parser("api", help="Serve the HTTP API")
    api_parser.add_argument("--host", default=settings.api_host)
    api_parser.add_argument("--port", type=int, default=settings.api_port)

    generate_parser = commands.add_parser("generate", help="Generate notifications once and exit")
    generate_parser.add_argument("--user-id", help="Only this user's listings")

    return parser


async def serve_mcp(with_scheduler: bool = True) -> None:
    """Serve MCP over stdio, optionally alongside the nightly job."""
    await init_db()
    server = create_mcp_server()

    scheduler = create_scheduler() if with_scheduler else None
    if scheduler is not None:
        scheduler.start()

    logger.info(
        f"{settings.mcp_server_name} v{settings.mcp_server_version} listening on stdio "
        f"(scheduler {'on' if scheduler else 'off'})"
    )
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


async def generate_once(user_id: str | None = None) -> int:
    """Run one generation and return the process exit code."""
    await init_db()
    report = await run_generation(user_id=user_id)
    counts = report.counts
    logger.info(
        f"better={counts['better']} worse={counts['worse']} stable={counts['stable']} "
        f"failed={len(report.failed)}"
    )
    for failure in report.failed:
        logger.warning(f"{failure.user_id}/{failure.asin}: {failure.error}")
    return 1 if report.failed and not report.items else 0


def serve_api(host: str, port: int) -> None:
    import uvicorn

    from kdpsignal.api import app

    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # stdout carries the MCP protocol, so logs always go to stderr
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "api":
            serve_api(args.host, args.port)
        elif args.command == "generate":
            return asyncio.run(generate_once(args.user_id))
        else:
            asyncio.run(serve_mcp(with_scheduler=not getattr(args, "no_scheduler", False)))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
