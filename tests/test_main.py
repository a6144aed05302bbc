"""Tests for the command line entry point."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kdpsignal.main import build_parser, generate_once, main, serve_mcp
from kdpsignal.notifications.engine import GenerationReport, ListingFailure
from kdpsignal.notifications.snapshot import SnapshotPayload


def create_payload(status: str = "better") -> SnapshotPayload:
    return SnapshotPayload(
        asin="A1",
        user_id="user-1",
        status=status,
        net_impact=5.0,
        sentiment="Improving",
        drivers=["BSR improved"],
        confidence="high",
        details={},
        algo_version="notifications.v1",
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


class TestParser:
    """Tests for argument parsing."""

    def test_defaults_to_mcp_with_scheduler(self):
        args = build_parser().parse_args([])

        assert args.command is None
        assert not getattr(args, "no_scheduler", False)

    def test_generate_user(self):
        args = build_parser().parse_args(["generate", "--user-id", "user-1"])

        assert args.command == "generate"
        assert args.user_id == "user-1"

    def test_api_port(self):
        args = build_parser().parse_args(["api", "--port", "9000"])

        assert args.port == 9000
        assert args.host == "0.0.0.0"

    def test_mcp_without_scheduler(self):
        args = build_parser().parse_args(["mcp", "--no-scheduler"])

        assert args.no_scheduler is True


class TestGenerateOnce:
    """Tests for the one-shot generation command."""

    @pytest.mark.asyncio
    async def test_success_exit_code(self):
        report = GenerationReport()
        report.add(create_payload())
        report.failed.append(ListingFailure("user-1", "A2", "timeout"))

        with patch("kdpsignal.main.init_db", AsyncMock()), \
             patch("kdpsignal.main.run_generation", AsyncMock(return_value=report)) as run:
            code = await generate_once("user-1")

        assert code == 0
        run.assert_awaited_once_with(user_id="user-1")

    @pytest.mark.asyncio
    async def test_every_listing_failed(self):
        report = GenerationReport()
        report.failed.append(ListingFailure("user-1", "*", "database unavailable"))

        with patch("kdpsignal.main.init_db", AsyncMock()), \
             patch("kdpsignal.main.run_generation", AsyncMock(return_value=report)):
            assert await generate_once() == 1


class TestServeMcp:
    """Tests for the stdio server lifecycle."""

    def _patches(self, server, scheduler):
        streams = MagicMock()
        streams.__aenter__ = AsyncMock(return_value=("read", "write"))
        streams.__aexit__ = AsyncMock(return_value=False)
        return (
            patch("kdpsignal.main.init_db", AsyncMock()),
            patch("kdpsignal.main.create_mcp_server", return_value=server),
            patch("kdpsignal.main.create_scheduler", return_value=scheduler),
            patch("kdpsignal.main.stdio_server", return_value=streams),
        )

    @pytest.mark.asyncio
    async def test_scheduler_is_shut_down_after_server_exits(self):
        server, scheduler = MagicMock(), MagicMock()
        server.run = AsyncMock(side_effect=RuntimeError("stream closed"))
        init_db, create_server, create_sched, stdio = self._patches(server, scheduler)

        with init_db, create_server, create_sched, stdio:
            with pytest.raises(RuntimeError):
                await serve_mcp()

        scheduler.start.assert_called_once()
        scheduler.shutdown.assert_called_once_with(wait=False)
        assert server.run.await_args.args[:2] == ("read", "write")

    @pytest.mark.asyncio
    async def test_without_scheduler(self):
        server, scheduler = MagicMock(), MagicMock()
        server.run = AsyncMock()
        init_db, create_server, create_sched, stdio = self._patches(server, scheduler)

        with init_db, create_server, create_sched as factory, stdio:
            await serve_mcp(with_scheduler=False)

        factory.assert_not_called()
        server.run.assert_awaited_once()


class TestMain:
    """Tests for command dispatch."""

    def test_generate_command(self):
        with patch("kdpsignal.main.generate_once", AsyncMock(return_value=1)) as generate:
            assert main(["generate", "--user-id", "user-1"]) == 1

        generate.assert_awaited_once_with("user-1")

    def test_default_command_serves_mcp(self):
        with patch("kdpsignal.main.serve_mcp", AsyncMock()) as serve:
            assert main([]) == 0

        serve.assert_awaited_once_with(with_scheduler=True)

    def test_api_command(self):
        with patch("kdpsignal.main.serve_api") as serve:
            main(["api", "--host", "127.0.0.1", "--port", "8080"])

        serve.assert_called_once_with("127.0.0.1", 8080)
