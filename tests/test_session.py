"""Tests for the session authority."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from owl_harness.concurrency.session import SessionAuthority
from owl_harness.config import HarnessConfig
from owl_harness.errors import InfrastructureError


class TestSessionAuthority:
    """Test session start/stop."""

    async def test_start_opens_one_session(self, config: HarnessConfig, mock_browser: MagicMock) -> None:
        factory = MagicMock(return_value=mock_browser)
        session = SessionAuthority(config, browser_factory=factory, name="worker-1")

        await session.start()
        await session.start()

        assert session.started is True
        assert session.browser is mock_browser
        factory.assert_called_once_with(config)
        mock_browser.__aenter__.assert_awaited_once()

    async def test_browser_before_start(self, config: HarnessConfig) -> None:
        session = SessionAuthority(config, browser_factory=MagicMock())
        with pytest.raises(InfrastructureError, match="not started"):
            _ = session.browser

    async def test_connection_failure(self, config: HarnessConfig, mock_browser: MagicMock) -> None:
        mock_browser.__aenter__ = AsyncMock(side_effect=ConnectionError("refused"))
        session = SessionAuthority(config, browser_factory=MagicMock(return_value=mock_browser))

        with pytest.raises(InfrastructureError, match="refused") as exc_info:
            await session.start()

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert session.started is False

    async def test_factory_failure(self, config: HarnessConfig) -> None:
        factory = MagicMock(side_effect=ValueError("bad endpoint"))
        session = SessionAuthority(config, browser_factory=factory)

        with pytest.raises(InfrastructureError, match="bad endpoint"):
            await session.start()

    async def test_stop_closes_the_client(self, config: HarnessConfig, mock_browser: MagicMock) -> None:
        session = SessionAuthority(config, browser_factory=MagicMock(return_value=mock_browser))
        await session.start()

        await session.stop()

        mock_browser.__aexit__.assert_awaited_once()
        assert session.started is False

    async def test_stop_swallows_teardown_errors(self, config: HarnessConfig, mock_browser: MagicMock) -> None:
        mock_browser.__aexit__ = AsyncMock(side_effect=RuntimeError("socket closed"))
        session = SessionAuthority(config, browser_factory=MagicMock(return_value=mock_browser))
        await session.start()

        await session.stop()

        assert session.started is False

    async def test_stop_without_start(self, config: HarnessConfig) -> None:
        await SessionAuthority(config, browser_factory=MagicMock()).stop()

    async def test_context_manager(self, config: HarnessConfig, mock_browser: MagicMock) -> None:
        async with SessionAuthority(config, browser_factory=MagicMock(return_value=mock_browser)) as session:
            assert session.browser is mock_browser
        assert session.started is False
