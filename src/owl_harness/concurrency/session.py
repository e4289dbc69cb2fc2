"""
Session authority: the one browser session of a worker.

SDK v2 Notes:
- The session is an OwlBrowser client over a RemoteConfig, used as an async
  context manager
- Scenarios never see the client directly; they borrow it through a
  ScenarioWorld, which creates and closes its own context
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from owl_harness.errors import InfrastructureError

if TYPE_CHECKING:
    from owl_browser import OwlBrowser

    from owl_harness.config import HarnessConfig

logger = structlog.get_logger(__name__)

BrowserFactory = Callable[["HarnessConfig"], Any]


def create_browser(config: HarnessConfig) -> OwlBrowser:
    """Build the SDK client for ``config`` (not yet connected)."""
    from owl_browser import OwlBrowser, RemoteConfig

    remote_config = RemoteConfig(
        url=config.owl_endpoint,
        token=config.owl_token,
        max_concurrent=config.max_concurrent,
    )
    return OwlBrowser(remote_config)


class SessionAuthority:
    """
    Owns one browser session for the lifetime of a worker.

    Usage:
        async with SessionAuthority(config) as session:
            async with ScenarioWorld(session, config) as world:
                ...

    ``start()`` is idempotent. ``stop()`` is best-effort and never raises.
    """

    def __init__(
        self,
        config: HarnessConfig,
        browser_factory: BrowserFactory = create_browser,
        name: str = "worker",
    ) -> None:
        self._config = config
        self._browser_factory = browser_factory
        self._name = name
        self._stack: contextlib.AsyncExitStack | None = None
        self._browser: OwlBrowser | None = None
        self._log = logger.bind(component="session_authority", worker=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def started(self) -> bool:
        return self._browser is not None

    @property
    def browser(self) -> OwlBrowser:
        if self._browser is None:
            raise InfrastructureError(f"Browser session of {self._name} is not started")
        return self._browser

    async def start(self) -> None:
        """
        Open the browser session.

        Raises:
            InfrastructureError: The session could not be created
        """
        if self._browser is not None:
            return

        self._log.info(
            "Starting browser session",
            endpoint=self._config.owl_endpoint,
            headless=self._config.headless,
        )
        stack = contextlib.AsyncExitStack()
        try:
            client = self._browser_factory(self._config)
            browser = await stack.enter_async_context(client)
        except Exception as e:
            self._log.error("Browser session failed to start", error=str(e))
            with contextlib.suppress(Exception):
                await stack.aclose()
            raise InfrastructureError(f"Could not start browser session: {e}") from e

        self._stack = stack
        # Some clients return None from __aenter__
        self._browser = browser if browser is not None else client
        self._log.info("Browser session started")

    async def stop(self) -> None:
        """Close the browser session; teardown errors are logged, not raised."""
        stack, self._stack = self._stack, None
        self._browser = None
        if stack is None:
            return

        try:
            await stack.aclose()
            self._log.info("Browser session stopped")
        except Exception as e:
            self._log.warning("Error stopping browser session", error=str(e))

    async def __aenter__(self) -> SessionAuthority:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.stop()
