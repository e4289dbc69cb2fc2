"""Configuration and constants for the harness."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urljoin

DEFAULT_BASE_URL = "https://www.pandashop.md"
DEFAULT_TAGS = "not @skip"

# Logical pages of the target shop, relative to the base URL
PAGE_PATHS: dict[str, str] = {
    "home": "/",
    "catalog": "/catalog",
    "cart": "/cart",
    "search": "/search",
    "category": "/category",
}

_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in _FALSE_VALUES


@dataclass
class HarnessConfig:
    """Configuration for a scenario run.

    Empty or ``None`` fields fall back to the environment (``BASE_URL``,
    ``HEADLESS``, ``WORKERS``, ``TIMEOUT``, ``TAGS``, ``OWL_ENDPOINT``,
    ``OWL_TOKEN``) and then to the defaults below.
    """

    base_url: str = ""
    headless: bool | None = None
    workers: int = 0
    timeout_ms: int = 0  # default bounded wait for elements
    navigation_timeout_ms: int = 0
    settle_ms: int = 2000  # network-idle bound after navigation
    dismiss_timeout_ms: int = 1500  # per-call bound while dismissing popups
    popup_appear_delay_ms: int = 1500
    popup_settle_ms: int = 300
    tags: str | None = None
    owl_endpoint: str = ""
    owl_token: str = ""
    max_concurrent: int = 10
    page_paths: dict[str, str] = field(default_factory=lambda: dict(PAGE_PATHS))

    def __post_init__(self) -> None:
        if not self.base_url:
            self.base_url = os.environ.get("BASE_URL", "") or DEFAULT_BASE_URL
        self.base_url = self.base_url.rstrip("/")
        if self.headless is None:
            self.headless = _env_bool("HEADLESS", True)
        if not self.workers:
            self.workers = _env_int("WORKERS", 2)
        if not self.timeout_ms:
            self.timeout_ms = _env_int("TIMEOUT", 10000)
        if not self.navigation_timeout_ms:
            self.navigation_timeout_ms = _env_int("NAVIGATION_TIMEOUT", 30000)
        if self.tags is None:
            self.tags = os.environ.get("TAGS", DEFAULT_TAGS)
        if not self.owl_endpoint:
            self.owl_endpoint = os.environ.get("OWL_ENDPOINT", "")
        if not self.owl_token:
            self.owl_token = os.environ.get("OWL_TOKEN", "")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.timeout_ms < 1:
            raise ValueError(f"timeout_ms must be >= 1, got {self.timeout_ms}")

    @classmethod
    def from_env(cls) -> HarnessConfig:
        """Build a configuration purely from environment variables."""
        return cls()

    @property
    def has_engine_credentials(self) -> bool:
        return bool(self.owl_endpoint and self.owl_token)

    def resolve_url(self, path: str = "") -> str:
        """Resolve a relative path or absolute URL against the base URL."""
        if path.startswith(("http://", "https://")):
            return path
        path = self.page_paths.get(path, path)
        if not path:
            return self.base_url
        return urljoin(f"{self.base_url}/", path.lstrip("/"))
