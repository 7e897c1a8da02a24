"""Document fetching for chamber event pages.

Two fetchers share one small interface, ``fetch(url) -> str``:

* ``HttpFetcher`` returns the raw response body using ``requests``.
* ``BrowserFetcher`` loads the page in headless Chromium (Playwright),
  waits for the page's own scripts to settle and returns the rendered DOM.

Callers pick one through ``get_fetcher(render=...)`` so the extraction code
never depends on which engine produced the document. Every failure mode
(network error, timeout, non-2xx status, renderer error) is raised as
``FetchError``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 20.0
DEFAULT_SETTLE_DELAY = 3.0


class FetchError(Exception):
    """Raised when a document could not be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass
class FetchOptions:
    """Settings shared by both fetchers."""
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    settle_delay: float = DEFAULT_SETTLE_DELAY

    @property
    def headers(self) -> dict:
        return {"User-Agent": self.user_agent}

    @classmethod
    def from_env(cls) -> "FetchOptions":
        """Build options from CHAMBER_EVENTS_* environment variables."""
        return cls(
            timeout=float(os.getenv("CHAMBER_EVENTS_TIMEOUT", DEFAULT_TIMEOUT)),
            user_agent=os.getenv("CHAMBER_EVENTS_USER_AGENT", DEFAULT_USER_AGENT),
            settle_delay=float(os.getenv("CHAMBER_EVENTS_SETTLE_DELAY", DEFAULT_SETTLE_DELAY)),
        )


class HttpFetcher:
    """Plain HTTP GET; no script execution."""

    def __init__(self, options: Optional[FetchOptions] = None,
                 session: Optional[requests.Session] = None):
        self.options = options or FetchOptions()
        self.session = session or requests.Session()
        self.session.headers.update(self.options.headers)

    def fetch(self, url: str) -> str:
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.options.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FetchError(url, f"timed out after {self.options.timeout}s") from e
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e
        return response.text


class BrowserFetcher:
    """Render pages in headless Chromium so script-injected listings exist.

    Playwright is an optional dependency (``pip install -e '.[browser]'``);
    it is imported on first use and its absence is reported as a FetchError
    so the run continues with the remaining sources.
    """

    def __init__(self, options: Optional[FetchOptions] = None):
        self.options = options or FetchOptions()

    def fetch(self, url: str) -> str:
        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import sync_playwright
        except ImportError as e:
            raise FetchError(
                url,
                "Playwright is missing. Install it with: pip install -e '.[browser]' "
                "and run: playwright install chromium",
            ) from e

        timeout_ms = int(self.options.timeout * 1000)
        logger.debug("Rendering %s", url)
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(
                    headless=True,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                try:
                    page = browser.new_page(user_agent=self.options.user_agent)
                    response = page.goto(url, wait_until="networkidle", timeout=timeout_ms)
                    if response is not None and not response.ok:
                        raise FetchError(url, f"HTTP {response.status}")
                    # Give late scripts time to inject the listing.
                    page.wait_for_timeout(int(self.options.settle_delay * 1000))
                    return page.content()
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise FetchError(url, str(e)) from e


def get_fetcher(render: bool, options: Optional[FetchOptions] = None):
    """Return a fetcher able to satisfy the source's rendering requirement."""
    if render:
        return BrowserFetcher(options)
    return HttpFetcher(options)
