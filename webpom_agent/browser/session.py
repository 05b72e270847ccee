import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from playwright.async_api import Page

from webpom_agent.actions.navigator import navigate_with_retries
from webpom_agent.browser.config import build_browser_config

# Browser creation is delegated to Driver to ensure a single entry-point.
from webpom_agent.browser.driver import Driver


class BrowserSession:
    """One isolated browser, context and page for a single analysis."""

    def __init__(self, session_id: str = None, browser_config: Dict[str, Any] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.browser_config = build_browser_config(browser_config)
        self.driver: Optional[Driver] = None
        self._is_closed = False
        self._lock = asyncio.Lock()

    async def initialize(self):
        """Initialize browser session."""
        async with self._lock:
            if self._is_closed:
                raise RuntimeError("Browser session is closed")

            logging.debug(f"Initializing browser session {self.session_id} with config: {self.browser_config}")
            self.driver = await Driver.getInstance(browser_config=self.browser_config)
            logging.debug(f"Browser session {self.session_id} initialized successfully via Driver")
        return self

    async def navigate_to(self, url: str, timeout: int = 30000, settle_delay: int = 2000) -> str:
        """Navigate with the networkidle -> domcontentloaded -> load fallback chain."""
        if self._is_closed or not self.driver:
            raise RuntimeError("Browser session not initialized or closed")

        logging.info(f"Session {self.session_id} navigating to: {url}")
        return await navigate_with_retries(self.get_page(), url, timeout=timeout, settle_delay=settle_delay)

    def get_page(self) -> Page:
        """Return current page via Driver."""
        if self._is_closed or not self.driver:
            raise RuntimeError("Browser session not initialized or closed")
        return self.driver.get_page()

    def is_closed(self) -> bool:
        """Check if session is closed."""
        return self._is_closed

    async def _cleanup(self):
        """Release the browser. Failures are logged, never raised."""
        try:
            if self.driver and not self.driver.is_closed():
                await self.driver.close_browser()
        except Exception as e:
            logging.error(f"Error during cleanup of session {self.session_id}: {e}", exc_info=True)
        finally:
            self.driver = None

    async def close(self):
        """Close browser session."""
        async with self._lock:
            if self._is_closed:
                return

            logging.info(f"Closing browser session {self.session_id}")
            self._is_closed = True
            await self._cleanup()
            logging.info(f"Browser session {self.session_id} closed")

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
