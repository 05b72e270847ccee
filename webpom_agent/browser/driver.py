import asyncio
import logging

from playwright.async_api import async_playwright

from webpom_agent.browser.config import ANTI_DETECTION_SCRIPT, build_browser_config
from webpom_agent.errors import BrowserLaunchError


def classify_launch_error(error: BaseException) -> BrowserLaunchError:
    message = str(error)
    if "Executable doesn't exist" in message:
        return BrowserLaunchError("Playwright browsers not installed. Please run: playwright install chromium")
    if "connect" in message:
        return BrowserLaunchError("Failed to connect to browser service. Please check your browser endpoint configuration.")
    return BrowserLaunchError(f"Failed to launch browser: {message}")


class Driver:
    # Serializes browser start-up when several sessions are created concurrently
    __lock = asyncio.Lock()

    @staticmethod
    async def getInstance(browser_config, *args, **kwargs):
        """Create a new Driver with its own browser, context and page.

        Args:
            browser_config (dict, optional): Browser configuration options.
        """
        logging.debug(f"Driver.getInstance called with browser_config: {browser_config}")
        async with Driver.__lock:
            driver = Driver(browser_config=browser_config)
            await driver.create_browser(browser_config=browser_config)
            return driver

    def __init__(self, browser_config=None, *args, **kwargs):
        self._is_closed = False
        self.page = None
        self.browser = None
        self.context = None
        self.playwright = None
        self.config = build_browser_config(browser_config)

    def is_closed(self):
        """Check if the browser instance is closed."""
        return getattr(self, "_is_closed", True)

    async def create_browser(self, browser_config=None):
        """Launch Chromium and open an isolated context and page.

        Args:
            browser_config (dict, optional): Browser configuration containing:
                - headless (bool): Whether to run browser in headless mode
                - viewport (dict): Viewport width and height
                - language (str): Context locale
                - timezone_id (str), user_agent (str), extra_http_headers (dict)
                - launch_args (list): Extra Chromium arguments

        Raises:
            BrowserLaunchError: If the browser could not be started.
        """
        config = build_browser_config(browser_config) if browser_config is not None else self.config
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=config["headless"],
                args=config["launch_args"],
            )

            # A fresh context per driver keeps cookies and storage isolated
            self.context = await self.browser.new_context(
                viewport={"width": config["viewport"]["width"], "height": config["viewport"]["height"]},
                user_agent=config["user_agent"],
                extra_http_headers=config["extra_http_headers"],
                locale=config["language"],
                timezone_id=config["timezone_id"],
                color_scheme=config["color_scheme"],
            )
            await self.context.add_init_script(ANTI_DETECTION_SCRIPT)
            self.page = await self.context.new_page()
            self.config = config

            logging.debug(f"Browser instance created successfully with config: {config}")
            return self.page

        except Exception as e:
            logging.error("Failed to create browser instance.", exc_info=True)
            await self.close_browser()
            raise classify_launch_error(e) from e

    def get_page(self):
        """Returns the current page instance."""
        return self.page

    async def close_browser(self):
        """Closes the browser instance and stops Playwright."""
        if self.is_closed():
            return
        self._is_closed = True
        try:
            if self.context is not None:
                await self.context.close()
            if self.browser is not None:
                await self.browser.close()
            logging.info("Browser instance closed successfully.")
        finally:
            if self.playwright is not None:
                await self.playwright.stop()
