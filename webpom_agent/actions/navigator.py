import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from webpom_agent.errors import NavigationError, NavigationKind

# Tried in order, each one only after the previous one failed.
NAVIGATION_STRATEGIES = ("networkidle", "domcontentloaded", "load")


def classify_navigation_error(error: Optional[BaseException]) -> NavigationError:
    """Turn the last navigation failure into an actionable NavigationError."""
    message = str(error) if error else "Failed to navigate to page"

    if "ERR_HTTP2_PROTOCOL_ERROR" in message:
        return NavigationError(
            NavigationKind.PROTOCOL_BLOCKED,
            "HTTP/2 protocol error: The website may be blocking automated browsers. "
            "Try accessing the page manually first, or use a different URL.",
            error,
        )
    if "net::ERR_" in message:
        return NavigationError(
            NavigationKind.NETWORK,
            f"Network error: {message}. Please check if the URL is accessible and try again.",
            error,
        )
    if "Timeout" in message:
        return NavigationError(
            NavigationKind.TIMEOUT,
            "Page load timeout: The page took too long to load. "
            "Try a simpler page or check your internet connection.",
            error,
        )
    return NavigationError(NavigationKind.UNKNOWN, f"Navigation failed: {message}", error)


async def navigate_with_retries(page: Page, url: str, timeout: int = 30000, settle_delay: int = 2000) -> str:
    """Navigate ``page`` to ``url`` with progressively weaker wait conditions.

    Args:
        page: Playwright page, already attached to any listeners.
        url: Target URL.
        timeout: Per-strategy navigation timeout in milliseconds.
        settle_delay: Extra wait after a successful navigation, in milliseconds.

    Returns:
        The wait condition that succeeded.

    Raises:
        NavigationError: If all strategies failed.
    """
    last_error: Optional[BaseException] = None
    for wait_until in NAVIGATION_STRATEGIES:
        try:
            await page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightError as e:
            logging.warning(f"Navigation to {url} with wait_until={wait_until} failed: {e}")
            last_error = e
            continue

        logging.info(f"Navigated to {url} (wait_until={wait_until})")
        # let client side rendering finish
        await page.wait_for_timeout(settle_delay)
        return wait_until

    raise classify_navigation_error(last_error)
