# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import async_playwright, Playwright, Page, BrowserContext, Browser
import logging

from core.config.settings import settings

logger = logging.getLogger(__name__)

# ------------------------------ CONFIGURATION ------------------------------
USER_AGENT = settings.browser.user_agent

DEFAULT_VIEWPORT = settings.browser.viewport
DEFAULT_TIMEOUT = 30000

BROWSER_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

ANTI_DETECTION_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
)

# ------------------------------ BROWSER HANDLE ------------------------------
@dataclass
class BrowserHandle:
    """Everything a launch produces; closing it releases the whole engine."""
    playwright: Optional[Playwright]
    browser: Browser
    context: BrowserContext
    page: Page

    async def close(self) -> None:
        """Close context, browser and driver; every step is best effort."""
        for name, closer in (
            ("context", self.context.close),
            ("browser", self.browser.close),
        ):
            try:
                await closer()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")

# ------------------------------ VALIDATION FUNCTIONS ------------------------------
def validate_viewport(viewport: dict[str, int]) -> bool:
    """Validate viewport dimensions."""
    return (isinstance(viewport, dict) and
            all(k in viewport for k in ("width", "height")) and
            all(isinstance(viewport[k], int) and viewport[k] > 0 for k in ("width", "height")))

def validate_user_agent(user_agent: str) -> bool:
    """Validate user agent string."""
    return isinstance(user_agent, str) and bool(user_agent.strip())

# ------------------------------ BROWSER LAUNCH FUNCTION ------------------------------
async def launch_browser(
    headless: bool = None,
    user_agent: str = USER_AGENT,
    viewport: dict[str, int] = DEFAULT_VIEWPORT,
    timeout: int = DEFAULT_TIMEOUT,
    executable_path: Optional[str] = None,
) -> BrowserHandle:
    """
    Launches a Chromium browser with standardized settings.

    Args:
        headless: Whether to run the browser in headless mode.
        user_agent: The user agent string to use for the browser context.
        viewport: The viewport size for the browser context.
        timeout: Default timeout in milliseconds for page operations.
        executable_path: Optional path to an installed Chrome/Chromium binary.

    Returns:
        A BrowserHandle with the driver, browser, context and primary page.

    Raises:
        ValueError: If input parameters are invalid.
        Exception: If browser launch or context creation fails.
    """
    if headless is None:
        headless = settings.browser.headless

    if executable_path is None:
        executable_path = settings.browser.executable_path or None

    if not validate_user_agent(user_agent):
        raise ValueError("Invalid user agent string provided")

    if not validate_viewport(viewport):
        raise ValueError("Invalid viewport configuration provided")

    if not isinstance(timeout, int) or timeout <= 0:
        raise ValueError("Timeout must be a positive integer")

    playwright = None
    browser = None

    try:
        logger.info("Starting browser launch...")
        playwright = await async_playwright().start()

        logger.debug(f"Launching Chromium browser (headless: {headless})")
        browser = await playwright.chromium.launch(
            headless=headless,
            executable_path=executable_path,
            args=BROWSER_LAUNCH_ARGS,
        )

        context = await browser.new_context(
            user_agent=user_agent,
            viewport=viewport,
        )
        context.set_default_timeout(timeout)
        await context.add_init_script(ANTI_DETECTION_SCRIPT)

        page = await context.new_page()

        logger.info("Browser launched successfully")
        return BrowserHandle(playwright=playwright, browser=browser, context=context, page=page)

    except Exception as e:
        logger.error(f"Failed to launch browser: {e}")
        if browser:
            try:
                await browser.close()
            except Exception as close_error:
                logger.warning(f"Error closing browser after failed launch: {close_error}")
        if playwright:
            try:
                await playwright.stop()
            except Exception as stop_error:
                logger.warning(f"Error stopping playwright after failed launch: {stop_error}")
        raise

# ------------------------------ END OF FILE ------------------------------
