# ------------------------------ IMPORTS ------------------------------
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# ------------------------------ TEXT EXTRACTION HELPERS ------------------------------

async def safe_text(element, default: Optional[str] = None) -> Optional[str]:
    """Safely extract and strip text content from an element."""
    if not element:
        return default
    text = await element.text_content()
    return text.strip() if text else default

# ------------------------------ NAVIGATION HELPERS ------------------------------

async def goto_tolerant(page: Page, url: str, timeout: int) -> bool:
    """
    Navigate to url, treating a navigation timeout as non-fatal.

    Returns False when the load event did not fire in time; the page may still
    reach a usable state, so callers continue and let later waits decide.
    """
    try:
        await page.goto(url, wait_until="load", timeout=timeout)
        return True
    except PlaywrightTimeoutError:
        logger.warning(f"Navigation to {url} timed out after {timeout}ms, continuing")
        return False

# ------------------------------ END OF FILE ------------------------------
