# ------------------------------ IMPORTS ------------------------------
import base64
import re
from typing import Optional
import logging

from playwright.async_api import Page, ElementHandle, TimeoutError as PlaywrightTimeoutError

from core.utils.browser_helpers import safe_text
from terabox.errors import SelectorTimeoutError

logger = logging.getLogger(__name__)

PERCENT_PATTERN = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")

# Builds a File from base64 inside the page and hands it to the input element
INJECT_BLOB_SCRIPT = """
([selector, fileBase64, fileName]) => {
    const input = document.querySelector(selector);
    if (!input) {
        throw new Error(`File input ${selector} not found`);
    }
    const data = atob(fileBase64);
    const array = new Uint8Array(data.length);
    for (let i = 0; i < data.length; i++) {
        array[i] = data.charCodeAt(i);
    }
    const file = new File([array], fileName, { type: "application/octet-stream" });
    const dt = new DataTransfer();
    dt.items.add(file);
    input.files = dt.files;
    input.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

# ------------------------------ WAIT HELPERS ------------------------------

async def wait_visible(page: Page, selector: str, timeout: int, state: str) -> ElementHandle:
    """Wait for selector to be attached and visible; timeouts name the state that stalled."""
    try:
        element = await page.wait_for_selector(selector, state="visible", timeout=timeout)
    except PlaywrightTimeoutError as e:
        raise SelectorTimeoutError(state, selector, timeout) from e

    if element is None:
        raise SelectorTimeoutError(state, selector, timeout)
    return element

async def click_visible(page: Page, selector: str, timeout: int, state: str) -> None:
    """Wait for selector to become visible, then click it."""
    element = await wait_visible(page, selector, timeout, state)
    await element.click()

# ------------------------------ LISTING HELPERS ------------------------------

async def get_row_id(page: Page, row_selector: str, attribute: str) -> Optional[str]:
    """Identifier of the row matched by row_selector, or None if there is no such row."""
    row = await page.query_selector(row_selector)
    if not row:
        return None
    return await row.get_attribute(attribute)

async def is_visible(page: Page, selector: str) -> bool:
    """Non-waiting visibility check."""
    element = await page.query_selector(selector)
    if not element:
        return False
    return await element.is_visible()

# ------------------------------ PROGRESS HELPERS ------------------------------

def parse_percent(text: Optional[str]) -> Optional[int]:
    """Parse '42%' or '42.5 %' into an int clamped to 0..100."""
    if not text:
        return None
    match = PERCENT_PATTERN.search(text)
    if not match:
        return None
    return max(0, min(100, int(float(match.group(1)))))

async def read_percent(page: Page, selector: str) -> Optional[int]:
    """Current value of the upload percent indicator, None when absent or unparseable."""
    element = await page.query_selector(selector)
    return parse_percent(await safe_text(element))

# ------------------------------ INJECTION HELPERS ------------------------------

async def inject_file_blob(page: Page, selector: str, data: bytes, file_name: str) -> None:
    """Assign data to the file input as an in-page File and fire a change event."""
    payload = base64.b64encode(data).decode("ascii")
    await page.evaluate(INJECT_BLOB_SCRIPT, [selector, payload, file_name])

async def inject_file_path(page: Page, selector: str, path: str) -> None:
    """Hand a spooled file to the file input through the native chooser path."""
    await page.set_input_files(selector, path)

# ------------------------------ END OF FILE ------------------------------
