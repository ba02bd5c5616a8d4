# ------------------------------ IMPORTS ------------------------------
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from playwright.async_api import Page, BrowserContext, TimeoutError as PlaywrightTimeoutError

from core.config.browser_settings import BrowserHandle, launch_browser
from core.config.settings import settings, TIMEOUT_QUICK_CHECK
from core.security.session import CookieSessionStore, to_playwright_cookie
from core.utils.browser_helpers import goto_tolerant
from terabox.errors import BrowserInitError

logger = logging.getLogger(__name__)

Launcher = Callable[[], Awaitable[BrowserHandle]]

# ------------------------------ BROWSER SESSION MANAGER ------------------------------

class BrowserSessionManager:
    """
    Owns the single browser instance of this process.

    The browser is launched lazily on first use, restored from the stored
    cookie session, and reused until it is found disconnected. Callers get
    pages from it; they never touch the browser handle directly.
    """

    def __init__(
        self,
        session_store: Optional[CookieSessionStore] = None,
        landing_url: Optional[str] = None,
        launcher: Optional[Launcher] = None,
        navigation_timeout: Optional[int] = None,
        authenticated_selector: Optional[str] = None,
    ):
        self.session_store = session_store or CookieSessionStore()
        self.landing_url = landing_url or settings.terabox.landing_url
        self.navigation_timeout = navigation_timeout or settings.browser.navigation_timeout
        self.authenticated_selector = (
            authenticated_selector if authenticated_selector is not None
            else settings.terabox.authenticated_selector
        )
        self._launcher = launcher or launch_browser
        self._handle: Optional[BrowserHandle] = None
        self._lock = asyncio.Lock()
        self.authenticated: Optional[bool] = None
        self.launch_count = 0

    # ------------------------------ LIVENESS ------------------------------

    def _browser_alive(self) -> bool:
        return self._handle is not None and self._handle.browser.is_connected()

    def is_alive(self) -> bool:
        """Browser connected and primary page open."""
        return self._browser_alive() and not self._handle.page.is_closed()

    # ------------------------------ PUBLIC API ------------------------------

    async def ensure_ready(self) -> Page:
        """Return the primary page, launching and navigating the browser if needed."""
        if self.is_alive():
            return self._handle.page

        async with self._lock:
            if self.is_alive():
                return self._handle.page

            if self._browser_alive():
                logger.info("Primary page closed, opening a new one")
                self._handle.page = await self._handle.context.new_page()
            else:
                await self._launch()

            try:
                await self._navigate(self._handle.page)
            except Exception:
                await self.reset_page()
                raise
            return self._handle.page

    async def open_page(self) -> Page:
        """Open and navigate a new page sharing the authenticated context."""
        await self.ensure_ready()
        context = self._handle.context

        page = await context.new_page()
        try:
            await self._navigate(page)
        except Exception:
            await page.close()
            raise
        return page

    async def reset_page(self) -> None:
        """Drop the primary page so the next ensure_ready starts from a fresh one."""
        if self._handle is None or self._handle.page.is_closed():
            return
        try:
            await self._handle.page.close()
            logger.info("Primary page closed for refresh")
        except Exception as e:
            logger.warning(f"Error closing primary page: {e}")

    async def persist_session(self, context: Optional[BrowserContext] = None) -> None:
        """Overwrite the stored session with the context's current cookies."""
        context = context or (self._handle.context if self._handle else None)
        if context is None:
            return

        cookies = await context.cookies()
        try:
            self.session_store.save(cookies)
        except OSError as e:
            logger.error(f"Failed to save session cookies: {e}")

    async def check_authenticated(self, page: Page) -> Optional[bool]:
        """
        Probe for an element only signed-in users see.

        Advisory: the outcome is logged and exposed in status(), uploads
        proceed either way. Returns None when no probe selector is configured.
        """
        if not self.authenticated_selector:
            return None

        try:
            await page.wait_for_selector(self.authenticated_selector, state="visible", timeout=TIMEOUT_QUICK_CHECK)
            self.authenticated = True
        except PlaywrightTimeoutError:
            logger.warning("Authenticated-only element not found, stored session may be stale")
            self.authenticated = False
        return self.authenticated

    def status(self) -> Dict[str, Any]:
        return {
            "running": self._handle is not None,
            "connected": self.is_alive(),
            "authenticated": self.authenticated,
            "launches": self.launch_count,
        }

    async def close(self) -> None:
        """Shut the browser down; a no-op when nothing is running."""
        async with self._lock:
            await self._discard_handle()

    # ------------------------------ INTERNALS ------------------------------

    async def _launch(self) -> None:
        await self._discard_handle()

        logger.info("Launching browser...")
        try:
            self._handle = await self._launcher()
        except Exception as e:
            raise BrowserInitError(f"Failed to launch browser: {e}") from e
        self.launch_count += 1

        await self._restore_session(self._handle.context)

    async def _restore_session(self, context: BrowserContext) -> None:
        """Attach stored cookies before the first navigation."""
        stored = self.session_store.load()
        if not stored:
            logger.info("No stored session, continuing unauthenticated")
            return

        cookies = [c for c in (to_playwright_cookie(record) for record in stored) if c]
        try:
            await context.add_cookies(cookies)
            logger.info(f"Restored {len(cookies)} session cookies")
        except Exception as e:
            logger.warning(f"Stored cookies were rejected, continuing unauthenticated: {e}")

    async def _navigate(self, page: Page) -> None:
        """Load the landing view, then refresh the stored session."""
        logger.info(f"Navigating to {self.landing_url}...")
        try:
            loaded = await goto_tolerant(page, self.landing_url, self.navigation_timeout)
        except Exception as e:
            raise BrowserInitError(f"Navigation to {self.landing_url} failed: {e}") from e

        if loaded:
            logger.info("Page loaded successfully.")

        await self.persist_session(page.context)
        await self.check_authenticated(page)

    async def _discard_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            await handle.close()
            logger.info("Closed the browser.")

# ------------------------------ END OF FILE ------------------------------
