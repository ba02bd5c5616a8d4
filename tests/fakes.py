"""In-memory stand-ins for the Playwright objects the upload core touches."""

import asyncio
from typing import Callable, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from core.config.browser_settings import BrowserHandle
from terabox.data.selectors import UploadSelectors


class FakeElement:
    def __init__(self, page=None, selector="", text=None, attrs=None, visible=True):
        self.page = page
        self.selector = selector
        self.text = text
        self.attrs = attrs or {}
        self.visible = visible

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def text_content(self):
        return self.text

    async def is_visible(self):
        return self.visible

    async def click(self):
        if self.page is not None:
            self.page.clicks.append(self.selector)


class FakePage:
    """Selector-keyed DOM with hooks fired on file injection and on each poll."""

    def __init__(self, context=None):
        self.context = context
        self.elements: Dict[str, FakeElement] = {}
        self.clicks: List[str] = []
        self.visited: List[str] = []
        self.injected: List[tuple] = []
        self.polls = 0
        self.closed = False
        self.goto_error: Optional[Exception] = None
        self.on_inject: Optional[Callable[["FakePage"], None]] = None
        self.on_poll: Optional[Callable[["FakePage"], None]] = None

    def set(self, selector, text=None, attrs=None, visible=True):
        self.elements[selector] = FakeElement(self, selector, text, attrs, visible)
        return self.elements[selector]

    def remove(self, selector):
        self.elements.pop(selector, None)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.context is not None:
            self.context.events.append("goto")
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector, state="visible", timeout=None):
        element = self.elements.get(selector)
        if element is not None and element.visible:
            return element
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def query_selector(self, selector):
        return self.elements.get(selector)

    async def set_input_files(self, selector, files):
        self.injected.append(("file", selector, files))
        if self.on_inject:
            self.on_inject(self)

    async def evaluate(self, script, arg=None):
        self.injected.append(("blob", arg[0], arg[2]))
        if self.on_inject:
            self.on_inject(self)

    async def wait_for_timeout(self, timeout):
        self.polls += 1
        if self.on_poll:
            self.on_poll(self)
        await asyncio.sleep(timeout / 1000)

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page_factory=None, cookies=None):
        self.page_factory = page_factory or (lambda context: FakePage(context))
        self.added_cookies: List[list] = []
        self.current_cookies = cookies if cookies is not None else [
            {"name": "ndus", "value": "fresh", "domain": ".terabox.com", "path": "/",
             "expires": -1, "httpOnly": True, "secure": True, "sameSite": "Lax"},
        ]
        self.pages: List[FakePage] = []
        self.closed = False
        self.events: List[str] = []

    async def new_page(self):
        page = self.page_factory(self)
        page.context = self
        self.pages.append(page)
        return page

    async def add_cookies(self, cookies):
        self.events.append("add_cookies")
        self.added_cookies.append(cookies)

    async def cookies(self):
        return list(self.current_cookies)

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.connected = True

    def is_connected(self):
        return self.connected

    async def close(self):
        self.connected = False


class FakeLauncher:
    """Async callable returning fresh fake handles and counting launches."""

    def __init__(self, page_factory=None, error: Optional[Exception] = None):
        self.page_factory = page_factory
        self.error = error
        self.handles: List[BrowserHandle] = []

    async def __call__(self):
        if self.error:
            raise self.error
        browser = FakeBrowser()
        context = FakeContext(self.page_factory)
        page = await context.new_page()
        handle = BrowserHandle(playwright=None, browser=browser, context=context, page=page)
        self.handles.append(handle)
        return handle


# ------------------------------ UPLOAD PAGE SCENARIOS ------------------------------

def build_upload_page(
    page: Optional[FakePage] = None,
    baseline_row_id: Optional[str] = "row-7",
    new_row_id: Optional[str] = "row-8",
    link_text: str = "  https://terabox.com/s/1abc  ",
    polls_until_done: int = 1,
    selectors: Optional[UploadSelectors] = None,
) -> FakePage:
    """
    A page whose listing gains new_row_id a few polls after the file is injected.

    Passing new_row_id=None leaves the listing unchanged forever.
    """
    s = selectors or UploadSelectors()
    page = page or FakePage()

    page.set(s.file_input)
    if baseline_row_id is not None:
        page.set(s.first_row, attrs={s.row_id_attribute: baseline_row_id})
    page.set(s.share_button)
    page.set(s.copy_link_button)
    page.set(s.link_text, text=link_text)

    state = {"injected_at": None}

    def on_inject(p):
        state["injected_at"] = p.polls

    def on_poll(p):
        if new_row_id is None or state["injected_at"] is None:
            return
        if p.polls - state["injected_at"] >= polls_until_done:
            add_row(p, new_row_id, s)

    page.on_inject = on_inject
    page.on_poll = on_poll
    return page


def add_row(page: FakePage, row_id: str, selectors: Optional[UploadSelectors] = None):
    """Make row_id the first listing row, clickable by id and as first row."""
    s = selectors or UploadSelectors()
    page.set(s.first_row, attrs={s.row_id_attribute: row_id})
    page.set(s.checkbox_in(s.first_row))
    page.set(s.row(row_id), attrs={s.row_id_attribute: row_id})
    page.set(s.checkbox_in(s.row(row_id)))
