# ------------------------------ IMPORTS ------------------------------
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence
import logging

from playwright.async_api import Page

from core.config.settings import settings, TIMEOUT_QUICK_CHECK
from core.services.progress import ProgressSink
from core.utils.browser_helpers import safe_text
from terabox.data.completion import (
    CompletionPredicate, RowIdentityChanged, default_predicates, wait_for_completion
)
from terabox.data.helpers import (
    click_visible, get_row_id, inject_file_blob, inject_file_path, wait_visible
)
from terabox.data.selectors import UploadSelectors
from terabox.errors import LinkExtractionError, UploadStallError

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "upload.bin"

# Percent ranges reported while the state machine advances
UPLOAD_PERCENT_START = 15
UPLOAD_PERCENT_END = 80

# ------------------------------ UPLOAD ATTEMPT ------------------------------

def safe_file_name(file_name: Optional[str]) -> str:
    """Strip any directory part so the name is usable on disk and in the remote listing."""
    name = os.path.basename((file_name or "").replace("\\", "/")).strip()
    return name or DEFAULT_FILE_NAME

@dataclass
class UploadAttempt:
    """One try at uploading a payload; owns the resources released after it ends."""
    request_id: str
    file_name: str
    data: bytes
    number: int = 1
    max_attempts: int = 1
    page: Optional[Page] = None
    spool_path: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.file_name} (request {self.request_id}, attempt {self.number}/{self.max_attempts})"

    def spool(self, directory: Optional[str] = None) -> str:
        """Write the payload to disk under its own name so the browser can pick it."""
        if self.spool_path:
            return self.spool_path

        spool_dir = tempfile.mkdtemp(prefix="terashare-", dir=directory or None)
        path = os.path.join(spool_dir, safe_file_name(self.file_name))
        with open(path, "wb") as f:
            f.write(self.data)

        self.spool_path = path
        logger.debug(f"Spooled {len(self.data)} bytes to {path}")
        return path

    async def cleanup(self) -> None:
        """Close the attempt page and delete the spooled copy. Safe to call repeatedly."""
        page, self.page = self.page, None
        if page is not None:
            try:
                if not page.is_closed():
                    await page.close()
            except Exception as e:
                logger.warning(f"Error closing page for {self.label}: {e}")

        spool_path, self.spool_path = self.spool_path, None
        if spool_path:
            shutil.rmtree(os.path.dirname(spool_path), ignore_errors=True)

# ------------------------------ DRIVER CONFIG ------------------------------

class InjectionMode(str, Enum):
    FILE = "file"
    BLOB = "blob"

@dataclass(frozen=True)
class UploadTimeouts:
    """Per-state wait bounds in milliseconds."""
    file_input: int = settings.upload.file_input_timeout
    selector: int = settings.upload.selector_timeout
    completion: int = settings.upload.completion_timeout
    poll_interval: int = settings.upload.poll_interval
    row_settle: int = TIMEOUT_QUICK_CHECK

# ------------------------------ UPLOAD DRIVER ------------------------------

class UploadDriver:
    """
    Drives the upload-and-share sequence on one page.

    States: armed, row baseline captured, injected, uploading, selected,
    share requested, link extracted. Every state waits on its own bounded
    DOM precondition and any failure aborts the whole attempt.
    """

    def __init__(
        self,
        selectors: Optional[UploadSelectors] = None,
        timeouts: Optional[UploadTimeouts] = None,
        predicates: Optional[Sequence[CompletionPredicate]] = None,
        injection_mode: Optional[str] = None,
        blob_max_bytes: Optional[int] = None,
        spool_dir: Optional[str] = None,
    ):
        self.selectors = selectors or UploadSelectors()
        self.timeouts = timeouts or UploadTimeouts()
        self.predicates = list(predicates) if predicates is not None else default_predicates(self.selectors)
        self.injection_mode = InjectionMode(injection_mode or settings.upload.injection_mode)
        self.blob_max_bytes = blob_max_bytes if blob_max_bytes is not None else settings.upload.blob_max_bytes
        self.spool_dir = spool_dir if spool_dir is not None else settings.upload.spool_dir

    async def run(self, page: Page, attempt: UploadAttempt, progress: ProgressSink) -> str:
        """Upload attempt.data from page and return the trimmed share link."""
        s, t = self.selectors, self.timeouts

        logger.info(f"Waiting for file input: {attempt.label}")
        await wait_visible(page, s.file_input, t.file_input, "armed")
        await progress.emit(5, "Upload page ready")

        baseline_row_id = await get_row_id(page, s.first_row, s.row_id_attribute)
        logger.info(f"Stored initial first row id: {baseline_row_id}")
        await progress.emit(10, "Checked file listing")

        logger.info(f"Uploading file: {attempt.label}")
        await self._inject(page, attempt)
        await progress.emit(UPLOAD_PERCENT_START, "Uploading")

        async def on_percent(percent: int) -> None:
            scaled = UPLOAD_PERCENT_START + percent * (UPLOAD_PERCENT_END - UPLOAD_PERCENT_START) // 100
            await progress.emit(scaled, f"Uploading ({percent}%)")

        logger.info("Waiting for the upload to complete...")
        signal = await wait_for_completion(
            page,
            self.predicates,
            baseline_row_id,
            timeout=t.completion,
            poll_interval=t.poll_interval,
            percent_selector=s.upload_progress,
            on_percent=on_percent,
        )
        uploaded_row_id = signal.row_id
        if uploaded_row_id is None:
            uploaded_row_id = await self._settle_row_id(page, baseline_row_id)
        logger.info(f"Upload finished ({signal.reason}), uploaded row id: {uploaded_row_id}")
        await progress.emit(UPLOAD_PERCENT_END, "Upload complete")

        await self._select_row(page, uploaded_row_id)
        await progress.emit(85, "Selected uploaded file")

        logger.info("Generating share link...")
        await click_visible(page, s.share_button, t.selector, "share_requested")
        await progress.emit(90, "Opened share dialog")
        await click_visible(page, s.copy_link_button, t.selector, "share_requested")
        await progress.emit(95, "Generating link")

        element = await wait_visible(page, s.link_text, t.selector, "link_extracted")
        link = await safe_text(element)
        if not link:
            raise LinkExtractionError(f"Share link element '{s.link_text}' is empty")

        logger.info(f"Share link for {attempt.label}: {link}")
        await progress.emit(100, "Upload complete", link=link)
        return link

    async def _inject(self, page: Page, attempt: UploadAttempt) -> None:
        mode = self.injection_mode
        if mode is InjectionMode.BLOB and len(attempt.data) > self.blob_max_bytes:
            logger.info(f"Payload of {len(attempt.data)} bytes exceeds blob limit, spooling to disk instead")
            mode = InjectionMode.FILE

        if mode is InjectionMode.BLOB:
            await inject_file_blob(page, self.selectors.file_input, attempt.data, safe_file_name(attempt.file_name))
        else:
            path = attempt.spool(self.spool_dir)
            await inject_file_path(page, self.selectors.file_input, path)

    async def _settle_row_id(self, page: Page, baseline_row_id: Optional[str]) -> Optional[str]:
        """After a non-listing signal, give the listing a moment to show the new row."""
        try:
            signal = await wait_for_completion(
                page,
                [RowIdentityChanged(self.selectors)],
                baseline_row_id,
                timeout=self.timeouts.row_settle,
                poll_interval=self.timeouts.poll_interval,
            )
        except UploadStallError:
            logger.warning("Could not find uploaded row id, falling back to the first row")
            return None
        return signal.row_id

    async def _select_row(self, page: Page, row_id: Optional[str]) -> None:
        """Click the uploaded row and its checkbox; the first row when the id is unknown."""
        s, t = self.selectors, self.timeouts
        row_selector = s.row(row_id) if row_id else s.first_row

        await click_visible(page, row_selector, t.selector, "selected")
        await click_visible(page, s.checkbox_in(row_selector), t.selector, "selected")
        logger.info(f"Selected row {row_id or 'first'}")

# ------------------------------ END OF FILE ------------------------------
