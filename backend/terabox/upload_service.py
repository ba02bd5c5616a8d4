# ------------------------------ IMPORTS ------------------------------
import asyncio
import itertools
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
import logging

from core.config.settings import settings
from core.services.browser_service import BrowserSessionManager
from core.services.progress import ProgressEvent, ProgressReporter, ProgressSink
from terabox.data.upload import UploadAttempt, UploadDriver

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

MAX_TRACKED_UPLOADS = 1000

_request_counter = itertools.count(1)

# ------------------------------ ENUMS ------------------------------
class TaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

class PageMode(Enum):
    PER_ATTEMPT = "per_attempt"
    SHARED = "shared"

# ------------------------------ RESULT ------------------------------
@dataclass
class UploadResult:
    """Terminal outcome of one upload request."""
    success: bool
    request_id: str
    attempts: int
    link: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "link": self.link}
        return {"success": False, "error": self.error}

def generate_request_id() -> str:
    """Millisecond timestamp plus a process-local counter, for log correlation."""
    return f"{int(time.time() * 1000)}-{next(_request_counter)}"

# ------------------------------ UPLOAD SERVICE ------------------------------
class UploadService:
    """Runs upload attempts against the shared browser with bounded retries."""

    def __init__(
        self,
        browser_manager: BrowserSessionManager,
        driver: Optional[UploadDriver] = None,
        reporter: Optional[ProgressReporter] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[int] = None,
        page_mode: Optional[str] = None,
        max_concurrent_uploads: Optional[int] = None,
    ):
        self.browser_manager = browser_manager
        self.driver = driver or UploadDriver()
        self.reporter = reporter or ProgressReporter()
        self.max_attempts = max(1, max_attempts or settings.upload.max_attempts)
        self.retry_delay = settings.upload.retry_delay if retry_delay is None else retry_delay
        self.page_mode = PageMode(page_mode or settings.browser.page_mode)
        self.active_uploads: Dict[str, Dict[str, Any]] = {}
        self._semaphore = asyncio.Semaphore(max_concurrent_uploads or settings.upload.max_concurrent_uploads)
        self._page_lock = asyncio.Lock()

    # ------------------------------ PUBLIC API ------------------------------

    async def perform(self, file_name: str, data: bytes, request_id: Optional[str] = None) -> UploadResult:
        """
        Upload data as file_name and return its share link.

        Never raises for upload failures: after the last attempt fails the
        result carries the last error message instead.
        """
        request_id = request_id or generate_request_id()
        self._update_task_status(request_id, TaskStatus.PENDING, "Queued for upload", file_name=file_name)

        async with self._semaphore:
            last_error: Optional[Exception] = None

            for number in range(1, self.max_attempts + 1):
                attempt = UploadAttempt(
                    request_id=request_id,
                    file_name=file_name,
                    data=data,
                    number=number,
                    max_attempts=self.max_attempts,
                )
                sink = self.reporter.sink(request_id, observer=lambda event: self._record_progress(request_id, event))
                logger.info(f"Attempt {number}/{self.max_attempts} for file: {attempt.label}")
                self._update_task_status(request_id, TaskStatus.RUNNING, f"Attempt {number}/{self.max_attempts}", attempt=number)

                try:
                    await sink.emit(0, f"Starting upload (attempt {number}/{self.max_attempts})")
                    link = await self._run_attempt(attempt, sink)
                except Exception as e:
                    last_error = e
                    logger.error(f"Upload error on attempt {number} for {attempt.label}: {e}")
                else:
                    await self._refresh_session()
                    self._update_task_status(request_id, TaskStatus.COMPLETED, "Upload completed", link=link)
                    return UploadResult(success=True, request_id=request_id, attempts=number, link=link)
                finally:
                    await attempt.cleanup()

                if number < self.max_attempts and self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay / 1000)

        reason = str(last_error) or type(last_error).__name__
        message = f"Upload failed after {self.max_attempts} attempts: {reason}"
        logger.error(f"{message} (request {request_id})")
        self._update_task_status(request_id, TaskStatus.FAILED, message)
        return UploadResult(success=False, request_id=request_id, attempts=self.max_attempts, error=message)

    def get_upload_status(self, request_id: str) -> Optional[Dict[str, Any]]:
        """Status snapshot of an upload request."""
        return self.active_uploads.get(request_id)

    # ------------------------------ ATTEMPT EXECUTION ------------------------------

    async def _run_attempt(self, attempt: UploadAttempt, sink: ProgressSink) -> str:
        if self.page_mode is PageMode.SHARED:
            async with self._page_lock:
                page = await self.browser_manager.ensure_ready()
                try:
                    return await self.driver.run(page, attempt, sink)
                except Exception:
                    # the next holder of the lock must get a fresh page
                    await self.browser_manager.reset_page()
                    raise

        attempt.page = await self.browser_manager.open_page()
        return await self.driver.run(attempt.page, attempt, sink)

    async def _refresh_session(self) -> None:
        """Store the cookies of a session that just completed an upload."""
        try:
            await self.browser_manager.persist_session()
        except Exception as e:
            logger.warning(f"Could not refresh stored session: {e}")

    # ------------------------------ STATUS TRACKING ------------------------------

    def _record_progress(self, request_id: str, event: ProgressEvent) -> None:
        if request_id in self.active_uploads:
            self.active_uploads[request_id]["progress"] = event.to_dict()

    def _update_task_status(self, request_id: str, status: TaskStatus, message: str = "", **fields):
        """Update upload status with timestamps."""
        current_time = datetime.now(timezone.utc).isoformat()

        if request_id not in self.active_uploads:
            self._evict_finished()
            self.active_uploads[request_id] = {
                "request_id": request_id,
                "started_at": current_time,
                "finished_at": None,
                "attempt": 0,
                "progress": None,
            }

        self.active_uploads[request_id].update(
            status=status.value,
            message=message,
            updated_at=current_time,
            **fields,
        )

        if status in (TaskStatus.COMPLETED, TaskStatus.FAILED):
            self.active_uploads[request_id]["finished_at"] = current_time
        elif status is TaskStatus.PENDING:
            self.active_uploads[request_id]["finished_at"] = None

    def _evict_finished(self) -> None:
        """Keep the status table bounded by dropping the oldest finished uploads."""
        if len(self.active_uploads) < MAX_TRACKED_UPLOADS:
            return
        finished = [rid for rid, entry in self.active_uploads.items() if entry["finished_at"]]
        for rid in finished[: len(self.active_uploads) - MAX_TRACKED_UPLOADS + 1]:
            del self.active_uploads[rid]

# ------------------------------ END OF FILE ------------------------------
