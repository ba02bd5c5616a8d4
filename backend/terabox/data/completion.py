"""
Upload completion detection.

The remote UI exposes no authoritative "upload finished" callback, so
completion is inferred by polling the page for any of a set of predicates.
Each predicate is independent; the first one satisfied ends the wait.
"""

# ------------------------------ IMPORTS ------------------------------
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence
import logging

from playwright.async_api import Page

from terabox.data.helpers import get_row_id, is_visible, read_percent
from terabox.data.selectors import UploadSelectors
from terabox.errors import UploadStallError

logger = logging.getLogger(__name__)

PercentCallback = Callable[[int], Awaitable[None]]

# ------------------------------ SIGNALS ------------------------------

@dataclass(frozen=True)
class CompletionSignal:
    """What ended the wait; row_id is set when a new listing row was seen."""
    reason: str
    row_id: Optional[str] = None

# ------------------------------ PREDICATES ------------------------------

class CompletionPredicate:
    """Base predicate: returns a signal once the upload looks complete."""

    name = "predicate"

    async def check(self, page: Page, baseline_row_id: Optional[str]) -> Optional[CompletionSignal]:
        raise NotImplementedError

class RowIdentityChanged(CompletionPredicate):
    """The first listing row now carries an identifier other than the baseline."""

    name = "row_changed"

    def __init__(self, selectors: UploadSelectors):
        self.selectors = selectors

    async def check(self, page, baseline_row_id):
        row_id = await get_row_id(page, self.selectors.first_row, self.selectors.row_id_attribute)
        if row_id is not None and row_id != baseline_row_id:
            return CompletionSignal(self.name, row_id)
        return None

class SuccessMarkerVisible(CompletionPredicate):
    """The upload panel shows its success marker."""

    name = "success_marker"

    def __init__(self, selectors: UploadSelectors):
        self.selectors = selectors

    async def check(self, page, baseline_row_id):
        if await is_visible(page, self.selectors.upload_success):
            return CompletionSignal(self.name)
        return None

class ProgressIndicatorComplete(CompletionPredicate):
    """The percent indicator exists and reads 100%."""

    name = "progress_complete"

    def __init__(self, selectors: UploadSelectors):
        self.selectors = selectors

    async def check(self, page, baseline_row_id):
        percent = await read_percent(page, self.selectors.upload_progress)
        if percent is not None and percent >= 100:
            return CompletionSignal(self.name)
        return None

def default_predicates(selectors: UploadSelectors) -> list:
    """Row change, success marker and 100% indicator, in that order of preference."""
    return [
        RowIdentityChanged(selectors),
        SuccessMarkerVisible(selectors),
        ProgressIndicatorComplete(selectors),
    ]

# ------------------------------ POLLING ------------------------------

async def wait_for_completion(
    page: Page,
    predicates: Sequence[CompletionPredicate],
    baseline_row_id: Optional[str],
    timeout: int,
    poll_interval: int,
    percent_selector: Optional[str] = None,
    on_percent: Optional[PercentCallback] = None,
) -> CompletionSignal:
    """
    Poll until any predicate is satisfied.

    Args:
        page: Page the upload runs in.
        predicates: Completion predicates, checked in order on every poll.
        baseline_row_id: First-row identifier captured before the file was injected.
        timeout: Overall bound in milliseconds.
        poll_interval: Delay between polls in milliseconds.
        percent_selector: Optional indicator to report progress from.
        on_percent: Called with each new indicator value; never decides completion.

    Raises:
        UploadStallError: No predicate was satisfied within timeout.
    """
    deadline = time.monotonic() + timeout / 1000
    last_percent = None

    while True:
        if percent_selector and on_percent:
            percent = await read_percent(page, percent_selector)
            if percent is not None and percent != last_percent:
                last_percent = percent
                await on_percent(percent)

        for predicate in predicates:
            signal = await predicate.check(page, baseline_row_id)
            if signal:
                logger.debug(f"Completion signal: {signal.reason} (row: {signal.row_id})")
                return signal

        if time.monotonic() >= deadline:
            raise UploadStallError(timeout, baseline_row_id)

        await page.wait_for_timeout(poll_interval)

# ------------------------------ END OF FILE ------------------------------
