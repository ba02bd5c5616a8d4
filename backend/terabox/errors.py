# ------------------------------ UPLOAD ERRORS ------------------------------

class UploadError(Exception):
    """Base class for every failure inside one upload attempt."""

class BrowserInitError(UploadError):
    """The automation engine could not be launched."""

class SelectorTimeoutError(UploadError):
    """An expected element did not become visible in time."""

    def __init__(self, state: str, selector: str, timeout: int):
        self.state = state
        self.selector = selector
        self.timeout = timeout
        super().__init__(f"{state}: '{selector}' not visible after {timeout}ms")

class UploadStallError(UploadError):
    """No completion signal was observed before the upload timeout."""

    def __init__(self, timeout: int, baseline_row_id=None):
        self.timeout = timeout
        self.baseline_row_id = baseline_row_id
        super().__init__(f"Upload did not complete within {timeout}ms (baseline row: {baseline_row_id})")

class LinkExtractionError(UploadError):
    """The share dialog rendered but held no link text."""

# ------------------------------ END OF FILE ------------------------------
