# ------------------------------ SESSION HELPERS ------------------------------
from typing import Any, Dict, List, Optional
import json
import os
import tempfile
import logging

from core.config.settings import settings

logger = logging.getLogger(__name__)

Cookie = Dict[str, Any]

# Keys accepted by BrowserContext.add_cookies
PLAYWRIGHT_COOKIE_KEYS = ("name", "value", "url", "domain", "path", "expires", "httpOnly", "secure", "sameSite")
SAME_SITE_VALUES = ("Strict", "Lax", "None")

# ------------------------------ COOKIE HELPERS ------------------------------

def is_valid_cookie(record: Any) -> bool:
    """A cookie record needs at least a string name and value."""
    return (
        isinstance(record, dict)
        and isinstance(record.get("name"), str)
        and isinstance(record.get("value"), str)
    )

def to_playwright_cookie(record: Cookie) -> Optional[Cookie]:
    """
    Reduce a stored cookie record to the fields Playwright accepts.

    Records written by other tools carry extra keys (size, session, priority)
    and may use lowercase sameSite values. Returns None for records that can
    not be attached because they have neither a url nor a domain.
    """
    cookie = {key: record[key] for key in PLAYWRIGHT_COOKIE_KEYS if key in record}

    if "url" not in cookie and "domain" not in cookie:
        return None
    if "domain" in cookie:
        cookie.setdefault("path", "/")

    same_site = cookie.get("sameSite")
    if same_site is not None:
        normalized = str(same_site).capitalize()
        if normalized in SAME_SITE_VALUES:
            cookie["sameSite"] = normalized
        else:
            cookie.pop("sameSite")

    expires = cookie.get("expires")
    if expires is not None and not isinstance(expires, (int, float)):
        cookie.pop("expires")

    return cookie

# ------------------------------ COOKIE SESSION STORE ------------------------------

class CookieSessionStore:
    """Persists the authenticated cookie set as one JSON array on disk."""

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.abspath(path or settings.session.cookies_path)

    def load(self) -> Optional[List[Cookie]]:
        """
        Read the stored cookies.

        A missing, unreadable or malformed file is reported as absent so the
        caller continues unauthenticated instead of failing.
        """
        if not os.path.exists(self.path):
            logger.info(f"No stored session at {self.path}")
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                cookies = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read stored session {self.path}: {e}")
            return None

        if not isinstance(cookies, list) or not all(is_valid_cookie(c) for c in cookies):
            logger.warning(f"Stored session {self.path} is not a list of cookie records, ignoring it")
            return None

        logger.info(f"Loaded {len(cookies)} cookies from {self.path}")
        return cookies

    def save(self, cookies: List[Cookie]) -> None:
        """Write cookies to a temp file next to the target, then swap it in."""
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)

        temp_file = tempfile.NamedTemporaryFile(
            mode="w", suffix=".json", dir=directory, delete=False, encoding="utf-8"
        )
        try:
            with temp_file:
                json.dump(list(cookies), temp_file, indent=2)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.chmod(temp_file.name, 0o600)
            os.replace(temp_file.name, self.path)
        except Exception:
            cleanup_storage_state_file(temp_file.name)
            raise

        logger.info(f"Saved {len(cookies)} cookies to {self.path}")

    def clear(self) -> None:
        """Forget the stored session."""
        cleanup_storage_state_file(self.path)

def cleanup_storage_state_file(file_path: Optional[str]) -> None:
    """Safely delete a session or temp file; a missing file is not an error."""
    if not file_path:
        return

    try:
        if os.path.exists(file_path):
            os.remove(file_path)
            logger.debug(f"Removed file: {file_path}")
    except OSError as e:
        logger.warning(f"Failed to remove file {file_path}: {e}")

# ------------------------------ END OF FILE ------------------------------
