# ------------------------------ IMPORTS ------------------------------
import os
import logging
from typing import List
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

# ------------------------------ TIMING CONSTANTS (ms) ------------------------------
TIMEOUT_NAVIGATION = 60000
TIMEOUT_FILE_INPUT = 20000
TIMEOUT_SELECTOR_WAIT = 30000
TIMEOUT_UPLOAD_COMPLETE = 600000
TIMEOUT_QUICK_CHECK = 5000

DELAY_POLL = 1000
DELAY_RETRY = 2000

# ------------------------------ CONFIGURATION CLASSES ------------------------------
@dataclass
class BrowserConfig:
    """Browser configuration."""
    headless: bool = os.getenv("BROWSER_HEADLESS", "true").lower() == "true"
    user_agent: str = os.getenv("BROWSER_USER_AGENT", "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36")
    viewport_width: int = int(os.getenv("BROWSER_VIEWPORT_WIDTH", "1280"))
    viewport_height: int = int(os.getenv("BROWSER_VIEWPORT_HEIGHT", "800"))
    executable_path: str = os.getenv("BROWSER_EXECUTABLE_PATH", "")
    page_mode: str = os.getenv("BROWSER_PAGE_MODE", "per_attempt").lower()
    navigation_timeout: int = int(os.getenv("BROWSER_NAVIGATION_TIMEOUT", str(TIMEOUT_NAVIGATION)))

    @property
    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}

@dataclass
class UploadConfig:
    """Upload configuration."""
    max_attempts: int = int(os.getenv("UPLOAD_MAX_ATTEMPTS", "3"))
    retry_delay: int = int(os.getenv("UPLOAD_RETRY_DELAY", str(DELAY_RETRY)))
    max_concurrent_uploads: int = int(os.getenv("MAX_CONCURRENT_UPLOADS", "3"))
    file_input_timeout: int = int(os.getenv("UPLOAD_FILE_INPUT_TIMEOUT", str(TIMEOUT_FILE_INPUT)))
    selector_timeout: int = int(os.getenv("UPLOAD_SELECTOR_TIMEOUT", str(TIMEOUT_SELECTOR_WAIT)))
    completion_timeout: int = int(os.getenv("UPLOAD_COMPLETION_TIMEOUT", str(TIMEOUT_UPLOAD_COMPLETE)))
    poll_interval: int = int(os.getenv("UPLOAD_POLL_INTERVAL", str(DELAY_POLL)))
    injection_mode: str = os.getenv("UPLOAD_INJECTION_MODE", "file").lower()
    blob_max_bytes: int = int(os.getenv("UPLOAD_BLOB_MAX_BYTES", str(20 * 1024 * 1024)))
    spool_dir: str = os.getenv("UPLOAD_SPOOL_DIR", "")

@dataclass
class SessionConfig:
    """Cookie session persistence configuration."""
    cookies_path: str = os.getenv("SESSION_COOKIES_PATH", "terabox_cookies.json")

@dataclass
class TeraboxConfig:
    """Target site configuration."""
    landing_url: str = os.getenv("TERABOX_LANDING_URL", "https://www.terabox.com/main?category=all")
    authenticated_selector: str = os.getenv("TERABOX_AUTHENTICATED_SELECTOR", "")

@dataclass
class CORSConfig:
    """CORS configuration."""
    origins: str = os.getenv("CORS_ORIGINS", "*")
    credentials: bool = os.getenv("CORS_CREDENTIALS", "true").lower() == "true"

    def get_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        if self.origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.origins.split(",")]

@dataclass
class APIConfig:
    """API configuration."""
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))
    debug: bool = os.getenv("API_DEBUG", "false").lower() == "true"

# ------------------------------ MAIN SETTINGS CLASS ------------------------------

class Settings:
    """Main application settings."""

    APP_NAME: str = "Terashare API"
    APP_VERSION: str = "1.0.0"

    def __init__(self):
        self.browser = BrowserConfig()
        self.upload = UploadConfig()
        self.session = SessionConfig()
        self.terabox = TeraboxConfig()
        self.cors = CORSConfig()
        self.api = APIConfig()

        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        """Configure application logging."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def _validate_config(self):
        """Validate configuration settings."""
        logger = logging.getLogger(__name__)

        if self.browser.page_mode not in ("per_attempt", "shared"):
            logger.warning(f"Unknown BROWSER_PAGE_MODE '{self.browser.page_mode}', using per_attempt")
            self.browser.page_mode = "per_attempt"

        if self.upload.injection_mode not in ("file", "blob"):
            logger.warning(f"Unknown UPLOAD_INJECTION_MODE '{self.upload.injection_mode}', using file")
            self.upload.injection_mode = "file"

        if self.upload.max_attempts < 1:
            logger.warning("UPLOAD_MAX_ATTEMPTS must be at least 1, using 1")
            self.upload.max_attempts = 1

# ------------------------------ GLOBAL SETTINGS INSTANCE ------------------------------
settings = Settings()

# ------------------------------ END OF FILE ------------------------------
