# ------------------------------ IMPORTS ------------------------------
from pydantic import BaseModel
from typing import Optional, Any

# ------------------------------ RESPONSE MODELS ------------------------------

class UploadResponse(BaseModel):
    """Outcome of an upload request."""
    success: bool
    link: Optional[str] = None
    error: Optional[str] = None
    request_id: Optional[str] = None
    attempts: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "link": "https://terabox.com/s/1abcDEF",
                "request_id": "1760821200000-1",
                "attempts": 1
            }
        }

class APIResponse(BaseModel):
    """Generic API response model."""
    success: bool
    data: dict[str, Any]

# ------------------------------ END OF FILE ------------------------------
