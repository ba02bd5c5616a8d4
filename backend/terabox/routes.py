# ------------------------------ IMPORTS ------------------------------
from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from core.services.browser_service import BrowserSessionManager
from core.services.progress import ProgressReporter, WebSocketListener
from .upload_service import UploadService
from .schemas import APIResponse, UploadResponse

logger = logging.getLogger(__name__)

# ------------------------------ ROUTER SETUP ------------------------------
router = APIRouter()

# ------------------------------ SERVICES ------------------------------
browser_manager = BrowserSessionManager()
progress_reporter = ProgressReporter()
upload_service = UploadService(browser_manager, reporter=progress_reporter)

# ------------------------------ DEPENDENCY INJECTION ------------------------------

def get_upload_service() -> UploadService:
    """Dependency to get the UploadService instance."""
    return upload_service

def get_progress_reporter() -> ProgressReporter:
    """Dependency to get the ProgressReporter instance."""
    return progress_reporter

# ------------------------------ UPLOAD ENDPOINTS ------------------------------

@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True, tags=["Upload"])
async def upload_file(
    file: Optional[UploadFile] = File(None, description="File to upload"),
    request_id: Optional[str] = Form(None, description="Client-chosen id used to subscribe to progress"),
    service: UploadService = Depends(get_upload_service),
):
    """Upload a file and return its share link."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    data = await file.read()
    logger.info(f"Received file: {file.filename} ({len(data)} bytes)")

    result = await service.perform(file.filename, data, request_id=request_id)
    response = UploadResponse(
        success=result.success,
        link=result.link,
        error=result.error,
        request_id=result.request_id,
        attempts=result.attempts,
    )

    if not result.success:
        logger.error(f"Upload failed: {result.error}")
        return JSONResponse(status_code=500, content=response.model_dump(exclude_none=True))

    logger.info("Upload successful, sending JSON response...")
    return response

@router.get("/upload/{request_id}/status", response_model=APIResponse, tags=["Upload"])
async def get_upload_status(
    request_id: str = Path(..., description="Request ID of the upload"),
    service: UploadService = Depends(get_upload_service),
) -> APIResponse:
    """Get the status of an upload request."""
    status = service.get_upload_status(request_id)

    if not status:
        raise HTTPException(status_code=404, detail=f"Upload {request_id} not found")

    return APIResponse(success=True, data=status)

# ------------------------------ PROGRESS ENDPOINT ------------------------------

@router.websocket("/upload/{request_id}/progress")
async def upload_progress(
    websocket: WebSocket,
    request_id: str,
    reporter: ProgressReporter = Depends(get_progress_reporter),
):
    """Stream progress events for request_id; events sent before connecting are not replayed."""
    await websocket.accept()
    listener = WebSocketListener(websocket)
    reporter.attach(request_id, listener)
    logger.info(f"Progress listener connected for request {request_id}")

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Progress listener disconnected for request {request_id}")
    finally:
        reporter.detach(request_id, listener)

# ------------------------------ END OF FILE ------------------------------
