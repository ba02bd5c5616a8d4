# ------------------------------ IMPORTS ------------------------------
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from core.config.settings import settings
from terabox.routes import router as upload_router, browser_manager

# ------------------------------ SETUP ------------------------------
logger = logging.getLogger("terashare")

# ------------------------------ LIFESPAN ------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info(f"Server starting on port {settings.api.port}")
    yield
    logger.info("Shutting down browser...")
    await browser_manager.close()

# ------------------------------ APP ------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    description="Uploads files to TeraBox through browser automation and returns share links",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    debug=settings.api.debug,
)

# ------------------------------ CORS ------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.get_origins_list(),
    allow_credentials=settings.cors.credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------------ ROUTERS ------------------------------
app.include_router(upload_router, prefix="/api", tags=["Upload"])

# ------------------------------ HEALTH ENDPOINTS ------------------------------
@app.get("/", tags=["Health"])
async def root():
    return {"message": "Terashare API", "status": "running"}

@app.get("/health", tags=["Health"])
async def health():
    return {"status": "healthy", "browser": browser_manager.status()}

# ------------------------------ MAIN ------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.api.host, port=settings.api.port)

# ------------------------------ END OF FILE ------------------------------
