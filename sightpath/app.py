from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
import asyncio
import logging
import os

from sightpath.config import get_settings
from sightpath.routers.v1.vision import router as vision_router
from sightpath.services.font import caption_font

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Load the caption font off the event loop; requests before it is ready render without captions
@app.on_event("startup")
async def startup():
    logger.info("Loading caption font in the background")
    app.state.font_task = asyncio.create_task(
        asyncio.to_thread(caption_font.load, settings.CAPTION_FONT_PATH, settings.CAPTION_FONT_SIZE)
    )

app.include_router(vision_router, prefix=settings.API_V1_STR, tags=["vision"])

# Only mount static files if directory exists
if os.path.isdir("static"):
    app.mount("/static", StaticFiles(directory="static"), name="static")

    @app.get("/")
    async def read_index():
        return FileResponse('static/index.html')
else:
    @app.get("/")
    async def read_index():
        return {"message": "Vision Service API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.get("/health/font")
async def font_health():
    return {"font": "ready" if caption_font.ready else "loading"}
