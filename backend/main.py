import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from ai.app import router as ai_router, is_ai_available
from api.analyses import router as analyses_router
from api.card_notes import router as card_notes_router
from database import db
from helpers.extractor import SUPPORTED_EXTS

logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", "8080"))
INDEX_HTML = os.path.join(os.path.dirname(__file__), "static", "index.html")

app = FastAPI(title="Document Analysis & Card Notes")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyses_router)
app.include_router(card_notes_router)
app.include_router(ai_router)

if is_ai_available():
    logger.info("[AI] Gemini summarization enabled")
else:
    logger.info("[AI] Gemini not configured - local summary mode")


@app.get("/", include_in_schema=False)
async def index():
    return FileResponse(INDEX_HTML, media_type="text/html")


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "database": "postgres" if db.is_postgres else "sqlite",
        "supported_formats": SUPPORTED_EXTS,
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Serving on http://localhost:{PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
