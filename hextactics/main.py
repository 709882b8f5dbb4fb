"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from hextactics.api.routes import mission
from hextactics.config import get_settings
from hextactics.core.mission_storage import active_missions
from hextactics.middleware.error_handler import setup_error_handlers

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Hex Tactics Engine",
    description="Turn-based hex-grid tactical combat with card-driven turns",
    version="0.1.0",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug(f"[Request] {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"[Response] {request.method} {request.url.path} -> {response.status_code}")
    return response

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


setup_error_handlers(app, debug=settings.DEBUG)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "game": "Hex Tactics", "version": "0.1.0"}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "active_missions": len(active_missions),
        "modifier_deck": settings.USE_MODIFIER_DECK,
        "debug_mode": settings.DEBUG,
    }


# Routes
app.include_router(mission.router, prefix="/api/mission", tags=["mission"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hextactics.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
