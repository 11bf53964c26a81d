import asyncio
from fastapi import FastAPI, Request, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from kin_archive.config import get_settings
from kin_archive.dependencies import get_services
from kin_archive.api.chat import router as chat_router
from kin_archive.api.documents import router as documents_router, limiter
from kin_archive.api.folders import router as folders_router
from kin_archive.api.links import router as links_router
from kin_archive.api.settings import router as settings_router
from kin_archive.telegram_bot.bot import handle_telegram_update, initialize_bot, shutdown_bot

app = FastAPI(
    title="Kin Archive API",
    description="Accounting document archive for a Telegram Mini App",
    version="0.1.0"
)

# Rate limiting for uploads
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Keep references to background tasks to prevent garbage collection
_background_tasks: set = set()


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Load archive and initialize bot on startup."""
    print("[STARTUP] Loading archive...")
    services = get_services()
    print(f"[STARTUP] Archive ready: {len(services.archive.documents)} documents")
    print("[STARTUP] Initializing Telegram bot...")
    await initialize_bot()
    print("[STARTUP] Bot ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown bot on application shutdown."""
    print("[SHUTDOWN] Shutting down Telegram bot...")
    await shutdown_bot()
    print("[SHUTDOWN] Bot stopped")

# CORS for Telegram Mini App
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Mini App can run from various domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "bot_enabled": bool(settings.telegram_bot_token),
        "version": "0.1.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Kin Archive API",
        "docs": "/docs"
    }


# Telegram webhook endpoint
@app.post("/telegram/webhook")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str = Header(None)
):
    """
    Webhook endpoint for Telegram updates.

    Telegram sends updates here when messages arrive.
    """
    settings = get_settings()

    # Verify secret token if configured
    if settings.telegram_webhook_secret:
        if x_telegram_bot_api_secret_token != settings.telegram_webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

    # Parse update data
    update_data = await request.json()

    # Handle update in background (fire-and-forget for fast 200 OK)
    task = asyncio.create_task(handle_telegram_update(update_data))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return {"ok": True}


# Include routers
app.include_router(folders_router)
app.include_router(documents_router)
app.include_router(links_router)
app.include_router(settings_router)
app.include_router(chat_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
