"""FastAPI application entry point for the Chat Assistant API."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatapp.api.routes.chats import router as chats_router
from chatapp.api.routes.users import router as users_router
from chatapp.config import settings
from chatapp.core.logging import configure_logging
from chatapp.database import init_db
from chatapp.middleware.performance import performance_logger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    configure_logging(settings.LOG_LEVEL)
    init_db()
    logger.info("Database initialized")

    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="REST API for chats with an AI assistant",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(performance_logger)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.APP_VERSION}


# Identity-provider webhooks (svix-signed)
app.include_router(users_router)

# Chat routes (bearer token required)
app.include_router(chats_router)


@app.get("/{full_path:path}", include_in_schema=False)
def not_found(full_path: str):
    return JSONResponse(status_code=404, content={"status": "not found"})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Hide internal error details from clients."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
