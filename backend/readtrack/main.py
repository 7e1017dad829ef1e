from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from datetime import datetime

from readtrack.core.config import settings
from readtrack.routers import (
    books,
    goals,
    insights,
    me,
    reading,
    user_books,
)
from readtrack.database import init_db

# ----------------------------
# Logging
# ----------------------------
logger = logging.getLogger("readtrack")
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Server fingerprint for debugging
SERVER_BOOT_ID = f"readtrack-backend::{os.getpid()}::{datetime.utcnow().isoformat()}"

app = FastAPI(title="readtrack", debug=settings.DEBUG)


# ----------------------------
# CORS
# ----------------------------
cors_origins = settings.cors_origins_list
logger.info("[CORS] allow_origins=%s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[UNHANDLED] %s %s", request.method, request.url.path)

    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"}
    )

    # Error responses bypass the CORS middleware
    origin = request.headers.get("origin")
    if origin and origin in cors_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response


# ----------------------------
# Routers
# ----------------------------
app.include_router(insights.router, prefix="/api")
app.include_router(books.router, prefix="/api")
app.include_router(user_books.router, prefix="/api")
app.include_router(reading.router, prefix="/api")
app.include_router(goals.router, prefix="/api")
app.include_router(me.router, prefix="/api")


@app.on_event("startup")
def on_startup() -> None:
    logger.info("[BOOT] %s", SERVER_BOOT_ID)
    init_db()


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/health")
def api_health_check():
    return {"status": "ok"}
