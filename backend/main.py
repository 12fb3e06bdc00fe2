import os # os needs to be imported before dotenv for getenv to work as expected in some cases
from dotenv import load_dotenv
load_dotenv() # Load .env file at the very beginning

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from leave_portal.db import init_db, close_db, ensure_indexes
from leave_portal.routes import auth, leaves, admin, events, health
from leave_portal.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from leave_portal.utils.logger import configure_logging
import logging

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup"""
    try:
        await ensure_indexes()
    except Exception as e:
        logger.error(f"Could not ensure MongoDB indexes: {e}")
    logger.info("Application startup completed")
    yield
    close_db()
    logger.info("Application shutdown completed")


app = FastAPI(
    title="Leave Management API",
    description="Leave requests, manager approvals, leave balances, holidays and leave statistics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Multiple origins can be provided via the CORS_ORIGINS environment variable, comma-separated.
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000")
cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Unhandled exceptions become JSON 500 responses
app.add_middleware(ErrorHandlerMiddleware)
register_exception_handlers(app)

# Initialize Database
init_db(app)

app.include_router(health.router, tags=["Health"])


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Leave Management API",
        "docs": "/docs",
        "health": "/health"
    }

# Include routers with proper /api prefix
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(leaves.router, prefix="/api/leaves", tags=["Leaves"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(events.router, tags=["Events"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
