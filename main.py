from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler
from skinscore.api.v1.api import api_router
from skinscore.core.config import settings
from skinscore.core.exceptions import ServiceUnavailableError, StoreUnavailable
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

import os

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Skin scan scoring API with subscription entitlements and usage allowances",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json"
)

from skinscore.db.mongo import mongodb

@app.on_event("startup")
async def startup_db_client():
    await mongodb.connect_to_database()
    await mongodb.ensure_indexes()

@app.on_event("shutdown")
async def shutdown_db_client():
    await mongodb.close_database_connection()


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"Store unavailable during {request.method} {request.url.path}: {exc}")
    return await http_exception_handler(request, ServiceUnavailableError())


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",  # Next.js dev server
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "docs": "/docs",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
