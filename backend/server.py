from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uuid
from contextlib import asynccontextmanager
from database import database
from config import settings
from routes import signup, admin_workflow_config, docusign_relay

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting CLM Signup Bridge API")
    if os.environ.get("PYTEST_RUNNING"):
        logger.info("PYTEST_RUNNING set; skipping MongoDB connection")
    else:
        await database.connect()

    if not settings.account_id:
        logger.warning("CLM_ACCOUNT_ID is not set. Workflow submissions will be rejected.")
    logger.info(f"CLM base URL: {settings.clm_base_url}")
    logger.info(f"Relay base URL: {settings.relay_base_url}")

    yield

    # Shutdown
    logger.info("Shutting down CLM Signup Bridge API")
    await database.close()

# Create FastAPI app
app = FastAPI(
    title="CLM Signup Bridge API",
    description="Product signup forms to Docusign CLM workflows",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(signup.router)
app.include_router(admin_workflow_config.router)
app.include_router(docusign_relay.router)  # Server-side CLM relay

# Root endpoint
@app.get("/api")
async def root():
    return {
        "service": "CLM Signup Bridge",
        "version": "1.0.0",
        "status": "operational"
    }

# Health check
@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": os.getenv("ENVIRONMENT", "development"),
        "clm_account_configured": bool(settings.account_id),
    }


# Version/build stamp for deployment verification (commit SHA set by CI/CD)
@app.get("/api/version")
async def version_info():
    return {
        "commit_sha": os.getenv("GIT_COMMIT_SHA", os.getenv("BUILD_SHA", "unknown")),
        "environment": os.getenv("ENVIRONMENT", "development"),
    }

# Validation error handler: log request_id + full errors (loc path) for submission debugging
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = str(uuid.uuid4())
    errors = exc.errors()
    path = request.url.path
    logger.warning(
        "Request validation failed request_id=%s path=%s errors=%s",
        request_id,
        path,
        [(e.get("loc"), e.get("msg"), e.get("type")) for e in errors],
    )
    return JSONResponse(
        status_code=422,
        content={"detail": [{"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")} for e in errors],
                 "request_id": request_id},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8001,
        reload=os.getenv("ENVIRONMENT") == "development"
    )
