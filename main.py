from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from app.config import CORS_ORIGINS, LOG_LEVEL
from app.database.database import test_connection
from app.api import api_router
from app.database.migration import run_migration
import logging

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Item Request API",
    description="Approval workflows for equipment and service vehicle requests",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    """Run startup tasks"""
    try:
        logger.info("Starting up Item Request API...")

        logger.info("Testing database connection...")
        if test_connection():
            logger.info("Database connection successful!")

            logger.info("Running database migration...")
            run_migration()
        else:
            logger.error("Database connection failed!")

        logger.info("Startup completed!")

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        # Log but don't crash the app

app.include_router(api_router)

@app.get("/")
def read_root():
    return {
        "message": "Welcome to the Item Request API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check():
    """Health check endpoint for deployment platforms"""
    try:
        db_status = test_connection()
        return {
            "status": "healthy" if db_status else "unhealthy",
            "database": "connected" if db_status else "disconnected",
            "version": "1.0.0"
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")
