from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
import logging

from app.config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

# Configure database engine with pooling for PostgreSQL deployments
if DATABASE_URL.startswith("postgresql"):
    engine_kwargs = {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Recycle connections every 30 minutes
        "pool_pre_ping": True,  # Validate connections before use
        "echo": SQL_ECHO,
        "connect_args": {
            "connect_timeout": 10,
            "application_name": "item_request_api"
        }
    }
    engine = create_engine(DATABASE_URL, **engine_kwargs)
    logger.info("PostgreSQL engine created")
else:
    # SQLite configuration for development
    engine = create_engine(
        DATABASE_URL,
        echo=SQL_ECHO,
        connect_args={"check_same_thread": False}
    )
    logger.info("Using SQLite database")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection():
    """Test database connection on startup"""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
        return True
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        return False
