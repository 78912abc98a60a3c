import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from talent_backend.infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Create Base instance
Base = declarative_base()

DATABASE_URL = settings.database_url


def build_engine(database_url: str):
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite gets the thread check disabled so FastAPI's threadpool can share
    connections; every other backend gets a bounded QueuePool.
    """
    if database_url.startswith("sqlite:"):
        engine = create_engine(
            database_url, connect_args={"check_same_thread": False}, pool_pre_ping=True
        )
        logger.info("Using SQLite database")
    else:
        engine = create_engine(
            database_url,
            poolclass=QueuePool,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,  # Verify connections before using them
            connect_args={"application_name": "Talent Profile Backend"},
        )
        logger.info("Using pooled database engine")
    return engine


engine = build_engine(DATABASE_URL)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency function to get a database session.
    Used with FastAPI's dependency injection system.

    Yields:
        Session: A SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_migrations() -> bool:
    """
    Run database migrations using Alembic.

    Returns:
        bool: True if migrations were applied successfully, False otherwise
    """
    try:
        import alembic.config
        from alembic import command

        package_dir = os.path.dirname(__file__)
        alembic_ini_path = os.path.join(package_dir, "alembic.ini")

        alembic_cfg = alembic.config.Config(alembic_ini_path)
        alembic_cfg.set_main_option(
            "script_location", os.path.join(package_dir, "migrations")
        )
        alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)

        command.upgrade(alembic_cfg, "head")

        logger.info("Database migrations applied successfully")
        return True
    except Exception as e:
        logger.error(f"Error applying migrations: {e}")
        return False


def create_tables() -> bool:
    """
    Creates all tables defined in the models.
    Should be called when the application starts.

    Returns:
        bool: True if tables were created successfully, False otherwise
    """
    try:
        if run_migrations():
            return True

        logger.warning("Falling back to direct table creation")

        # Register mapped classes on Base.metadata
        from talent_backend import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Successfully created all database tables")
        return True
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        return False
