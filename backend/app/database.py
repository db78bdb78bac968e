"""
Database configuration with SQLAlchemy (PostgreSQL in production, SQLite locally).
"""
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATA_DIR, get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

SQLALCHEMY_DATABASE_URL = settings.database_url

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # SQLite sessions are shared between the API and the scheduler task
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        echo=settings.debug,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        echo=settings.debug,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base for models
Base = declarative_base()


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_migrations():
    """Run manual migrations for columns that create_all() won't add to existing tables."""
    migrations = [
        # Persisted generation lock on campaigns
        "ALTER TABLE blog_campaigns ADD COLUMN IF NOT EXISTS generation_lock_token VARCHAR(36)",
        "ALTER TABLE blog_campaigns ADD COLUMN IF NOT EXISTS generation_locked_at TIMESTAMP",
        "ALTER TABLE blog_campaigns ADD COLUMN IF NOT EXISTS product_enrichment_enabled BOOLEAN DEFAULT TRUE",
        "ALTER TABLE blog_campaigns ADD COLUMN IF NOT EXISTS max_articles INTEGER",
        # Validation results on articles
        "ALTER TABLE blog_articles ADD COLUMN IF NOT EXISTS validation_score INTEGER",
        "ALTER TABLE blog_articles ADD COLUMN IF NOT EXISTS validation_issues JSON",
        # Trigger source on the execution log
        "ALTER TABLE campaign_execution_log ADD COLUMN IF NOT EXISTS trigger VARCHAR(20) DEFAULT 'scheduled'",
    ]
    if engine.dialect.name == "sqlite":
        # SQLite has no ADD COLUMN IF NOT EXISTS; create_all() covers fresh local databases
        return
    with engine.connect() as conn:
        for sql in migrations:
            try:
                conn.execute(text(sql))
            except Exception as e:
                logger.warning(f"Migration skipped: {e}")
        conn.commit()
    logger.info("Database migrations completed")


def init_db():
    """Initialize database by creating all tables, then run column migrations."""
    from . import models  # Import to register models
    if engine.dialect.name == "sqlite":
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)
    try:
        run_migrations()
    except Exception as e:
        logger.warning(f"Migration step failed (tables may not exist yet): {e}")
