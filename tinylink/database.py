import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Explicitly load .env from project root (parent of tinylink/)
load_dotenv(Path(__file__).parent.parent / ".env")
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

DEV_DB_PATH = Path(__file__).parent.parent / "tinylink_dev.db"
# Seconds a writer waits on SQLite's file lock; concurrent click updates queue on it
SQLITE_TIMEOUT = float(os.getenv("SQLITE_TIMEOUT", 30))


def make_engine(url: str):
    """Engine for ``url``: SQLite gets a shared-thread, lock-waiting connection,
    anything else (PostgreSQL in prod) a checked, recycled pool."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_TIMEOUT},
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )


DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    if ENVIRONMENT == "prod":
        raise RuntimeError("DATABASE_URL must be set in production")
    DATABASE_URL = f"sqlite:///{DEV_DB_PATH}"

engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
