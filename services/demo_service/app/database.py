"""
Database configuration and session management for demo_service.
Holds the per-requester demo state (demo_states) and the script generation
audit trail (script_generation_audit). SQLite by default; any SQLAlchemy URL
can be supplied through DATABASE_URL.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./demo_service.db")

# SQLite connections are shared across FastAPI's threadpool workers
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Yield a request-scoped session for the state store and audit log."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
