"""
Persistence models: per-requester demo state and the generation audit trail.
"""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from .database import Base


class DemoStateRecord(Base):
    """One row per requester. Both payloads are serialized JSON."""

    __tablename__ = "demo_states"

    requester_key = Column(String(320), primary_key=True)
    provision_result = Column(Text, nullable=True)
    demo_script = Column(Text, nullable=True)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self):
        return f"<DemoStateRecord(requester_key='{self.requester_key}')>"


class ScriptGenerationAudit(Base):
    """Prompt and outcome of every script generation attempt."""

    __tablename__ = "script_generation_audit"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_key = Column(String(320), nullable=False, index=True)
    demo_email = Column(String(320), nullable=True)
    prompt = Column(Text, nullable=False)
    success = Column(Boolean, nullable=False)
    output = Column(Text, nullable=True)  # script JSON or failure detail
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ScriptGenerationAudit(id={self.id}, requester='{self.requester_key}', success={self.success})>"
