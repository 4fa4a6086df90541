"""
Audit trail for script generation: the prompt sent and what came back.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Session

from .models import ScriptGenerationAudit

logger = logging.getLogger(__name__)


class AuditLog(ABC):
    @abstractmethod
    def record_generation(
        self,
        requester_key: str,
        demo_email: Optional[str],
        prompt: str,
        success: bool,
        output: str,
    ) -> None:
        """Persist one generation attempt. May raise; callers treat it as best-effort."""
        ...


class SqlAlchemyAuditLog(AuditLog):
    """Writes to the script_generation_audit table."""

    def __init__(self, db: Session):
        self.db = db

    def record_generation(self, requester_key, demo_email, prompt, success, output) -> None:
        entry = ScriptGenerationAudit(
            requester_key=requester_key,
            demo_email=demo_email,
            prompt=prompt,
            success=success,
            output=output,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"📝 Logged script generation for {requester_key} (success={success})")
