"""
Per-requester state storage.

StateStore holds at most one ProvisionResult and one DemoScript per requester.
Implementations only move serialized JSON; parsing, password stripping and
corruption handling live in the base class so every backend behaves the same.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .models import DemoStateRecord
from .schemas import DemoScript, PersistedState, ProvisionResult

logger = logging.getLogger(__name__)

RawState = Tuple[Optional[str], Optional[str]]


class StateStore(ABC):
    """Abstract per-requester key/value store."""

    # --- backend primitives ---

    @abstractmethod
    def _read(self, requester_key: str) -> Optional[RawState]:
        """Return (provision_json, script_json) or None when nothing is stored."""
        ...

    @abstractmethod
    def _write(
        self, requester_key: str, provision_json: Optional[str], script_json: Optional[str]
    ) -> None:
        """Upsert; a None field leaves the stored value untouched."""
        ...

    @abstractmethod
    def clear_all(self, requester_key: str) -> None:
        ...

    @abstractmethod
    def clear_script_only(self, requester_key: str) -> None:
        ...

    # --- public API ---

    def save(
        self,
        requester_key: str,
        provision_result: Optional[ProvisionResult] = None,
        demo_script: Optional[DemoScript] = None,
    ) -> None:
        if provision_result is None and demo_script is None:
            return
        provision_json = provision_result.model_dump_json(by_alias=True) if provision_result else None
        script_json = demo_script.model_dump_json() if demo_script else None
        self._write(requester_key, provision_json, script_json)

    def load(self, requester_key: str) -> Optional[PersistedState]:
        """
        Load the requester's state with the password always removed.

        An unreadable record counts as no state and is deleted.
        """
        raw = self._read(requester_key)
        if raw is None:
            return None
        provision_json, script_json = raw
        if not provision_json and not script_json:
            return None

        try:
            provision_result = (
                ProvisionResult.model_validate_json(provision_json) if provision_json else None
            )
            demo_script = DemoScript.model_validate_json(script_json) if script_json else None
        except ValidationError as e:
            logger.warning(f"⚠️ Discarding unreadable state for {requester_key}: {e}")
            self.clear_all(requester_key)
            return None

        if provision_result is not None:
            provision_result = provision_result.without_password()
        return PersistedState(provision_result=provision_result, demo_script=demo_script)


class InMemoryStateStore(StateStore):
    """Dictionary-backed store for tests and local runs."""

    def __init__(self):
        self._records: Dict[str, Dict[str, Optional[str]]] = {}

    def _read(self, requester_key: str) -> Optional[RawState]:
        record = self._records.get(requester_key)
        if record is None:
            return None
        return record.get("provision_result"), record.get("demo_script")

    def _write(self, requester_key, provision_json, script_json) -> None:
        record = self._records.setdefault(requester_key, {})
        if provision_json is not None:
            record["provision_result"] = provision_json
        if script_json is not None:
            record["demo_script"] = script_json

    def clear_all(self, requester_key: str) -> None:
        self._records.pop(requester_key, None)

    def clear_script_only(self, requester_key: str) -> None:
        record = self._records.get(requester_key)
        if record is not None:
            record.pop("demo_script", None)


class SqlAlchemyStateStore(StateStore):
    """Store backed by the demo_states table, scoped to one request's session."""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, requester_key: str) -> Optional[DemoStateRecord]:
        return self.db.query(DemoStateRecord).filter(DemoStateRecord.requester_key == requester_key).first()

    def _read(self, requester_key: str) -> Optional[RawState]:
        record = self._get(requester_key)
        if record is None:
            return None
        return record.provision_result, record.demo_script

    def _write(self, requester_key, provision_json, script_json) -> None:
        record = self._get(requester_key)
        if record is None:
            record = DemoStateRecord(requester_key=requester_key)
            self.db.add(record)
        if provision_json is not None:
            record.provision_result = provision_json
        if script_json is not None:
            record.demo_script = script_json
        self.db.commit()

    def clear_all(self, requester_key: str) -> None:
        record = self._get(requester_key)
        if record is not None:
            self.db.delete(record)
            self.db.commit()
            logger.info(f"🗑️ Demo state cleared for {requester_key}")

    def clear_script_only(self, requester_key: str) -> None:
        record = self._get(requester_key)
        if record is not None and record.demo_script is not None:
            record.demo_script = None
            self.db.commit()
