"""
Shared fixtures and in-memory collaborators for demo_service tests.
"""
import os

# Configure the database before the app modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from services.demo_service.app.adapters.base import (
    DirectoryClient,
    DirectoryOutcome,
    DirectoryResult,
    GenerationResult,
    TextGenerator,
    TokenProvider,
    TokenResult,
)
from services.demo_service.app.audit import AuditLog
from services.demo_service.app.config import Settings
from services.demo_service.app.database import Base
from services.demo_service.app.errors import ErrorKind
from services.demo_service.app.orchestrator import DemoOrchestrator
from services.demo_service.app.state_store import InMemoryStateStore

DOMAIN = "demo.example"
REQUESTER = "jane.doe@example.com"
DEMO_EMAIL = f"janedoe@{DOMAIN}"

VALID_SCRIPT_JSON = """{
  "summary": "Shared drives for a legal team.",
  "title": "Collaborating on Case Files",
  "introduction": "Welcome! Today Jane will show shared drives.",
  "prerequisites": ["Practice the script before the live demo."],
  "steps": [
    {
      "step_title": "Step 1: Create a shared drive",
      "action": "Open Drive.",
      "ui_interaction": "Click New, then Shared drive.",
      "presenter_script": "Shared drives keep files with the team."
    }
  ]
}"""


class FakeTokenProvider(TokenProvider):
    def __init__(self, token: Optional[str] = "test-token", error_kind=ErrorKind.AUTHENTICATION_FAILURE):
        self.token = token
        self.error_kind = error_kind
        self.calls = 0
        self.resets = 0

    def get_access_token(self) -> TokenResult:
        self.calls += 1
        if self.token:
            return TokenResult(token=self.token)
        return TokenResult(error="Authentication failed.", error_kind=self.error_kind)

    def reset(self) -> None:
        self.resets += 1


class FakeDirectory(DirectoryClient):
    """Directory with real create/lookup/delete semantics and switchable failures."""

    def __init__(self):
        self.users: Dict[str, dict] = {}
        self.passwords: Dict[str, str] = {}
        self.fail: Dict[str, DirectoryResult] = {}
        self.calls: List[str] = []

    def _maybe_fail(self, operation: str) -> Optional[DirectoryResult]:
        self.calls.append(operation)
        return self.fail.get(operation)

    def lookup(self, email):
        failure = self._maybe_fail("lookup")
        if failure:
            return failure
        if email in self.users:
            return DirectoryResult(outcome=DirectoryOutcome.FOUND, record=self.users[email], status_code=200)
        return DirectoryResult(outcome=DirectoryOutcome.NOT_FOUND, status_code=404)

    def create(self, email, first_name, last_name, password):
        failure = self._maybe_fail("create")
        if failure:
            return failure
        if email in self.users:
            return DirectoryResult(outcome=DirectoryOutcome.CONFLICT, status_code=409, error="exists")
        self.users[email] = {"primaryEmail": email, "name": {"givenName": first_name, "familyName": last_name}}
        self.passwords[email] = password
        return DirectoryResult(outcome=DirectoryOutcome.CREATED, status_code=201)

    def update_credential(self, email, password):
        failure = self._maybe_fail("update_credential")
        if failure:
            return failure
        self.passwords[email] = password
        return DirectoryResult(outcome=DirectoryOutcome.UPDATED, status_code=200)

    def delete(self, email):
        failure = self._maybe_fail("delete")
        if failure:
            return failure
        existed = self.users.pop(email, None) is not None
        self.passwords.pop(email, None)
        return DirectoryResult(outcome=DirectoryOutcome.DELETED, status_code=204 if existed else 404)


class FakeGenerator(TextGenerator):
    def __init__(self, text: Optional[str] = VALID_SCRIPT_JSON, error: Optional[str] = None):
        self.text = text
        self.error = error
        self.prompts: List[str] = []
        self.models: List[str] = []

    def generate(self, prompt, model_name):
        self.prompts.append(prompt)
        self.models.append(model_name)
        if self.error:
            return GenerationResult(success=False, error=self.error, error_kind=ErrorKind.TRANSPORT_ERROR)
        return GenerationResult(success=True, text=self.text)


class FakeAuditLog(AuditLog):
    def __init__(self, broken: bool = False):
        self.entries: List[dict] = []
        self.broken = broken

    def record_generation(self, requester_key, demo_email, prompt, success, output):
        if self.broken:
            raise RuntimeError("audit sink unavailable")
        self.entries.append(
            {"requester_key": requester_key, "demo_email": demo_email, "prompt": prompt, "success": success, "output": output}
        )


def transport_error(status_code: int = 500) -> DirectoryResult:
    return DirectoryResult(
        outcome=DirectoryOutcome.TRANSPORT_ERROR,
        status_code=status_code,
        error=f"Directory API responded with code {status_code}.",
    )


@pytest.fixture
def settings():
    return Settings(
        demo_account_domain=DOMAIN,
        demo_script_model="models/gemini-test",
        gemini_api_key="test-key",
        requester_jwt_secret="test-secret",
    )


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def audit_log():
    return FakeAuditLog()


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def orchestrator(settings, directory, generator, store, audit_log):
    return DemoOrchestrator(settings, directory, generator, store, audit_log)


@pytest.fixture
def db_session():
    """SQLite in-memory session shared across connections."""
    test_engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)
