"""
Demo Service - Demo account provisioning and AI demo script generation.
Provisions one demo identity per requesting operator in the directory and
generates a structured walkthrough script for it with a generative model.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Depends
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from .adapters.admin_directory import AdminDirectoryClient
from .adapters.base import DirectoryClient, TextGenerator, TokenProvider
from .adapters.gemini_client import GeminiClient
from .adapters.google_auth import ServiceAccountTokenProvider
from .audit import SqlAlchemyAuditLog
from .auth import get_requester_email
from .config import Settings, get_settings
from .database import engine, get_db, Base
from .errors import ErrorKind
from .orchestrator import DemoOrchestrator
from .schemas import (
    CreateUserRequest,
    CreateUserResponse,
    GenerateScriptRequest,
    GenerateScriptResponse,
    InitialStateResponse,
    OperationResponse,
    ResetPasswordResponse,
)
from .state_store import SqlAlchemyStateStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# =============================================================================
# Collaborator Factories
# =============================================================================

_token_provider: Optional[TokenProvider] = None  # Singleton, caches credentials


def get_token_provider(settings: Settings = Depends(get_settings)) -> TokenProvider:
    global _token_provider
    if _token_provider is None:
        _token_provider = ServiceAccountTokenProvider(settings)
    return _token_provider


def get_directory_client(
    settings: Settings = Depends(get_settings),
    token_provider: TokenProvider = Depends(get_token_provider),
) -> DirectoryClient:
    return AdminDirectoryClient(
        token_provider,
        base_url=settings.directory_base_url,
        org_unit_path=settings.directory_org_unit_path,
        timeout=settings.http_timeout_seconds,
    )


def get_text_generator(settings: Settings = Depends(get_settings)) -> TextGenerator:
    return GeminiClient(
        settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        timeout=settings.http_timeout_seconds,
    )


def get_orchestrator(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    directory: DirectoryClient = Depends(get_directory_client),
    generator: TextGenerator = Depends(get_text_generator),
) -> DemoOrchestrator:
    """One orchestrator per request, bound to that request's session."""
    return DemoOrchestrator(
        settings,
        directory,
        generator,
        SqlAlchemyStateStore(db),
        SqlAlchemyAuditLog(db),
    )


# =============================================================================
# FastAPI App
# =============================================================================

# Create tables on startup
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Demo Service",
    description="Demo account provisioning and AI-generated demo scripts",
    version=VERSION,
)

# Prometheus metrics
Instrumentator().instrument(app).expose(app)


@app.on_event("startup")
async def startup_event():
    """Log configuration status on startup."""
    settings = get_settings()
    if settings.demo_account_domain:
        logger.info(f"🏢 Demo account domain: {settings.demo_account_domain}")
    else:
        logger.warning("⚠️ DEMO_ACCOUNT_DOMAIN not set, provisioning will fail until configured")
    logger.info(f"🧠 Demo script model: {settings.demo_script_model}")
    if not settings.gemini_api_key:
        logger.warning("⚠️ GEMINI_API_KEY not set, script generation disabled")


# =============================================================================
# Health
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check with configuration status."""
    settings = get_settings()
    return {
        "status": "ok",
        "service": "demo",
        "version": VERSION,
        "domain_configured": bool(settings.demo_account_domain),
        "model": settings.demo_script_model,
        "generator_configured": bool(settings.gemini_api_key),
    }


# =============================================================================
# Lifecycle Endpoints
# =============================================================================

@app.get("/state", response_model=InitialStateResponse, response_model_exclude_none=True)
def get_initial_state(
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Current demo account (never with a password) and last generated script."""
    return orchestrator.get_initial_state(requester)


@app.post("/users", response_model=CreateUserResponse, response_model_exclude_none=True)
def create_user(
    request: CreateUserRequest,
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Create the requester's demo account, or return the existing one without a password."""
    return orchestrator.create_account(requester, request.first_name, request.last_name)


@app.post("/users/reset-password", response_model=ResetPasswordResponse, response_model_exclude_none=True)
def reset_password_for_demo_user(
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Set and return a new password for the stored demo account."""
    return orchestrator.reset_password(requester)


@app.delete("/users/{email}", response_model=OperationResponse, response_model_exclude_none=True)
def delete_demo_account(
    email: str,
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Delete the demo account (already-deleted counts as success) and clear stored state."""
    return orchestrator.delete_account(requester, email)


@app.post("/scripts", response_model=GenerateScriptResponse, response_model_exclude_none=True)
def generate_demo_script(
    request: GenerateScriptRequest,
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Generate a new demo script; a failure keeps the previous one."""
    return orchestrator.generate_script(requester, request.context)


@app.delete("/state", response_model=OperationResponse, response_model_exclude_none=True)
def clear_user_data(
    requester: Optional[str] = Depends(get_requester_email),
    orchestrator: DemoOrchestrator = Depends(get_orchestrator),
):
    """Start over without deleting the demo account."""
    return orchestrator.clear_user_data(requester)


@app.post("/auth/reset", response_model=OperationResponse, response_model_exclude_none=True)
def reset_authentication(
    requester: Optional[str] = Depends(get_requester_email),
    token_provider: TokenProvider = Depends(get_token_provider),
):
    """Drop cached directory credentials so the next call re-authenticates."""
    if not requester:
        return OperationResponse.failure(ErrorKind.INVALID_INPUT, "Could not identify the requesting user.")
    logger.info(f"ℹ️ Directory credential reset requested by {requester}")
    token_provider.reset()
    return OperationResponse(success=True)


# =============================================================================
# Root Info
# =============================================================================

@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "Demo Service",
        "version": VERSION,
        "endpoints": {
            "/health": "Health check (includes configuration status)",
            "/state": "GET - Current demo account and script, DELETE - Start over",
            "/users": "POST - Create or reuse the demo account",
            "/users/reset-password": "POST - Reset the demo account password",
            "/users/{email}": "DELETE - Delete the demo account",
            "/scripts": "POST - Generate a demo script",
            "/auth/reset": "POST - Drop cached directory credentials",
        },
    }
