"""
Service configuration read from environment variables.
"""
import os
from typing import Optional

from pydantic import BaseModel

from .errors import ConfigurationError

DEFAULT_MODEL = "models/gemini-1.5-flash-latest"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_DIRECTORY_BASE_URL = "https://admin.googleapis.com/admin/directory/v1"
DIRECTORY_USER_SCOPE = "https://www.googleapis.com/auth/admin.directory.user"


class Settings(BaseModel):
    """Runtime settings. Credentials only ever come from here, never from code."""

    demo_account_domain: Optional[str] = None
    demo_script_model: str = DEFAULT_MODEL
    demo_product_name: str = "Google Workspace"

    gemini_api_key: Optional[str] = None
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL

    directory_base_url: str = DEFAULT_DIRECTORY_BASE_URL
    directory_org_unit_path: str = "/"
    directory_service_account_file: Optional[str] = None
    directory_service_account_json: Optional[str] = None
    directory_admin_subject: Optional[str] = None

    http_timeout_seconds: float = 30.0
    requester_jwt_secret: Optional[str] = None

    def require_domain(self) -> str:
        if not self.demo_account_domain:
            raise ConfigurationError(
                "DEMO_ACCOUNT_DOMAIN is not configured. Set it to the domain for demo accounts."
            )
        return self.demo_account_domain


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        demo_account_domain=os.getenv("DEMO_ACCOUNT_DOMAIN") or None,
        demo_script_model=os.getenv("DEMO_SCRIPT_MODEL", DEFAULT_MODEL),
        demo_product_name=os.getenv("DEMO_PRODUCT_NAME", "Google Workspace"),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
        directory_base_url=os.getenv("DIRECTORY_BASE_URL", DEFAULT_DIRECTORY_BASE_URL),
        directory_org_unit_path=os.getenv("DIRECTORY_ORG_UNIT_PATH", "/"),
        directory_service_account_file=os.getenv("DIRECTORY_SERVICE_ACCOUNT_FILE") or None,
        directory_service_account_json=os.getenv("DIRECTORY_SERVICE_ACCOUNT_JSON") or None,
        directory_admin_subject=os.getenv("DIRECTORY_ADMIN_SUBJECT") or None,
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
        requester_jwt_secret=os.getenv("REQUESTER_JWT_SECRET") or None,
    )


_settings: Optional[Settings] = None  # Singleton


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
