"""
Google service-account token provider for the Admin Directory API.
Uses domain-wide delegation: the service account impersonates an admin
(DIRECTORY_ADMIN_SUBJECT) with the directory user scope.
"""
import json
import logging

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from ..config import DIRECTORY_USER_SCOPE, Settings
from ..errors import ConfigurationError, ErrorKind
from .base import TokenProvider, TokenResult

logger = logging.getLogger(__name__)


class ServiceAccountTokenProvider(TokenProvider):
    """
    Exchanges service-account key material for a short-lived bearer token.

    Key material comes from DIRECTORY_SERVICE_ACCOUNT_JSON (inline) or
    DIRECTORY_SERVICE_ACCOUNT_FILE (path). Credentials are cached and only
    refreshed once the current token has expired.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._credentials = None

    def _build_credentials(self):
        settings = self.settings
        if not settings.directory_admin_subject:
            raise ConfigurationError("DIRECTORY_ADMIN_SUBJECT is not configured.")

        scopes = [DIRECTORY_USER_SCOPE]
        if settings.directory_service_account_json:
            info = json.loads(settings.directory_service_account_json)
            return service_account.Credentials.from_service_account_info(
                info, scopes=scopes, subject=settings.directory_admin_subject
            )
        if settings.directory_service_account_file:
            return service_account.Credentials.from_service_account_file(
                settings.directory_service_account_file,
                scopes=scopes,
                subject=settings.directory_admin_subject,
            )
        raise ConfigurationError(
            "No service account configured. "
            "Set DIRECTORY_SERVICE_ACCOUNT_JSON or DIRECTORY_SERVICE_ACCOUNT_FILE."
        )

    def get_access_token(self) -> TokenResult:
        try:
            if self._credentials is None:
                self._credentials = self._build_credentials()
            if not self._credentials.valid:
                self._credentials.refresh(Request())
        except ConfigurationError as e:
            logger.error(f"❌ Directory auth not configured: {e.message}")
            return TokenResult(error=e.message, error_kind=ErrorKind.CONFIGURATION_ERROR)
        except (ValueError, OSError) as e:
            # Unreadable key file or malformed key material
            logger.error(f"❌ Invalid service account credentials: {e}")
            self._credentials = None
            return TokenResult(
                error=f"Invalid service account credentials: {e}",
                error_kind=ErrorKind.CONFIGURATION_ERROR,
            )
        except google.auth.exceptions.GoogleAuthError as e:
            logger.error(f"❌ Token exchange failed: {e}")
            return TokenResult(error=f"Authentication failed: {e}")

        token = self._credentials.token
        if not token:
            return TokenResult(error="Authentication failed. The token exchange returned no token.")
        return TokenResult(token=token)

    def reset(self) -> None:
        logger.info("ℹ️ Directory credentials reset")
        self._credentials = None
