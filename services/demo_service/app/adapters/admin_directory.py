"""
Admin Directory adapter.
Thin httpx wrapper over the directory users API that turns HTTP status codes
into DirectoryOutcome values. Network errors never propagate.
"""
import logging
from typing import Callable, Optional

import httpx

from ..errors import ErrorKind
from .base import DirectoryClient, DirectoryOutcome, DirectoryResult, TokenProvider

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 500


class AdminDirectoryClient(DirectoryClient):
    """
    Directory client for `GET/POST/PUT/DELETE {base_url}/users...`.

    A bearer token is requested from the token provider before every call.
    Pass `client` to reuse an httpx.Client (tests use a MockTransport);
    otherwise a short-lived client is opened per call.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str,
        org_unit_path: str = "/",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.org_unit_path = org_unit_path
        self.timeout = timeout
        self._client = client

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def lookup(self, email: str) -> DirectoryResult:
        def interpret(response: httpx.Response) -> DirectoryResult:
            if response.status_code == 200:
                try:
                    record = response.json()
                except ValueError:
                    record = None
                if not isinstance(record, dict):
                    logger.error(f"❌ Unreadable directory record for {email}: {response.text[:ERROR_BODY_LIMIT]}")
                    return DirectoryResult(
                        outcome=DirectoryOutcome.TRANSPORT_ERROR,
                        status_code=200,
                        error="The directory returned an unreadable user record.",
                    )
                return DirectoryResult(outcome=DirectoryOutcome.FOUND, record=record, status_code=200)
            if response.status_code == 404:
                return DirectoryResult(outcome=DirectoryOutcome.NOT_FOUND, status_code=404)
            return self._failure("look up user", email, response)

        return self._call("look up user", "GET", f"/users/{email}", interpret)

    def create(self, email: str, first_name: str, last_name: str, password: str) -> DirectoryResult:
        payload = {
            "primaryEmail": email,
            "password": password,
            "name": {"givenName": first_name, "familyName": last_name},
            "orgUnitPath": self.org_unit_path,
            "changePasswordAtNextLogin": False,
        }

        def interpret(response: httpx.Response) -> DirectoryResult:
            if response.status_code in (200, 201):
                logger.info(f"✅ Directory user created: {email}")
                return DirectoryResult(outcome=DirectoryOutcome.CREATED, status_code=response.status_code)
            if response.status_code == 409:
                logger.warning(f"⚠️ Directory user already exists: {email}")
                return DirectoryResult(
                    outcome=DirectoryOutcome.CONFLICT,
                    status_code=409,
                    error=f"A user named {email} already exists in the directory.",
                )
            return self._failure("create user", email, response)

        return self._call("create user", "POST", "/users", interpret, payload)

    def update_credential(self, email: str, password: str) -> DirectoryResult:
        payload = {"password": password, "changePasswordAtNextLogin": False}

        def interpret(response: httpx.Response) -> DirectoryResult:
            if response.status_code == 200:
                logger.info(f"✅ Password updated for {email}")
                return DirectoryResult(outcome=DirectoryOutcome.UPDATED, status_code=200)
            return self._failure("reset password", email, response)

        return self._call("reset password", "PUT", f"/users/{email}", interpret, payload)

    def delete(self, email: str) -> DirectoryResult:
        def interpret(response: httpx.Response) -> DirectoryResult:
            # 404 means the user is already gone; both count as deleted
            if response.status_code in (204, 404):
                logger.info(f"🗑️ Processed deletion for {email} (Status: {response.status_code})")
                return DirectoryResult(outcome=DirectoryOutcome.DELETED, status_code=response.status_code)
            return self._failure("delete user", email, response)

        return self._call("delete user", "DELETE", f"/users/{email}", interpret)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _call(
        self,
        operation: str,
        method: str,
        path: str,
        interpret: Callable[[httpx.Response], DirectoryResult],
        payload: Optional[dict] = None,
    ) -> DirectoryResult:
        token_result = self.token_provider.get_access_token()
        if not token_result.ok:
            outcome = (
                DirectoryOutcome.CONFIGURATION_ERROR
                if token_result.error_kind == ErrorKind.CONFIGURATION_ERROR
                else DirectoryOutcome.AUTHENTICATION_FAILURE
            )
            return DirectoryResult(
                outcome=outcome,
                error=token_result.error or f"Authentication failed. Could not get token to {operation}.",
            )

        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {token_result.token}"}
        try:
            if self._client is not None:
                response = self._client.request(method, url, headers=headers, json=payload)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Exception during {operation} ({method} {path}): {e}")
            return DirectoryResult(
                outcome=DirectoryOutcome.TRANSPORT_ERROR,
                error=f"A network exception occurred while trying to {operation}: {e}",
            )
        return interpret(response)

    @staticmethod
    def _failure(operation: str, email: str, response: httpx.Response) -> DirectoryResult:
        code = response.status_code
        logger.error(
            f"❌ Failed to {operation} for {email}. Code: {code}, Body: {response.text[:ERROR_BODY_LIMIT]}"
        )
        return DirectoryResult(
            outcome=DirectoryOutcome.TRANSPORT_ERROR,
            status_code=code,
            error=f"Failed to {operation}. Directory API responded with code {code}.",
        )
