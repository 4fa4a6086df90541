"""
HTTP adapter tests. Requests are answered by httpx.MockTransport, so no
network access is needed.
"""
import json
from unittest.mock import MagicMock, patch

import google.auth.exceptions
import httpx
import pytest

from services.demo_service.app.adapters.admin_directory import AdminDirectoryClient
from services.demo_service.app.adapters.base import DirectoryOutcome
from services.demo_service.app.adapters.gemini_client import GeminiClient
from services.demo_service.app.adapters.google_auth import ServiceAccountTokenProvider
from services.demo_service.app.config import DIRECTORY_USER_SCOPE, Settings
from services.demo_service.app.errors import ErrorKind

from conftest import DEMO_EMAIL, FakeTokenProvider

DIRECTORY_URL = "https://admin.example/admin/directory/v1"
GEMINI_URL = "https://gen.example/v1beta"


def make_directory(handler, token_provider=None):
    requests = []

    def recording_handler(request):
        requests.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(recording_handler))
    directory = AdminDirectoryClient(
        token_provider or FakeTokenProvider(), DIRECTORY_URL, org_unit_path="/Demo", client=client
    )
    return directory, requests


# =============================================================================
# Admin Directory
# =============================================================================

class TestDirectoryLookup:
    def test_found_returns_record(self):
        record = {"primaryEmail": DEMO_EMAIL, "name": {"givenName": "Jane", "familyName": "Doe"}}
        directory, requests = make_directory(lambda r: httpx.Response(200, json=record))

        result = directory.lookup(DEMO_EMAIL)

        assert result.outcome == DirectoryOutcome.FOUND
        assert result.record == record
        assert requests[0].method == "GET"
        assert requests[0].url.path.endswith(f"/users/{DEMO_EMAIL}")
        assert requests[0].headers["Authorization"] == "Bearer test-token"

    @pytest.mark.parametrize("body", ['[{"primaryEmail": "x"}]', '"janedoe"', "not json"])
    def test_unreadable_record_is_transport_error(self, body):
        directory, _ = make_directory(lambda r: httpx.Response(200, text=body))
        result = directory.lookup(DEMO_EMAIL)
        assert result.outcome == DirectoryOutcome.TRANSPORT_ERROR
        assert result.status_code == 200
        assert result.record is None

    def test_missing_user_is_not_found(self):
        directory, _ = make_directory(lambda r: httpx.Response(404, json={"error": "not found"}))
        assert directory.lookup(DEMO_EMAIL).outcome == DirectoryOutcome.NOT_FOUND

    def test_other_status_is_transport_error(self):
        directory, _ = make_directory(lambda r: httpx.Response(503, text="unavailable"))
        result = directory.lookup(DEMO_EMAIL)
        assert result.outcome == DirectoryOutcome.TRANSPORT_ERROR
        assert result.status_code == 503
        assert "503" in result.error
        assert result.error_kind == ErrorKind.TRANSPORT_ERROR

    def test_network_exception_is_folded_into_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        directory, _ = make_directory(handler)
        result = directory.lookup(DEMO_EMAIL)
        assert result.outcome == DirectoryOutcome.TRANSPORT_ERROR
        assert "network exception" in result.error

    def test_token_failure_skips_http_call(self):
        directory, requests = make_directory(
            lambda r: httpx.Response(200, json={}), token_provider=FakeTokenProvider(token=None)
        )
        result = directory.lookup(DEMO_EMAIL)
        assert result.outcome == DirectoryOutcome.AUTHENTICATION_FAILURE
        assert result.error_kind == ErrorKind.AUTHENTICATION_FAILURE
        assert requests == []

    def test_missing_credentials_is_configuration_error(self):
        provider = FakeTokenProvider(token=None, error_kind=ErrorKind.CONFIGURATION_ERROR)
        directory, _ = make_directory(lambda r: httpx.Response(200, json={}), token_provider=provider)
        assert directory.lookup(DEMO_EMAIL).outcome == DirectoryOutcome.CONFIGURATION_ERROR


class TestDirectoryWrites:
    def test_create_sends_user_payload(self):
        directory, requests = make_directory(lambda r: httpx.Response(201, json={}))

        result = directory.create(DEMO_EMAIL, "Jane", "Doe", "Secret#123abcD")

        assert result.outcome == DirectoryOutcome.CREATED
        assert requests[0].method == "POST"
        assert requests[0].url.path.endswith("/users")
        assert json.loads(requests[0].content) == {
            "primaryEmail": DEMO_EMAIL,
            "password": "Secret#123abcD",
            "name": {"givenName": "Jane", "familyName": "Doe"},
            "orgUnitPath": "/Demo",
            "changePasswordAtNextLogin": False,
        }

    def test_create_accepts_200(self):
        directory, _ = make_directory(lambda r: httpx.Response(200, json={}))
        assert directory.create(DEMO_EMAIL, "Jane", "Doe", "pw").outcome == DirectoryOutcome.CREATED

    def test_create_conflict(self):
        directory, _ = make_directory(lambda r: httpx.Response(409, json={}))
        assert directory.create(DEMO_EMAIL, "Jane", "Doe", "pw").outcome == DirectoryOutcome.CONFLICT

    def test_create_forbidden_is_transport_error(self):
        directory, _ = make_directory(lambda r: httpx.Response(403, text="forbidden"))
        result = directory.create(DEMO_EMAIL, "Jane", "Doe", "pw")
        assert result.outcome == DirectoryOutcome.TRANSPORT_ERROR
        assert result.status_code == 403

    def test_update_credential(self):
        directory, requests = make_directory(lambda r: httpx.Response(200, json={}))

        result = directory.update_credential(DEMO_EMAIL, "NewPass!1aA")

        assert result.outcome == DirectoryOutcome.UPDATED
        assert requests[0].method == "PUT"
        assert json.loads(requests[0].content) == {
            "password": "NewPass!1aA",
            "changePasswordAtNextLogin": False,
        }

    def test_update_credential_failure(self):
        directory, _ = make_directory(lambda r: httpx.Response(500, text="boom"))
        assert directory.update_credential(DEMO_EMAIL, "pw").outcome == DirectoryOutcome.TRANSPORT_ERROR

    @pytest.mark.parametrize("status_code", [204, 404])
    def test_delete_treats_gone_as_deleted(self, status_code):
        directory, requests = make_directory(lambda r: httpx.Response(status_code))
        assert directory.delete(DEMO_EMAIL).outcome == DirectoryOutcome.DELETED
        assert requests[0].method == "DELETE"

    def test_delete_is_idempotent(self):
        responses = iter([httpx.Response(204), httpx.Response(404)])
        directory, _ = make_directory(lambda r: next(responses))
        assert directory.delete(DEMO_EMAIL).outcome == DirectoryOutcome.DELETED
        assert directory.delete(DEMO_EMAIL).outcome == DirectoryOutcome.DELETED

    def test_delete_failure(self):
        directory, _ = make_directory(lambda r: httpx.Response(500))
        assert directory.delete(DEMO_EMAIL).outcome == DirectoryOutcome.TRANSPORT_ERROR


# =============================================================================
# Gemini
# =============================================================================

def make_gemini(handler, api_key="test-key"):
    requests = []

    def recording_handler(request):
        requests.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(recording_handler))
    return GeminiClient(api_key, GEMINI_URL, client=client), requests


class TestGeminiClient:
    def test_returns_first_candidate_text(self):
        body = {"candidates": [{"content": {"parts": [{"text": '{"title": "T", "steps": []}'}]}}]}
        gemini, requests = make_gemini(lambda r: httpx.Response(200, json=body))

        result = gemini.generate("Write a script", "models/gemini-test")

        assert result.success is True
        assert result.text == '{"title": "T", "steps": []}'
        request = requests[0]
        assert request.url.path == "/v1beta/models/gemini-test:generateContent"
        assert request.url.params["key"] == "test-key"
        assert json.loads(request.content) == {
            "contents": [{"parts": [{"text": "Write a script"}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    def test_missing_api_key(self):
        gemini, requests = make_gemini(lambda r: httpx.Response(200, json={}), api_key=None)
        result = gemini.generate("prompt", "models/gemini-test")
        assert result.success is False
        assert result.error_kind == ErrorKind.CONFIGURATION_ERROR
        assert requests == []

    def test_error_status_truncates_body(self):
        gemini, _ = make_gemini(lambda r: httpx.Response(429, text="x" * 1000))
        result = gemini.generate("prompt", "models/gemini-test")
        assert result.success is False
        assert "status 429" in result.error
        assert "x" * 500 in result.error
        assert "x" * 501 not in result.error

    def test_missing_candidate_text(self):
        gemini, _ = make_gemini(lambda r: httpx.Response(200, json={"candidates": []}))
        result = gemini.generate("prompt", "models/gemini-test")
        assert result.success is False
        assert "No valid content" in result.error

    def test_transport_exception(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        gemini, _ = make_gemini(handler)
        result = gemini.generate("prompt", "models/gemini-test")
        assert result.success is False
        assert result.error.startswith("Exception during AI API call")


# =============================================================================
# Service account tokens
# =============================================================================

CREDENTIALS_PATH = "services.demo_service.app.adapters.google_auth.service_account.Credentials"


def sa_settings(**overrides):
    values = {
        "directory_service_account_json": '{"type": "service_account"}',
        "directory_admin_subject": "admin@demo.example",
    }
    values.update(overrides)
    return Settings(**values)


class TestServiceAccountTokenProvider:
    @patch(f"{CREDENTIALS_PATH}.from_service_account_info")
    def test_refreshes_and_returns_token(self, mock_from_info):
        credentials = MagicMock(valid=False, token="ya29.token")
        mock_from_info.return_value = credentials

        result = ServiceAccountTokenProvider(sa_settings()).get_access_token()

        assert result.ok
        assert result.token == "ya29.token"
        credentials.refresh.assert_called_once()
        mock_from_info.assert_called_once_with(
            {"type": "service_account"}, scopes=[DIRECTORY_USER_SCOPE], subject="admin@demo.example"
        )

    @patch(f"{CREDENTIALS_PATH}.from_service_account_info")
    def test_caches_credentials_until_reset(self, mock_from_info):
        mock_from_info.return_value = MagicMock(valid=True, token="cached")
        provider = ServiceAccountTokenProvider(sa_settings())

        provider.get_access_token()
        provider.get_access_token()
        assert mock_from_info.call_count == 1

        provider.reset()
        provider.get_access_token()
        assert mock_from_info.call_count == 2

    def test_missing_key_material_is_configuration_error(self):
        provider = ServiceAccountTokenProvider(sa_settings(directory_service_account_json=None))
        result = provider.get_access_token()
        assert not result.ok
        assert result.error_kind == ErrorKind.CONFIGURATION_ERROR

    def test_missing_subject_is_configuration_error(self):
        result = ServiceAccountTokenProvider(sa_settings(directory_admin_subject=None)).get_access_token()
        assert result.error_kind == ErrorKind.CONFIGURATION_ERROR

    def test_malformed_json_is_configuration_error(self):
        result = ServiceAccountTokenProvider(sa_settings(directory_service_account_json="{not json")).get_access_token()
        assert result.error_kind == ErrorKind.CONFIGURATION_ERROR

    @patch(f"{CREDENTIALS_PATH}.from_service_account_info")
    def test_refresh_error_is_authentication_failure(self, mock_from_info):
        credentials = MagicMock(valid=False)
        credentials.refresh.side_effect = google.auth.exceptions.RefreshError("unauthorized_client")
        mock_from_info.return_value = credentials

        result = ServiceAccountTokenProvider(sa_settings()).get_access_token()

        assert not result.ok
        assert result.error_kind == ErrorKind.AUTHENTICATION_FAILURE
        assert "unauthorized_client" in result.error
