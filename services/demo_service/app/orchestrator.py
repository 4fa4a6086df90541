"""
Demo lifecycle orchestration.

Composes identity derivation, the directory state machine, prompt building,
generation, validation and per-requester storage into the public operations.
Every public operation returns a response envelope and never raises.
"""
import functools
import logging
from typing import Optional

from .adapters.base import DirectoryClient, TextGenerator
from .audit import AuditLog
from .config import Settings
from .errors import DemoServiceError, ErrorKind, InvalidInputError
from .prompts import build_demo_script_prompt
from .provisioning import DemoAccountProvisioner, ProvisioningState
from .schemas import (
    CreateUserResponse,
    GenerateScriptResponse,
    InitialStateResponse,
    OperationResponse,
    ResetPasswordResponse,
)
from .state_store import StateStore
from .validation import validate_demo_script

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def public_operation(response_cls):
    """Turn any failure inside an operation into a `success: false` envelope."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except DemoServiceError as e:
                logger.warning(f"⚠️ {func.__name__} rejected: {e.message}")
                return response_cls.failure(e.kind, e.message)
            except Exception as e:
                logger.exception(f"❌ Unexpected error in {func.__name__}: {e}")
                return response_cls.failure(None, UNEXPECTED_ERROR_MESSAGE)

        return wrapper

    return decorator


def _requester_key(requester: Optional[str]) -> str:
    if not requester or "@" not in requester:
        raise InvalidInputError("Could not identify the requesting user.")
    return requester.strip().lower()


class DemoOrchestrator:
    """
    Runs the demo lifecycle for one requester at a time.

    Collaborators are injected; the FastAPI layer builds one orchestrator per
    request around that request's database session.
    """

    def __init__(
        self,
        settings: Settings,
        directory: DirectoryClient,
        generator: TextGenerator,
        store: StateStore,
        audit_log: Optional[AuditLog] = None,
    ):
        self.settings = settings
        self.directory = directory
        self.generator = generator
        self.store = store
        self.audit_log = audit_log

    def _provisioner(self) -> DemoAccountProvisioner:
        return DemoAccountProvisioner(self.directory, self.settings.require_domain())

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    @public_operation(InitialStateResponse)
    def get_initial_state(self, requester: Optional[str]) -> InitialStateResponse:
        """Sync stored state with the directory and return what the UI should show."""
        key = _requester_key(requester)
        found = self._provisioner().find_account(key)
        if not found.ok:
            return InitialStateResponse.failure(found.error_kind, found.error)

        if found.state == ProvisioningState.UNPROVISIONED:
            self.store.clear_all(key)
            logger.info(f"ℹ️ No demo account for {key}")
            return InitialStateResponse(success=True)

        self.store.save(key, provision_result=found.provision_result)
        state = self.store.load(key)
        return InitialStateResponse(
            success=True,
            provision_result=state.provision_result if state else found.provision_result,
            demo_script=state.demo_script if state else None,
        )

    @public_operation(CreateUserResponse)
    def create_account(self, requester: Optional[str], first_name: str, last_name: str) -> CreateUserResponse:
        """Create the demo account or reuse the existing one, dropping any stale script."""
        key = _requester_key(requester)
        outcome = self._provisioner().ensure_account(key, (first_name or "").strip(), (last_name or "").strip())
        if not outcome.ok:
            return CreateUserResponse.failure(outcome.error_kind, outcome.error)

        result = outcome.provision_result
        self.store.clear_all(key)
        self.store.save(key, provision_result=result)
        return CreateUserResponse(
            success=True,
            email=result.email,
            password=result.password,
            first_name=result.first_name,
            last_name=result.last_name,
        )

    @public_operation(ResetPasswordResponse)
    def reset_password(self, requester: Optional[str]) -> ResetPasswordResponse:
        key = _requester_key(requester)
        state = self.store.load(key)
        if state is None or state.provision_result is None:
            raise InvalidInputError("No active demo user found in the session to reset the password for.")

        outcome = self._provisioner().reset_credential(state.provision_result)
        if not outcome.ok:
            return ResetPasswordResponse.failure(outcome.error_kind, outcome.error)

        self.store.save(key, provision_result=outcome.provision_result)
        return ResetPasswordResponse(success=True, password=outcome.provision_result.password)

    @public_operation(GenerateScriptResponse)
    def generate_script(self, requester: Optional[str], context: str) -> GenerateScriptResponse:
        """
        Generate, validate and store a new demo script.

        On any failure the previously stored script is left as it was.
        """
        key = _requester_key(requester)
        state = self.store.load(key)
        if state is None or state.provision_result is None:
            raise InvalidInputError("No demo user found. Please create a demo account first.")

        demo_user = state.provision_result
        prompt = build_demo_script_prompt(
            context or "",
            demo_user.first_name,
            demo_user.last_name,
            demo_user.email,
            product_name=self.settings.demo_product_name,
        )

        generation = self.generator.generate(prompt, self.settings.demo_script_model)
        if not generation.success:
            message = f"Demo script generation failed: {generation.error}"
            logger.error(f"❌ {message}")
            self._audit(key, demo_user.email, prompt, False, message)
            return GenerateScriptResponse.failure(generation.error_kind or ErrorKind.TRANSPORT_ERROR, message)

        validation = validate_demo_script(generation.text)
        if not validation.ok:
            self._audit(
                key,
                demo_user.email,
                prompt,
                False,
                f"{validation.error_type.value}: {validation.error}\n{generation.text}",
            )
            return GenerateScriptResponse.failure(ErrorKind.VALIDATION_FAILURE, validation.error)

        self.store.save(key, demo_script=validation.script)
        self._audit(key, demo_user.email, prompt, True, validation.script.model_dump_json())
        logger.info(f"✅ Demo script generated for {key}: {validation.script.title}")
        return GenerateScriptResponse(success=True, demo_script=validation.script)

    @public_operation(OperationResponse)
    def delete_account(self, requester: Optional[str], email: Optional[str]) -> OperationResponse:
        """Delete the requester's demo account and everything stored for them."""
        key = _requester_key(requester)
        if not email:
            raise InvalidInputError("No user email provided for deletion.")

        provisioner = self._provisioner()
        own_email = provisioner.derive_email(key)
        if email.strip().lower() != own_email:
            raise InvalidInputError(f"Only your own demo account ({own_email}) can be deleted.")

        outcome = provisioner.teardown(own_email)
        if not outcome.ok:
            return OperationResponse.failure(outcome.error_kind, outcome.error)

        self.store.clear_all(key)
        return OperationResponse(success=True)

    @public_operation(OperationResponse)
    def clear_user_data(self, requester: Optional[str]) -> OperationResponse:
        """Start over: forget stored state without touching the directory."""
        key = _requester_key(requester)
        self.store.clear_all(key)
        logger.info(f"ℹ️ All stored demo data cleared for {key}")
        return OperationResponse(success=True)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _audit(self, requester_key: str, demo_email: str, prompt: str, success: bool, output: str) -> None:
        if self.audit_log is None:
            return
        try:
            self.audit_log.record_generation(requester_key, demo_email, prompt, success, output)
        except Exception as e:
            # Audit is best-effort and must not fail the operation
            logger.error(f"❌ Failed to write generation audit entry: {e}")
