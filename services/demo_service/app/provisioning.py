"""
Demo account provisioning state machine.

Two states: UNPROVISIONED and PROVISIONED(ProvisionResult). Each transition is
a single directory call whose outcome is returned as-is; nothing is retried.
"""
import enum
import logging
from typing import Optional

from pydantic import BaseModel

from .adapters.base import DirectoryClient, DirectoryOutcome, DirectoryResult
from .errors import ErrorKind, InvalidInputError
from .identity import DEFAULT_PASSWORD_LENGTH, derive_demo_email, generate_random_password
from .schemas import ProvisionResult

logger = logging.getLogger(__name__)


class ProvisioningState(str, enum.Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONED = "provisioned"


class ProvisioningOutcome(BaseModel):
    """State after a transition, plus the failure if the remote call failed."""

    state: ProvisioningState
    provision_result: Optional[ProvisionResult] = None
    created: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failed(state: ProvisioningState, result: DirectoryResult, current=None) -> ProvisioningOutcome:
    return ProvisioningOutcome(
        state=state,
        provision_result=current,
        error=result.error or f"Directory call failed ({result.outcome.value}).",
        error_kind=result.error_kind,
    )


class DemoAccountProvisioner:
    """Reconciles a requester's derived demo identity against the directory."""

    def __init__(
        self,
        directory: DirectoryClient,
        domain: str,
        password_length: int = DEFAULT_PASSWORD_LENGTH,
    ):
        self.directory = directory
        self.domain = domain
        self.password_length = password_length

    def derive_email(self, requester_email: str) -> str:
        return derive_demo_email(requester_email, self.domain)

    def find_account(self, requester_email: str) -> ProvisioningOutcome:
        """
        Look up the demo account without creating it.

        Directory names are authoritative here and no password is ever included.
        """
        email = self.derive_email(requester_email)

        lookup = self.directory.lookup(email)
        if lookup.outcome == DirectoryOutcome.FOUND:
            name = (lookup.record or {}).get("name")
            if not isinstance(name, dict):
                name = {}
            return ProvisioningOutcome(
                state=ProvisioningState.PROVISIONED,
                provision_result=ProvisionResult(
                    email=email,
                    first_name=str(name.get("givenName") or ""),
                    last_name=str(name.get("familyName") or ""),
                ),
            )
        if lookup.outcome == DirectoryOutcome.NOT_FOUND:
            return ProvisioningOutcome(state=ProvisioningState.UNPROVISIONED)
        return _failed(ProvisioningState.UNPROVISIONED, lookup)

    def ensure_account(
        self, requester_email: str, first_name: str = "", last_name: str = ""
    ) -> ProvisioningOutcome:
        """
        Look up the demo account and create it if absent.

        An existing account is reported with the directory's names and no
        password. A new account carries its password exactly once, here.
        """
        found = self.find_account(requester_email)
        if not found.ok:
            return found
        if found.state == ProvisioningState.PROVISIONED:
            logger.info(f"ℹ️ User {found.provision_result.email} already exists. Returning their information.")
            return found

        if not first_name or not last_name:
            raise InvalidInputError("First and last name are required to create a demo account.")

        email = self.derive_email(requester_email)
        logger.info(f"User does not exist, creating: {email}")
        password = generate_random_password(self.password_length)
        created = self.directory.create(email, first_name, last_name, password)
        if created.outcome != DirectoryOutcome.CREATED:
            return _failed(ProvisioningState.UNPROVISIONED, created)

        return ProvisioningOutcome(
            state=ProvisioningState.PROVISIONED,
            provision_result=ProvisionResult(
                email=email, password=password, first_name=first_name, last_name=last_name
            ),
            created=True,
        )

    def reset_credential(self, current: Optional[ProvisionResult]) -> ProvisioningOutcome:
        """Give the provisioned account a new random password."""
        if current is None or not current.email:
            raise InvalidInputError("No active demo user found in the session to reset the password for.")

        logger.info(f"Attempting to reset password for {current.email}.")
        new_password = generate_random_password(self.password_length)
        updated = self.directory.update_credential(current.email, new_password)
        if updated.outcome != DirectoryOutcome.UPDATED:
            return _failed(ProvisioningState.PROVISIONED, updated, current)

        return ProvisioningOutcome(
            state=ProvisioningState.PROVISIONED,
            provision_result=current.model_copy(update={"password": new_password}),
        )

    def teardown(self, email: str) -> ProvisioningOutcome:
        if not email:
            raise InvalidInputError("No user email provided for deletion.")

        logger.info(f"Attempting to delete user: {email}")
        deleted = self.directory.delete(email)
        if deleted.outcome != DirectoryOutcome.DELETED:
            return _failed(ProvisioningState.PROVISIONED, deleted)
        return ProvisioningOutcome(state=ProvisioningState.UNPROVISIONED)
