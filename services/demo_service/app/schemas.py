"""
Pydantic schemas for the demo service API and persisted state.
"""
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, Field

from .errors import ErrorKind


# --- Provisioning ---

class ProvisionResult(BaseModel):
    """The demo identity handed back to the requester."""

    email: str
    password: Optional[str] = None
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")

    class Config:
        populate_by_name = True

    def without_password(self) -> "ProvisionResult":
        return self.model_copy(update={"password": None})


# --- Demo script ---

class DemoStep(BaseModel):
    """One presenter step. The model's prose is carried verbatim, whatever its type."""

    step_title: Any = None
    action: Any = None
    ui_interaction: Any = None
    presenter_script: Any = None

    class Config:
        extra = "allow"


# Object steps become DemoStep; anything else in the list is kept as-is
ScriptStep = Annotated[Union[DemoStep, Any], Field(union_mode="left_to_right")]


class DemoScript(BaseModel):
    """
    Structured walkthrough produced by the generative model.

    Only `title` and `steps` are constrained. Every other value is the
    model's prose and is stored exactly as it was returned.
    """

    title: str
    steps: List[ScriptStep]
    summary: Any = None
    introduction: Any = None
    prerequisites: Any = Field(default_factory=list)

    class Config:
        extra = "allow"


class PersistedState(BaseModel):
    """Everything stored for one requester."""

    provision_result: Optional[ProvisionResult] = Field(default=None, alias="provisionResult")
    demo_script: Optional[DemoScript] = Field(default=None, alias="demoScript")

    class Config:
        populate_by_name = True


# --- Requests ---

class CreateUserRequest(BaseModel):
    """Schema for creating (or reusing) the requester's demo account."""

    first_name: str = Field(default="", alias="firstName", max_length=255)
    last_name: str = Field(default="", alias="lastName", max_length=255)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"firstName": "Jane", "lastName": "Doe"}
        }


class GenerateScriptRequest(BaseModel):
    """Schema for generating a demo script."""

    context: str = Field(default="", description="What the customer needs to see")

    class Config:
        json_schema_extra = {
            "example": {"context": "Sales demo of shared drives for a legal team"}
        }


# --- Responses ---

class OperationResponse(BaseModel):
    """Uniform envelope returned by every public operation."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = Field(default=None, alias="errorKind")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @classmethod
    def failure(cls, kind: Optional[ErrorKind], message: str):
        return cls(success=False, error=message, error_kind=kind)


class InitialStateResponse(OperationResponse):
    provision_result: Optional[ProvisionResult] = Field(default=None, alias="provisionResult")
    demo_script: Optional[DemoScript] = Field(default=None, alias="demoScript")


class CreateUserResponse(OperationResponse):
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")


class ResetPasswordResponse(OperationResponse):
    password: Optional[str] = None


class GenerateScriptResponse(OperationResponse):
    demo_script: Optional[DemoScript] = Field(default=None, alias="demoScript")
