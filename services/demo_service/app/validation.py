"""
Shape validation for model-generated demo scripts.

Only the shape is checked: the output must be a JSON object with a non-empty
`title` and a `steps` list. The prose inside is the model's responsibility.
"""
import enum
import json
import logging
from typing import Optional

from pydantic import BaseModel, ValidationError

from .schemas import DemoScript

logger = logging.getLogger(__name__)


class ScriptErrorType(str, enum.Enum):
    PARSE_ERROR = "parse_error"
    SCHEMA_ERROR = "schema_error"


class ValidationResult(BaseModel):
    script: Optional[DemoScript] = None
    error_type: Optional[ScriptErrorType] = None
    error: Optional[str] = None
    raw_text: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.script is not None


def validate_demo_script(raw_text: str) -> ValidationResult:
    """Parse raw model output into a DemoScript."""
    try:
        data = json.loads(raw_text)
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Failed to parse demo script JSON. Error: {e}. Raw Text: {raw_text}")
        return ValidationResult(
            error_type=ScriptErrorType.PARSE_ERROR,
            error="The AI returned malformed data that could not be read. Please try again.",
            raw_text=raw_text,
        )

    if not isinstance(data, dict) or not data.get("title") or not isinstance(data.get("steps"), list):
        logger.error(f"❌ AI returned valid JSON but with missing required keys (title/steps): {raw_text}")
        return ValidationResult(
            error_type=ScriptErrorType.SCHEMA_ERROR,
            error=(
                "The AI's response was missing the required 'title' or 'steps' fields. "
                "Please try generating the script again."
            ),
            raw_text=raw_text,
        )

    try:
        script = DemoScript.model_validate(data)
    except ValidationError as e:
        logger.error(f"❌ AI returned a script with an unexpected shape: {e}")
        return ValidationResult(
            error_type=ScriptErrorType.SCHEMA_ERROR,
            error="The AI's response did not match the demo script format. Please try again.",
            raw_text=raw_text,
        )
    return ValidationResult(script=script)
