"""
Configuration warning contract.
"""

from pydantic import BaseModel, Field

from fieldstudio.models.enums import WarningCode


class ConfigWarning(BaseModel):
    """A non-fatal configuration problem reported back to the caller"""
    code: WarningCode
    message: str
    field_id: str | None = Field(default=None, description="Field the warning refers to, if any")
