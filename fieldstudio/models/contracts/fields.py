"""
Field definition contract models.

A module's field catalog is an ordered list of FieldDefinition. Attributes
are snake_case in Python; the stored shape uses the camelCase aliases
(e.g. ``isDefault``, ``gridConfig``). Both spellings are accepted on input.
"""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldstudio.models.enums import OPTION_FIELD_TYPES, FieldType, FormWidth


class FieldOption(BaseModel):
    """Option for select/multiselect/dictionary fields"""
    value: str
    label: str
    color: str | None = Field(default=None, description="Optional badge/chip color")


class FieldValidation(BaseModel):
    """Field validation rules"""
    model_config = ConfigDict(populate_by_name=True)

    required: bool = False
    min_length: int | None = Field(default=None, ge=0, alias="minLength")
    max_length: int | None = Field(default=None, ge=0, alias="maxLength")
    pattern: str | None = Field(default=None, description="Regular expression the whole value must match")
    min: float | None = Field(default=None, description="Inclusive numeric lower bound")
    max: float | None = Field(default=None, description="Inclusive numeric upper bound")
    email: bool = False
    url: bool = False
    custom_message: str | None = Field(default=None, alias="customMessage")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Reject patterns that do not compile"""
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern: {e}") from e
        return v


class FieldGridConfig(BaseModel):
    """How the field shows up in the module list grid"""
    model_config = ConfigDict(populate_by_name=True)

    show_in_grid: bool = Field(default=False, alias="showInGrid")
    grid_order: int = Field(default=0, alias="gridOrder")
    grid_width: str | None = Field(default=None, alias="gridWidth", description="Column width, e.g. '150px' or '20%'")
    sortable: bool = False
    filterable: bool = False


class FieldDefinition(BaseModel):
    """
    Configuration of a single field of a business module.

    ``is_default`` fields map to a built-in entity property; the rest are
    stored under the entity's ``customFields``. ``is_system`` fields keep
    their name, type and required flag forever.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Stable id, unique within a module")
    name: str = Field(..., min_length=1, description="Storage key")
    label: str
    type: FieldType

    validation: FieldValidation = Field(default_factory=FieldValidation)
    options: list[FieldOption] = Field(default_factory=list)

    placeholder: str | None = None
    default_value: Any | None = Field(default=None, alias="defaultValue")
    help_text: str | None = Field(default=None, alias="helpText")
    icon: str | None = None

    grid_config: FieldGridConfig = Field(default_factory=FieldGridConfig, alias="gridConfig")

    form_order: int = Field(default=0, alias="formOrder")
    form_width: FormWidth | None = Field(default=None, alias="formWidth")

    is_default: bool = Field(default=False, alias="isDefault")
    is_active: bool = Field(default=True, alias="isActive")
    is_system: bool = Field(default=False, alias="isSystem")

    created_at: datetime | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    updated_by: str | None = Field(default=None, alias="updatedBy")

    @property
    def has_options(self) -> bool:
        return self.type in OPTION_FIELD_TYPES

    def option_label(self, value: Any) -> str | None:
        """Label of the option with the given value, if any."""
        for option in self.options:
            if option.value == value:
                return option.label
        return None
