"""
Module configuration contract models.

One ModuleConfig document per business module holds its field catalog,
the saved form layout and list grid preferences.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import LayoutDocument
from fieldstudio.models.enums import GridView


class GridConfiguration(BaseModel):
    """List grid preferences of a module"""
    model_config = ConfigDict(populate_by_name=True)

    default_view: GridView = Field(default=GridView.TABLE, alias="defaultView")
    items_per_page: int = Field(default=25, ge=1, alias="itemsPerPage")
    sort_by: str = Field(default="name", alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field(default="asc", alias="sortOrder")
    enable_search: bool = Field(default=True, alias="enableSearch")
    enable_filters: bool = Field(default=True, alias="enableFilters")
    enable_export: bool = Field(default=True, alias="enableExport")
    enable_bulk_actions: bool = Field(default=True, alias="enableBulkActions")
    enable_column_selector: bool = Field(default=True, alias="enableColumnSelector")
    show_thumbnails: bool = Field(default=False, alias="showThumbnails")
    compact_mode: bool = Field(default=False, alias="compactMode")


class ModuleConfig(BaseModel):
    """Complete configuration of one business module"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    module_id: str = Field(..., alias="moduleId")

    fields: list[FieldDefinition] = Field(default_factory=list)
    form_layout: LayoutDocument | None = Field(default=None, alias="formLayout")
    grid_config: GridConfiguration = Field(default_factory=GridConfiguration, alias="gridConfig")

    version: str = "1.0.0"
    is_active: bool = Field(default=True, alias="isActive")
    last_modified: datetime | None = Field(default=None, alias="lastModified")
    modified_by: str | None = Field(default=None, alias="modifiedBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")

    @field_validator("fields", mode="before")
    @classmethod
    def coerce_missing_fields(cls, v):
        """Stored documents sometimes carry null instead of an empty list"""
        return v if v is not None else []

    @field_validator("fields")
    @classmethod
    def validate_unique_ids(cls, v: list[FieldDefinition]) -> list[FieldDefinition]:
        """Ensure field ids are unique"""
        ids = [field.id for field in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Field ids must be unique")
        return v
