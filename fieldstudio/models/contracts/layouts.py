"""
Form layout contract models.

LayoutDocument is what gets persisted for a module's form: the number of
grid columns, where each field sits, and the button/spacing settings.
``model_dump(by_alias=True)`` yields the stored shape::

    {
        "columns": 3,
        "fields": {"field_1": {"row": 0, "col": 1, "colSpan": 1, "order": 1}},
        "buttons": {"position": "right", "order": ["save", "cancel"], ...},
        "spacing": "normal",
        "showSections": false
    }
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from fieldstudio.models.enums import ButtonsPosition, ButtonsStyle, LayoutSpacing

# Column counts a layout may be saved with
ALLOWED_COLUMNS = (2, 3, 4)


@dataclass(frozen=True, order=True)
class GridCell:
    """A 0-based (row, col) cell of the designer grid. Sorts row-major."""
    row: int
    col: int

    def flat_index(self, columns: int) -> int:
        return self.row * columns + self.col


class FieldPosition(BaseModel):
    """Position of a field in the layout grid"""
    model_config = ConfigDict(populate_by_name=True)

    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    col_span: int = Field(default=1, ge=1, le=4, alias="colSpan")
    order: int = Field(default=0, ge=0, description="Derived: row * columns + col")

    @property
    def cell(self) -> GridCell:
        return GridCell(self.row, self.col)


class FormButtonsConfig(BaseModel):
    """Form buttons configuration"""
    model_config = ConfigDict(populate_by_name=True)

    position: ButtonsPosition = ButtonsPosition.RIGHT
    order: list[str] = Field(default_factory=lambda: ["save", "cancel"])
    style: ButtonsStyle = ButtonsStyle.INLINE
    show_labels: bool = Field(default=True, alias="showLabels")


class LayoutDocument(BaseModel):
    """
    Persisted visual layout of a module form.

    ``columns`` is not constrained here so any stored document parses: the
    designer falls back to the configured count when loading a value outside
    ALLOWED_COLUMNS, and the save boundary rejects such values.
    """
    model_config = ConfigDict(populate_by_name=True)

    columns: int = 3
    fields: dict[str, FieldPosition] = Field(default_factory=dict)
    buttons: FormButtonsConfig = Field(default_factory=FormButtonsConfig)
    spacing: LayoutSpacing = LayoutSpacing.NORMAL
    show_sections: bool = Field(default=False, alias="showSections")

    @property
    def is_custom(self) -> bool:
        """True when the layout positions at least one field."""
        return bool(self.fields)
