"""
Pydantic contracts for field catalogs, layouts and module configs.
"""

from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import (
    FieldDefinition,
    FieldGridConfig,
    FieldOption,
    FieldValidation,
)
from fieldstudio.models.contracts.layouts import (
    ALLOWED_COLUMNS,
    FieldPosition,
    FormButtonsConfig,
    GridCell,
    LayoutDocument,
)
from fieldstudio.models.contracts.modules import GridConfiguration, ModuleConfig

__all__ = [
    # Diagnostics
    "ConfigWarning",
    # Fields
    "FieldDefinition",
    "FieldGridConfig",
    "FieldOption",
    "FieldValidation",
    # Layouts
    "ALLOWED_COLUMNS",
    "FieldPosition",
    "FormButtonsConfig",
    "GridCell",
    "LayoutDocument",
    # Modules
    "GridConfiguration",
    "ModuleConfig",
]
