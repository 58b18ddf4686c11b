"""
fieldstudio Models

Pydantic contracts:
    from fieldstudio.models import FieldDefinition, LayoutDocument
    from fieldstudio.models.contracts.layouts import GridCell  # Granular access

Enums:
    from fieldstudio.models import FieldType
    from fieldstudio.models.enums import FieldType
"""

# Pydantic contracts - re-export everything
from fieldstudio.models.contracts import *  # noqa: F401, F403

# Enums
from fieldstudio.models.enums import (
    ButtonsPosition,
    ButtonsStyle,
    FieldType,
    FormWidth,
    GridView,
    LayoutSpacing,
    WarningCode,
)

# Import __all__ from contracts for completeness
from fieldstudio.models.contracts import __all__ as _contracts_all

# Combine all exports
__all__ = [
    # Enums
    "ButtonsPosition",
    "ButtonsStyle",
    "FieldType",
    "FormWidth",
    "GridView",
    "LayoutSpacing",
    "WarningCode",
] + list(_contracts_all)
