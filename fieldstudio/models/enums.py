"""
Enumeration types used across the package.

Values are the lowercase strings stored in persisted module configs.
"""

from enum import Enum


class FieldType(str, Enum):
    """Field types supported by the dynamic form builder"""
    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DICTIONARY = "dictionary"
    DATE = "date"
    DATETIME = "datetime"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    URL = "url"
    CURRENCY = "currency"


class FormWidth(str, Enum):
    """Width of a field in the rendered form"""
    FULL = "full"
    HALF = "half"
    THIRD = "third"


class LayoutSpacing(str, Enum):
    """Spacing between fields in the form grid"""
    COMPACT = "compact"
    NORMAL = "normal"
    SPACIOUS = "spacious"


class ButtonsPosition(str, Enum):
    """Horizontal alignment of the form buttons"""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ButtonsStyle(str, Enum):
    """Form buttons arrangement"""
    INLINE = "inline"
    STACKED = "stacked"


class GridView(str, Enum):
    """Default presentation of the module list"""
    TABLE = "table"
    GRID = "grid"
    CARDS = "cards"


class WarningCode(str, Enum):
    """
    Non-fatal configuration problems.

    Reported to the caller alongside results; never raised.
    """
    ORPHANED_LAYOUT_FIELD = "orphaned_layout_field"
    DUPLICATE_CELL = "duplicate_cell"
    DICTIONARY_WITHOUT_OPTIONS = "dictionary_without_options"
    INACTIVE_GRID_FIELD = "inactive_grid_field"
    INVALID_COLUMNS = "invalid_columns"
    PLACEMENT_OUTSIDE_GRID = "placement_outside_grid"
    DUPLICATE_CONTROL_KEY = "duplicate_control_key"


# Types whose options list drives the rendered control
OPTION_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.MULTISELECT, FieldType.DICTIONARY})
