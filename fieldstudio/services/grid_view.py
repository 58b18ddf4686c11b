"""
Grid View

Columns and cell text of a module's list grid, driven by the same field
catalog the form compiler uses.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Sequence

from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import LayoutDocument
from fieldstudio.models.enums import FieldType

EMPTY_CELL = "-"

# Dictionary cells show this many pairs before eliding the rest
DICTIONARY_PREVIEW_PAIRS = 2


@dataclass(frozen=True)
class GridColumn:
    """One column of the list grid."""
    key: str
    label: str
    field_id: str
    field_type: FieldType
    order: int = 0
    width: str | None = None
    sortable: bool = False
    filterable: bool = False


def select_grid_fields(
    fields: Sequence[FieldDefinition],
    layout: LayoutDocument | None = None,
) -> list[FieldDefinition]:
    """
    Active fields shown in the grid, sorted by grid_order.

    A custom layout restricts the grid to the fields positioned in it.
    """
    grid_fields = [f for f in fields if f.is_active and f.grid_config.show_in_grid]
    if layout is not None and layout.is_custom:
        grid_fields = [f for f in grid_fields if f.id in layout.fields]
    return sorted(grid_fields, key=lambda f: f.grid_config.grid_order)


def build_grid_columns(
    fields: Sequence[FieldDefinition],
    layout: LayoutDocument | None = None,
) -> list[GridColumn]:
    return [
        GridColumn(
            key=f.name,
            label=f.label,
            field_id=f.id,
            field_type=f.type,
            order=f.grid_config.grid_order,
            width=f.grid_config.grid_width,
            sortable=f.grid_config.sortable,
            filterable=f.grid_config.filterable,
        )
        for f in select_grid_fields(fields, layout)
    ]


def get_field_value(entity: Mapping[str, Any], name: str) -> Any:
    """Built-in entity property first, then ``customFields``."""
    if name in entity:
        return entity[name]
    custom = entity.get("customFields")
    if isinstance(custom, Mapping):
        return custom.get(name)
    return None


def _as_datetime(value: Any) -> datetime | date | None:
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _format_date(value: Any) -> str:
    parsed = _as_datetime(value)
    if parsed is None:
        return str(value)
    if isinstance(parsed, datetime):
        parsed = parsed.date()
    return parsed.isoformat()


def _format_datetime(value: Any) -> str:
    parsed = _as_datetime(value)
    if parsed is None:
        return str(value)
    if not isinstance(parsed, datetime):
        return parsed.isoformat()
    return parsed.strftime("%Y-%m-%d %H:%M")


def _format_currency(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return str(value)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _format_dictionary(value: Any, field_def: FieldDefinition) -> str:
    if not isinstance(value, Mapping):
        return str(value)
    if not value:
        return EMPTY_CELL
    pairs = []
    for key, item in list(value.items())[:DICTIONARY_PREVIEW_PAIRS]:
        label = field_def.option_label(key) or key
        pairs.append(f"{label}: {'' if item is None else item}")
    display = ", ".join(pairs)
    return f"{display}, ..." if len(value) > DICTIONARY_PREVIEW_PAIRS else display


def format_field_value(value: Any, field_def: FieldDefinition) -> str:
    """
    Cell text for a field value.

    Example:
        format_field_value(1500.5, currency_field)  # "$1,500.50"
    """
    if value is None:
        return EMPTY_CELL

    if field_def.type == FieldType.DATE:
        return _format_date(value)
    if field_def.type == FieldType.DATETIME:
        return _format_datetime(value)
    if field_def.type == FieldType.CHECKBOX:
        return "Yes" if value else "No"
    if field_def.type == FieldType.CURRENCY:
        return _format_currency(value)
    if field_def.type == FieldType.SELECT:
        return field_def.option_label(value) or str(value)
    if field_def.type == FieldType.MULTISELECT:
        if isinstance(value, (list, tuple)):
            return ", ".join(field_def.option_label(v) or str(v) for v in value)
        return str(value)
    if field_def.type == FieldType.DICTIONARY:
        return _format_dictionary(value, field_def)
    return str(value)
