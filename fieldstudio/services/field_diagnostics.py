"""
Field Diagnostics

Consistency report over a module's field catalog. Issues are configurations
that break rendering (a field the grid wants but the form hides, a dictionary
with nothing to render); warnings are legal but probably unintended.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Sequence

from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.enums import FieldType

logger = logging.getLogger(__name__)

# Fields ordered past this sit far down the form
HIGH_FORM_ORDER = 100


@dataclass
class FieldDiagnostic:
    """Diagnosis of one field."""
    field: FieldDefinition
    issues: list[str] = dataclass_field(default_factory=list)
    warnings: list[str] = dataclass_field(default_factory=list)
    in_form: bool = False
    in_grid: bool = False

    @property
    def ok(self) -> bool:
        return not self.issues


def _shared(values: Sequence[int]) -> set[int]:
    return {value for value, count in Counter(values).items() if count > 1}


def diagnose_fields(fields: Sequence[FieldDefinition]) -> list[FieldDiagnostic]:
    """
    Diagnose every field of the catalog.

    Args:
        fields: Module field catalog

    Returns:
        One FieldDiagnostic per field, in catalog order
    """
    active = [f for f in fields if f.is_active]
    grid = [f for f in active if f.grid_config.show_in_grid]
    shared_form_orders = _shared([f.form_order for f in active])
    shared_grid_orders = _shared([f.grid_config.grid_order for f in grid])

    diagnostics = []
    for field_def in fields:
        diagnostic = FieldDiagnostic(
            field=field_def,
            in_form=field_def.is_active,
            in_grid=field_def.is_active and field_def.grid_config.show_in_grid,
        )

        if not field_def.is_active and field_def.grid_config.show_in_grid:
            diagnostic.issues.append("Marked for the grid but inactive")

        if field_def.type == FieldType.DICTIONARY and not field_def.options:
            diagnostic.issues.append("Dictionary field without options renders nothing")

        option_values = Counter(option.value for option in field_def.options)
        duplicated = sorted(value for value, count in option_values.items() if count > 1)
        if duplicated:
            diagnostic.issues.append(f"Duplicate option values: {', '.join(duplicated)}")

        if field_def.is_active and not field_def.grid_config.show_in_grid and not field_def.is_system:
            diagnostic.warnings.append("Only visible in the form (not in the grid)")

        if field_def.is_active and field_def.form_order in shared_form_orders:
            diagnostic.warnings.append(f"form_order {field_def.form_order} is shared with another active field")

        if diagnostic.in_grid and field_def.grid_config.grid_order in shared_grid_orders:
            diagnostic.warnings.append(
                f"grid_order {field_def.grid_config.grid_order} is shared with another grid field"
            )

        if field_def.is_active and field_def.form_order > HIGH_FORM_ORDER:
            diagnostic.warnings.append(f"form_order {field_def.form_order} places the field far down the form")

        diagnostics.append(diagnostic)

    issue_count = sum(len(d.issues) for d in diagnostics)
    if issue_count:
        logger.warning(f"Field catalog has {issue_count} issues across {len(fields)} fields")
    logger.debug(
        f"Diagnosed {len(fields)} fields: {len(active)} active, {len(grid)} in grid, "
        f"{len(fields) - len(active)} inactive"
    )
    return diagnostics


def diagnose_field(fields: Sequence[FieldDefinition], name_or_label: str) -> FieldDiagnostic | None:
    """Diagnosis of the first field whose name or label contains the term (case-insensitive)."""
    term = name_or_label.lower()
    for diagnostic in diagnose_fields(fields):
        if term in diagnostic.field.name.lower() or term in diagnostic.field.label.lower():
            return diagnostic
    return None
