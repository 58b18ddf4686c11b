"""
Layout Serializer

Pure conversions between the designer's working state and the persisted
LayoutDocument:
- serialize_layout: DesignerState -> LayoutDocument
- load_layout: field catalog + optional LayoutDocument -> DesignerState
- arrange_form_rows: field catalog + LayoutDocument -> rows of fields for rendering
"""

import logging
from dataclasses import replace
from typing import Sequence

from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import ALLOWED_COLUMNS, FieldPosition, GridCell, LayoutDocument
from fieldstudio.models.enums import WarningCode
from fieldstudio.services.designer_state import DesignerState

logger = logging.getLogger(__name__)


def serialize_layout(state: DesignerState) -> LayoutDocument:
    """
    Build the persistable layout from the designer state.

    Each occupied cell becomes a FieldPosition whose order is its row-major
    index (``row * columns + col``). Fields left in the available pool are
    not part of the layout.
    """
    positions: dict[str, FieldPosition] = {}
    for cell, placed in state.ordered_placements():
        positions[placed.id] = FieldPosition(
            row=cell.row,
            col=cell.col,
            col_span=state.col_spans.get(placed.id, 1),
            order=cell.flat_index(state.columns),
        )

    return LayoutDocument(
        columns=state.columns,
        fields=positions,
        buttons=state.buttons.model_copy(deep=True),
        spacing=state.spacing,
        show_sections=state.show_sections,
    )


def load_layout(
    fields: Sequence[FieldDefinition],
    layout: LayoutDocument | None,
    base: DesignerState,
) -> DesignerState:
    """
    Seed a designer state from the catalog and an optional saved layout.

    Only active fields are held by the designer. With a layout, a field that
    has a saved position is placed in that cell and every other field goes to
    the available pool, in catalog order. Layout entries for ids missing from
    the catalog are orphans: they are dropped and reported as warnings. A
    second field saved on an already-taken cell falls back to the pool.
    A column count outside ALLOWED_COLUMNS is replaced by the base one.

    Args:
        fields: Module field catalog
        layout: Previously saved layout, if any
        base: State providing the defaults (columns, spacing, min rows)

    Returns:
        Initialized DesignerState carrying the warnings found while loading
    """
    active = [f for f in fields if f.is_active]

    if layout is None:
        logger.debug(f"No saved layout: {len(active)} fields start in the available pool")
        return DesignerState(
            available_pool=tuple(active),
            columns=base.columns,
            spacing=base.spacing,
            buttons=base.buttons,
            show_sections=base.show_sections,
            min_rows=base.min_rows,
            initialized=True,
        )

    warnings: list[ConfigWarning] = []
    columns = layout.columns
    if columns not in ALLOWED_COLUMNS:
        message = f"Layout has an unsupported column count {columns}; using {base.columns}"
        logger.warning(message)
        warnings.append(ConfigWarning(code=WarningCode.INVALID_COLUMNS, message=message))
        columns = base.columns

    placements: dict[GridCell, FieldDefinition] = {}
    col_spans: dict[str, int] = {}
    pool: list[FieldDefinition] = []

    for field_def in active:
        position = layout.fields.get(field_def.id)
        if position is None:
            pool.append(field_def)
            continue

        cell = position.cell
        if cell in placements:
            message = (
                f"Field '{field_def.label}' is saved on cell ({cell.row},{cell.col}) "
                f"already taken by '{placements[cell].label}'; moved to the available pool"
            )
            logger.warning(message)
            warnings.append(ConfigWarning(code=WarningCode.DUPLICATE_CELL, message=message, field_id=field_def.id))
            pool.append(field_def)
            continue

        placements[cell] = field_def
        col_spans[field_def.id] = position.col_span

    known_ids = {f.id for f in fields}
    for field_id in layout.fields:
        if field_id not in known_ids:
            message = f"Layout references a field that no longer exists: {field_id}"
            logger.warning(message)
            warnings.append(ConfigWarning(code=WarningCode.ORPHANED_LAYOUT_FIELD, message=message, field_id=field_id))

    logger.debug(f"Layout loaded: {len(placements)} fields in grid, {len(pool)} available")

    state = DesignerState(
        placements=placements,
        available_pool=tuple(pool),
        col_spans=col_spans,
        columns=columns,
        spacing=layout.spacing,
        buttons=layout.buttons.model_copy(deep=True),
        show_sections=layout.show_sections,
        min_rows=base.min_rows,
        initialized=True,
    )
    off_grid = state.off_grid_warnings()
    for warning in off_grid:
        logger.warning(warning.message)
    return replace(state, warnings=tuple(warnings) + off_grid)


def arrange_form_rows(
    fields: Sequence[FieldDefinition],
    layout: LayoutDocument | None,
) -> list[list[FieldDefinition]]:
    """
    Group the active fields into form rows for rendering.

    Without a custom layout the form is a single row holding every active
    field by form order. With one, only positioned fields are rendered,
    sorted by (row, col) and grouped by row; empty rows are skipped.
    """
    active = sorted((f for f in fields if f.is_active), key=lambda f: f.form_order)

    if layout is None or not layout.is_custom:
        return [active]

    positioned = [(layout.fields[f.id], f) for f in active if f.id in layout.fields]
    positioned.sort(key=lambda item: (item[0].row, item[0].col))

    rows: list[list[FieldDefinition]] = []
    current_row: int | None = None
    for position, field_def in positioned:
        if position.row != current_row:
            rows.append([])
            current_row = position.row
        rows[-1].append(field_def)

    return rows
