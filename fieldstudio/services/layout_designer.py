"""
Layout Designer Engine

Holds the working state of a form layout edit: which fields sit in which
grid cell and which remain in the available pool.

Every user action is a command applied by ``reduce``, which returns a new
DesignerState. Rejected commands (dropping on an occupied cell, unknown
field, cell outside the grid) hand back the very same snapshot, so a caller
can tell a rejected drop by identity::

    new_state = engine.place_field("field_1", GridCell(0, 0))
    snapped_back = new_state is old_state

Catalog changes are delivered explicitly through ``reconcile`` once the
designer has been initialized; they never discard the in-progress
arrangement.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Sequence, Union

from pydantic import ValidationError

from fieldstudio.config import Settings, get_settings
from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import ALLOWED_COLUMNS, FormButtonsConfig, GridCell, LayoutDocument
from fieldstudio.models.enums import LayoutSpacing
from fieldstudio.services.designer_state import DesignerState
from fieldstudio.services.layout_serializer import load_layout, serialize_layout

logger = logging.getLogger(__name__)


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class InitializeDesigner:
    fields: tuple[FieldDefinition, ...]
    layout: LayoutDocument | None = None


@dataclass(frozen=True)
class ReconcileCatalog:
    fields: tuple[FieldDefinition, ...]


@dataclass(frozen=True)
class PlaceField:
    field_id: str
    target: GridCell


@dataclass(frozen=True)
class RemoveField:
    cell: GridCell


@dataclass(frozen=True)
class ClearGrid:
    pass


@dataclass(frozen=True)
class SetColumns:
    columns: int


@dataclass(frozen=True)
class SetSpacing:
    spacing: LayoutSpacing | str


@dataclass(frozen=True)
class SetButtonsConfig:
    """Partial update keyed by FormButtonsConfig attribute names."""
    updates: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MarkSaved:
    pass


DesignerCommand = Union[
    InitializeDesigner,
    ReconcileCatalog,
    PlaceField,
    RemoveField,
    ClearGrid,
    SetColumns,
    SetSpacing,
    SetButtonsConfig,
    MarkSaved,
]


# =============================================================================
# Reducer
# =============================================================================


def _initialize(state: DesignerState, command: InitializeDesigner) -> DesignerState:
    if state.initialized:
        logger.debug("Designer already initialized, ignoring initialize")
        return state
    return load_layout(command.fields, command.layout, state)


def _reconcile(state: DesignerState, command: ReconcileCatalog) -> DesignerState:
    if not state.initialized:
        logger.debug("Designer not initialized yet, ignoring catalog update")
        return state

    latest: dict[str, FieldDefinition] = {}
    for field_def in command.fields:
        if field_def.is_active and field_def.id not in latest:
            latest[field_def.id] = field_def

    changed = False
    placements: dict[GridCell, FieldDefinition] = {}
    for cell, held in state.placements.items():
        updated = latest.get(held.id)
        if updated is None:
            logger.info(f"Field '{held.label}' left the catalog, removing it from cell ({cell.row},{cell.col})")
            changed = True
            continue
        if updated is not held:
            changed = True
        placements[cell] = updated

    pool: list[FieldDefinition] = []
    for held in state.available_pool:
        updated = latest.get(held.id)
        if updated is None:
            logger.info(f"Field '{held.label}' left the catalog, removing it from the available pool")
            changed = True
            continue
        if updated is not held:
            changed = True
        pool.append(updated)

    held_ids = state.placed_ids | state.pool_ids
    new_fields = [f for f in latest.values() if f.id not in held_ids]
    if new_fields:
        logger.debug(f"{len(new_fields)} new fields added to the available pool: {[f.label for f in new_fields]}")
        pool.extend(new_fields)
        changed = True

    if not changed:
        return state

    placed_ids = {f.id for f in placements.values()}
    col_spans = {fid: span for fid, span in state.col_spans.items() if fid in placed_ids}
    return replace(
        state,
        placements=placements,
        available_pool=tuple(pool),
        col_spans=col_spans,
        warnings=(),
    )


def _place_field(state: DesignerState, command: PlaceField) -> DesignerState:
    target = command.target
    if not state.initialized or not state.in_grid(target):
        return state

    if target in state.placements:
        logger.debug(f"Cell ({target.row},{target.col}) already occupied, ignoring drop")
        return state

    placements = dict(state.placements)
    source = state.cell_of(command.field_id)

    if source is not None:
        placements[target] = placements.pop(source)
        logger.debug(f"Moved field {command.field_id} from ({source.row},{source.col}) to ({target.row},{target.col})")
        return replace(state, placements=placements, dirty=True, warnings=())

    pool = list(state.available_pool)
    for index, candidate in enumerate(pool):
        if candidate.id == command.field_id:
            placements[target] = pool.pop(index)
            logger.debug(f"Placed field {command.field_id} on ({target.row},{target.col})")
            return replace(
                state,
                placements=placements,
                available_pool=tuple(pool),
                dirty=True,
                warnings=(),
            )

    logger.debug(f"Unknown field {command.field_id}, ignoring drop")
    return state


def _remove_field(state: DesignerState, command: RemoveField) -> DesignerState:
    removed = state.placements.get(command.cell)
    if removed is None:
        return state

    placements = dict(state.placements)
    del placements[command.cell]
    col_spans = {fid: span for fid, span in state.col_spans.items() if fid != removed.id}
    return replace(
        state,
        placements=placements,
        available_pool=state.available_pool + (removed,),
        col_spans=col_spans,
        dirty=True,
        warnings=(),
    )


def _clear_grid(state: DesignerState, command: ClearGrid) -> DesignerState:
    if not state.placements:
        return state
    returned = tuple(placed for _, placed in state.ordered_placements())
    logger.debug(f"Clearing grid, {len(returned)} fields back to the available pool")
    return replace(
        state,
        placements={},
        available_pool=state.available_pool + returned,
        col_spans={},
        dirty=True,
        warnings=(),
    )


def _set_columns(state: DesignerState, command: SetColumns) -> DesignerState:
    if command.columns not in ALLOWED_COLUMNS:
        logger.warning(f"Ignoring unsupported column count: {command.columns}")
        return state
    if command.columns == state.columns:
        return state
    resized = replace(state, columns=command.columns, dirty=True)
    warnings = resized.off_grid_warnings()
    for warning in warnings:
        logger.warning(warning.message)
    return replace(resized, warnings=warnings)


def _set_spacing(state: DesignerState, command: SetSpacing) -> DesignerState:
    try:
        spacing = LayoutSpacing(command.spacing)
    except ValueError:
        logger.warning(f"Ignoring unknown spacing: {command.spacing}")
        return state
    if spacing == state.spacing:
        return state
    return replace(state, spacing=spacing, dirty=True, warnings=())


def _set_buttons_config(state: DesignerState, command: SetButtonsConfig) -> DesignerState:
    merged = state.buttons.model_dump()
    merged.update(command.updates)
    try:
        buttons = FormButtonsConfig.model_validate(merged)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid buttons configuration: {e}")
        return state
    if buttons == state.buttons:
        return state
    return replace(state, buttons=buttons, dirty=True, warnings=())


def _mark_saved(state: DesignerState, command: MarkSaved) -> DesignerState:
    if not state.dirty:
        return state
    return replace(state, dirty=False, warnings=())


_HANDLERS = {
    InitializeDesigner: _initialize,
    ReconcileCatalog: _reconcile,
    PlaceField: _place_field,
    RemoveField: _remove_field,
    ClearGrid: _clear_grid,
    SetColumns: _set_columns,
    SetSpacing: _set_spacing,
    SetButtonsConfig: _set_buttons_config,
    MarkSaved: _mark_saved,
}


def reduce(state: DesignerState, command: DesignerCommand) -> DesignerState:
    """
    Apply a designer command.

    Never raises for a known command type; rejected commands return ``state``
    unchanged (same object).
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown designer command: {type(command).__name__}")
    return handler(state, command)


# =============================================================================
# Engine
# =============================================================================


def _as_cell(cell: GridCell | tuple[int, int]) -> GridCell:
    return cell if isinstance(cell, GridCell) else GridCell(*cell)


class LayoutDesignerEngine:
    """
    Stateful wrapper around ``reduce`` for one editing session.

    ``initialize`` seeds the session once; later calls are ignored so a
    catalog refresh caused by an unrelated edit does not discard the
    user's arrangement. Deliver catalog refreshes through ``reconcile``.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._state = DesignerState(
            columns=settings.default_columns,
            spacing=LayoutSpacing(settings.default_spacing),
            min_rows=settings.min_visible_rows,
        )
        self.warnings: list[ConfigWarning] = []

    @property
    def state(self) -> DesignerState:
        return self._state

    def dispatch(self, command: DesignerCommand) -> DesignerState:
        new_state = reduce(self._state, command)
        if new_state is not self._state:
            self.warnings.extend(new_state.warnings)
            self._state = new_state
        return self._state

    # ==================== COMMANDS ====================

    def initialize(
        self,
        fields: Sequence[FieldDefinition],
        layout: LayoutDocument | None = None,
    ) -> DesignerState:
        return self.dispatch(InitializeDesigner(fields=tuple(fields), layout=layout))

    def reconcile(self, fields: Sequence[FieldDefinition]) -> DesignerState:
        return self.dispatch(ReconcileCatalog(fields=tuple(fields)))

    def place_field(self, field_id: str, target: GridCell | tuple[int, int]) -> DesignerState:
        return self.dispatch(PlaceField(field_id=field_id, target=_as_cell(target)))

    def remove_field(self, cell: GridCell | tuple[int, int]) -> DesignerState:
        return self.dispatch(RemoveField(cell=_as_cell(cell)))

    def clear_grid(self) -> DesignerState:
        return self.dispatch(ClearGrid())

    def set_columns(self, columns: int) -> DesignerState:
        return self.dispatch(SetColumns(columns=columns))

    def set_spacing(self, spacing: LayoutSpacing | str) -> DesignerState:
        return self.dispatch(SetSpacing(spacing=spacing))

    def set_buttons_config(self, **updates: Any) -> DesignerState:
        return self.dispatch(SetButtonsConfig(updates=updates))

    def mark_saved(self) -> DesignerState:
        return self.dispatch(MarkSaved())

    def serialize(self) -> LayoutDocument:
        return serialize_layout(self._state)

    # ==================== QUERIES ====================

    @property
    def initialized(self) -> bool:
        return self._state.initialized

    @property
    def has_unsaved_changes(self) -> bool:
        return self._state.dirty

    @property
    def columns(self) -> int:
        return self._state.columns

    @property
    def visible_rows(self) -> int:
        return self._state.visible_rows

    @property
    def available_fields(self) -> list[FieldDefinition]:
        return list(self._state.available_pool)

    def field_at(self, cell: GridCell | tuple[int, int]) -> FieldDefinition | None:
        return self._state.field_at(_as_cell(cell))

    def grid_cells(self) -> list[list[GridCell]]:
        """Visible cells grouped by row."""
        cells = list(self._state.iter_cells())
        columns = self._state.columns
        return [cells[i:i + columns] for i in range(0, len(cells), columns)]

    def ordered_placed_fields(self) -> list[FieldDefinition]:
        """Fields currently in the grid, row-major. Used for form previews."""
        return [placed for _, placed in self._state.ordered_placements()]
