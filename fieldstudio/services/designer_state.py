"""
Designer State

Immutable snapshot of an in-progress layout edit. Every designer command
produces a new snapshot (or hands back the same one when it is rejected),
so any sequence of commands can be replayed in tests.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator

from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import FormButtonsConfig, GridCell
from fieldstudio.models.enums import LayoutSpacing, WarningCode


@dataclass(frozen=True)
class DesignerState:
    """
    Working state of the layout designer.

    A field id is held in exactly one of ``placements`` and
    ``available_pool``. ``col_spans`` carries the span of placed fields that
    were loaded from a saved layout; fields placed during the session span one
    column. ``warnings`` are the non-fatal problems found by the transition
    that produced this snapshot.
    """

    placements: dict[GridCell, FieldDefinition] = field(default_factory=dict)
    available_pool: tuple[FieldDefinition, ...] = ()
    col_spans: dict[str, int] = field(default_factory=dict)
    columns: int = 3
    spacing: LayoutSpacing = LayoutSpacing.NORMAL
    buttons: FormButtonsConfig = field(default_factory=FormButtonsConfig)
    show_sections: bool = False
    min_rows: int = 3
    initialized: bool = False
    dirty: bool = False
    warnings: tuple[ConfigWarning, ...] = ()

    @property
    def field_count(self) -> int:
        return len(self.placements) + len(self.available_pool)

    @property
    def visible_rows(self) -> int:
        """Rows shown by the designer; never fewer than ``min_rows``."""
        return max(self.min_rows, math.ceil(self.field_count / self.columns))

    @property
    def placed_ids(self) -> set[str]:
        return {f.id for f in self.placements.values()}

    @property
    def pool_ids(self) -> set[str]:
        return {f.id for f in self.available_pool}

    def field_at(self, cell: GridCell) -> FieldDefinition | None:
        return self.placements.get(cell)

    def cell_of(self, field_id: str) -> GridCell | None:
        for cell, placed in self.placements.items():
            if placed.id == field_id:
                return cell
        return None

    def in_grid(self, cell: GridCell) -> bool:
        """True when the cell lies inside the visible grid."""
        return 0 <= cell.row < self.visible_rows and 0 <= cell.col < self.columns

    def off_grid_warnings(self) -> tuple[ConfigWarning, ...]:
        """One warning per placed field whose column lies beyond ``columns``."""
        return tuple(
            ConfigWarning(
                code=WarningCode.PLACEMENT_OUTSIDE_GRID,
                message=f"Field '{placed.label}' is placed beyond column {self.columns} at ({cell.row},{cell.col})",
                field_id=placed.id,
            )
            for cell, placed in self.ordered_placements()
            if cell.col >= self.columns
        )

    def iter_cells(self) -> Iterator[GridCell]:
        """Visible cells, row-major."""
        for row in range(self.visible_rows):
            for col in range(self.columns):
                yield GridCell(row, col)

    def ordered_placements(self) -> list[tuple[GridCell, FieldDefinition]]:
        """Placed fields sorted by row, then column."""
        return sorted(self.placements.items(), key=lambda item: item[0])
