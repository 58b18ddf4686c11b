"""
Module Configuration Service

Loads and mutates a module's ModuleConfig (field catalog, saved form layout,
grid preferences) through an injected async store. This is the only layer
that raises configuration errors; the designer and the compiler consume its
results.

After every field mutation, registered listeners receive the new field list.
A host wires that to the open designer session:

    service.add_listener(designer.reconcile)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol, Sequence
from uuid import uuid4

from fieldstudio.config import Settings, get_settings
from fieldstudio.core.exceptions import (
    DuplicateFieldNameError,
    FieldNotFoundError,
    InvalidLayoutError,
    ModuleConfigNotLoadedError,
    SystemFieldError,
)
from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.contracts.layouts import ALLOWED_COLUMNS, LayoutDocument
from fieldstudio.models.contracts.modules import GridConfiguration, ModuleConfig
from fieldstudio.models.enums import WarningCode
from fieldstudio.services.field_diagnostics import FieldDiagnostic, diagnose_fields
from fieldstudio.services.grid_view import select_grid_fields

logger = logging.getLogger(__name__)

FieldsListener = Callable[[list[FieldDefinition]], Any]

# Attributes of a system field that identify it
_PROTECTED_ATTRIBUTES = ("name", "type")

# Nested models merged key by key on update instead of replaced
_NESTED_ATTRIBUTES = ("validation", "grid_config")


class ModuleConfigStore(Protocol):
    """Persistence of ModuleConfig documents, keyed by module id."""

    async def get(self, module_id: str) -> ModuleConfig | None: ...

    async def save(self, config: ModuleConfig) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _attribute_names(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase aliases to FieldDefinition attribute names."""
    by_alias = {
        info.alias: name
        for name, info in FieldDefinition.model_fields.items()
        if info.alias
    }
    return {by_alias.get(key, key): value for key, value in updates.items()}


class ModuleConfigService:
    """
    Field catalog and layout of one module.

    Args:
        store: Async persistence for ModuleConfig documents
        module_id: Module whose configuration is managed (e.g. "clients")
        default_fields: Field templates (without ids) used when the module
            has no stored configuration yet
        user_id: Recorded in created_by/updated_by/modified_by
        settings: Defaults to get_settings()
    """

    def __init__(
        self,
        store: ModuleConfigStore,
        module_id: str,
        default_fields: Sequence[Mapping[str, Any]] = (),
        user_id: str | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.module_id = module_id
        self.default_fields = list(default_fields)
        self.user_id = user_id
        self.settings = settings or get_settings()

        self._config: ModuleConfig | None = None
        self._initialized = False
        self._listeners: list[FieldsListener] = []

    # ==================== STATE ====================

    @property
    def config(self) -> ModuleConfig | None:
        return self._config

    @property
    def fields(self) -> list[FieldDefinition]:
        return list(self._config.fields) if self._config else []

    @property
    def form_layout(self) -> LayoutDocument | None:
        return self._config.form_layout if self._config else None

    def add_listener(self, listener: FieldsListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FieldsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        fields = self.fields
        for listener in list(self._listeners):
            listener(fields)

    def _require_config(self) -> ModuleConfig:
        if self._config is None:
            raise ModuleConfigNotLoadedError(self.module_id)
        return self._config

    # ==================== LIFECYCLE ====================

    async def initialize(self) -> None:
        """Load the configuration once; later calls do nothing."""
        if self._initialized:
            return
        await self.load_config()
        self._initialized = True

    async def load_config(self) -> ModuleConfig:
        """Load the stored configuration, creating the default one when missing."""
        config = await self.store.get(self.module_id)
        if config is None:
            logger.info(f"No configuration stored for module {self.module_id}, creating defaults")
            config = await self._create_default_config()
        else:
            logger.debug(f"Loaded configuration for module {self.module_id}: {len(config.fields)} fields")
        self._config = config
        self._notify()
        return config

    async def _create_default_config(self) -> ModuleConfig:
        now = _now()
        prefix = self.settings.default_field_id_prefix
        fields = [
            FieldDefinition.model_validate({
                **template,
                "id": f"{prefix}_{index}_{uuid4().hex[:8]}",
                "created_at": now,
                "created_by": self.user_id,
                "updated_at": now,
                "updated_by": self.user_id,
            })
            for index, template in enumerate(self.default_fields)
        ]
        config = ModuleConfig(
            id=self.module_id,
            module_id=self.module_id,
            fields=fields,
            last_modified=now,
            modified_by=self.user_id,
            created_at=now,
            created_by=self.user_id,
        )
        await self.store.save(config)
        logger.info(f"Created default configuration for module {self.module_id} with {len(fields)} fields")
        return config

    async def refresh(self) -> None:
        """Reload from the store."""
        self._initialized = False
        await self.initialize()

    def clear(self) -> None:
        """Forget the loaded configuration. Listeners stay registered."""
        self._config = None
        self._initialized = False

    async def _save(self, **changes: Any) -> ModuleConfig:
        config = self._require_config().model_copy(
            update={**changes, "last_modified": _now(), "modified_by": self.user_id}
        )
        await self.store.save(config)
        self._config = config
        if "fields" in changes:
            self._notify()
        return config

    # ==================== FIELD MUTATIONS ====================

    async def add_custom_field(self, data: Mapping[str, Any]) -> FieldDefinition:
        """
        Add a user-defined field to the catalog.

        Args:
            data: Field attributes (snake_case or camelCase) without an id

        Returns:
            The created FieldDefinition

        Raises:
            DuplicateFieldNameError: If another field already uses the name
        """
        self._require_config()
        values = _attribute_names(data)
        name = values.get("name")
        if name and not self.is_field_name_unique(name):
            raise DuplicateFieldNameError(name)

        now = _now()
        new_field = FieldDefinition.model_validate({
            **values,
            "id": f"{self.settings.custom_field_id_prefix}_{uuid4().hex[:12]}",
            "is_default": False,
            "is_system": False,
            "created_at": now,
            "created_by": self.user_id,
            "updated_at": now,
            "updated_by": self.user_id,
        })

        await self._save(fields=[*self.fields, new_field])
        logger.info(f"Added custom field '{new_field.name}' ({new_field.id}) to module {self.module_id}")
        return new_field

    async def update_field(self, field_id: str, updates: Mapping[str, Any]) -> FieldDefinition:
        """
        Update attributes of a field.

        ``validation`` and ``grid_config`` updates are merged into the current
        values; other attributes are replaced.

        Raises:
            FieldNotFoundError: If the field does not exist
            SystemFieldError: If a system field would change name, type or
                its required flag
            DuplicateFieldNameError: If the new name is taken
        """
        fields = list(self._require_config().fields)
        index = next((i for i, f in enumerate(fields) if f.id == field_id), None)
        if index is None:
            raise FieldNotFoundError(field_id)
        current = fields[index]

        values = current.model_dump()
        for name, value in _attribute_names(updates).items():
            if name in _NESTED_ATTRIBUTES and isinstance(value, Mapping):
                partial = type(getattr(current, name)).model_validate(value)
                values[name].update(partial.model_dump(include=partial.model_fields_set))
                continue
            values[name] = value
        values["id"] = current.id
        values["updated_at"] = _now()
        values["updated_by"] = self.user_id
        updated = FieldDefinition.model_validate(values)

        if current.is_system:
            changed = [attr for attr in _PROTECTED_ATTRIBUTES if getattr(updated, attr) != getattr(current, attr)]
            if updated.validation.required != current.validation.required:
                changed.append("validation.required")
            if changed:
                raise SystemFieldError(
                    field_id,
                    f"Cannot change {', '.join(changed)} of system field '{current.label}'",
                )

        if updated.name != current.name and not self.is_field_name_unique(updated.name, exclude_id=field_id):
            raise DuplicateFieldNameError(updated.name)

        fields[index] = updated
        await self._save(fields=fields)
        logger.info(f"Updated field '{updated.name}' ({field_id}) in module {self.module_id}")
        return updated

    async def delete_field(self, field_id: str) -> None:
        """
        Delete a field and its saved layout position.

        Raises:
            FieldNotFoundError: If the field does not exist
            SystemFieldError: If the field is a system field
        """
        fields = list(self._require_config().fields)
        target = next((f for f in fields if f.id == field_id), None)
        if target is None:
            raise FieldNotFoundError(field_id)
        if target.is_system:
            raise SystemFieldError(field_id, f"System field '{target.label}' cannot be deleted")

        changes: dict[str, Any] = {"fields": [f for f in fields if f.id != field_id]}
        layout = self.form_layout
        if layout is not None and field_id in layout.fields:
            changes["form_layout"] = layout.model_copy(
                update={"fields": {fid: pos for fid, pos in layout.fields.items() if fid != field_id}}
            )

        await self._save(**changes)
        logger.info(f"Deleted field '{target.name}' ({field_id}) from module {self.module_id}")

    async def toggle_field_active(self, field_id: str, is_active: bool | None = None) -> FieldDefinition:
        """Set ``is_active``; flips the current value when none is given."""
        if is_active is None:
            current = self.get_field(field_id)
            if current is None:
                raise FieldNotFoundError(field_id)
            is_active = not current.is_active
        return await self.update_field(field_id, {"is_active": is_active})

    async def reorder_fields(self, field_ids: Sequence[str]) -> None:
        """
        Reassign form_order following ``field_ids``.

        Unknown ids are ignored; fields not listed keep their relative order
        after the listed ones.
        """
        self._require_config()
        by_id = {f.id: f for f in self.fields}
        listed = [by_id[fid] for fid in dict.fromkeys(field_ids) if fid in by_id]
        listed_ids = {f.id for f in listed}
        remaining = [f for f in self.fields if f.id not in listed_ids]

        reordered = [
            f.model_copy(update={"form_order": order})
            for order, f in enumerate([*listed, *remaining])
        ]
        await self._save(fields=reordered)
        logger.info(f"Reordered {len(listed)} fields in module {self.module_id}")

    async def reorder_grid_columns(self, field_ids: Sequence[str]) -> None:
        """Set grid_order of the listed fields to their position in ``field_ids``."""
        self._require_config()
        positions = {fid: order for order, fid in enumerate(field_ids)}
        fields = []
        for f in self.fields:
            if f.id in positions:
                grid_config = f.grid_config.model_copy(update={"grid_order": positions[f.id]})
                f = f.model_copy(update={"grid_config": grid_config})
            fields.append(f)
        await self._save(fields=fields)
        logger.info(f"Reordered grid columns of module {self.module_id}")

    # ==================== LAYOUT & GRID ====================

    async def save_form_layout(self, layout: LayoutDocument | Mapping[str, Any]) -> list[ConfigWarning]:
        """
        Persist the form layout.

        Entries referencing fields that are not in the catalog are dropped.

        Returns:
            Warnings for the dropped entries

        Raises:
            InvalidLayoutError: If columns is not 2, 3 or 4
        """
        self._require_config()
        if not isinstance(layout, LayoutDocument):
            layout = LayoutDocument.model_validate(layout)

        if layout.columns not in ALLOWED_COLUMNS:
            raise InvalidLayoutError(f"Layout columns must be one of {ALLOWED_COLUMNS}, got {layout.columns}")

        known_ids = {f.id for f in self.fields}
        warnings = []
        for field_id in layout.fields:
            if field_id not in known_ids:
                message = f"Dropping layout entry for unknown field: {field_id}"
                logger.warning(message)
                warnings.append(ConfigWarning(code=WarningCode.ORPHANED_LAYOUT_FIELD, message=message, field_id=field_id))

        if warnings:
            layout = layout.model_copy(
                update={"fields": {fid: pos for fid, pos in layout.fields.items() if fid in known_ids}}
            )

        await self._save(form_layout=layout)
        logger.info(f"Saved form layout of module {self.module_id}: {len(layout.fields)} positioned fields")
        return warnings

    def get_form_layout(self) -> LayoutDocument | None:
        return self.form_layout

    async def update_grid_config(self, updates: Mapping[str, Any]) -> GridConfiguration:
        """Merge ``updates`` into the module's grid preferences."""
        config = self._require_config()
        grid_config = GridConfiguration.model_validate({**config.grid_config.model_dump(), **updates})
        await self._save(grid_config=grid_config)
        return grid_config

    # ==================== QUERIES ====================

    def get_field(self, field_id: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.id == field_id), None)

    def get_active_fields(self) -> list[FieldDefinition]:
        """Active fields sorted by form_order."""
        return sorted((f for f in self.fields if f.is_active), key=lambda f: f.form_order)

    def get_grid_fields(self) -> list[FieldDefinition]:
        """Active fields shown in the grid, restricted to a custom layout, by grid_order."""
        return select_grid_fields(self.fields, self.form_layout)

    def get_fields_in_use(self) -> list[FieldDefinition]:
        """Active fields the form renders: all of them, or only those in a custom layout."""
        layout = self.form_layout
        active = [f for f in self.fields if f.is_active]
        if layout is None or not layout.is_custom:
            return active
        return [f for f in active if f.id in layout.fields]

    def get_available_fields_not_in_use(self) -> list[FieldDefinition]:
        """Active fields left out of a custom layout."""
        layout = self.form_layout
        if layout is None or not layout.is_custom:
            return []
        return [f for f in self.fields if f.is_active and f.id not in layout.fields]

    def get_field_by_name(self, name: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.name == name), None)

    def is_field_name_unique(self, name: str, exclude_id: str | None = None) -> bool:
        return not any(f.name == name and f.id != exclude_id for f in self.fields)

    def diagnose(self) -> list[FieldDiagnostic]:
        return diagnose_fields(self.fields)
