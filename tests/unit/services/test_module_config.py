"""Unit tests for the module configuration service."""
import pytest

from fieldstudio.core.exceptions import (
    DuplicateFieldNameError,
    FieldNotFoundError,
    InvalidLayoutError,
    ModuleConfigNotLoadedError,
    SystemFieldError,
)
from fieldstudio.models.contracts.layouts import GridCell
from fieldstudio.models.enums import FieldType, WarningCode
from fieldstudio.services.layout_designer import LayoutDesignerEngine
from fieldstudio.services.module_config import ModuleConfigService
from tests.helpers.factories import make_catalog, make_field, make_layout, make_module_config
from tests.helpers.memory_store import InMemoryConfigStore

DEFAULT_FIELDS = [
    {"name": "name", "label": "Name", "type": "text", "isDefault": True, "isSystem": True,
     "validation": {"required": True}, "formOrder": 0},
    {"name": "email", "label": "Email", "type": "email", "isDefault": True, "formOrder": 1},
]


def _service(fields=None, store=None, **config_overrides) -> ModuleConfigService:
    if store is None:
        catalog = fields if fields is not None else make_catalog(3)
        store = InMemoryConfigStore(make_module_config(catalog, **config_overrides))
    return ModuleConfigService(store, "clients", default_fields=DEFAULT_FIELDS, user_id="user-1")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_missing_config_is_created_from_defaults(self, store):
        service = ModuleConfigService(store, "clients", default_fields=DEFAULT_FIELDS, user_id="user-1")

        await service.initialize()

        assert [f.name for f in service.fields] == ["name", "email"]
        assert service.fields[0].id.startswith("field_0_")
        assert service.fields[1].id.startswith("field_1_")
        assert service.fields[0].is_system
        assert service.fields[0].created_by == "user-1"
        assert store.documents["clients"].fields == service.fields

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self):
        store = InMemoryConfigStore(make_module_config(make_catalog(2)))
        service = _service(store=store)

        await service.initialize()
        store.documents["clients"] = make_module_config(make_catalog(5))
        await service.initialize()

        assert len(service.fields) == 2

    @pytest.mark.asyncio
    async def test_refresh_reloads(self):
        store = InMemoryConfigStore(make_module_config(make_catalog(2)))
        service = _service(store=store)
        await service.initialize()

        store.documents["clients"] = make_module_config(make_catalog(5))
        await service.refresh()

        assert len(service.fields) == 5

    @pytest.mark.asyncio
    async def test_clear(self):
        service = _service()
        await service.initialize()

        service.clear()

        assert service.config is None
        assert service.fields == []
        with pytest.raises(ModuleConfigNotLoadedError):
            await service.add_custom_field({"name": "x", "label": "X", "type": "text"})


class TestAddCustomField:
    @pytest.mark.asyncio
    async def test_adds_and_persists(self):
        service = _service()
        await service.initialize()

        field = await service.add_custom_field(
            {"name": "industry", "label": "Industry", "type": "select", "isDefault": True}
        )

        assert field.id.startswith("custom_")
        assert field.is_default is False
        assert field.is_system is False
        assert service.get_field_by_name("industry") == field
        assert service.store.documents["clients"].fields[-1].id == field.id

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self):
        service = _service()
        await service.initialize()

        with pytest.raises(DuplicateFieldNameError) as exc_info:
            await service.add_custom_field({"name": "field0", "label": "Again", "type": "text"})

        assert exc_info.value.name == "field0"
        assert len(service.fields) == 3

    @pytest.mark.asyncio
    async def test_custom_prefix_from_settings(self, monkeypatch):
        monkeypatch.setenv("FIELDSTUDIO_CUSTOM_FIELD_ID_PREFIX", "cf")
        service = _service()
        await service.initialize()

        field = await service.add_custom_field({"name": "x", "label": "X", "type": "text"})

        assert field.id.startswith("cf_")


class TestUpdateField:
    @pytest.mark.asyncio
    async def test_updates_attributes(self):
        service = _service()
        await service.initialize()

        updated = await service.update_field("f1", {"label": "Renamed", "helpText": "Shown below"})

        assert updated.label == "Renamed"
        assert updated.help_text == "Shown below"
        assert updated.updated_by == "user-1"
        assert service.get_field("f1").label == "Renamed"

    @pytest.mark.asyncio
    async def test_nested_updates_are_merged(self):
        catalog = [make_field(id="f0", name="code", validation={"required": True, "max_length": 5})]
        service = _service(catalog)
        await service.initialize()

        updated = await service.update_field("f0", {"validation": {"minLength": 2}})

        assert updated.validation.required is True
        assert updated.validation.max_length == 5
        assert updated.validation.min_length == 2

    @pytest.mark.asyncio
    async def test_unknown_field(self):
        service = _service()
        await service.initialize()

        with pytest.raises(FieldNotFoundError) as exc_info:
            await service.update_field("missing", {"label": "x"})

        assert exc_info.value.message == "Field not found: missing"

    @pytest.mark.parametrize(
        "updates",
        [
            {"name": "renamed"},
            {"type": "number"},
            {"validation": {"required": False}},
        ],
    )
    @pytest.mark.asyncio
    async def test_system_field_identity_is_protected(self, updates):
        catalog = [make_field(id="sys", name="name", is_system=True, validation={"required": True})]
        service = _service(catalog)
        await service.initialize()

        with pytest.raises(SystemFieldError):
            await service.update_field("sys", updates)

        assert service.get_field("sys").name == "name"

    @pytest.mark.asyncio
    async def test_system_field_other_attributes_can_change(self):
        catalog = [make_field(id="sys", name="name", is_system=True)]
        service = _service(catalog)
        await service.initialize()

        updated = await service.update_field("sys", {"label": "Client name", "name": "name"})

        assert updated.label == "Client name"

    @pytest.mark.asyncio
    async def test_rename_to_taken_name_rejected(self):
        service = _service()
        await service.initialize()

        with pytest.raises(DuplicateFieldNameError):
            await service.update_field("f1", {"name": "field0"})


class TestDeleteField:
    @pytest.mark.asyncio
    async def test_removes_field_and_layout_entry(self):
        layout = make_layout({"f0": (0, 0), "f1": (0, 1)})
        service = _service(form_layout=layout)
        await service.initialize()

        await service.delete_field("f1")

        assert service.get_field("f1") is None
        assert set(service.form_layout.fields) == {"f0"}
        assert set(service.store.documents["clients"].form_layout.fields) == {"f0"}

    @pytest.mark.asyncio
    async def test_unknown_field(self):
        service = _service()
        await service.initialize()

        with pytest.raises(FieldNotFoundError):
            await service.delete_field("missing")

    @pytest.mark.asyncio
    async def test_system_field(self):
        service = _service([make_field(id="sys", is_system=True)])
        await service.initialize()

        with pytest.raises(SystemFieldError):
            await service.delete_field("sys")

        assert service.get_field("sys") is not None


class TestOrdering:
    @pytest.mark.asyncio
    async def test_toggle_field_active(self):
        service = _service()
        await service.initialize()

        await service.toggle_field_active("f0")
        assert service.get_field("f0").is_active is False

        await service.toggle_field_active("f0", True)
        assert service.get_field("f0").is_active is True

    @pytest.mark.asyncio
    async def test_reorder_fields_unlisted_follow(self):
        service = _service(make_catalog(4))
        await service.initialize()

        await service.reorder_fields(["f2", "unknown", "f0"])

        assert [(f.id, f.form_order) for f in service.fields] == [("f2", 0), ("f0", 1), ("f1", 2), ("f3", 3)]

    @pytest.mark.asyncio
    async def test_reorder_grid_columns(self):
        service = _service(make_catalog(3, grid_config={"show_in_grid": True, "grid_order": 9}))
        await service.initialize()

        await service.reorder_grid_columns(["f2", "f0"])

        orders = {f.id: f.grid_config.grid_order for f in service.fields}
        assert orders == {"f0": 1, "f1": 9, "f2": 0}
        assert [f.id for f in service.get_grid_fields()] == ["f2", "f0", "f1"]


class TestSaveFormLayout:
    @pytest.mark.asyncio
    async def test_saves_layout(self):
        service = _service()
        await service.initialize()

        warnings = await service.save_form_layout(make_layout({"f0": (0, 0)}, columns=2))

        assert warnings == []
        assert service.get_form_layout().columns == 2
        assert service.store.documents["clients"].form_layout.fields["f0"].row == 0

    @pytest.mark.asyncio
    async def test_accepts_stored_shape(self):
        service = _service()
        await service.initialize()

        await service.save_form_layout(
            {"columns": 4, "fields": {"f1": {"row": 1, "col": 3, "colSpan": 1, "order": 7}}, "showSections": True}
        )

        assert service.form_layout.fields["f1"].col == 3
        assert service.form_layout.show_sections is True

    @pytest.mark.parametrize("columns", [1, 5])
    @pytest.mark.asyncio
    async def test_invalid_columns(self, columns):
        service = _service()
        await service.initialize()

        with pytest.raises(InvalidLayoutError):
            await service.save_form_layout(make_layout({"f0": (0, 0)}, columns=columns))

        assert service.form_layout is None

    @pytest.mark.asyncio
    async def test_orphan_entries_are_dropped(self):
        service = _service()
        await service.initialize()

        warnings = await service.save_form_layout(make_layout({"f0": (0, 0), "gone": (0, 1)}))

        assert [(w.code, w.field_id) for w in warnings] == [(WarningCode.ORPHANED_LAYOUT_FIELD, "gone")]
        assert set(service.form_layout.fields) == {"f0"}


class TestQueries:
    @pytest.mark.asyncio
    async def test_active_fields_sorted(self):
        fields = [
            make_field(id="b", form_order=2),
            make_field(id="a", form_order=1),
            make_field(id="off", is_active=False),
        ]
        service = _service(fields)
        await service.initialize()

        assert [f.id for f in service.get_active_fields()] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_fields_in_use_without_layout(self):
        service = _service(make_catalog(3))
        await service.initialize()

        assert len(service.get_fields_in_use()) == 3
        assert service.get_available_fields_not_in_use() == []

    @pytest.mark.asyncio
    async def test_fields_in_use_with_layout(self):
        grid = {"show_in_grid": True}
        service = _service(make_catalog(3, grid_config=grid), form_layout=make_layout({"f1": (0, 0)}))
        await service.initialize()

        assert [f.id for f in service.get_fields_in_use()] == ["f1"]
        assert [f.id for f in service.get_available_fields_not_in_use()] == ["f0", "f2"]
        assert [f.id for f in service.get_grid_fields()] == ["f1"]

    @pytest.mark.asyncio
    async def test_name_uniqueness(self):
        service = _service()
        await service.initialize()

        assert not service.is_field_name_unique("field0")
        assert service.is_field_name_unique("field0", exclude_id="f0")
        assert service.is_field_name_unique("brand_new")

    @pytest.mark.asyncio
    async def test_diagnose(self):
        fields = [make_field(id="d", type=FieldType.DICTIONARY)]
        service = _service(fields)
        await service.initialize()

        [diagnostic] = service.diagnose()

        assert diagnostic.issues


class TestListeners:
    @pytest.mark.asyncio
    async def test_listeners_receive_new_catalog(self):
        service = _service()
        received = []
        service.add_listener(received.append)

        await service.initialize()
        await service.add_custom_field({"name": "x", "label": "X", "type": "text"})

        assert [len(fields) for fields in received] == [3, 4]

    @pytest.mark.asyncio
    async def test_layout_save_does_not_notify(self):
        service = _service()
        await service.initialize()
        received = []
        service.add_listener(received.append)

        await service.save_form_layout(make_layout({"f0": (0, 0)}))

        assert received == []

    @pytest.mark.asyncio
    async def test_designer_follows_catalog(self):
        service = _service(make_catalog(3))
        designer = LayoutDesignerEngine()
        service.add_listener(designer.reconcile)
        await service.initialize()
        designer.initialize(service.fields, service.form_layout)
        designer.place_field("f0", GridCell(0, 0))

        await service.delete_field("f0")
        new_field = await service.add_custom_field({"name": "x", "label": "X", "type": "text"})

        assert designer.field_at((0, 0)) is None
        assert designer.available_fields[-1].id == new_field.id
        assert {f.id for f in designer.available_fields} == {"f1", "f2", new_field.id}
