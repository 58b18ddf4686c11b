"""Unit tests for grid columns and cell formatting."""
from datetime import date, datetime

import pytest

from fieldstudio.models.enums import FieldType
from fieldstudio.services.grid_view import build_grid_columns, format_field_value, get_field_value
from tests.helpers.factories import make_dictionary_field, make_field, make_layout


class TestBuildGridColumns:
    def test_active_grid_fields_by_grid_order(self):
        fields = [
            make_field(id="a", name="a", grid_config={"show_in_grid": True, "grid_order": 2, "sortable": True}),
            make_field(id="b", name="b", grid_config={"show_in_grid": True, "grid_order": 1, "grid_width": "120px"}),
            make_field(id="c", name="c"),
            make_field(id="d", name="d", is_active=False, grid_config={"show_in_grid": True}),
        ]

        columns = build_grid_columns(fields)

        assert [c.key for c in columns] == ["b", "a"]
        assert columns[0].width == "120px"
        assert columns[1].sortable is True

    def test_custom_layout_restricts_columns(self):
        grid = {"show_in_grid": True}
        fields = [make_field(id="a", name="a", grid_config=grid), make_field(id="b", name="b", grid_config=grid)]

        columns = build_grid_columns(fields, make_layout({"b": (0, 0)}))

        assert [c.field_id for c in columns] == ["b"]


class TestGetFieldValue:
    def test_builtin_first(self):
        entity = {"name": "Acme", "customFields": {"name": "Other"}}

        assert get_field_value(entity, "name") == "Acme"

    def test_custom_fields_fallback(self):
        assert get_field_value({"customFields": {"tier": "gold"}}, "tier") == "gold"

    def test_missing(self):
        assert get_field_value({"name": "Acme"}, "tier") is None


class TestFormatFieldValue:
    def test_none(self):
        assert format_field_value(None, make_field()) == "-"

    def test_checkbox(self):
        field = make_field(type=FieldType.CHECKBOX)

        assert format_field_value(True, field) == "Yes"
        assert format_field_value(False, field) == "No"

    @pytest.mark.parametrize(
        "value,expected",
        [(1500.5, "$1,500.50"), (0, "$0.00"), (-12, "-$12.00"), ("99.9", "$99.90"), ("n/a", "n/a")],
    )
    def test_currency(self, value, expected):
        assert format_field_value(value, make_field(type=FieldType.CURRENCY)) == expected

    def test_dates(self):
        date_field = make_field(type=FieldType.DATE)
        datetime_field = make_field(type=FieldType.DATETIME)

        assert format_field_value(date(2025, 3, 9), date_field) == "2025-03-09"
        assert format_field_value("2025-03-09T14:30:00", date_field) == "2025-03-09"
        assert format_field_value(datetime(2025, 3, 9, 14, 30), datetime_field) == "2025-03-09 14:30"
        assert format_field_value("soon", date_field) == "soon"

    def test_select_uses_labels(self):
        field = make_field(type=FieldType.SELECT, options=[{"value": "act", "label": "Active"}])

        assert format_field_value("act", field) == "Active"
        assert format_field_value("other", field) == "other"

    def test_multiselect_uses_labels(self):
        field = make_field(
            type=FieldType.MULTISELECT,
            options=[{"value": "a", "label": "Alpha"}, {"value": "b", "label": "Beta"}],
        )

        assert format_field_value(["a", "b", "z"], field) == "Alpha, Beta, z"

    def test_dictionary_shows_first_pairs(self):
        field = make_dictionary_field(option_values=("red", "blue", "green"))

        assert format_field_value({"red": "r1", "blue": "b1"}, field) == "Red: r1, Blue: b1"
        assert format_field_value({"red": "r1", "blue": "b1", "green": "g1"}, field) == "Red: r1, Blue: b1, ..."
        assert format_field_value({}, field) == "-"

    def test_plain_text(self):
        assert format_field_value(42, make_field(type=FieldType.NUMBER)) == "42"
