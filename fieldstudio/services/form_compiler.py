"""
Dynamic Form Compiler

Turns a module's field catalog (plus an existing entity in edit mode) into
control descriptors a UI layer renders as inputs, and turns submitted
control values back into entity data.

DICTIONARY fields fan out into one control per option, keyed
``"{field.name}_{option.value}"``, and fan back in on submit:

    compiled = compile_form(fields)
    # keys: colors_red, colors_blue
    submission = decompile(fields, {"colors_red": "r1", "colors_blue": "b1"})
    # submission.custom_fields == {"colors": {"red": "r1", "blue": "b1"}}
"""

from __future__ import annotations

import copy
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from fieldstudio.models.contracts.diagnostics import ConfigWarning
from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.enums import FieldType, WarningCode
from fieldstudio.services.validators import (
    RequiredValidator,
    Validator,
    build_validators,
    run_validators,
)

logger = logging.getLogger(__name__)

CUSTOM_FIELDS_KEY = "customFields"


@dataclass
class ControlDescriptor:
    """A single form control to render."""
    key: str
    initial_value: Any
    validators: list[Validator] = field(default_factory=list)
    disabled: bool = False
    field_id: str = ""
    field_name: str = ""
    field_type: FieldType = FieldType.TEXT
    option_value: str | None = None  # Set on DICTIONARY sub-controls
    error_message: str | None = None

    @property
    def required(self) -> bool:
        return any(isinstance(v, RequiredValidator) for v in self.validators)

    def validate(self, value: Any) -> dict[str, Any]:
        """Errors for ``value``; empty dict when valid."""
        return run_validators(self.validators, value)


@dataclass
class CompiledForm:
    """Controls produced by ``compile_form`` and the warnings found on the way."""
    controls: list[ControlDescriptor] = field(default_factory=list)
    warnings: list[ConfigWarning] = field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.controls]

    def control(self, key: str) -> ControlDescriptor | None:
        for descriptor in self.controls:
            if descriptor.key == key:
                return descriptor
        return None

    def initial_values(self) -> dict[str, Any]:
        return {c.key: c.initial_value for c in self.controls}

    def validate(self, values: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        """Errors per control key, only for controls that fail."""
        errors = {}
        for descriptor in self.controls:
            if descriptor.disabled:
                continue
            control_errors = descriptor.validate(values.get(descriptor.key))
            if control_errors:
                errors[descriptor.key] = control_errors
        return errors


@dataclass
class FormSubmission:
    """Submitted values routed to built-in entity properties or customFields."""
    default_fields: dict[str, Any] = field(default_factory=dict)
    custom_fields: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Values
# =============================================================================


def dictionary_control_key(field_def: FieldDefinition, option_value: str) -> str:
    return f"{field_def.name}_{option_value}"


def default_value_for(field_def: FieldDefinition) -> Any:
    """Explicit default when set (a fresh copy), otherwise the empty value of the field type."""
    if field_def.default_value is not None:
        return copy.deepcopy(field_def.default_value)
    if field_def.type == FieldType.CHECKBOX:
        return False
    if field_def.type in (FieldType.NUMBER, FieldType.CURRENCY):
        return None
    if field_def.type == FieldType.MULTISELECT:
        return []
    return ""


def _custom_fields(entity: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not entity:
        return {}
    custom = entity.get(CUSTOM_FIELDS_KEY)
    return custom if isinstance(custom, Mapping) else {}


def initial_value_for(field_def: FieldDefinition, entity: Mapping[str, Any] | None = None) -> Any:
    """
    Value a control starts with.

    Edit mode looks for a built-in entity property with the field name, then
    for ``customFields[name]``; anything else falls back to the default.
    """
    if entity is not None:
        if field_def.name != CUSTOM_FIELDS_KEY and field_def.name in entity:
            return entity[field_def.name]
        custom = _custom_fields(entity)
        if field_def.name in custom:
            return custom[field_def.name]
    return default_value_for(field_def)


def dictionary_option_value(
    field_def: FieldDefinition,
    option_value: str,
    entity: Mapping[str, Any] | None = None,
) -> Any:
    """Stored value of one dictionary option, or '' when there is none."""
    stored = _custom_fields(entity).get(field_def.name)
    if isinstance(stored, Mapping):
        value = stored.get(option_value)
        if value is not None:
            return value
    return ""


# =============================================================================
# Compile / decompile
# =============================================================================


def _compilable(fields: Sequence[FieldDefinition]) -> list[FieldDefinition]:
    """Active fields in form order, without dictionaries that have no options."""
    active = sorted((f for f in fields if f.is_active), key=lambda f: f.form_order)
    return [f for f in active if not (f.type == FieldType.DICTIONARY and not f.options)]


def compile_form(
    fields: Sequence[FieldDefinition],
    existing_entity: Mapping[str, Any] | None = None,
    *,
    disabled: bool = False,
) -> CompiledForm:
    """
    Compile the field catalog into form controls.

    Args:
        fields: Module field catalog
        existing_entity: Entity being edited (mapping with optional customFields)
        disabled: Render every control read-only (view mode)

    Returns:
        CompiledForm with the controls in form order and any warnings
    """
    compiled = CompiledForm()

    for field_def in fields:
        if not field_def.is_active and field_def.grid_config.show_in_grid:
            message = f"Field '{field_def.label}' is shown in the grid but inactive"
            logger.warning(message)
            compiled.warnings.append(
                ConfigWarning(code=WarningCode.INACTIVE_GRID_FIELD, message=message, field_id=field_def.id)
            )
        if field_def.is_active and field_def.type == FieldType.DICTIONARY and not field_def.options:
            message = f"Dictionary field '{field_def.label}' has no options and will not be rendered"
            logger.warning(message)
            compiled.warnings.append(
                ConfigWarning(code=WarningCode.DICTIONARY_WITHOUT_OPTIONS, message=message, field_id=field_def.id)
            )

    for field_def in _compilable(fields):
        if field_def.type == FieldType.DICTIONARY:
            for option in field_def.options:
                compiled.controls.append(ControlDescriptor(
                    key=dictionary_control_key(field_def, option.value),
                    initial_value=dictionary_option_value(field_def, option.value, existing_entity),
                    validators=[RequiredValidator()] if field_def.validation.required else [],
                    disabled=disabled,
                    field_id=field_def.id,
                    field_name=field_def.name,
                    field_type=field_def.type,
                    option_value=option.value,
                    error_message=field_def.validation.custom_message,
                ))
            continue

        compiled.controls.append(ControlDescriptor(
            key=field_def.name,
            initial_value=initial_value_for(field_def, existing_entity),
            validators=build_validators(field_def),
            disabled=disabled,
            field_id=field_def.id,
            field_name=field_def.name,
            field_type=field_def.type,
            error_message=field_def.validation.custom_message,
        ))

    key_counts = Counter(compiled.keys)
    reported: set[str] = set()
    for descriptor in compiled.controls:
        if key_counts[descriptor.key] < 2 or descriptor.field_id in reported:
            continue
        reported.add(descriptor.field_id)
        message = f"Control key '{descriptor.key}' of field '{descriptor.field_name}' is produced by more than one control"
        logger.warning(message)
        compiled.warnings.append(
            ConfigWarning(code=WarningCode.DUPLICATE_CONTROL_KEY, message=message, field_id=descriptor.field_id)
        )

    logger.debug(f"Compiled {len(compiled.controls)} controls from {len(fields)} fields")
    return compiled


def decompile(fields: Sequence[FieldDefinition], form_values: Mapping[str, Any]) -> FormSubmission:
    """
    Turn submitted control values back into entity data.

    Dictionary sub-controls are regrouped into ``{option_value: value}``
    (missing or None values become ''). Values of ``is_default`` fields go to
    ``default_fields``, the rest to ``custom_fields``. A plain field whose key
    was not submitted is left out so stored data is not overwritten.
    """
    submission = FormSubmission()

    for field_def in _compilable(fields):
        if field_def.type == FieldType.DICTIONARY:
            value: Any = {}
            for option in field_def.options:
                option_value = form_values.get(dictionary_control_key(field_def, option.value))
                value[option.value] = option_value if option_value is not None else ""
        elif field_def.name in form_values:
            value = form_values[field_def.name]
        else:
            continue

        target = submission.default_fields if field_def.is_default else submission.custom_fields
        target[field_def.name] = value

    return submission


def build_entity_payload(
    submission: FormSubmission,
    existing_entity: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Entity data to create or update from a submission.

    When editing, custom fields not present in the submission are kept.
    """
    custom = dict(_custom_fields(existing_entity))
    custom.update(submission.custom_fields)
    return {**submission.default_fields, CUSTOM_FIELDS_KEY: custom}
